"""
Registry change notification.

A small publish/subscribe channel: listeners receive a RegistryEvent each
time a registry is added, removed, or restored after a restart.
"""

from __future__ import annotations

import logging
from typing import Callable

from teamreg.core.registry.models import RegistryDescriptor, RegistryEvent, RegistryEventKind

logger = logging.getLogger(__name__)

RegistryListener = Callable[[RegistryEvent], None]


class RegistryEventBus:
    """
    Fan registry events out to subscribed listeners.

    Example:
        >>> bus = RegistryEventBus()
        >>> unsubscribe = bus.subscribe(lambda event: print(event.kind.value))
        >>> bus.emit(RegistryEventKind.REMOVED, None)
        removed
        >>> unsubscribe()
    """

    def __init__(self) -> None:
        self._listeners: list[RegistryListener] = []

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, kind: RegistryEventKind, registry: RegistryDescriptor | None) -> RegistryEvent:
        """Deliver an event to every listener, in subscription order."""
        event = RegistryEvent(kind=kind, registry=registry)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # A broken listener must not abort the registry operation
                logger.exception("Registry listener failed on %s event", kind.value)
        return event
