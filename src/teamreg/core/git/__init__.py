"""
Git process execution.

Example:
    >>> from teamreg.core.git import GitRunner
    >>> runner = GitRunner()
    >>> runner.run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=Path("."))
    'main'
"""

from teamreg.core.errors import GitError
from teamreg.core.git.runner import GitRunner

__all__ = ["GitError", "GitRunner"]
