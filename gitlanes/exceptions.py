"""Exception hierarchy for gitlanes.

GitLanesError (base)
├── InvalidCommitError   – malformed commit payload at the data-layer boundary
├── RenderSurfaceError   – no 2D drawing context could be acquired
├── HistoryError         – repository cannot be opened or walked
└── ConfigError          – unreadable settings file or invalid values
"""

from typing import Any


class GitLanesError(Exception):
    """Base exception for gitlanes."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class InvalidCommitError(GitLanesError):
    """A commit record from the data layer is missing required fields."""

    pass


class RenderSurfaceError(GitLanesError):
    """The renderer could not obtain a drawing context for its surface."""

    pass


class HistoryError(GitLanesError):
    """Commit history could not be read."""

    pass


class ConfigError(GitLanesError):
    """Settings could not be loaded or contain invalid values."""

    pass
