"""Failure taxonomy and user-facing failure messages."""

from __future__ import annotations


class NavigatorError(Exception):
    """Base class for expected operation failures."""


class InvalidTarget(NavigatorError):
    """Raised when a mutation targets a parent that is not a container."""

    def __init__(self, name: str) -> None:
        super().__init__(f"'{name}' is not a container")
        self.name = name


class NoRecycleTarget(NavigatorError):
    """Raised when the recycle bin's address cannot be resolved."""


class NoPreviousParent(NavigatorError):
    """Raised when a restore is requested for a resource without a previous parent."""

    def __init__(self, name: str) -> None:
        super().__init__(f"'{name}' has no previous parent to restore to")
        self.name = name


class MoveRejected(NavigatorError):
    """Raised when a move destination is not a container or the service refuses the move."""


class TransportFailure(NavigatorError):
    """Opaque failure reported by a content repository."""


class UserAborted(NavigatorError):
    """Raised when the user declines to close an open editor before a mutation."""

    def __init__(self, name: str) -> None:
        super().__init__(f"closing '{name}' was cancelled")
        self.name = name


class Messages:
    """User-facing message templates, formatted with ``name``."""

    FILE_DROP_ERROR = "Unable to drop {name}."
    FILE_DRAG_FROM_TRASH_ERROR = "Unable to drag {name} out of the recycle bin."
    FILE_DRAG_FROM_FAVORITES = "Unable to drag {name} out of My Favorites."
    FILE_UPLOAD_ERROR = "Unable to upload: {name}."
    FILE_DOWNLOAD_ERROR = "Unable to download: {name}."
    EMPTY_RECYCLE_BIN_ERROR = "Unable to empty the recycle bin: {name}."
    NEW_FILE_CREATION_ERROR = "Unable to create file {name}."
    NEW_FOLDER_CREATION_ERROR = "Unable to create folder {name}."

    @staticmethod
    def join_names(names: list[str]) -> str:
        """Join item names for a single consolidated message."""
        return ", ".join(f'"{name}"' for name in names)
