"""Editor host capability and the close-before-mutate discipline."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from content_navigator.navigator.identity import is_in_recycle_bin, locator_for

if TYPE_CHECKING:
    from content_navigator.navigator.identity import Locator
    from content_navigator.repository.models import Resource

logger = logging.getLogger(__name__)


@runtime_checkable
class EditorHost(Protocol):
    """What the navigator needs from the host editor."""

    def find_open_document(self, locator: Locator) -> Any | None:
        """Return a handle for the open tab showing ``locator``, if any."""
        ...

    async def close_document(self, handle: Any) -> bool:
        """Close a tab; False when the user cancels (e.g. keeps unsaved changes)."""
        ...

    async def open_document(self, locator: Locator) -> None: ...

    def show_error(self, message: str) -> None: ...

    def reveal(self, resource: Resource) -> None: ...


class CloseOutcome(Enum):
    NOT_OPEN = "not_open"
    CLOSED = "closed"
    ABORTED = "aborted"

    @property
    def proceed(self) -> bool:
        return self is not CloseOutcome.ABORTED


async def close_if_open(editors: EditorHost, resource: Resource) -> CloseOutcome:
    """Close the tab showing ``resource`` before it is mutated.

    Recycle bin documents are opened read-only, so the read-only locator is
    the one looked up for them.
    """
    locator = locator_for(resource, is_in_recycle_bin(resource))
    handle = editors.find_open_document(locator)
    if handle is None:
        return CloseOutcome.NOT_OPEN
    if await editors.close_document(handle):
        return CloseOutcome.CLOSED
    logger.info("[close_if_open] close cancelled by user; locator:%s", locator)
    return CloseOutcome.ABORTED
