"""Process-wide tree change notifications."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from content_navigator.navigator.identity import Locator

logger = logging.getLogger(__name__)

TreeListener = Callable[[], None]
DocumentListener = Callable[["Locator"], None]


class TreeChangeNotifier:
    """Two-channel broadcast point between the navigator and the host UI.

    ``tree_changed`` carries no payload: listeners re-fetch children.
    ``document_changed`` carries the locator whose backing content changed.
    Inside :meth:`batch`, tree changes are coalesced into one event fired
    when the outermost batch exits.
    """

    def __init__(self) -> None:
        self._tree_listeners: list[TreeListener] = []
        self._document_listeners: list[DocumentListener] = []
        self._batch_depth = 0
        self._pending = False

    def on_tree_changed(self, listener: TreeListener) -> Callable[[], None]:
        """Subscribe to tree shape changes. Returns an unsubscribe callable."""
        self._tree_listeners.append(listener)
        return lambda: self._tree_listeners.remove(listener)

    def on_document_changed(self, listener: DocumentListener) -> Callable[[], None]:
        """Subscribe to document content changes. Returns an unsubscribe callable."""
        self._document_listeners.append(listener)
        return lambda: self._document_listeners.remove(listener)

    def tree_changed(self) -> None:
        if self._batch_depth:
            self._pending = True
            return
        for listener in list(self._tree_listeners):
            try:
                listener()
            except Exception:
                logger.exception("[tree_changed] listener failed")

    def document_changed(self, locator: Locator) -> None:
        for listener in list(self._document_listeners):
            try:
                listener(locator)
            except Exception:
                logger.exception("[document_changed] listener failed; locator:%s", locator)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Coalesce tree changes published inside the block into a single event."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if not self._batch_depth and self._pending:
                self._pending = False
                self.tree_changed()


notifier = TreeChangeNotifier()
