"""Mutation engine — state transitions of remote resources.

Every public operation returns the new resource, ``True``, or a falsy value.
Expected failures (see :mod:`content_navigator.errors`) are logged and
converted at this boundary so that batch callers can keep processing
siblings. Mutations never patch local state; on success they publish a tree
change and the host re-queries the repository.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from content_navigator.errors import (
    InvalidTarget,
    Messages,
    MoveRejected,
    NavigatorError,
    NoPreviousParent,
    NoRecycleTarget,
    TransportFailure,
    UserAborted,
)
from content_navigator.navigator.editors import CloseOutcome, close_if_open
from content_navigator.navigator.events import TreeChangeNotifier, notifier
from content_navigator.navigator.identity import (
    is_container,
    is_reference,
    link_uri,
    locator_for,
    resource_uri,
)
from content_navigator.repository.models import (
    RECYCLE_BIN_DELEGATE,
    REL_PREVIOUS_PARENT,
    REL_SELF,
)

if TYPE_CHECKING:
    from content_navigator.navigator.editors import EditorHost
    from content_navigator.repository.models import Resource
    from content_navigator.repository.protocol import ContentRepository

logger = logging.getLogger(__name__)


class MutationEngine:
    """Runs create/rename/delete/move/recycle/restore/favorite operations."""

    def __init__(
        self,
        repository: ContentRepository,
        editors: EditorHost,
        events: TreeChangeNotifier = notifier,
        recycle_bin_delegate: str = RECYCLE_BIN_DELEGATE,
    ) -> None:
        """Initialise the engine.

        Args:
            repository: Content repository performing the remote calls.
            editors: Host editor, used to close and reopen affected tabs.
            events: Notifier receiving tree and document change events.
            recycle_bin_delegate: Delegate name of the recycle bin.
        """
        self._repository = repository
        self._editors = editors
        self._events = events
        self._recycle_bin_delegate = recycle_bin_delegate

    async def _close(self, resource: Resource) -> CloseOutcome:
        outcome = await close_if_open(self._editors, resource)
        if not outcome.proceed:
            raise UserAborted(resource.name)
        return outcome

    async def _move_to(self, resource: Resource, target_uri: str) -> None:
        if not await self._repository.move_to(resource, target_uri):
            raise MoveRejected(f"move of '{resource.name}' to {target_uri} was rejected")

    async def create_folder(self, parent: Resource, name: str) -> Resource | None:
        try:
            if not is_container(parent):
                raise InvalidTarget(parent.name)
            folder = await self._repository.create_folder(parent, name)
        except NavigatorError as exc:
            logger.warning("[create_folder] failed; name:%s;error:%s", name, exc)
            return None
        logger.info("[create_folder] created; name:%s;parent:%s", name, parent.name)
        self._events.tree_changed()
        return folder

    async def create_file(
        self, parent: Resource, name: str, content: bytes = b""
    ) -> Resource | None:
        try:
            if not is_container(parent):
                raise InvalidTarget(parent.name)
            created = await self._repository.create_file(parent, name, content)
        except NavigatorError as exc:
            logger.warning("[create_file] failed; name:%s;error:%s", name, exc)
            return None
        logger.info(
            "[create_file] created; name:%s;parent:%s;size:%d", name, parent.name, len(content)
        )
        self._events.tree_changed()
        return created

    async def rename(self, resource: Resource, name: str) -> Resource | None:
        """Rename a resource, closing its open tab first and reopening it afterwards.

        When the user declines to close the tab, nothing is sent to the
        repository and the tab stays open at its old locator.
        """
        try:
            outcome = await self._close(resource)
        except UserAborted as exc:
            logger.info("[rename] aborted; name:%s;error:%s", resource.name, exc)
            return None
        try:
            renamed = await self._repository.rename(resource, name)
        except NavigatorError as exc:
            logger.warning(
                "[rename] failed; name:%s;new_name:%s;error:%s", resource.name, name, exc
            )
            if outcome is CloseOutcome.CLOSED:
                await self._editors.open_document(locator_for(resource))
            return None
        if outcome is CloseOutcome.CLOSED:
            await self._editors.open_document(locator_for(renamed))
        logger.info("[rename] renamed; old_name:%s;new_name:%s", resource.name, renamed.name)
        self._events.tree_changed()
        return renamed

    async def delete(self, resource: Resource) -> bool:
        """Permanently delete a resource.

        A favorites reference only drops the favorite entry; the resource it
        points at is left alone.
        """
        if is_reference(resource):
            return await self.remove_favorite(resource)
        try:
            await self._close(resource)
            await self._repository.delete(resource)
        except NavigatorError as exc:
            logger.warning("[delete] failed; name:%s;error:%s", resource.name, exc)
            return False
        logger.info("[delete] deleted; name:%s", resource.name)
        self._events.tree_changed()
        return True

    async def recycle(self, resource: Resource) -> bool:
        """Move a resource to the recycle bin, deleting it when there is no recycle bin."""
        if is_reference(resource):
            logger.warning("[recycle] favorites entries cannot be recycled; name:%s", resource.name)
            return False
        try:
            recycle_bin = await self._repository.get_delegate_folder(self._recycle_bin_delegate)
        except TransportFailure as exc:
            logger.warning("[recycle] recycle bin lookup failed; error:%s", exc)
            return False
        if recycle_bin is None:
            logger.info("[recycle] no recycle bin, deleting instead; name:%s", resource.name)
            return await self.delete(resource)
        try:
            target_uri = link_uri(recycle_bin, REL_SELF)
            if not target_uri:
                raise NoRecycleTarget("recycle bin has no self link")
            await self._close(resource)
            await self._move_to(resource, target_uri)
        except NavigatorError as exc:
            logger.warning("[recycle] failed; name:%s;error:%s", resource.name, exc)
            return False
        logger.info("[recycle] recycled; name:%s", resource.name)
        self._events.tree_changed()
        # A read-only tab may already show this id from an earlier stay in the recycle bin.
        self._events.document_changed(locator_for(resource, read_only=True))
        return True

    async def restore(self, resource: Resource) -> bool:
        try:
            previous_parent = link_uri(resource, REL_PREVIOUS_PARENT)
            if not previous_parent:
                raise NoPreviousParent(resource.name)
            await self._close(resource)
            await self._move_to(resource, previous_parent)
        except NavigatorError as exc:
            logger.warning("[restore] failed; name:%s;error:%s", resource.name, exc)
            return False
        logger.info("[restore] restored; name:%s;parent:%s", resource.name, previous_parent)
        self._events.tree_changed()
        return True

    async def empty_trash(self) -> bool:
        """Delete every child of the recycle bin.

        Succeeds only when every child was deleted; otherwise the names of the
        survivors are reported to the host in one message.
        """
        try:
            recycle_bin = await self._repository.get_delegate_folder(self._recycle_bin_delegate)
            if recycle_bin is None:
                raise NoRecycleTarget("no recycle bin")
            children = await self._repository.get_children(recycle_bin)
        except NavigatorError as exc:
            logger.warning("[empty_trash] failed; error:%s", exc)
            return False

        with self._events.batch():
            results = await asyncio.gather(*(self.delete(child) for child in children))

        failed = [
            child.name for child, deleted in zip(children, results, strict=True) if not deleted
        ]
        if failed:
            logger.warning(
                "[empty_trash] some items were not deleted; failed_count:%d;total:%d",
                len(failed),
                len(children),
            )
            self._editors.show_error(
                Messages.EMPTY_RECYCLE_BIN_ERROR.format(name=Messages.join_names(failed))
            )
            return False
        logger.info("[empty_trash] emptied; deleted_count:%d", len(children))
        return True

    async def add_favorite(self, resource: Resource) -> bool:
        try:
            added = await self._repository.add_favorite(resource)
        except NavigatorError as exc:
            logger.warning("[add_favorite] failed; name:%s;error:%s", resource.name, exc)
            return False
        if added:
            self._events.tree_changed()
        return added

    async def remove_favorite(self, resource: Resource) -> bool:
        try:
            removed = await self._repository.remove_favorite(resource)
        except NavigatorError as exc:
            logger.warning("[remove_favorite] failed; name:%s;error:%s", resource.name, exc)
            return False
        if removed:
            self._events.tree_changed()
        return removed

    async def move(self, resource: Resource, destination: Resource) -> bool:
        """Move a resource into the ``destination`` container."""
        try:
            target_uri = resource_uri(destination)
            if not is_container(destination) or not target_uri:
                raise MoveRejected(f"'{destination.name}' is not a container")
            await self._move_to(resource, target_uri)
        except NavigatorError as exc:
            logger.warning(
                "[move] failed; name:%s;destination:%s;error:%s",
                resource.name,
                destination.name,
                exc,
            )
            return False
        logger.info("[move] moved; name:%s;destination:%s", resource.name, destination.name)
        self._events.tree_changed()
        return True
