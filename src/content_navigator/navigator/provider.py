"""Content navigator — the editor-facing surface of the content store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from content_navigator.errors import TransportFailure
from content_navigator.navigator.drop import DropReconciler
from content_navigator.navigator.events import TreeChangeNotifier, notifier
from content_navigator.navigator.identity import is_container, locator_for
from content_navigator.navigator.mutations import MutationEngine
from content_navigator.navigator.transfer import TransferOrchestrator, path_from_uri
from content_navigator.repository.models import RECYCLE_BIN_DELEGATE
from content_navigator.repository.rest import repository_from_config

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime
    from pathlib import Path

    from content_navigator.config import AppConfig
    from content_navigator.navigator.drop import DropReport
    from content_navigator.navigator.editors import EditorHost
    from content_navigator.navigator.identity import Locator
    from content_navigator.navigator.transfer import FileSystem, TransferReport
    from content_navigator.repository.models import Resource
    from content_navigator.repository.protocol import ContentRepository

logger = logging.getLogger(__name__)


class FileType(IntEnum):
    FILE = 1
    DIRECTORY = 2


@dataclass(frozen=True)
class FileStat:
    """File metadata in the host's file system shape; times are epoch milliseconds."""

    type: FileType
    ctime: int
    mtime: int
    size: int


def _epoch_ms(value: datetime | None) -> int:
    return int(value.timestamp() * 1000) if value else 0


class ContentNavigator:
    """Tree, file system and drag-and-drop surface exposed to the host editor."""

    def __init__(
        self,
        repository: ContentRepository,
        editors: EditorHost,
        file_system: FileSystem | None = None,
        events: TreeChangeNotifier = notifier,
        recycle_bin_delegate: str = RECYCLE_BIN_DELEGATE,
    ) -> None:
        """Wire the navigator components together.

        Args:
            repository: Content repository backing the tree.
            editors: Host editor capability.
            file_system: Local file system used for uploads and downloads.
            events: Notifier the host subscribes to.
            recycle_bin_delegate: Delegate name of the recycle bin.
        """
        self._repository = repository
        self._editors = editors
        self.events = events
        self.engine = MutationEngine(repository, editors, events, recycle_bin_delegate)
        self.transfers = TransferOrchestrator(repository, self.engine, editors, file_system, events)
        self.drops = DropReconciler(self.engine, self.transfers, editors, events)

    @property
    def repository(self) -> ContentRepository:
        return self._repository

    async def connect(self, endpoint: str) -> None:
        await self._repository.connect(endpoint)
        self.refresh()

    def refresh(self) -> None:
        self.events.tree_changed()

    def reveal(self, resource: Resource) -> None:
        self._editors.reveal(resource)

    # ------------------------------------------------------------------
    # Tree queries
    # ------------------------------------------------------------------

    async def get_children(self, resource: Resource | None = None) -> list[Resource]:
        try:
            return await self._repository.get_children(resource)
        except TransportFailure as exc:
            logger.warning("[get_children] failed; error:%s", exc)
            return []

    async def get_parent(self, resource: Resource) -> Resource | None:
        try:
            return await self._repository.get_parent(resource)
        except TransportFailure as exc:
            logger.warning("[get_parent] failed; name:%s;error:%s", resource.name, exc)
            return None

    def get_locator(self, resource: Resource, read_only: bool = False) -> Locator:
        return locator_for(resource, read_only)

    # ------------------------------------------------------------------
    # File system surface
    # ------------------------------------------------------------------

    async def stat(self, locator: Locator) -> FileStat:
        resource = await self._repository.get_resource_by_locator(locator)
        return FileStat(
            type=FileType.DIRECTORY if is_container(resource) else FileType.FILE,
            ctime=_epoch_ms(resource.created_at),
            mtime=_epoch_ms(resource.modified_at),
            size=resource.size,
        )

    async def read_file(self, locator: Locator) -> bytes:
        return await self._repository.get_content_by_locator(locator)

    async def write_file(self, locator: Locator, content: bytes) -> None:
        await self._repository.save_content(locator, content)
        self.events.document_changed(locator)

    async def provide_document_content(self, locator: Locator) -> str:
        """Text for the read-only view used by recycle bin documents.

        Bytes that are not valid UTF-8 are shown as replacement characters.
        """
        content = await self._repository.get_content_by_locator(locator)
        return content.decode("utf-8", errors="replace")

    def delete(self, *args: Any) -> None:
        raise NotImplementedError("Method not implemented.")

    def rename(self, *args: Any) -> None:
        raise NotImplementedError("Method not implemented.")

    def read_directory(self, *args: Any) -> None:
        raise NotImplementedError("Method not implemented.")

    def create_directory(self, *args: Any) -> None:
        raise NotImplementedError("Method not implemented.")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_folder(self, parent: Resource, name: str) -> Locator | None:
        folder = await self.engine.create_folder(parent, name)
        return locator_for(folder) if folder else None

    async def create_file(
        self, parent: Resource, name: str, content: bytes = b""
    ) -> Locator | None:
        created = await self.engine.create_file(parent, name, content)
        return locator_for(created) if created else None

    async def rename_resource(self, resource: Resource, name: str) -> Locator | None:
        renamed = await self.engine.rename(resource, name)
        return locator_for(renamed) if renamed else None

    async def delete_resource(self, resource: Resource) -> bool:
        return await self.engine.delete(resource)

    async def recycle_resource(self, resource: Resource) -> bool:
        return await self.engine.recycle(resource)

    async def restore_resource(self, resource: Resource) -> bool:
        return await self.engine.restore(resource)

    async def empty_recycle_bin(self) -> bool:
        return await self.engine.empty_trash()

    async def add_to_my_favorites(self, resource: Resource) -> bool:
        return await self.engine.add_favorite(resource)

    async def remove_from_my_favorites(self, resource: Resource) -> bool:
        return await self.engine.remove_favorite(resource)

    def handle_creation_response(
        self, resource: Resource, locator: Locator | None, error_message: str
    ) -> None:
        """Show ``error_message`` when creation failed, otherwise reveal ``resource``."""
        if locator is None:
            self._editors.show_error(error_message)
            return
        self.reveal(resource)

    async def acquire_session_id(self, endpoint: str = "") -> str:
        if endpoint and not self._repository.connected():
            await self.connect(endpoint)
        return await self._repository.acquire_session_id()

    # ------------------------------------------------------------------
    # Drag and drop, uploads and downloads
    # ------------------------------------------------------------------

    def handle_drag(self, sources: Sequence[Resource]) -> dict[str, str]:
        return self.drops.handle_drag(sources)

    async def handle_drop(self, target: Resource, payload: Mapping[str, Any]) -> DropReport:
        return await self.drops.handle_drop(target, payload)

    async def upload_uris_to_target(self, uris: Sequence[str], target: Resource) -> TransferReport:
        return await self.transfers.upload_paths([path_from_uri(uri) for uri in uris], target)

    async def download_content_items(
        self,
        folder: Path,
        selections: Sequence[Resource],
        all_selections: Sequence[Resource],
    ) -> TransferReport:
        return await self.transfers.download_selections(selections, all_selections, folder)


def navigator_from_config(config: AppConfig, editors: EditorHost) -> ContentNavigator:
    """Construct a ContentNavigator backed by the REST repository.

    Args:
        config: Application configuration instance.
        editors: Host editor capability.

    Returns:
        Configured ContentNavigator instance (not yet connected).
    """
    return ContentNavigator(
        repository=repository_from_config(config),
        editors=editors,
        recycle_bin_delegate=config.recycle_bin_delegate,
    )
