"""Transfer orchestrator — recursive import and export of folder trees.

Imports walk a local directory and recreate it remotely; exports walk
selected remote resources and recreate them under a local directory. Both
run sibling entries concurrently on the event loop, with blocking file
system calls pushed to worker threads.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlparse
from urllib.request import url2pathname

from content_navigator.errors import Messages, NavigatorError, TransportFailure
from content_navigator.navigator.events import TreeChangeNotifier, notifier
from content_navigator.navigator.identity import is_container, locator_for, resource_uri

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from content_navigator.navigator.editors import EditorHost
    from content_navigator.navigator.mutations import MutationEngine
    from content_navigator.repository.models import Resource
    from content_navigator.repository.protocol import ContentRepository

logger = logging.getLogger(__name__)


class FileSystem(Protocol):
    """Local file system access used by imports and exports."""

    async def is_dir(self, path: Path) -> bool: ...

    async def list_dir(self, path: Path) -> list[Path]: ...

    async def read_bytes(self, path: Path) -> bytes: ...

    async def write_bytes(self, path: Path, content: bytes) -> None: ...

    async def make_dir(self, path: Path) -> None: ...


class LocalFileSystem:
    """FileSystem over the machine's disk, run in worker threads."""

    async def is_dir(self, path: Path) -> bool:
        return await asyncio.to_thread(path.is_dir)

    async def list_dir(self, path: Path) -> list[Path]:
        return await asyncio.to_thread(lambda: sorted(path.iterdir()))

    async def read_bytes(self, path: Path) -> bytes:
        return await asyncio.to_thread(path.read_bytes)

    async def write_bytes(self, path: Path, content: bytes) -> None:
        await asyncio.to_thread(path.write_bytes, content)

    async def make_dir(self, path: Path) -> None:
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)


@dataclass
class TransferReport:
    """Names of the items that could not be transferred."""

    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def path_from_uri(uri: str) -> Path:
    """Local path of a ``file:`` URI; other strings are treated as plain paths."""
    parsed = urlparse(uri.strip())
    if parsed.scheme == "file":
        return Path(url2pathname(parsed.path))
    return Path(uri.strip())


class TransferOrchestrator:
    """Recursive uploads into, and downloads out of, the content store."""

    def __init__(
        self,
        repository: ContentRepository,
        engine: MutationEngine,
        editors: EditorHost,
        file_system: FileSystem | None = None,
        events: TreeChangeNotifier = notifier,
    ) -> None:
        """Initialise the orchestrator.

        Args:
            repository: Content repository used for listing and reading content.
            engine: Mutation engine used to create remote folders and files.
            editors: Host editor receiving consolidated failure messages.
            file_system: Local file system access; defaults to the real disk.
            events: Notifier used to coalesce tree changes per batch.
        """
        self._repository = repository
        self._engine = engine
        self._editors = editors
        self._fs = file_system or LocalFileSystem()
        self._events = events

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def effective_children(
        self, container: Resource, all_selections: Sequence[Resource]
    ) -> list[Resource]:
        """Children of ``container`` to export.

        Explicitly selected children win. A folder with no selected children
        was collapsed when the selection was made, so all of its children are
        fetched.
        """
        container_uri = resource_uri(container)
        selected = [
            selection
            for selection in all_selections
            if selection.parent_folder_uri and selection.parent_folder_uri == container_uri
        ]
        if selected:
            return selected
        return await self._repository.get_children(container)

    async def minimal_covering_set(
        self,
        selections: Sequence[Resource],
        all_selections: Sequence[Resource] | None = None,
    ) -> list[Resource]:
        """Drop selections that the export of a selected ancestor folder already writes.

        A selection is covered when some ancestor container is selected and
        the recursion into that ancestor reaches it, i.e. no folder on the
        path between them narrows its export to other selected children.
        """
        narrowing = all_selections if all_selections is not None else selections
        selected = {
            resource_uri(selection) for selection in selections if is_container(selection)
        }
        if not selected:
            return list(selections)
        covered = await asyncio.gather(
            *(self._reached_from(selection, selected, narrowing) for selection in selections)
        )
        return [
            selection
            for selection, is_covered in zip(selections, covered, strict=True)
            if not is_covered
        ]

    async def _reached_from(
        self,
        resource: Resource,
        selected: set[str | None],
        all_selections: Sequence[Resource],
    ) -> bool:
        current = resource
        visited: set[str] = set()
        while current.parent_folder_uri and current.parent_folder_uri not in visited:
            parent_uri = current.parent_folder_uri
            visited.add(parent_uri)
            siblings = {
                resource_uri(selection)
                for selection in all_selections
                if selection.parent_folder_uri == parent_uri
            }
            if siblings and resource_uri(current) not in siblings:
                return False
            if parent_uri in selected:
                return True
            try:
                parent = await self._repository.get_parent(current)
            except TransportFailure as exc:
                logger.warning(
                    "[minimal_covering_set] parent lookup failed; name:%s;error:%s",
                    current.name,
                    exc,
                )
                return False
            if parent is None:
                return False
            current = parent
        return False

    async def download_selections(
        self,
        selections: Sequence[Resource],
        all_selections: Sequence[Resource],
        destination: Path,
    ) -> TransferReport:
        """Write the selected resources under ``destination``.

        Args:
            selections: Resources to export.
            all_selections: Every resource selected in the tree, used to narrow
                expanded folders to their selected children.
            destination: Existing local directory receiving the export.

        Returns:
            Report listing the names that failed.
        """
        report = TransferReport()
        roots = await self.minimal_covering_set(selections, all_selections)
        await self._download_all(roots, all_selections, destination, report)
        if report.failed:
            self._editors.show_error(
                Messages.FILE_DOWNLOAD_ERROR.format(name=Messages.join_names(report.failed))
            )
        logger.info(
            "[download_selections] complete; selection_count:%d;failed_count:%d",
            len(selections),
            len(report.failed),
        )
        return report

    async def _download_all(
        self,
        selections: Iterable[Resource],
        all_selections: Sequence[Resource],
        folder: Path,
        report: TransferReport,
    ) -> None:
        await asyncio.gather(
            *(self._download(selection, all_selections, folder, report) for selection in selections)
        )

    async def _download(
        self,
        selection: Resource,
        all_selections: Sequence[Resource],
        folder: Path,
        report: TransferReport,
    ) -> None:
        target = folder / selection.name
        try:
            if not is_container(selection):
                content = await self._repository.get_content_by_locator(locator_for(selection))
                await self._fs.write_bytes(target, content)
                return
            children = await self.effective_children(selection, all_selections)
            await self._fs.make_dir(target)
        except (NavigatorError, OSError) as exc:
            logger.warning("[download] failed; name:%s;error:%s", selection.name, exc)
            report.failed.append(selection.name)
            return
        await self._download_all(children, all_selections, target, report)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    async def upload_file(self, target: Resource, path: Path, report: TransferReport) -> bool:
        """Read a local file fully and create it under ``target``."""
        try:
            content = await self._fs.read_bytes(path)
        except OSError as exc:
            logger.warning("[upload_file] read failed; path:%s;error:%s", path, exc)
            report.failed.append(path.name)
            return False
        if await self._engine.create_file(target, path.name, content) is None:
            report.failed.append(path.name)
            return False
        return True

    async def import_folder(self, target: Resource, path: Path, report: TransferReport) -> bool:
        """Recreate the local directory ``path`` under ``target``.

        The remote folder is created before anything is uploaded into it. If
        that fails, the branch is abandoned and only the folder's name is
        reported. Otherwise every entry is attempted; one entry failing does
        not stop its siblings.

        Returns:
            True only when the folder and everything below it were imported.
        """
        folder = await self._engine.create_folder(target, path.name)
        if folder is None:
            report.failed.append(path.name)
            return False
        try:
            entries = await self._fs.list_dir(path)
        except OSError as exc:
            logger.warning("[import_folder] listing failed; path:%s;error:%s", path, exc)
            report.failed.append(path.name)
            return False

        success = True

        async def import_entry(entry: Path) -> None:
            nonlocal success
            if await self._fs.is_dir(entry):
                imported = await self.import_folder(folder, entry, report)
            else:
                imported = await self.upload_file(folder, entry, report)
            # Only ever lowered, so a later sibling cannot mask an earlier failure.
            if not imported:
                success = False

        await asyncio.gather(*(import_entry(entry) for entry in entries))
        logger.info(
            "[import_folder] imported; name:%s;entry_count:%d;success:%s",
            path.name,
            len(entries),
            success,
        )
        return success

    async def upload_path(self, target: Resource, path: Path, report: TransferReport) -> bool:
        """Upload one local file or directory under ``target``."""
        try:
            directory = await self._fs.is_dir(path)
        except OSError as exc:
            logger.warning("[upload_path] stat failed; path:%s;error:%s", path, exc)
            report.failed.append(path.name)
            return False
        if directory:
            return await self.import_folder(target, path, report)
        return await self.upload_file(target, path, report)

    async def upload_paths(self, paths: Sequence[Path], target: Resource) -> TransferReport:
        """Bulk upload of local files and directories into ``target``.

        Failures are collected and shown to the user in one message.
        """
        report = TransferReport()
        with self._events.batch():
            await asyncio.gather(*(self.upload_path(target, path, report) for path in paths))
        if report.failed:
            self._editors.show_error(
                Messages.FILE_UPLOAD_ERROR.format(name=Messages.join_names(report.failed))
            )
        logger.info(
            "[upload_paths] complete; path_count:%d;failed_count:%d",
            len(paths),
            len(report.failed),
        )
        return report
