"""Drop reconciler — applies drag-and-drop payloads to a drop target."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from content_navigator.errors import Messages
from content_navigator.navigator.events import TreeChangeNotifier, notifier
from content_navigator.navigator.identity import is_in_recycle_bin, is_reference
from content_navigator.navigator.transfer import TransferReport, path_from_uri
from content_navigator.repository.models import Resource, ResourceKind

if TYPE_CHECKING:
    from content_navigator.navigator.editors import EditorHost
    from content_navigator.navigator.mutations import MutationEngine
    from content_navigator.navigator.transfer import TransferOrchestrator

logger = logging.getLogger(__name__)

CONTENT_ITEM_MIME_TYPE = "application/vnd.code.tree.contentdataprovider"
URI_LIST_MIME_TYPE = "text/uri-list"

DROP_MIME_TYPES = (CONTENT_ITEM_MIME_TYPE, URI_LIST_MIME_TYPE)
DRAG_MIME_TYPES = (CONTENT_ITEM_MIME_TYPE,)


@dataclass
class DropReport:
    """Per-item outcome of a drop: failed item names keyed by message template."""

    failures: list[tuple[str, str]] = field(default_factory=list)

    def fail(self, name: str, message: str = Messages.FILE_DROP_ERROR) -> None:
        self.failures.append((name, message))

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        """One message naming every failed item, grouped by reason."""
        grouped: dict[str, list[str]] = {}
        for name, message in self.failures:
            grouped.setdefault(message, []).append(name)
        return "\n".join(
            message.format(name=Messages.join_names(names)) for message, names in grouped.items()
        )


def parse_uri_list(value: str) -> list[str]:
    """Split a ``text/uri-list`` value; blank lines and ``#`` comments are skipped."""
    return [
        line.strip()
        for line in value.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def decode_resources(value: Any) -> list[Resource]:
    """Accept resources as objects, dicts, or a JSON string of dicts."""
    if isinstance(value, str):
        value = json.loads(value)
    return [item if isinstance(item, Resource) else Resource.from_dict(item) for item in value]


class DropReconciler:
    """Resolves a drop payload against a target resource."""

    def __init__(
        self,
        engine: MutationEngine,
        transfers: TransferOrchestrator,
        editors: EditorHost,
        events: TreeChangeNotifier = notifier,
    ) -> None:
        self._engine = engine
        self._transfers = transfers
        self._editors = editors
        self._events = events

    def handle_drag(self, sources: Sequence[Resource]) -> dict[str, str]:
        """Serialize dragged resources for the host's data transfer."""
        return {CONTENT_ITEM_MIME_TYPE: json.dumps([source.to_dict() for source in sources])}

    async def handle_drop(self, target: Resource, payload: Mapping[str, Any]) -> DropReport:
        """Apply every item of ``payload`` to ``target``.

        Items are processed concurrently and independently. The tree is
        refreshed once after all of them finish, and failures are reported
        in a single message.

        Args:
            target: Resource the items were dropped on.
            payload: Data transfer keyed by MIME type.

        Returns:
            Report of the items that failed.
        """
        report = DropReport()
        tasks = []
        resources = payload.get(CONTENT_ITEM_MIME_TYPE)
        if resources:
            tasks.extend(
                self._drop_resource(target, item, report) for item in decode_resources(resources)
            )
        uri_list = payload.get(URI_LIST_MIME_TYPE)
        if uri_list:
            tasks.extend(self._drop_uri(target, uri, report) for uri in parse_uri_list(uri_list))

        with self._events.batch():
            await asyncio.gather(*tasks)
            self._events.tree_changed()

        if report.failures:
            self._editors.show_error(report.summary())
        logger.info(
            "[handle_drop] complete; target:%s;item_count:%d;failed_count:%d",
            target.name,
            len(tasks),
            len(report.failures),
        )
        return report

    async def _drop_resource(self, target: Resource, item: Resource, report: DropReport) -> None:
        # Recycle bin and favorites membership are checked before any move.
        if is_in_recycle_bin(item):
            report.fail(item.name, Messages.FILE_DRAG_FROM_TRASH_ERROR)
            return
        if is_reference(item):
            report.fail(item.name, Messages.FILE_DRAG_FROM_FAVORITES)
            return
        if target.kind is ResourceKind.TRASH_FOLDER:
            success = await self._engine.recycle(item)
        elif target.kind is ResourceKind.FAVORITES_FOLDER:
            success = await self._engine.add_favorite(item)
        else:
            success = await self._engine.move(item, target)
        if not success:
            report.fail(item.name)

    async def _drop_uri(self, target: Resource, uri: str, report: DropReport) -> None:
        path = path_from_uri(uri)
        transfer = TransferReport()
        await self._transfers.upload_path(target, path, transfer)
        for name in transfer.failed:
            report.fail(name)
