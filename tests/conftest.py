"""Pytest configuration — src/ on sys.path plus in-memory collaborators."""

import itertools
import os
import sys
from dataclasses import replace
from typing import Any

import pytest

# Add src/ to Python path so tests can import from content_navigator
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from content_navigator.errors import TransportFailure  # noqa: E402
from content_navigator.navigator.events import TreeChangeNotifier  # noqa: E402
from content_navigator.navigator.identity import Locator  # noqa: E402
from content_navigator.repository.models import (  # noqa: E402
    FAVORITES_DELEGATE,
    MY_FOLDER_DELEGATE,
    RECYCLE_BIN_DELEGATE,
    REL_PREVIOUS_PARENT,
    REL_SELF,
    ROOT_FOLDER_DELEGATE,
    Link,
    Resource,
    ResourceFlags,
    ResourceKind,
)

ROOT_URI = "/folders/folders/root"
MY_FOLDER_URI = "/folders/folders/my"
FAVORITES_URI = "/folders/folders/favorites"
TRASH_URI = "/folders/folders/trash"


def make_resource(
    uri: str,
    name: str,
    kind: ResourceKind = ResourceKind.FILE,
    parent: str = "",
    in_recycle_bin: bool = False,
    extra_links: tuple[Link, ...] = (),
) -> Resource:
    return Resource(
        id=uri.rsplit("/", 1)[-1],
        name=name,
        kind=kind,
        uri=uri,
        parent_folder_uri=parent,
        links=(Link(rel=REL_SELF, uri=uri), *extra_links),
        flags=ResourceFlags(is_in_recycle_bin=in_recycle_bin),
    )


class InMemoryRepository:
    """ContentRepository double holding the remote tree in dicts.

    ``fail(operation, name)`` makes the named operation raise
    TransportFailure for the resource (or new child) with that name.
    """

    def __init__(self, with_recycle_bin: bool = True) -> None:
        self._ids = itertools.count(1)
        self.nodes: dict[str, Resource] = {}
        self.content: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: set[tuple[str, str]] = set()
        self.endpoint = ""
        self._connected = False
        self.delegates: dict[str, Resource | None] = {
            ROOT_FOLDER_DELEGATE: self._add(
                make_resource(ROOT_URI, "Content", ResourceKind.ROOT_FOLDER)
            ),
            MY_FOLDER_DELEGATE: self._add(
                make_resource(MY_FOLDER_URI, "My Folder", ResourceKind.MY_FOLDER)
            ),
            FAVORITES_DELEGATE: self._add(
                make_resource(FAVORITES_URI, "My Favorites", ResourceKind.FAVORITES_FOLDER)
            ),
            RECYCLE_BIN_DELEGATE: (
                self._add(make_resource(TRASH_URI, "Recycle Bin", ResourceKind.TRASH_FOLDER))
                if with_recycle_bin
                else None
            ),
        }

    # Test helpers ------------------------------------------------------

    def _add(self, resource: Resource) -> Resource:
        self.nodes[_key(resource)] = resource
        return resource

    def fail(self, operation: str, name: str) -> None:
        self.failures.add((operation, name))

    def _record(self, operation: str, name: str) -> None:
        self.calls.append((operation, name))
        if (operation, name) in self.failures:
            raise TransportFailure(f"{operation} failed for {name}")

    def add_folder(self, parent: Resource, name: str) -> Resource:
        uri = f"/folders/folders/{next(self._ids)}"
        return self._add(make_resource(uri, name, ResourceKind.FOLDER, parent=_key(parent)))

    def add_file(self, parent: Resource, name: str, content: bytes = b"") -> Resource:
        uri = f"/files/files/{next(self._ids)}"
        self.content[uri] = content
        return self._add(make_resource(uri, name, ResourceKind.FILE, parent=_key(parent)))

    def children_of(self, resource: Resource) -> list[Resource]:
        key = _key(resource)
        return [node for node in self.nodes.values() if node.parent_folder_uri == key]

    def current(self, resource: Resource) -> Resource:
        return self.nodes[_key(resource)]

    @property
    def my_folder(self) -> Resource:
        return self.nodes[MY_FOLDER_URI]

    @property
    def favorites(self) -> Resource:
        return self.nodes[FAVORITES_URI]

    @property
    def trash(self) -> Resource:
        return self.nodes[TRASH_URI]

    # ContentRepository -------------------------------------------------

    async def connect(self, endpoint: str) -> None:
        self.endpoint = endpoint
        self._connected = True

    def connected(self) -> bool:
        return self._connected

    async def get_children(self, resource: Resource | None = None) -> list[Resource]:
        if resource is None:
            return [folder for folder in self.delegates.values() if folder is not None]
        self._record("get_children", resource.name)
        return self.children_of(resource)

    async def get_resource_by_locator(self, locator: Locator) -> Resource:
        try:
            return self.nodes[locator.resource_uri]
        except KeyError as exc:
            raise TransportFailure(f"not found: {locator.resource_uri}") from exc

    async def get_content_by_locator(self, locator: Locator) -> bytes:
        self._record("get_content", locator.name)
        try:
            return self.content[locator.resource_uri]
        except KeyError as exc:
            raise TransportFailure(f"no content: {locator.resource_uri}") from exc

    async def save_content(self, locator: Locator, content: bytes) -> None:
        self._record("save_content", locator.name)
        self.content[locator.resource_uri] = content

    async def create_folder(self, parent: Resource, name: str) -> Resource:
        self._record("create_folder", name)
        return self.add_folder(parent, name)

    async def create_file(self, parent: Resource, name: str, content: bytes = b"") -> Resource:
        self._record("create_file", name)
        return self.add_file(parent, name, content)

    async def rename(self, resource: Resource, name: str) -> Resource:
        self._record("rename", resource.name)
        return self._add(replace(self.current(resource), name=name))

    async def delete(self, resource: Resource) -> bool:
        self._record("delete", resource.name)
        for child in self.children_of(resource):
            await self.delete(child)
        self.nodes.pop(_key(resource), None)
        return True

    async def move_to(self, resource: Resource, target_uri: str) -> bool:
        self._record("move_to", resource.name)
        if target_uri not in self.nodes:
            return False
        node = self.current(resource)
        if target_uri == TRASH_URI:
            moved = replace(
                node,
                parent_folder_uri=TRASH_URI,
                flags=ResourceFlags(is_in_recycle_bin=True),
                links=(
                    *node.links,
                    Link(rel=REL_PREVIOUS_PARENT, uri=node.parent_folder_uri),
                ),
            )
        else:
            moved = replace(
                node,
                parent_folder_uri=target_uri,
                flags=ResourceFlags(is_in_recycle_bin=False),
                links=tuple(link for link in node.links if link.rel != REL_PREVIOUS_PARENT),
            )
        self._add(moved)
        return True

    async def get_parent(self, resource: Resource) -> Resource | None:
        return self.nodes.get(self.current(resource).parent_folder_uri)

    async def get_delegate_folder(self, name: str) -> Resource | None:
        self._record("get_delegate_folder", name)
        return self.delegates.get(name)

    async def add_favorite(self, resource: Resource) -> bool:
        self._record("add_favorite", resource.name)
        entry_uri = f"{FAVORITES_URI}/members/{next(self._ids)}"
        self.nodes[entry_uri] = Resource(
            id=entry_uri,
            name=resource.name,
            kind=ResourceKind.REFERENCE,
            uri=_key(resource),
            parent_folder_uri=FAVORITES_URI,
            links=(Link(rel=REL_SELF, uri=entry_uri),),
        )
        return True

    async def remove_favorite(self, resource: Resource) -> bool:
        self._record("remove_favorite", resource.name)
        for key, node in list(self.nodes.items()):
            if node.kind is ResourceKind.REFERENCE and node.uri == resource.uri:
                del self.nodes[key]
                return True
        return False

    async def acquire_session_id(self) -> str:
        return "session-1"


def _key(resource: Resource) -> str:
    link = resource.link(REL_SELF)
    return link.uri if link else resource.uri


class FakeEditors:
    """EditorHost double tracking open tabs by locator."""

    def __init__(self) -> None:
        self.open_tabs: set[Locator] = set()
        self.decline_close = False
        self.opened: list[Locator] = []
        self.closed: list[Locator] = []
        self.errors: list[str] = []
        self.revealed: list[Resource] = []

    def find_open_document(self, locator: Locator) -> Any | None:
        return locator if locator in self.open_tabs else None

    async def close_document(self, handle: Any) -> bool:
        if self.decline_close:
            return False
        self.open_tabs.discard(handle)
        self.closed.append(handle)
        return True

    async def open_document(self, locator: Locator) -> None:
        self.open_tabs.add(locator)
        self.opened.append(locator)

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def reveal(self, resource: Resource) -> None:
        self.revealed.append(resource)


class RecordingNotifier(TreeChangeNotifier):
    """TreeChangeNotifier that counts what it actually delivers."""

    def __init__(self) -> None:
        super().__init__()
        self.tree_events = 0
        self.document_events: list[Locator] = []
        self.on_tree_changed(self._count_tree)
        self.on_document_changed(self.document_events.append)

    def _count_tree(self) -> None:
        self.tree_events += 1


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def editors() -> FakeEditors:
    return FakeEditors()


@pytest.fixture
def events() -> RecordingNotifier:
    return RecordingNotifier()
