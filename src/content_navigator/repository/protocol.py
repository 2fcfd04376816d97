"""The content repository capability consumed by the navigator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from content_navigator.navigator.identity import Locator
    from content_navigator.repository.models import Resource


@runtime_checkable
class ContentRepository(Protocol):
    """Asynchronous access to the remote content store.

    Implementations signal every failure by raising
    :class:`content_navigator.errors.TransportFailure`. The repository owns
    the only cache of the remote tree; callers never patch it and ask for a
    refresh instead.
    """

    async def connect(self, endpoint: str) -> None: ...

    def connected(self) -> bool: ...

    async def get_children(self, resource: Resource | None = None) -> list[Resource]: ...

    async def get_resource_by_locator(self, locator: Locator) -> Resource: ...

    async def get_content_by_locator(self, locator: Locator) -> bytes: ...

    async def save_content(self, locator: Locator, content: bytes) -> None: ...

    async def create_folder(self, parent: Resource, name: str) -> Resource: ...

    async def create_file(self, parent: Resource, name: str, content: bytes = b"") -> Resource: ...

    async def rename(self, resource: Resource, name: str) -> Resource: ...

    async def delete(self, resource: Resource) -> bool: ...

    async def move_to(self, resource: Resource, target_uri: str) -> bool: ...

    async def get_parent(self, resource: Resource) -> Resource | None: ...

    async def get_delegate_folder(self, name: str) -> Resource | None: ...

    async def add_favorite(self, resource: Resource) -> bool: ...

    async def remove_favorite(self, resource: Resource) -> bool: ...

    async def acquire_session_id(self) -> str: ...
