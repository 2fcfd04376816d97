"""Content repository backed by the content service REST API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.error import URLError
from urllib.parse import quote

from content_navigator.errors import TransportFailure
from content_navigator.navigator.identity import is_container, is_reference, resource_uri
from content_navigator.repository.client import (
    ContentApiError,
    ContentAuthError,
    ContentClient,
    content_client_from_config,
)
from content_navigator.repository.models import (
    FAVORITES_DELEGATE,
    FIELD_ID,
    FIELD_ITEMS,
    FIELD_NAME,
    FIELD_PARENT_FOLDER_URI,
    FIELD_TYPE,
    FIELD_URI,
    MY_FOLDER_DELEGATE,
    RECYCLE_BIN_DELEGATE,
    REL_MEMBERS,
    REL_SELF,
    ROOT_FOLDER_DELEGATE,
    Resource,
    ResourceKind,
)

if TYPE_CHECKING:
    from content_navigator.config import AppConfig
    from content_navigator.navigator.identity import Locator

logger = logging.getLogger(__name__)

T = TypeVar("T")

FOLDERS_PATH = "/folders/folders"
FILES_PATH = "/files/files"
SESSIONS_PATH = "/sessions"

HTTP_NOT_FOUND = 404


class RestContentRepository:
    """ContentRepository implementation over :class:`ContentClient`.

    Blocking HTTP calls run in worker threads via ``asyncio.to_thread`` so the
    navigator's event loop never blocks. Every client error is surfaced as
    :class:`TransportFailure`.
    """

    def __init__(
        self,
        client: ContentClient,
        recycle_bin_delegate: str = RECYCLE_BIN_DELEGATE,
        favorites_delegate: str = FAVORITES_DELEGATE,
        my_folder_delegate: str = MY_FOLDER_DELEGATE,
    ) -> None:
        """Initialise the repository.

        Args:
            client: Authenticated content service client.
            recycle_bin_delegate: Delegate name of the recycle bin.
            favorites_delegate: Delegate name of the favorites folder.
            my_folder_delegate: Delegate name of the personal folder.
        """
        self._client = client
        self._favorites_delegate = favorites_delegate
        self._delegate_names = [
            ROOT_FOLDER_DELEGATE,
            my_folder_delegate,
            favorites_delegate,
            recycle_bin_delegate,
        ]
        self._delegates: dict[str, Resource | None] = {}
        self._connected = False

    async def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except (ContentAuthError, ContentApiError, URLError, TimeoutError, ValueError) as exc:
            logger.warning("[%s] content service call failed; error:%s", operation, exc)
            raise TransportFailure(str(exc)) from exc

    async def connect(self, endpoint: str) -> None:
        """Point the client at ``endpoint`` and resolve the delegate folders."""
        self._client.base_url = endpoint.rstrip("/")
        self._delegates = {}
        for name in self._delegate_names:
            self._delegates[name] = await self._fetch_delegate(name)
        self._connected = True
        logger.info(
            "[connect] connected; endpoint:%s;delegate_count:%d",
            endpoint,
            sum(1 for folder in self._delegates.values() if folder is not None),
        )

    def connected(self) -> bool:
        return self._connected

    async def _fetch_delegate(self, name: str) -> Resource | None:
        try:
            raw = await asyncio.to_thread(self._client.get, f"{FOLDERS_PATH}/{name}")
        except ContentApiError as exc:
            if exc.status_code == HTTP_NOT_FOUND:
                logger.info("[_fetch_delegate] delegate folder not available; name:%s", name)
                return None
            raise TransportFailure(str(exc)) from exc
        except (ContentAuthError, URLError, TimeoutError, ValueError) as exc:
            raise TransportFailure(str(exc)) from exc
        return _to_resource(raw)

    async def get_children(self, resource: Resource | None = None) -> list[Resource]:
        if resource is None:
            return [folder for folder in self._delegates.values() if folder is not None]
        link = resource.link(REL_MEMBERS)
        path = link.uri if link else f"{_require_uri(resource)}/members"
        response = await self._call("get_children", self._client.get, path)
        return [_to_resource(raw) for raw in response.get(FIELD_ITEMS, [])]

    async def get_resource_by_locator(self, locator: Locator) -> Resource:
        raw = await self._call("get_resource_by_locator", self._client.get, locator.resource_uri)
        return _to_resource(raw)

    async def get_content_by_locator(self, locator: Locator) -> bytes:
        return await self._call(
            "get_content_by_locator", self._client.get_content, f"{locator.resource_uri}/content"
        )

    async def save_content(self, locator: Locator, content: bytes) -> None:
        await self._call(
            "save_content", self._client.put_content, f"{locator.resource_uri}/content", content
        )

    async def create_folder(self, parent: Resource, name: str) -> Resource:
        path = f"{FOLDERS_PATH}?parentFolderUri={quote(_require_uri(parent), safe='')}"
        raw = await self._call("create_folder", self._client.post, path, {FIELD_NAME: name})
        return _to_resource(raw)

    async def create_file(self, parent: Resource, name: str, content: bytes = b"") -> Resource:
        path = f"{FILES_PATH}?parentFolderUri={quote(_require_uri(parent), safe='')}"
        raw = await self._call("create_file", self._client.post_content, path, content, name)
        return _to_resource(raw)

    async def rename(self, resource: Resource, name: str) -> Resource:
        raw = await self._call(
            "rename", self._client.patch, _self_uri(resource), {FIELD_NAME: name}
        )
        return _to_resource(raw)

    async def delete(self, resource: Resource) -> bool:
        path = _self_uri(resource)
        if is_container(resource):
            path = f"{path}?recursive=true"
        await self._call("delete", self._client.delete, path)
        return True

    async def move_to(self, resource: Resource, target_uri: str) -> bool:
        await self._call(
            "move_to",
            self._client.patch,
            _self_uri(resource),
            {FIELD_PARENT_FOLDER_URI: target_uri},
        )
        return True

    async def get_parent(self, resource: Resource) -> Resource | None:
        if not resource.parent_folder_uri:
            return None
        raw = await self._call("get_parent", self._client.get, resource.parent_folder_uri)
        return _to_resource(raw)

    async def get_delegate_folder(self, name: str) -> Resource | None:
        if name in self._delegates:
            return self._delegates[name]
        folder = await self._fetch_delegate(name)
        self._delegates[name] = folder
        return folder

    async def add_favorite(self, resource: Resource) -> bool:
        payload = {
            FIELD_NAME: resource.name,
            FIELD_URI: _require_uri(resource),
            FIELD_TYPE: str(ResourceKind.REFERENCE),
        }
        await self._call(
            "add_favorite",
            self._client.post,
            f"{FOLDERS_PATH}/{self._favorites_delegate}/members",
            payload,
        )
        return True

    async def remove_favorite(self, resource: Resource) -> bool:
        if is_reference(resource):
            await self._call("remove_favorite", self._client.delete, _self_uri(resource))
            return True
        favorites = await self.get_delegate_folder(self._favorites_delegate)
        if favorites is None:
            return False
        target = _require_uri(resource)
        for entry in await self.get_children(favorites):
            if is_reference(entry) and entry.uri == target:
                await self._call("remove_favorite", self._client.delete, _self_uri(entry))
                return True
        logger.info("[remove_favorite] resource is not a favorite; name:%s", resource.name)
        return False

    async def acquire_session_id(self) -> str:
        response = await self._call("acquire_session_id", self._client.post, SESSIONS_PATH)
        return str(response[FIELD_ID])


def _to_resource(raw: dict[str, Any]) -> Resource:
    try:
        return Resource.from_dict(raw)
    except (ValueError, TypeError, AttributeError) as exc:
        logger.warning("[_to_resource] malformed item; error:%s", exc)
        raise TransportFailure(f"malformed item: {exc}") from exc


def _require_uri(resource: Resource) -> str:
    uri = resource_uri(resource)
    if not uri:
        raise TransportFailure(f"'{resource.name}' has no service URI")
    return uri


def _self_uri(resource: Resource) -> str:
    """URI of the entry itself; for references this is the favorite entry, not its target."""
    link = resource.link(REL_SELF)
    return link.uri if link else _require_uri(resource)


def repository_from_config(config: AppConfig) -> RestContentRepository:
    """Construct a RestContentRepository from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured RestContentRepository instance.
    """
    return RestContentRepository(
        client=content_client_from_config(config),
        recycle_bin_delegate=config.recycle_bin_delegate,
        favorites_delegate=config.favorites_delegate,
        my_folder_delegate=config.my_folder_delegate,
    )
