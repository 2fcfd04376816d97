"""Data models for content store resources and their wire representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

# Content service JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_TYPE = "type"
FIELD_URI = "uri"
FIELD_PARENT_FOLDER_URI = "parentFolderUri"
FIELD_LINKS = "links"
FIELD_FLAGS = "flags"
FIELD_IS_IN_RECYCLE_BIN = "isInRecycleBin"
FIELD_CREATED = "creationTimeStamp"
FIELD_MODIFIED = "modifiedTimeStamp"
FIELD_SIZE = "size"
FIELD_ITEMS = "items"

# Link JSON field names
LINK_METHOD = "method"
LINK_REL = "rel"
LINK_HREF = "href"
LINK_URI = "uri"
LINK_TYPE = "type"

# Well-known link relations
REL_SELF = "self"
REL_PREVIOUS_PARENT = "previousParent"
REL_MEMBERS = "members"
REL_CONTENT = "content"

# Delegate folder names
RECYCLE_BIN_DELEGATE = "@myRecycleBin"
FAVORITES_DELEGATE = "@myFavorites"
MY_FOLDER_DELEGATE = "@myFolder"
ROOT_FOLDER_DELEGATE = "@rootFolder"


class ResourceKind(StrEnum):
    """Closed set of resource variants, keyed by the service's type string."""

    ROOT_FOLDER = "rootFolder"
    MY_FOLDER = "myFolder"
    TRASH_FOLDER = "trashFolder"
    FAVORITES_FOLDER = "favoritesFolder"
    FOLDER = "folder"
    FILE = "file"
    REFERENCE = "reference"


CONTAINER_KINDS = frozenset(
    {
        ResourceKind.ROOT_FOLDER,
        ResourceKind.MY_FOLDER,
        ResourceKind.TRASH_FOLDER,
        ResourceKind.FAVORITES_FOLDER,
        ResourceKind.FOLDER,
    }
)

DELEGATE_KINDS = frozenset(
    {
        ResourceKind.ROOT_FOLDER,
        ResourceKind.TRASH_FOLDER,
        ResourceKind.FAVORITES_FOLDER,
    }
)


@dataclass(frozen=True)
class Link:
    """A named relation from a resource to an addressable URI."""

    rel: str
    uri: str
    method: str = "GET"
    type: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Link:
        return cls(
            rel=raw.get(LINK_REL, ""),
            uri=raw.get(LINK_URI) or raw.get(LINK_HREF, ""),
            method=raw.get(LINK_METHOD, "GET"),
            type=raw.get(LINK_TYPE, ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            LINK_REL: self.rel,
            LINK_URI: self.uri,
            LINK_METHOD: self.method,
            LINK_TYPE: self.type,
        }


@dataclass(frozen=True)
class ResourceFlags:
    """State flags reported by the content service."""

    is_in_recycle_bin: bool = False


@dataclass(frozen=True)
class Resource:
    """A node in the remote content tree.

    Attributes:
        id: Service-assigned identifier.
        name: Display name (file or folder name).
        kind: Resource variant; fixed for the lifetime of the resource.
        uri: Resource URI. For references this is the URI of the referenced
            resource, not of the favorite entry itself.
        parent_folder_uri: URI of the containing folder, if any.
        links: Named relations (``self``, ``previousParent``, ...).
        flags: Service state flags.
        created_at: Creation timestamp.
        modified_at: Last modification timestamp.
        size: Content size in bytes, 0 for containers.
    """

    id: str
    name: str
    kind: ResourceKind
    uri: str = ""
    parent_folder_uri: str = ""
    links: tuple[Link, ...] = ()
    flags: ResourceFlags = field(default_factory=ResourceFlags)
    created_at: datetime | None = None
    modified_at: datetime | None = None
    size: int = 0

    def link(self, rel: str, method: str = "GET") -> Link | None:
        """Return the first link with the given relation and method."""
        for candidate in self.links:
            if candidate.rel == rel and candidate.method == method:
                return candidate
        return None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Resource:
        """Map a raw content service item dict to a Resource."""
        flags = raw.get(FIELD_FLAGS) or {}
        return cls(
            id=raw.get(FIELD_ID, ""),
            name=raw.get(FIELD_NAME, ""),
            kind=_resource_kind(raw),
            uri=raw.get(FIELD_URI, ""),
            parent_folder_uri=raw.get(FIELD_PARENT_FOLDER_URI, ""),
            links=tuple(Link.from_dict(link) for link in raw.get(FIELD_LINKS, [])),
            flags=ResourceFlags(is_in_recycle_bin=bool(flags.get(FIELD_IS_IN_RECYCLE_BIN))),
            created_at=_parse_timestamp(raw.get(FIELD_CREATED)),
            modified_at=_parse_timestamp(raw.get(FIELD_MODIFIED)),
            size=int(raw.get(FIELD_SIZE) or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the content service's JSON shape."""
        return {
            FIELD_ID: self.id,
            FIELD_NAME: self.name,
            FIELD_TYPE: str(self.kind),
            FIELD_URI: self.uri,
            FIELD_PARENT_FOLDER_URI: self.parent_folder_uri,
            FIELD_LINKS: [link.to_dict() for link in self.links],
            FIELD_FLAGS: {FIELD_IS_IN_RECYCLE_BIN: self.flags.is_in_recycle_bin},
            FIELD_CREATED: self.created_at.isoformat() if self.created_at else None,
            FIELD_MODIFIED: self.modified_at.isoformat() if self.modified_at else None,
            FIELD_SIZE: self.size,
        }


def _resource_kind(raw: dict[str, Any]) -> ResourceKind:
    """Map the service type string; unknown types become a folder or a file.

    The service lists types outside the navigator's closed set (reports,
    flows, ...). Anything that has members is browsed as a folder.
    """
    value = raw.get(FIELD_TYPE) or ResourceKind.FILE
    try:
        return ResourceKind(value)
    except ValueError:
        links = raw.get(FIELD_LINKS) or []
        if any(link.get(LINK_REL) == REL_MEMBERS for link in links):
            return ResourceKind.FOLDER
        return ResourceKind.FILE


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)
