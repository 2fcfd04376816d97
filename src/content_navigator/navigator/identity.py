"""Resource identity: locators, containment and kind predicates.

Every function here is pure. Nothing in this module talks to the content
repository, so locators can be compared freely to decide whether two
resources are the same editor document.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, unquote

from content_navigator.repository.models import (
    CONTAINER_KINDS,
    REL_SELF,
    Resource,
    ResourceKind,
)

LOCATOR_SCHEME = "content"
READ_ONLY_LOCATOR_SCHEME = "contentReadOnly"


@dataclass(frozen=True)
class Locator:
    """Canonical editor address of a resource.

    Two locators are the same open document iff they compare equal.
    """

    scheme: str
    name: str
    resource_uri: str

    @property
    def read_only(self) -> bool:
        return self.scheme == READ_ONLY_LOCATOR_SCHEME

    def __str__(self) -> str:
        return f"{self.scheme}:/{quote(self.name)}?id={quote(self.resource_uri, safe='/@')}"

    @classmethod
    def parse(cls, value: str) -> Locator:
        """Parse the string form produced by ``str(locator)``.

        Raises:
            ValueError: If the value is not a locator string.
        """
        scheme, sep, rest = value.partition(":/")
        path, _, query = rest.partition("?id=")
        if not sep or scheme not in (LOCATOR_SCHEME, READ_ONLY_LOCATOR_SCHEME) or not query:
            raise ValueError(f"not a content locator: {value!r}")
        return cls(scheme=scheme, name=unquote(path), resource_uri=unquote(query))


def is_container(resource: Resource) -> bool:
    """True for every folder variant, including delegate folders."""
    return resource.kind in CONTAINER_KINDS


def is_reference(resource: Resource) -> bool:
    return resource.kind is ResourceKind.REFERENCE


def is_in_recycle_bin(resource: Resource) -> bool:
    return resource.flags.is_in_recycle_bin


def link_uri(resource: Resource, rel: str, method: str = "GET") -> str | None:
    """URI of the named relation, or None when the resource does not carry it."""
    link = resource.link(rel, method)
    return link.uri if link and link.uri else None


def resource_uri(resource: Resource) -> str | None:
    """Service URI identifying the resource; members carry it directly, others via ``self``."""
    return resource.uri or link_uri(resource, REL_SELF)


def locator_for(resource: Resource, read_only: bool = False) -> Locator:
    """Derive the editor locator for a resource.

    Args:
        resource: Resource to address.
        read_only: Address the read-only view (used for recycle bin documents).

    Returns:
        Locator that is stable for equal inputs.
    """
    return Locator(
        scheme=READ_ONLY_LOCATOR_SCHEME if read_only else LOCATOR_SCHEME,
        name=resource.name,
        resource_uri=resource_uri(resource) or resource.id,
    )
