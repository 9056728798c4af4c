from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
from urllib.parse import urljoin

from pydantic import BaseModel, ConfigDict, Field, model_validator
from uritemplate import URITemplate, variables as template_variables

from .errors import ConfigurationError, InvalidCurieError

CURIES_REL = "curies"
REL_PLACEHOLDER = "{rel}"


class Link(BaseModel):
    """
    One HAL link. The rel is the key owning the link and is not rendered
    as a field of the link object.
    """

    rel: str = Field(default="", exclude=True)
    href: str
    templated: Optional[bool] = None
    type: Optional[str] = None
    hreflang: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    profile: Optional[str] = None
    deprecation: Optional[bool] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _derive_templated(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        href = data.get("href")
        has_vars = isinstance(href, str) and bool(template_variables(href))
        templated = True if (data.get("templated") is True or has_vars) else None
        return {**data, "templated": templated}

    @property
    def is_templated(self) -> bool:
        return bool(self.templated)

    def is_equivalent_to(self, other: "Link") -> bool:
        return (
            self.rel == other.rel
            and self.href == other.href
            and (self.type or "") == (other.type or "")
            and (self.profile or "") == (other.profile or "")
        )

    def with_href(self, href: str) -> "Link":
        data = self.model_dump()
        data.update(rel=self.rel, href=href, templated=None)
        return Link.model_validate(data)

    def with_rel(self, rel: str) -> "Link":
        return self.model_copy(update={"rel": rel})

    def expand(self, variables: Optional[Mapping[str, Any]] = None, **more: Any) -> "Link":
        """
        Fill the URI template of a templated link.
        Example: Link(href='/p{?q}').expand(q='x').href -> '/p?q=x'
        """
        if not self.is_templated:
            return self
        values: Dict[str, Any] = dict(variables or {})
        values.update(more)
        return self.with_href(URITemplate(self.href).expand(values))

    def resolve(self, context_url: Optional[str]) -> "Link":
        """Return a copy whose href is resolved against the context URL."""
        if self.is_templated:
            raise ConfigurationError(f"Link must not be templated: {self.href}")
        if not context_url:
            return self
        return self.with_href(urljoin(context_url, self.href))

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def link(rel: str, href: str, **attributes: Any) -> Link:
    if not rel:
        raise ValueError("The link-relation type is mandatory")
    return Link(rel=rel, href=href, **attributes)


def self_link(href: str) -> Link:
    return Link(rel="self", href=href)


def item_link(href: str, **attributes: Any) -> Link:
    return Link(rel="item", href=href, **attributes)


def collection_link(href: str, **attributes: Any) -> Link:
    return Link(rel="collection", href=href, **attributes)


def profile_link(href: str) -> Link:
    return Link(rel="profile", href=href)


def curi(name: str, rel_template: str) -> Link:
    """
    Create a CURI link compressing rels matching `rel_template`.
    Example: curi('x', 'http://example.org/rels/{rel}') lets 'x:product'
    stand for 'http://example.org/rels/product'.
    """
    if not name:
        raise InvalidCurieError("A CURI requires a non-empty name")
    if rel_template.count(REL_PLACEHOLDER) != 1:
        raise InvalidCurieError(
            "Not a CURI template. Template is required to contain exactly one "
            "{rel} placeholder"
        )
    return Link(rel=CURIES_REL, href=rel_template, name=name)


__all__ = [
    "Link",
    "CURIES_REL",
    "REL_PLACEHOLDER",
    "link",
    "self_link",
    "item_link",
    "collection_link",
    "profile_link",
    "curi",
]
