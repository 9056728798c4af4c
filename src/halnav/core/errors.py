from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .link import Link


class HalError(Exception):
    """Base error for HAL model and navigation failures."""


class InvalidCurieError(HalError, ValueError):
    """A link used as a CURI is not a valid CURI."""


class ConfigurationError(HalError, ValueError):
    """Caller misuse: no start point, ambiguous relative resolution, templated hrefs."""


class MissingLinkError(HalError):
    def __init__(self, rel: str, resource: Any = None):
        self.rel = rel
        self.resource = resource
        super().__init__(
            f"Can not follow hop {rel}: no matching links found in resource "
            f"{_describe(resource)}"
        )


class InvalidDocumentError(HalError):
    """The resolved text was empty or could not be decoded."""

    def __init__(self, message: str, *, href: Optional[str] = None):
        super().__init__(message if href is None else f"{message} (href={href})")
        self.href = href


class TransportError(HalError):
    """The link resolver failed to fetch a resource."""

    def __init__(self, message: str, *, link: Optional["Link"] = None):
        super().__init__(message)
        self.link = link


class HttpStatusError(TransportError):
    def __init__(
        self,
        *,
        status_code: int,
        url: str,
        message: str,
        link: Optional["Link"] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(f"{status_code} GET {url}: {message}", link=link)
        self.status_code = status_code
        self.url = url
        self.response_text = response_text


class TypeMismatchError(HalError, TypeError):
    """Embedded items are not assignable to the requested type."""


def _describe(resource: Any) -> str:
    links = getattr(resource, "links", None)
    self_link = links.link_by("self") if links is not None else None
    if self_link is not None:
        return self_link.href
    return repr(resource)


__all__ = [
    "HalError",
    "InvalidCurieError",
    "ConfigurationError",
    "MissingLinkError",
    "InvalidDocumentError",
    "TransportError",
    "HttpStatusError",
    "TypeMismatchError",
]
