"""Core HAL model and navigation engine for halnav (transport-agnostic)."""

from .curies import CurieTemplate, Curies
from .embedded import Embedded, EmbeddedBuilder
from .errors import (
    ConfigurationError,
    HalError,
    HttpStatusError,
    InvalidCurieError,
    InvalidDocumentError,
    MissingLinkError,
    TransportError,
    TypeMismatchError,
)
from .link import (
    Link,
    collection_link,
    curi,
    item_link,
    link,
    profile_link,
    self_link,
)
from .links import Links, LinksBuilder
from .logging import setup_logging
from .observability import log_event
from .parser import HalParser, ParserConfig, parse
from .predicates import (
    always,
    having_name,
    having_profile,
    having_type,
    optionally_having_name,
    optionally_having_profile,
    optionally_having_type,
)
from .representation import HalRepresentation
from .traverson import (
    Hop,
    Traverson,
    embedded_type_info_for,
    hops,
    traverson,
    with_vars,
)
from .typeinfo import EmbeddedTypeInfo, with_embedded

__all__ = [
    # Links
    "Link",
    "link",
    "self_link",
    "item_link",
    "collection_link",
    "profile_link",
    "curi",
    "Links",
    "LinksBuilder",
    "CurieTemplate",
    "Curies",
    # Predicates
    "always",
    "having_type",
    "optionally_having_type",
    "having_profile",
    "optionally_having_profile",
    "having_name",
    "optionally_having_name",
    # Representations
    "HalRepresentation",
    "Embedded",
    "EmbeddedBuilder",
    "EmbeddedTypeInfo",
    "with_embedded",
    "HalParser",
    "ParserConfig",
    "parse",
    # Traverson
    "Traverson",
    "Hop",
    "traverson",
    "hops",
    "with_vars",
    "embedded_type_info_for",
    # Exceptions
    "HalError",
    "InvalidCurieError",
    "ConfigurationError",
    "MissingLinkError",
    "InvalidDocumentError",
    "TransportError",
    "HttpStatusError",
    "TypeMismatchError",
    # Logging
    "setup_logging",
    "log_event",
]
