"""halnav package exports."""

from .core import (
    ConfigurationError,
    Curies,
    Embedded,
    EmbeddedTypeInfo,
    HalError,
    HalParser,
    HalRepresentation,
    HttpStatusError,
    InvalidCurieError,
    InvalidDocumentError,
    Link,
    Links,
    MissingLinkError,
    ParserConfig,
    TransportError,
    Traverson,
    TypeMismatchError,
    always,
    collection_link,
    curi,
    having_name,
    having_profile,
    having_type,
    hops,
    item_link,
    link,
    optionally_having_name,
    optionally_having_profile,
    optionally_having_type,
    parse,
    profile_link,
    self_link,
    setup_logging,
    traverson,
    with_embedded,
    with_vars,
)
from .transports.http import (
    HttpLinkResolver,
    HttpResolverConfig,
    RetryConfig,
    create_resolver_from_env,
)

__all__ = [
    # Model
    "Link",
    "Links",
    "Curies",
    "Embedded",
    "HalRepresentation",
    "EmbeddedTypeInfo",
    "HalParser",
    "ParserConfig",
    "parse",
    "with_embedded",
    # Link factories
    "link",
    "self_link",
    "item_link",
    "collection_link",
    "profile_link",
    "curi",
    # Predicates
    "always",
    "having_type",
    "optionally_having_type",
    "having_profile",
    "optionally_having_profile",
    "having_name",
    "optionally_having_name",
    # Traverson
    "Traverson",
    "traverson",
    "hops",
    "with_vars",
    # HTTP transport
    "HttpLinkResolver",
    "HttpResolverConfig",
    "RetryConfig",
    "create_resolver_from_env",
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
]
