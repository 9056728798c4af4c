from .client import HAL_JSON, HttpLinkResolver, RetryConfig, accept_header
from .config import HttpResolverConfig, create_resolver_from_env

__all__ = [
    "HAL_JSON",
    "HttpLinkResolver",
    "HttpResolverConfig",
    "RetryConfig",
    "accept_header",
    "create_resolver_from_env",
]
