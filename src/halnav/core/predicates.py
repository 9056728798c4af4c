"""Selectors used to pick among several links of the same rel."""

from __future__ import annotations

from typing import Callable, Optional

from .link import Link

LinkPredicate = Callable[[Link], bool]


def always() -> LinkPredicate:
    return lambda link: True


def _having(attr: str, value: str, optionally: bool) -> LinkPredicate:
    def predicate(link: Link) -> bool:
        actual: Optional[str] = getattr(link, attr)
        if optionally and not actual:
            return True
        return actual == value

    return predicate


def having_type(type: str) -> LinkPredicate:
    return _having("type", type, optionally=False)


def optionally_having_type(type: str) -> LinkPredicate:
    """Matches links of the given type, or links without any type."""
    return _having("type", type, optionally=True)


def having_profile(profile: str) -> LinkPredicate:
    return _having("profile", profile, optionally=False)


def optionally_having_profile(profile: str) -> LinkPredicate:
    return _having("profile", profile, optionally=True)


def having_name(name: str) -> LinkPredicate:
    return _having("name", name, optionally=False)


def optionally_having_name(name: str) -> LinkPredicate:
    return _having("name", name, optionally=True)


__all__ = [
    "LinkPredicate",
    "always",
    "having_type",
    "optionally_having_type",
    "having_profile",
    "optionally_having_profile",
    "having_name",
    "optionally_having_name",
]
