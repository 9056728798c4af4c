from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple, Type

if TYPE_CHECKING:
    from .representation import HalRepresentation


@dataclass(frozen=True)
class EmbeddedTypeInfo:
    """
    Tells the parser which type to decode the embedded items of `rel` into.
    `nested` applies to the _embedded of those items, one level down.
    """

    rel: str
    type: Type["HalRepresentation"]
    nested: Tuple["EmbeddedTypeInfo", ...] = ()


def with_embedded(
    rel: str, type: Type["HalRepresentation"], *nested: EmbeddedTypeInfo
) -> EmbeddedTypeInfo:
    return EmbeddedTypeInfo(rel=rel, type=type, nested=tuple(nested))


__all__ = ["EmbeddedTypeInfo", "with_embedded"]
