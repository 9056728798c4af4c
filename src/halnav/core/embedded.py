from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Type,
    TypeVar,
)

from .curies import Curies
from .errors import TypeMismatchError

if TYPE_CHECKING:
    from .representation import HalRepresentation

R = TypeVar("R", bound="HalRepresentation")


class Embedded:
    """
    Ordered mapping of rel -> list of embedded representations.

    Curies of the owning representation are pushed into every item (and
    transitively into the items' own embedded items), so relation lookups
    on embedded items work with curied and expanded rels alike.
    """

    def __init__(
        self,
        items: Optional[Mapping[str, Sequence["HalRepresentation"]]] = None,
        *,
        curies: Optional[Curies] = None,
        single_rels: Iterable[str] = (),
    ):
        self._curies = curies or Curies.empty()
        single = set(single_rels)
        self._items: Dict[str, List["HalRepresentation"]] = {}
        self._single_rels: Set[str] = set()
        for rel, reps in (items or {}).items():
            key = self._curies.resolve(rel)
            if self._curies.is_empty():
                self._items[key] = list(reps)
            else:
                self._items[key] = [r.with_parent_curies(self._curies) for r in reps]
            if rel in single or key in single:
                self._single_rels.add(key)

    @classmethod
    def empty(cls) -> "Embedded":
        return cls()

    @classmethod
    def embedded(cls, rel: str, items: Sequence["HalRepresentation"]) -> "Embedded":
        return cls({rel: items})

    @classmethod
    def builder(cls) -> "EmbeddedBuilder":
        return EmbeddedBuilder()

    @classmethod
    def copy_of(cls, embedded: Optional["Embedded"]) -> "EmbeddedBuilder":
        return EmbeddedBuilder(embedded)

    def using(self, curies: Curies) -> "Embedded":
        return Embedded(self._items, curies=curies, single_rels=self._single_rels)

    @property
    def curies(self) -> Curies:
        return self._curies

    @property
    def rels(self) -> List[str]:
        return list(self._items)

    def is_single_rel(self, rel: str) -> bool:
        return self._curies.resolve(rel) in self._single_rels

    def items_by(self, rel: str) -> List["HalRepresentation"]:
        found = self._items.get(self._curies.resolve(rel))
        if found is None:
            found = self._items.get(self._curies.expand(rel), [])
        return list(found)

    def items_by_as(self, rel: str, type: Type[R]) -> List[R]:
        items = self.items_by(rel)
        for item in items:
            if not isinstance(item, type):
                raise TypeMismatchError(
                    f"Embedded item for rel {rel} is a {item.__class__.__name__}, "
                    f"not a {type.__name__}"
                )
        return items  # type: ignore[return-value]

    def is_empty(self) -> bool:
        return not self._items

    def to_json(self) -> Dict[str, Any]:
        rendered: Dict[str, Any] = {}
        for rel, items in self._items.items():
            if rel in self._single_rels and len(items) == 1:
                rendered[rel] = items[0].to_dict()
            else:
                rendered[rel] = [item.to_dict() for item in items]
        return rendered

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Embedded):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"Embedded(items={self._items!r})"


class EmbeddedBuilder:
    def __init__(self, prototype: Optional[Embedded] = None):
        self._curies = prototype.curies if prototype is not None else Curies.empty()
        self._items: Dict[str, List["HalRepresentation"]] = {}
        self._single_rels: Set[str] = set()
        if prototype is not None:
            for rel in prototype.rels:
                self._items[rel] = prototype.items_by(rel)
                if prototype.is_single_rel(rel):
                    self._single_rels.add(rel)

    def with_items(self, rel: str, items: Iterable["HalRepresentation"]) -> "EmbeddedBuilder":
        key = self._curies.resolve(rel)
        self._items[key] = list(items)
        self._single_rels.discard(key)
        return self

    def with_item(self, rel: str, item: "HalRepresentation") -> "EmbeddedBuilder":
        """Embed one item rendered as a single object instead of an array."""
        key = self._curies.resolve(rel)
        self._items[key] = [item]
        self._single_rels.add(key)
        return self

    def without(self, rel: str) -> "EmbeddedBuilder":
        key = self._curies.resolve(rel)
        self._items.pop(key, None)
        self._single_rels.discard(key)
        return self

    def using(self, curies: Curies) -> "EmbeddedBuilder":
        self._curies = curies
        return self

    def build(self) -> Embedded:
        return Embedded(self._items, curies=self._curies, single_rels=self._single_rels)


__all__ = ["Embedded", "EmbeddedBuilder"]
