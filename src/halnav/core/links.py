from __future__ import annotations

from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
)

from . import hal
from .curies import Curies
from .link import CURIES_REL, Link
from .predicates import LinkPredicate

DEFAULT_ARRAY_RELS: FrozenSet[str] = frozenset({CURIES_REL, "item", "items"})


class Links:
    """
    Ordered mapping of rel -> non-empty list of links.

    Keys are stored in curied form whenever a matching CURI is known, either
    from the links themselves or inherited from an enclosing representation.
    Lookups accept the curied and the expanded form alike.
    """

    def __init__(
        self,
        links: Iterable[Link] = (),
        *,
        array_rels: Iterable[str] = DEFAULT_ARRAY_RELS,
        parent_curies: Optional[Curies] = None,
    ):
        links = list(links)
        self._parent_curies = parent_curies or Curies.empty()
        self._curies = self._parent_curies.merge_with(Curies.from_links(links))
        self._array_rels: FrozenSet[str] = frozenset(
            self._curies.resolve(rel) for rel in array_rels
        ) | {CURIES_REL}
        self._links: Dict[str, List[Link]] = {}
        for link in links:
            key = link.rel if link.rel == CURIES_REL else self._curies.resolve(link.rel)
            bucket = self._links.setdefault(key, [])
            if not any(existing.is_equivalent_to(link) for existing in bucket):
                bucket.append(link)

    # --- Construction ------------------------------------------------------ #

    @classmethod
    def empty(cls) -> "Links":
        return cls()

    @classmethod
    def linking_to(cls, *links: Link) -> "Links":
        return cls(links)

    @classmethod
    def builder(cls) -> "LinksBuilder":
        return LinksBuilder()

    @classmethod
    def copy_of(cls, links: "Links") -> "LinksBuilder":
        return LinksBuilder(links)

    @classmethod
    def from_json(
        cls,
        data: Optional[Mapping[str, Any]],
        *,
        array_rels: Iterable[str] = DEFAULT_ARRAY_RELS,
        parent_curies: Optional[Curies] = None,
    ) -> "Links":
        """
        Decode a raw _links object. Each rel may hold a single link object or
        an array of link objects; both become a list of links.
        """
        if data is None:
            return cls(array_rels=array_rels, parent_curies=parent_curies)
        if not isinstance(data, Mapping):
            raise ValueError("Expected _links to be a JSON object.")
        links: List[Link] = []
        for rel, value in data.items():
            for obj in hal.as_list(value):
                links.append(Link.model_validate({**obj, "rel": rel}))
        return cls(links, array_rels=array_rels, parent_curies=parent_curies)

    def with_parent_curies(self, curies: Curies) -> "Links":
        """
        Return a copy re-keyed with curies inherited from an enclosing
        representation. Own CURI links equivalent to an inherited one are
        dropped, so they are not rendered twice.
        """
        parent = self._parent_curies.merge_with(curies)
        kept = [
            link
            for link in self
            if link.rel != CURIES_REL
            or not any(link.is_equivalent_to(c) for c in parent)
        ]
        return Links(kept, array_rels=self._array_rels, parent_curies=parent)

    # --- Lookup ------------------------------------------------------------ #

    @property
    def curies(self) -> Curies:
        return self._curies

    @property
    def parent_curies(self) -> Curies:
        return self._parent_curies

    @property
    def array_rels(self) -> FrozenSet[str]:
        return self._array_rels

    @property
    def rels(self) -> List[str]:
        return list(self._links)

    def links_by(self, rel: str, predicate: Optional[LinkPredicate] = None) -> List[Link]:
        found = self._links.get(self._curies.resolve(rel), [])
        if predicate is None:
            return list(found)
        return [link for link in found if predicate(link)]

    def link_by(self, rel: str, predicate: Optional[LinkPredicate] = None) -> Optional[Link]:
        found = self.links_by(rel, predicate)
        return found[0] if found else None

    def has_link(self, rel: str) -> bool:
        return self._curies.resolve(rel) in self._links

    def is_array_rel(self, rel: str) -> bool:
        return self._curies.resolve(rel) in self._array_rels

    def is_empty(self) -> bool:
        return not self._links

    def __iter__(self) -> Iterator[Link]:
        for bucket in self._links.values():
            yield from bucket

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._links.values())

    # --- Rendering --------------------------------------------------------- #

    def to_json(self) -> Dict[str, Any]:
        rendered: Dict[str, Any] = {}
        for rel, bucket in self._links.items():
            if len(bucket) > 1 or self.is_array_rel(rel):
                rendered[rel] = [link.to_json() for link in bucket]
            else:
                rendered[rel] = bucket[0].to_json()
        return rendered

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Links):
            return NotImplemented
        return self._links == other._links

    def __repr__(self) -> str:
        return f"Links(links={self._links!r})"


class LinksBuilder:
    """Accumulates links before building an immutable-by-convention Links."""

    def __init__(self, prototype: Optional[Links] = None):
        self._links: List[Link] = list(prototype) if prototype is not None else []
        self._array_rels: Set[str] = (
            set(prototype.array_rels) if prototype is not None else set(DEFAULT_ARRAY_RELS)
        )
        self._single_rels: Set[str] = set()
        self._parent_curies: Optional[Curies] = (
            prototype.parent_curies if prototype is not None else None
        )

    def _same_rel(self, link: Link, rel: str) -> bool:
        curies = (self._parent_curies or Curies.empty()).merge_with(
            Curies.from_links(self._links)
        )
        return curies.resolve(link.rel) == curies.resolve(rel)

    def _has_rel(self, rel: str) -> bool:
        return any(self._same_rel(link, rel) for link in self._links)

    def _append(self, link: Link) -> None:
        if link.rel in self._single_rels:
            raise ValueError(
                f"Unable to add links with rel [{link.rel}] as there is already "
                "a single link registered."
            )
        if not any(existing.is_equivalent_to(link) for existing in self._links):
            self._links.append(link)

    def add(self, *links: Link) -> "LinksBuilder":
        for link in links:
            self._append(link)
        return self

    def single(self, *links: Link) -> "LinksBuilder":
        """Add links for rels that must render as a single link object."""
        for link in links:
            if self._has_rel(link.rel):
                raise ValueError(
                    f"The Links already contain a link with rel [{link.rel}]"
                )
            if link.rel in self._array_rels:
                raise ValueError(f"Rel [{link.rel}] is configured as array rel")
            self._append(link)
            self._single_rels.add(link.rel)
        return self

    def array(self, *links: Link) -> "LinksBuilder":
        """Add links for rels that always render as a JSON array."""
        for link in links:
            self._array_rels.add(link.rel)
            self._append(link)
        return self

    def with_array_rels(self, *rels: str) -> "LinksBuilder":
        self._array_rels.update(rels)
        return self

    def replace(self, rel: str, links: Iterable[Link]) -> "LinksBuilder":
        self.without(rel)
        for link in links:
            self._append(link.with_rel(rel))
        return self

    def without(self, rel: str) -> "LinksBuilder":
        self._links = [link for link in self._links if not self._same_rel(link, rel)]
        self._single_rels.discard(rel)
        return self

    def build(self) -> Links:
        return Links(
            self._links,
            array_rels=self._array_rels,
            parent_curies=self._parent_curies,
        )


__all__ = ["DEFAULT_ARRAY_RELS", "Links", "LinksBuilder"]
