from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .errors import InvalidCurieError
from .link import CURIES_REL, REL_PLACEHOLDER, Link


class CurieTemplate:
    """
    Matches link-relation types against one CURI link.

    Example, for curi('x', 'http://example.org/rels/{rel}'):
      - matches_expanded('http://example.org/rels/product') -> True
      - matches_curied('x:product') -> True
      - to_curied('http://example.org/rels/product') -> 'x:product'
      - to_expanded('x:product') -> 'http://example.org/rels/product'
      - placeholder('x:product') -> 'product'
    """

    def __init__(self, curi: Link):
        if curi.rel != CURIES_REL:
            raise InvalidCurieError("Parameter is not a CURI link.")
        if not curi.name:
            raise InvalidCurieError("CURI link is missing the required name.")
        if curi.href.count(REL_PLACEHOLDER) != 1:
            raise InvalidCurieError(
                "Href of the CURI does not contain exactly one {rel} placeholder."
            )
        self.curi = curi
        self.name = curi.name
        self.prefix, self.suffix = curi.href.split(REL_PLACEHOLDER)

    def matches_expanded(self, rel: str) -> bool:
        return (
            len(rel) > len(self.prefix) + len(self.suffix)
            and rel.startswith(self.prefix)
            and rel.endswith(self.suffix)
        )

    def matches_curied(self, rel: str) -> bool:
        return rel.startswith(self.name + ":")

    def matches(self, rel: str) -> bool:
        return self.matches_curied(rel) or self.matches_expanded(rel)

    def placeholder(self, rel: str) -> str:
        if self.matches_curied(rel):
            return rel[len(self.name) + 1 :]
        if self.matches_expanded(rel):
            return rel[len(self.prefix) : len(rel) - len(self.suffix)]
        raise ValueError(f"Rel {rel!r} is not matching the CURI template.")

    def to_curied(self, rel: str) -> str:
        return f"{self.name}:{self.placeholder(rel)}"

    def to_expanded(self, rel: str) -> str:
        return f"{self.prefix}{self.placeholder(rel)}{self.suffix}"

    def __repr__(self) -> str:
        return f"CurieTemplate(name={self.name!r}, href={self.curi.href!r})"


def matching_curie_template_for(
    curies: Iterable[Link], rel: str
) -> Optional[CurieTemplate]:
    for curi in curies:
        template = CurieTemplate(curi)
        if template.matches(rel):
            return template
    return None


class Curies:
    """
    Registry of CURI links, used to translate rels between the expanded URI
    form and the curied `name:suffix` shorthand.

    Built once and then only read: merge_with() returns a new registry.
    """

    def __init__(self, curies: Iterable[Link] = ()):
        self._templates: List[CurieTemplate] = []
        for curi in curies:
            self.register(curi)

    @classmethod
    def empty(cls) -> "Curies":
        return cls()

    @classmethod
    def from_links(cls, links: Iterable[Link]) -> "Curies":
        return cls(link for link in links if link.rel == CURIES_REL)

    def register(self, curi: Link) -> None:
        if curi.rel != CURIES_REL:
            raise InvalidCurieError("Link must be a CURI")
        template = CurieTemplate(curi)
        if any(t.curi.href == curi.href for t in self._templates):
            self._templates = [t for t in self._templates if t.name != curi.name]
        self._templates.append(template)

    def merge_with(self, other: "Curies") -> "Curies":
        merged = Curies()
        merged._templates = list(self._templates)
        for template in other._templates:
            merged.register(template.curi)
        return merged

    def resolve(self, rel: str) -> str:
        """Return the curied form of rel, or rel unchanged if no CURI matches."""
        for template in self._templates:
            if template.matches(rel):
                return template.to_curied(rel)
        return rel

    def expand(self, rel: str) -> str:
        """Return the expanded form of a curied rel, or rel unchanged."""
        if ":" not in rel:
            return rel
        name = rel.split(":", 1)[0]
        for template in self._templates:
            if template.name == name:
                return template.to_expanded(rel)
        return rel

    @property
    def links(self) -> List[Link]:
        return [t.curi for t in self._templates]

    def is_empty(self) -> bool:
        return not self._templates

    def __iter__(self) -> Iterator[Link]:
        return iter(self.links)

    def __len__(self) -> int:
        return len(self._templates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Curies):
            return NotImplemented
        return self.links == other.links

    def __repr__(self) -> str:
        return f"Curies(curies={self.links!r})"


__all__ = ["CurieTemplate", "Curies", "matching_curie_template_for"]
