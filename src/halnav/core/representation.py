from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_serializer,
    model_validator,
)

from .curies import Curies
from .embedded import Embedded
from .link import Link
from .links import Links


class HalRepresentation(BaseModel):
    """
    A HAL+JSON resource: _links, _embedded and any other fields.

    Subclass to declare typed fields; unmapped fields are kept as raw
    attributes. Instances are not mutated after construction: the with_*
    methods return new representations, re-propagating curies into
    embedded items.
    """

    links: Links = Field(default_factory=Links, alias="_links")
    embedded: Embedded = Field(default_factory=Embedded, alias="_embedded")

    model_config = ConfigDict(
        populate_by_name=True, extra="allow", arbitrary_types_allowed=True
    )

    # --- Decoding ---------------------------------------------------------- #

    @field_validator("links", mode="before")
    @classmethod
    def _decode_links(cls, value: Any) -> Links:
        if value is None:
            return Links()
        if isinstance(value, Links):
            return value
        if isinstance(value, Mapping):
            return Links.from_json(value)
        if isinstance(value, (list, tuple)) and all(isinstance(item, Link) for item in value):
            return Links(value)
        raise ValueError("Expected _links to be a JSON object.")

    @field_validator("embedded", mode="before")
    @classmethod
    def _decode_embedded(cls, value: Any) -> Embedded:
        if value is None:
            return Embedded()
        if isinstance(value, Embedded):
            return value
        if not isinstance(value, Mapping):
            raise ValueError("Expected _embedded to be a JSON object.")

        items: Dict[str, List[HalRepresentation]] = {}
        single_rels: List[str] = []
        for rel, node in value.items():
            if isinstance(node, (dict, HalRepresentation)):
                single_rels.append(rel)
                node = [node]
            if not isinstance(node, list):
                raise ValueError(
                    f"Expected _embedded.{rel} to be an object or an array of objects."
                )
            items[rel] = [
                item
                if isinstance(item, HalRepresentation)
                else HalRepresentation.model_validate(item)
                for item in node
            ]
        return Embedded(items, single_rels=single_rels)

    @model_validator(mode="after")
    def _propagate_curies(self) -> "HalRepresentation":
        if not self.links.curies.is_empty():
            self.embedded = self.embedded.using(self.links.curies)
        return self

    # --- Accessors --------------------------------------------------------- #

    @property
    def curies(self) -> Curies:
        return self.links.curies

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def attribute(self, name: str) -> Any:
        return (self.model_extra or {}).get(name)

    # --- Construction ------------------------------------------------------ #

    def _with(self, links: Links, embedded: Embedded) -> "HalRepresentation":
        return self.model_copy(
            update={"links": links, "embedded": embedded.using(links.curies)}
        )

    def with_links(self, *links: Link) -> "HalRepresentation":
        updated = Links.copy_of(self.links).add(*links).build()
        return self._with(updated, self.embedded)

    def with_embedded(
        self, rel: str, items: Iterable["HalRepresentation"]
    ) -> "HalRepresentation":
        updated = Embedded.copy_of(self.embedded).using(self.curies).with_items(rel, items)
        return self._with(self.links, updated.build())

    def with_embedded_item(self, rel: str, item: "HalRepresentation") -> "HalRepresentation":
        updated = Embedded.copy_of(self.embedded).using(self.curies).with_item(rel, item)
        return self._with(self.links, updated.build())

    def with_parent_curies(self, curies: Curies) -> "HalRepresentation":
        """Return a copy that also knows the curies of an enclosing representation."""
        return self._with(self.links.with_parent_curies(curies), self.embedded)

    # --- Rendering --------------------------------------------------------- #

    @field_serializer("links")
    def _serialize_links(self, links: Links) -> Dict[str, Any]:
        return links.to_json()

    @field_serializer("embedded")
    def _serialize_embedded(self, embedded: Embedded) -> Dict[str, Any]:
        return embedded.to_json()

    @model_serializer(mode="wrap")
    def _omit_empty_sections(self, handler: Any) -> Dict[str, Any]:
        data = handler(self)
        for key in ("_links", "links", "_embedded", "embedded"):
            if key in data and not data[key]:
                del data[key]
        return data

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self, *, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


__all__ = ["HalRepresentation"]
