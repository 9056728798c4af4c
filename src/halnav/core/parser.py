from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, Type, TypeVar, Union

from pydantic import ValidationError

from . import hal
from .curies import Curies
from .errors import InvalidDocumentError
from .representation import HalRepresentation
from .typeinfo import EmbeddedTypeInfo

T = TypeVar("T", bound=HalRepresentation)

log = logging.getLogger("halnav.core.parser")


@dataclass(frozen=True)
class ParserConfig:
    strict: bool = False  # pydantic strict mode for typed fields
    loads: Callable[[Union[str, bytes]], Any] = field(default=json.loads)


DEFAULT_PARSER_CONFIG = ParserConfig()


class HalParser:
    """
    Decodes HAL+JSON documents into representations.
    - Single objects and arrays are accepted wherever HAL allows a list
    - Embedded items are decoded as plain HalRepresentation, unless an
      EmbeddedTypeInfo names a type for their rel (recursively, per level)
    - Raises InvalidDocumentError for empty, malformed or mismatching input
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or DEFAULT_PARSER_CONFIG

    def parse(
        self,
        text: Union[str, bytes, None],
        type: Type[T] = HalRepresentation,  # type: ignore[assignment]
        type_infos: Sequence[EmbeddedTypeInfo] = (),
    ) -> T:
        if text is None or not text.strip():
            raise InvalidDocumentError("Expected a HAL+JSON document, got no content")
        try:
            payload = self.config.loads(text)
        except ValueError as exc:
            snippet = text[:200]
            raise InvalidDocumentError(
                f"Expected JSON, got non-JSON body snippet: {snippet!r}"
            ) from exc
        return self.parse_object(payload, type, type_infos)

    def parse_object(
        self,
        payload: Any,
        type: Type[T] = HalRepresentation,  # type: ignore[assignment]
        type_infos: Sequence[EmbeddedTypeInfo] = (),
        *,
        parent_curies: Optional[Curies] = None,
    ) -> T:
        """
        Decode an already loaded JSON object. `parent_curies` are the curies
        of an enclosing document, if the object was embedded in one.
        """
        if not isinstance(payload, dict):
            raise InvalidDocumentError(
                f"Expected top-level JSON object, got {payload.__class__.__name__}"
            )
        try:
            resource = self._validate(type, payload)
            if parent_curies is not None:
                resource = resource.with_parent_curies(parent_curies)
            return self._resolve_type_infos(resource, payload, type_infos)
        except ValidationError as exc:
            raise InvalidDocumentError(
                f"Document did not match {type.__name__}: {exc}"
            ) from exc
        except ValueError as exc:
            raise InvalidDocumentError(f"Malformed HAL document: {exc}") from exc

    def _validate(self, type: Type[T], payload: Dict[str, Any]) -> T:
        return type.model_validate(payload, strict=self.config.strict or None)

    def _resolve_type_infos(
        self,
        resource: T,
        payload: Dict[str, Any],
        type_infos: Sequence[EmbeddedTypeInfo],
    ) -> T:
        for info in type_infos:
            node = hal.get_embedded_node(payload, info.rel, resource.curies)
            if node is None:
                continue
            typed = [
                self._decode_embedded(info, raw, resource)
                for raw in hal.as_list(node)
            ]
            log.debug(
                "Decoded %d embedded %s as %s", len(typed), info.rel, info.type.__name__
            )
            if isinstance(node, dict):
                resource = resource.with_embedded_item(info.rel, typed[0])
            else:
                resource = resource.with_embedded(info.rel, typed)
        return resource

    def _decode_embedded(
        self, info: EmbeddedTypeInfo, raw: Dict[str, Any], parent: HalRepresentation
    ) -> HalRepresentation:
        item = self._validate(info.type, raw).with_parent_curies(parent.curies)
        return self._resolve_type_infos(item, raw, info.nested)


def parse(
    text: Union[str, bytes, None],
    type: Type[T] = HalRepresentation,  # type: ignore[assignment]
    *type_infos: EmbeddedTypeInfo,
    config: Optional[ParserConfig] = None,
) -> T:
    """Decode a document, e.g. parse(text, Page, with_embedded('item', Product))."""
    return HalParser(config).parse(text, type, type_infos)


__all__ = ["ParserConfig", "DEFAULT_PARSER_CONFIG", "HalParser", "parse"]
