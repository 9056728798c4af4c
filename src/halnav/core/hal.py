from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .curies import Curies


def as_list(value: Any) -> List[Dict[str, Any]]:
    """
    Normalizes a HAL value that may be a single object or an array of objects.
    Example: as_list({'href': '/a'}) -> [{'href': '/a'}]
    Raises ValueError for anything that is neither.
    """
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        if not all(isinstance(v, dict) for v in value):
            raise ValueError("Expected an array of JSON objects.")
        return value
    raise ValueError(
        f"Expected a JSON object or an array of objects, got {type(value).__name__}"
    )


def get_section(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    """
    Safely retrieves the _links or _embedded object of a raw payload.
    """
    if not payload or key not in payload or payload[key] is None:
        return {}
    section = payload[key]
    if not isinstance(section, dict):
        raise ValueError(f"Expected {key} to be a JSON object.")
    return section


def get_embedded_node(
    payload: Dict[str, Any], rel: str, curies: "Curies"
) -> Optional[Any]:
    """
    Locates the raw _embedded value for rel, trying the curied form first
    and then the expanded form.
    Example: get_embedded_node(doc, 'http://ex.org/rels/foo', curies) finds
    doc['_embedded']['x:foo'] when curie x is registered.
    """
    embedded = get_section(payload, "_embedded")
    for key in (curies.resolve(rel), curies.expand(rel), rel):
        if key in embedded:
            return embedded[key]
    return None


__all__ = ["as_list", "get_section", "get_embedded_node"]
