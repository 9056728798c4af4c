import json
import logging
from typing import Optional

import pytest
from halnav.core.errors import (
    ConfigurationError,
    HttpStatusError,
    InvalidDocumentError,
    MissingLinkError,
    TransportError,
    TypeMismatchError,
)
from halnav.core.link import Link
from halnav.core.predicates import having_type
from halnav.core.representation import HalRepresentation
from halnav.core.traverson import (
    Hop,
    Traverson,
    embedded_type_info_for,
    hops,
    traverson,
    with_vars,
)
from halnav.core.typeinfo import EmbeddedTypeInfo, with_embedded

BASE = "http://example.com"


class Product(HalRepresentation):
    title: str
    price: Optional[int] = None


class Brand(HalRepresentation):
    name: str


class StubResolver:
    """Serves canned documents by href and records every requested link."""

    def __init__(self, documents):
        self.documents = documents
        self.calls = []

    def __call__(self, link: Link):
        self.calls.append(link.href)
        doc = self.documents[link.href]
        return doc if isinstance(doc, str) else json.dumps(doc)


def _self(href):
    return {"self": {"href": href}}


def _doc_with_embedded_item():
    return HalRepresentation.model_validate(
        {
            "_links": {
                "self": {"href": f"{BASE}/doc"},
                "item": [{"href": "/items/1"}],
            },
            "_embedded": {
                "item": [
                    {"_links": _self(f"{BASE}/items/1"), "title": "summary"},
                ]
            },
        }
    )


def test_concrete_example_follows_next_link():
    resolver = StubResolver(
        {
            "/a": {"_links": {"self": {"href": "/a"}, "next": {"href": "/b"}}},
            "/b": {"_links": {"self": {"href": "/b"}}},
        }
    )
    result = traverson(resolver).start_with("/a").follow("next").get_resource()
    assert result.links.link_by("self").href == "/b"
    assert resolver.calls == ["/a", "/b"]


def test_get_resource_without_hops_fetches_start():
    resolver = StubResolver({f"{BASE}/": {"_links": _self(f"{BASE}/"), "a": 1}})
    result = traverson(resolver).start_with(f"{BASE}/").get_resource()
    assert result.attribute("a") == 1
    assert resolver.calls == [f"{BASE}/"]


def test_start_uri_template_and_context():
    resolver = StubResolver({f"{BASE}/api/search?q=x": {"a": 1}})
    t = traverson(resolver)
    t.start_with("search{?q}", f"{BASE}/api/", variables={"q": "x"}).get_resource()
    assert resolver.calls == [f"{BASE}/api/search?q=x"]
    assert t.current_context_url == f"{BASE}/api/search?q=x"


def test_embedded_items_are_used_without_fetching():
    resolver = StubResolver({})
    result = (
        traverson(resolver)
        .start_with(_doc_with_embedded_item())
        .follow("item")
        .get_resource()
    )
    assert result.attribute("title") == "summary"
    assert resolver.calls == []


def test_follow_link_ignores_embedded_items():
    resolver = StubResolver(
        {f"{BASE}/items/1": {"_links": _self(f"{BASE}/items/1"), "title": "full"}}
    )
    t = traverson(resolver).start_with(_doc_with_embedded_item())
    result = t.follow_link("item").get_resource()
    assert result.attribute("title") == "full"
    assert resolver.calls == [f"{BASE}/items/1"]
    assert t.current_context_url == f"{BASE}/items/1"


def test_follow_link_falls_back_to_embedded_without_links():
    doc = HalRepresentation.model_validate(
        {"_links": _self(f"{BASE}/doc"), "_embedded": {"item": [{"title": "only"}]}}
    )
    resolver = StubResolver({})
    result = traverson(resolver).start_with(doc).follow_link("item").get_resource()
    assert result.attribute("title") == "only"
    assert resolver.calls == []


def test_embedded_lookup_by_expanded_rel():
    doc = HalRepresentation.model_validate(
        {
            "_links": {
                "self": {"href": f"{BASE}/doc"},
                "curies": [
                    {"name": "x", "href": "http://ex.org/rels/{rel}", "templated": True}
                ],
            },
            "_embedded": {"x:product": [{"title": "One"}]},
        }
    )
    result = (
        traverson(StubResolver({}))
        .start_with(doc)
        .follow("http://ex.org/rels/product")
        .get_resource_as(Product)
    )
    assert isinstance(result, Product)
    assert result.title == "One"


def test_missing_link_never_calls_resolver():
    resolver = StubResolver({})
    with pytest.raises(MissingLinkError) as exc:
        traverson(resolver).start_with(_doc_with_embedded_item()).follow(
            "nonexistent"
        ).get_resource()
    assert exc.value.rel == "nonexistent"
    assert f"{BASE}/doc" in str(exc.value)
    assert resolver.calls == []


def test_multiple_hops_route_typed_embedded_items():
    resolver = StubResolver(
        {
            f"{BASE}/": {"_links": {"self": {"href": f"{BASE}/"}, "products": {"href": "/products"}}},
            f"{BASE}/products": {
                "_links": _self(f"{BASE}/products"),
                "_embedded": {"item": [{"title": "One", "price": 1}, {"title": "Two"}]},
            },
        }
    )
    results = list(
        traverson(resolver)
        .start_with(f"{BASE}/")
        .follow(hops("products", "item"))
        .stream_as(Product)
    )
    assert [p.title for p in results] == ["One", "Two"]
    assert all(isinstance(p, Product) for p in results)
    assert resolver.calls == [f"{BASE}/", f"{BASE}/products"]


def test_nested_type_infos_apply_to_results():
    resolver = StubResolver(
        {
            f"{BASE}/": {
                "_links": _self(f"{BASE}/"),
                "_embedded": {
                    "item": [{"title": "One", "_embedded": {"brand": {"name": "Acme"}}}]
                },
            }
        }
    )
    product = (
        traverson(resolver)
        .start_with(f"{BASE}/")
        .follow("item")
        .get_resource_as(Product, with_embedded("brand", Brand))
    )
    brand = product.embedded.items_by("brand")[0]
    assert isinstance(brand, Brand)
    assert brand.name == "Acme"


def test_nested_type_infos_apply_to_typed_embedded_items():
    start = HalRepresentation.model_validate(
        {"_links": _self(f"{BASE}/")}
    ).with_embedded(
        "item",
        [Product.model_validate({"title": "One", "_embedded": {"brand": {"name": "Acme"}}})],
    )
    product = (
        traverson(StubResolver({}))
        .start_with(start)
        .follow("item")
        .get_resource_as(Product, with_embedded("brand", Brand))
    )
    assert isinstance(product, Product)
    assert product.title == "One"
    brand = product.embedded.items_by("brand")[0]
    assert isinstance(brand, Brand)
    assert brand.name == "Acme"


def test_stream_fetches_every_matching_link():
    resolver = StubResolver(
        {
            f"{BASE}/doc": {
                "_links": {
                    "self": {"href": f"{BASE}/doc"},
                    "item": [{"href": "/items/1"}, {"href": "/items/2"}],
                }
            },
            f"{BASE}/items/1": {"title": "One"},
            f"{BASE}/items/2": {"title": "Two"},
        }
    )
    results = list(
        traverson(resolver).start_with(f"{BASE}/doc").follow("item").stream_as(Product)
    )
    assert [p.title for p in results] == ["One", "Two"]
    assert resolver.calls == [f"{BASE}/doc", f"{BASE}/items/1", f"{BASE}/items/2"]


def test_get_resource_fetches_only_first_matching_link():
    resolver = StubResolver(
        {
            f"{BASE}/doc": {
                "_links": {"item": [{"href": "/items/1"}, {"href": "/items/2"}]}
            },
            f"{BASE}/items/1": {"title": "One"},
        }
    )
    result = traverson(resolver).start_with(f"{BASE}/doc").follow("item").get_resource()
    assert result.attribute("title") == "One"
    assert resolver.calls == [f"{BASE}/doc", f"{BASE}/items/1"]


def test_follow_with_predicate_and_template_variables():
    resolver = StubResolver(
        {
            f"{BASE}/": {
                "_links": {
                    "search": [
                        {"href": "/html{?q}", "type": "text/html"},
                        {"href": "/search{?q}", "type": "application/hal+json"},
                    ]
                }
            },
            f"{BASE}/search?q=books": {"found": 3},
        }
    )
    result = (
        traverson(resolver)
        .start_with(f"{BASE}/")
        .follow(
            "search",
            having_type("application/hal+json"),
            with_vars("q", "books"),
        )
        .get_resource()
    )
    assert result.attribute("found") == 3


def test_relative_links_resolve_against_moving_context():
    resolver = StubResolver(
        {
            f"{BASE}/api/": {"_links": {"a": {"href": "things/"}}},
            f"{BASE}/api/things/": {"_links": {"b": {"href": "42"}}},
            f"{BASE}/api/things/42": {"id": 42},
        }
    )
    t = traverson(resolver).start_with(f"{BASE}/api/")
    result = t.follow(["a", "b"]).get_resource()
    assert result.attribute("id") == 42
    assert t.current_context_url == f"{BASE}/api/things/42"


def test_follow_continues_from_last_result():
    resolver = StubResolver(
        {
            f"{BASE}/a": {"_links": {"next": {"href": "/b"}}},
            f"{BASE}/b": {"_links": {"next": {"href": "/c"}}},
            f"{BASE}/c": {"last": True},
        }
    )
    t = traverson(resolver).start_with(f"{BASE}/a")
    t.follow("next").get_resource()
    assert t.follow("next").get_resource().attribute("last") is True
    assert resolver.calls == [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"]


def test_start_with_representation_with_relative_links_needs_context():
    doc = HalRepresentation.model_validate({"_links": {"item": {"href": "/items/1"}}})
    with pytest.raises(ConfigurationError):
        traverson(StubResolver({})).start_with(doc)

    resolver = StubResolver({f"{BASE}/items/1": {"title": "One"}})
    result = (
        traverson(resolver).start_with(doc, f"{BASE}/doc").follow("item").get_resource()
    )
    assert result.attribute("title") == "One"


def test_start_with_representation_with_absolute_links():
    doc = HalRepresentation.model_validate(
        {"_links": {"item": {"href": f"{BASE}/items/1"}}}
    )
    resolver = StubResolver({f"{BASE}/items/1": {"title": "One"}})
    result = traverson(resolver).start_with(doc).follow("item").get_resource()
    assert result.attribute("title") == "One"


def test_terminal_call_requires_start():
    t = Traverson(StubResolver({}))
    with pytest.raises(ConfigurationError):
        t.get_resource()
    with pytest.raises(ConfigurationError):
        t.follow("item")


def test_type_mismatch_for_embedded_items():
    doc = _doc_with_embedded_item().with_embedded("brand", [Brand(name="Acme")])

    # untyped item missing a required field
    with pytest.raises(TypeMismatchError):
        traverson(StubResolver({})).start_with(doc).follow("item").get_resource_as(Brand)
    # typed item of an unrelated type
    with pytest.raises(TypeMismatchError):
        traverson(StubResolver({})).start_with(doc).follow("brand").get_resource_as(
            Product
        )
    # untyped item that fits is decoded into the requested type
    product = (
        traverson(StubResolver({})).start_with(doc).follow("item").get_resource_as(Product)
    )
    assert product.title == "summary"


def test_resolver_failure_is_wrapped():
    def failing(link):
        raise RuntimeError("connection refused")

    with pytest.raises(TransportError) as exc:
        traverson(failing).start_with(f"{BASE}/").get_resource()
    assert isinstance(exc.value.__cause__, RuntimeError)
    assert exc.value.link.href == f"{BASE}/"


def test_resolver_hal_errors_propagate_unchanged():
    def not_found(link):
        raise HttpStatusError(status_code=404, url=link.href, message="Not Found")

    with pytest.raises(HttpStatusError) as exc:
        traverson(not_found).start_with(f"{BASE}/").get_resource()
    assert exc.value.status_code == 404


@pytest.mark.parametrize("body", ["", None])
def test_empty_response_is_invalid_document(body):
    with pytest.raises(InvalidDocumentError) as exc:
        traverson(lambda link: body).start_with(f"{BASE}/").get_resource()
    assert exc.value.href == f"{BASE}/"


def test_malformed_response_is_invalid_document():
    with pytest.raises(InvalidDocumentError) as exc:
        traverson(lambda link: "<html/>").start_with(f"{BASE}/x").get_resource()
    assert exc.value.href == f"{BASE}/x"


def test_non_object_links_section_is_invalid_document(caplog):
    caplog.set_level(logging.ERROR, logger="halnav.core.traverson")
    resolver = StubResolver(
        {
            "/a": {"_links": {"self": {"href": "/a"}, "next": {"href": "/b"}}},
            "/b": {"_links": [1]},
        }
    )
    with pytest.raises(InvalidDocumentError) as exc:
        traverson(resolver).start_with("/a").follow("next").get_resource()
    assert exc.value.href == "/b"
    record = next(r for r in caplog.records if r.name == "halnav.core.traverson")
    assert record.error_type == "InvalidDocumentError"


def test_fetch_is_logged(caplog):
    caplog.set_level(logging.INFO, logger="halnav.observability")
    resolver = StubResolver({f"{BASE}/": {"a": 1}})
    traverson(resolver).start_with(f"{BASE}/").get_resource_as(HalRepresentation)

    record = next(r for r in caplog.records if r.getMessage() == "hal_fetch")
    assert record.href == f"{BASE}/"
    assert record.status == "ok"
    assert record.result_type == "HalRepresentation"
    assert record.duration_ms >= 0


def test_failed_traversal_is_logged(caplog):
    caplog.set_level(logging.ERROR, logger="halnav.core.traverson")
    with pytest.raises(MissingLinkError):
        traverson(StubResolver({})).start_with(_doc_with_embedded_item()).follow(
            ["missing", "other"]
        ).get_resource()
    record = next(r for r in caplog.records if r.name == "halnav.core.traverson")
    assert record.hops == ["missing", "other"]
    assert record.error_type == "MissingLinkError"


def test_with_vars_and_hops():
    assert with_vars("q", "books", "page", 2) == {"q": "books", "page": 2}
    with pytest.raises(ValueError):
        with_vars("q", "books", "page")
    assert hops("a", "b", "c") == ["a", "b", "c"]


def test_embedded_type_info_for():
    info = embedded_type_info_for([Hop("a"), Hop("b")], Product, [with_embedded("c", Brand)])
    assert info == EmbeddedTypeInfo(
        "a",
        HalRepresentation,
        (EmbeddedTypeInfo("b", Product, (EmbeddedTypeInfo("c", Brand),)),),
    )
    assert embedded_type_info_for([Hop("a")], Product) == with_embedded("a", Product)
    with pytest.raises(ValueError):
        embedded_type_info_for([], Product)


def test_terminal_call_without_new_hops_returns_last_result():
    resolver = StubResolver({f"{BASE}/": {"a": 1}})
    t = traverson(resolver).start_with(f"{BASE}/")
    first = t.get_resource()
    assert t.get_resource() is first
    assert list(t.stream()) == [first]
    assert resolver.calls == [f"{BASE}/"]
