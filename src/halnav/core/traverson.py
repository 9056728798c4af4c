from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
)
from urllib.parse import urljoin, urlsplit

from .errors import (
    ConfigurationError,
    HalError,
    InvalidDocumentError,
    MissingLinkError,
    TransportError,
    TypeMismatchError,
)
from .link import Link, self_link
from .observability import timed_event
from .parser import HalParser, ParserConfig
from .predicates import LinkPredicate, always
from .representation import HalRepresentation
from .typeinfo import EmbeddedTypeInfo, with_embedded

T = TypeVar("T", bound=HalRepresentation)

LinkResolver = Callable[[Link], Union[str, bytes, None]]
PageHandler = Callable[["Traverson"], bool]

log = logging.getLogger("halnav.core.traverson")


@dataclass(frozen=True)
class Hop:
    rel: str
    predicate: LinkPredicate = field(default_factory=always)
    variables: Mapping[str, Any] = field(default_factory=dict)
    ignore_embedded: bool = False


def with_vars(key: str, value: Any, *more: Any) -> Dict[str, Any]:
    """
    Build URI template variables from key/value pairs.
    Example: with_vars('q', 'books', 'page', 2) -> {'q': 'books', 'page': 2}
    """
    if len(more) % 2 != 0:
        raise ValueError("The number of template variables (key-value pairs) must be even")
    variables = {key: value}
    for i in range(0, len(more), 2):
        variables[str(more[i])] = more[i + 1]
    return variables


def hops(rel: str, *more: str) -> List[str]:
    return [rel, *more]


def embedded_type_info_for(
    hops: Sequence[Hop],
    result_type: Type[HalRepresentation],
    type_infos: Sequence[EmbeddedTypeInfo] = (),
) -> EmbeddedTypeInfo:
    """
    Build the descriptor chain routing a fetched document to the items of
    the remaining hops: every hop but the last is a plain HalRepresentation,
    the last one is `result_type` with `type_infos` nested below it.
    """
    if not hops:
        raise ValueError("Hops must not be empty")
    info = with_embedded(hops[-1].rel, result_type, *type_infos)
    for hop in reversed(hops[:-1]):
        info = with_embedded(hop.rel, HalRepresentation, info)
    return info


def _is_absolute(href: str) -> bool:
    parts = urlsplit(href)
    return bool(parts.scheme and parts.netloc)


class Traverson:
    """
    Navigates HAL resources by following link-relation types.

    Usage:
        traverson(resolver).start_with('http://example.com/api') \\
            .follow('search', variables={'q': 'books'}) \\
            .follow('item') \\
            .stream_as(Product)

    - `resolver` fetches one Link and returns the JSON text; retries,
      caching and headers are its business, not the Traverson's
    - Hops queued with follow()/follow_link() are consumed by the next
      terminal call (get_resource*, stream*, paginate*); later hops continue
      from the last result
    - Embedded items are used instead of fetching whenever they are present,
      unless the hop was queued with follow_link()
    - Not safe for concurrent use: the hop queue and last result are
      per-instance state
    """

    def __init__(
        self,
        resolver: LinkResolver,
        *,
        parser_config: Optional[ParserConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._resolver = resolver
        self._parser_config = parser_config
        self._parser = HalParser(parser_config)
        self.log = logger or log
        self._hops: Tuple[Hop, ...] = ()
        self._start_uri: Optional[str] = None
        self._context_url: Optional[str] = None
        self._last_result: Optional[List[HalRepresentation]] = None

    @property
    def current_context_url(self) -> Optional[str]:
        return self._context_url

    # --- Start point ------------------------------------------------------- #

    def start_with(
        self,
        start: Union[str, HalRepresentation],
        context_url: Optional[str] = None,
        *,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> "Traverson":
        """
        Position the Traverson at a URI (fetched lazily by the first terminal
        call) or at an in-memory representation.

        A URI may be a URI template filled from `variables`, and is resolved
        against `context_url` if given. A representation without a self link
        but with relative hrefs requires `context_url`.
        """
        self._hops = ()
        if isinstance(start, HalRepresentation):
            return self._start_with_representation(start, context_url)

        uri = Link(href=start).expand(variables).href if variables else start
        if context_url:
            uri = urljoin(context_url, uri)
        self._start_uri = uri
        self._context_url = uri
        self._last_result = None
        return self

    def _start_with_representation(
        self, resource: HalRepresentation, context_url: Optional[str]
    ) -> "Traverson":
        self._start_uri = None
        self._last_result = [resource]
        if context_url:
            self._context_url = context_url
            return self

        self_href = resource.links.link_by("self")
        if self_href is not None:
            self._context_url = self_href.href
            return self

        relative = next((l for l in resource.links if not _is_absolute(l.href)), None)
        if relative is not None:
            self._last_result = None
            msg = (
                "Unable to start with a representation without self link but "
                f"containing relative links (rel={relative.rel}, href={relative.href}). "
                "Pass a context_url."
            )
            self.log.error(msg)
            raise ConfigurationError(msg)
        self._context_url = None
        return self

    # --- Hops -------------------------------------------------------------- #

    def follow(
        self,
        rel: Union[str, Sequence[str]],
        predicate: Optional[LinkPredicate] = None,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> "Traverson":
        """Queue one hop per rel; embedded items win over links."""
        return self._enqueue(rel, predicate, variables, ignore_embedded=False)

    def follow_link(
        self,
        rel: Union[str, Sequence[str]],
        predicate: Optional[LinkPredicate] = None,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> "Traverson":
        """
        Queue one hop per rel, fetching the linked resource even if an
        embedded item is present (e.g. when only a summary is embedded).
        """
        return self._enqueue(rel, predicate, variables, ignore_embedded=True)

    def _enqueue(
        self,
        rel: Union[str, Sequence[str]],
        predicate: Optional[LinkPredicate],
        variables: Optional[Mapping[str, Any]],
        *,
        ignore_embedded: bool,
    ) -> "Traverson":
        self._check_state()
        rels = [rel] if isinstance(rel, str) else list(rel)
        self._hops = self._hops + tuple(
            Hop(
                rel=r,
                predicate=predicate or always(),
                variables=dict(variables or {}),
                ignore_embedded=ignore_embedded,
            )
            for r in rels
        )
        return self

    # --- Terminal operations ----------------------------------------------- #

    def get_resource(self) -> Optional[HalRepresentation]:
        return self.get_resource_as(HalRepresentation)

    def get_resource_as(
        self, result_type: Type[T], *type_infos: EmbeddedTypeInfo
    ) -> Optional[T]:
        """Run the queued hops and return the first result."""
        results = self._traverse(result_type, type_infos, retrieve_all=False)
        return results[0] if results else None

    def stream(self) -> Iterator[HalRepresentation]:
        return self.stream_as(HalRepresentation)

    def stream_as(
        self, result_type: Type[T], *type_infos: EmbeddedTypeInfo
    ) -> Iterator[T]:
        """Run the queued hops and iterate over every result of the last hop."""
        return iter(self._traverse(result_type, type_infos, retrieve_all=True))

    def paginate(self, rel: str, page_handler: PageHandler, *type_infos: EmbeddedTypeInfo) -> None:
        self.paginate_as(rel, HalRepresentation, page_handler, *type_infos)

    def paginate_as(
        self,
        rel: str,
        page_type: Type[HalRepresentation],
        page_handler: PageHandler,
        *type_infos: EmbeddedTypeInfo,
    ) -> None:
        """
        Fetch the current page, hand a Traverson positioned at it to
        `page_handler`, and follow `rel` to the next page while the handler
        returns True and the page has a `rel` link or embedded item.
        """
        page = self.get_resource_as(page_type, *type_infos)
        while (
            page is not None
            and page_handler(self._positioned_at(page))
            and self._has_rel(page, rel)
        ):
            page = self.follow(rel).get_resource_as(page_type, *type_infos)

    def paginate_next(self, page_handler: PageHandler, *type_infos: EmbeddedTypeInfo) -> None:
        self.paginate_as("next", HalRepresentation, page_handler, *type_infos)

    def paginate_next_as(
        self,
        page_type: Type[HalRepresentation],
        page_handler: PageHandler,
        *type_infos: EmbeddedTypeInfo,
    ) -> None:
        self.paginate_as("next", page_type, page_handler, *type_infos)

    def paginate_prev(self, page_handler: PageHandler, *type_infos: EmbeddedTypeInfo) -> None:
        self.paginate_as("prev", HalRepresentation, page_handler, *type_infos)

    def paginate_prev_as(
        self,
        page_type: Type[HalRepresentation],
        page_handler: PageHandler,
        *type_infos: EmbeddedTypeInfo,
    ) -> None:
        self.paginate_as("prev", page_type, page_handler, *type_infos)

    def _positioned_at(self, page: HalRepresentation) -> "Traverson":
        return Traverson(
            self._resolver, parser_config=self._parser_config, logger=self.log
        ).start_with(page, self._context_url)

    @staticmethod
    def _has_rel(page: HalRepresentation, rel: str) -> bool:
        return page.links.has_link(rel) or bool(page.embedded.items_by(rel))

    # --- Traversal --------------------------------------------------------- #

    def _traverse(
        self,
        result_type: Type[T],
        type_infos: Sequence[EmbeddedTypeInfo],
        *,
        retrieve_all: bool,
    ) -> List[T]:
        self._check_state()
        pending, self._hops = self._hops, ()
        try:
            if self._start_uri is not None:
                start, self._start_uri = self_link(self._start_uri), None
                if not pending:
                    results = [self._fetch(start, result_type, type_infos)]
                else:
                    routing = embedded_type_info_for(pending, result_type, type_infos)
                    first = self._fetch(start, HalRepresentation, (routing,))
                    results = self._follow_hops(
                        first, pending, result_type, type_infos, retrieve_all
                    )
            elif not pending:
                results = [
                    self._cast(r, result_type, type_infos) for r in self._last_result or ()
                ]
            elif not self._last_result:
                raise ConfigurationError("Please call start_with(uri) first.")
            else:
                results = self._follow_hops(
                    self._last_result[0], pending, result_type, type_infos, retrieve_all
                )
        except HalError as exc:
            self.log.error(
                "Traversal failed: %s",
                exc,
                extra={
                    "hops": [h.rel for h in pending],
                    "error_type": exc.__class__.__name__,
                },
            )
            raise
        self._last_result = list(results)
        return results

    def _follow_hops(
        self,
        current: HalRepresentation,
        pending: Sequence[Hop],
        result_type: Type[T],
        type_infos: Sequence[EmbeddedTypeInfo],
        retrieve_all: bool,
    ) -> List[T]:
        *inner, last = pending
        for index, hop in enumerate(inner):
            current = self._step(current, hop, index, pending[index + 1 :], result_type, type_infos)
        return self._last_step(current, last, len(inner), result_type, type_infos, retrieve_all)

    def _step(
        self,
        current: HalRepresentation,
        hop: Hop,
        index: int,
        remaining: Sequence[Hop],
        result_type: Type[HalRepresentation],
        type_infos: Sequence[EmbeddedTypeInfo],
    ) -> HalRepresentation:
        self.log.debug("Following %s", hop.rel, extra={"rel": hop.rel, "hop": index})
        links = current.links.links_by(hop.rel, hop.predicate)
        if not hop.ignore_embedded or not links:
            items = current.embedded.items_by(hop.rel)
            if items:
                return items[0]
        target = self._target(current, hop, links)
        self._context_url = target.href
        routing = embedded_type_info_for(remaining, result_type, type_infos)
        return self._fetch(target, HalRepresentation, (routing,))

    def _last_step(
        self,
        current: HalRepresentation,
        hop: Hop,
        index: int,
        result_type: Type[T],
        type_infos: Sequence[EmbeddedTypeInfo],
        retrieve_all: bool,
    ) -> List[T]:
        self.log.debug("Following %s", hop.rel, extra={"rel": hop.rel, "hop": index})
        links = current.links.links_by(hop.rel, hop.predicate)
        if not hop.ignore_embedded or not links:
            items = current.embedded.items_by(hop.rel)
            if items:
                self.log.debug(
                    "Returning %d embedded %s",
                    len(items),
                    hop.rel,
                    extra={"rel": hop.rel, "results": len(items)},
                )
                return [self._cast(item, result_type, type_infos) for item in items]

        if retrieve_all and links:
            self.log.debug(
                "Following %d %s links",
                len(links),
                hop.rel,
                extra={"rel": hop.rel, "results": len(links)},
            )
            return [
                self._fetch(self._expand(link, hop), result_type, type_infos)
                for link in links
            ]

        target = self._target(current, hop, links)
        self._context_url = target.href
        return [self._fetch(target, result_type, type_infos)]

    def _target(self, current: HalRepresentation, hop: Hop, links: List[Link]) -> Link:
        if not links:
            raise MissingLinkError(hop.rel, current)
        return self._expand(links[0], hop)

    def _expand(self, link: Link, hop: Hop) -> Link:
        return link.expand(hop.variables).resolve(self._context_url)

    def _fetch(
        self,
        link: Link,
        result_type: Type[T],
        type_infos: Sequence[EmbeddedTypeInfo],
    ) -> T:
        with timed_event(
            "hal_fetch",
            rel=link.rel,
            href=link.href,
            result_type=result_type.__name__,
        ):
            try:
                text = self._resolver(link)
            except HalError:
                raise
            except Exception as exc:
                raise TransportError(
                    f"Failed to fetch resource href={link.href}: {exc}", link=link
                ) from exc

            if not text:
                raise InvalidDocumentError("Resolver returned no content", href=link.href)
            try:
                return self._parser.parse(text, result_type, type_infos)
            except InvalidDocumentError as exc:
                raise InvalidDocumentError(str(exc), href=link.href) from exc

    def _cast(
        self,
        item: HalRepresentation,
        result_type: Type[T],
        type_infos: Sequence[EmbeddedTypeInfo],
    ) -> T:
        """
        Return an embedded item as `result_type`. Untyped items are decoded
        again into the requested type, typed items only when `type_infos`
        must be applied to their own embedded items. Items of an unrelated
        type fail.
        """
        matches = isinstance(item, result_type)
        if matches and not type_infos:
            return item
        if not matches and item.__class__ is not HalRepresentation:
            raise TypeMismatchError(
                f"Embedded item is a {item.__class__.__name__}, "
                f"not a {result_type.__name__}"
            )
        target = item.__class__ if matches else result_type
        try:
            return self._parser.parse_object(
                item.to_dict(), target, type_infos, parent_curies=item.curies
            )
        except InvalidDocumentError as exc:
            raise TypeMismatchError(
                f"Embedded item can not be read as {result_type.__name__}: {exc}"
            ) from exc

    def _check_state(self) -> None:
        if self._start_uri is None and self._last_result is None:
            msg = "Please call start_with(uri) first."
            self.log.error(msg)
            raise ConfigurationError(msg)


def traverson(
    resolver: LinkResolver, parser_config: Optional[ParserConfig] = None
) -> Traverson:
    return Traverson(resolver, parser_config=parser_config)


__all__ = [
    "Hop",
    "LinkResolver",
    "PageHandler",
    "Traverson",
    "embedded_type_info_for",
    "hops",
    "traverson",
    "with_vars",
]
