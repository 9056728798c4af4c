import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from ...core.errors import HttpStatusError, TransportError
from ...core.link import Link
from ...core.observability import timed_event

HAL_JSON = "application/hal+json"


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 2  # total extra attempts
    backoff_base_seconds: float = 0.3  # 0.3, 0.6, 1.2...
    retry_statuses: frozenset[int] = frozenset({502, 503, 504})
    retry_on_429: bool = False


def accept_header(link: Link) -> str:
    media_type = link.type or HAL_JSON
    if link.profile:
        return f'{media_type};profile="{link.profile}"'
    return media_type


class HttpLinkResolver:
    """
    Link resolver for the Traverson backed by a synchronous httpx client.
    - Relative hrefs resolve against base_url
    - Accept header from the link's type and profile
    - Retries on network errors and 502/503/504 (optionally 429)
    - Raises HttpStatusError on non-2xx, TransportError on network errors
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        api_key: Optional[str] = None,
        api_user: str = "apikey",
        timeout_seconds: float = 10.0,
        follow_redirects: bool = True,
        retry: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.retry = retry if retry is not None else RetryConfig()
        self.log = logger or logging.getLogger("halnav.transports.http.client")

        auth = httpx.BasicAuth(api_user, api_key) if api_key else None

        self._owns_http = http is None
        self.http = http or httpx.Client(
            base_url=self.base_url,
            auth=auth,
            headers={"Accept": HAL_JSON},
            timeout=timeout_seconds,
            follow_redirects=follow_redirects,
        )

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "HttpLinkResolver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __call__(self, link: Link) -> str:
        return self.resolve(link)

    def resolve(self, link: Link) -> str:
        """GET the link's href and return the response body (may be empty)."""
        headers = {"Accept": accept_header(link)}
        attempt = 0

        with timed_event(
            "http_get", rel=link.rel, href=link.href
        ) as event:
            while True:
                event["attempt"] = attempt
                try:
                    resp = self.http.get(link.href, headers=headers)
                    event["status"] = resp.status_code

                    if resp.status_code in self.retry.retry_statuses or (
                        self.retry.retry_on_429 and resp.status_code == 429
                    ):
                        if attempt < self.retry.max_retries:
                            self._backoff(attempt)
                            attempt += 1
                            continue

                    if resp.status_code < 200 or resp.status_code >= 300:
                        raise self._to_http_error(resp, link)

                    return resp.text

                except (
                    httpx.ConnectError,
                    httpx.ReadTimeout,
                    httpx.ConnectTimeout,
                ) as exc:
                    if attempt < self.retry.max_retries:
                        self._backoff(attempt)
                        attempt += 1
                        continue
                    raise TransportError(
                        f"Network/timeout error calling GET {link.href}: {exc}",
                        link=link,
                    ) from exc

                except httpx.HTTPError as exc:
                    raise TransportError(
                        f"HTTPX error calling GET {link.href}: {exc}", link=link
                    ) from exc

    def _backoff(self, attempt: int) -> None:
        delay = self.retry.backoff_base_seconds * (2**attempt)
        self.log.debug("Retrying in %.2fs", delay, extra={"attempt": attempt + 1})
        time.sleep(delay)

    @staticmethod
    def _to_http_error(resp: httpx.Response, link: Link) -> HttpStatusError:
        message = resp.reason_phrase or "request failed"
        try:
            parsed = resp.json()
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            message = parsed.get("message") or parsed.get("error") or message
        return HttpStatusError(
            status_code=resp.status_code,
            url=str(resp.request.url),
            message=message,
            link=link,
            response_text=(resp.text or "")[:500],
        )


__all__ = ["HttpLinkResolver", "RetryConfig", "accept_header", "HAL_JSON"]
