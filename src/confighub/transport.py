from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

import httpx

from .errors import TransportError


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    text: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)


class HttpTransport:
    """
    Thin httpx wrapper used by the session for pull and push calls.

    Notes
    - Header values of None are dropped, so unset session options are simply
      not sent.
    - No retries: a failed call raises `TransportError` once, including
      URLs or header values that cannot be encoded.
    - An injected `httpx.Client` is never closed by this object.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self._timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, Optional[str]],
        content: Optional[str] = None,
    ) -> TransportResponse:
        sent = {name: value for name, value in headers.items() if value is not None}
        body = content.encode("utf-8") if content is not None else None
        try:
            resp = self._client.request(method, url, headers=sent, content=body)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            # InvalidURL and non-ASCII header values fail while the request is built
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        logger.debug("%s %s -> HTTP %s", method, url, resp.status_code)
        return TransportResponse(
            status_code=resp.status_code,
            text=resp.text,
            headers=httpx.Headers(resp.headers),
        )


__all__ = ["HttpTransport", "TransportResponse", "DEFAULT_TIMEOUT"]
