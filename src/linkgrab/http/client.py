"""aiohttp client for page, frame and script documents."""

from __future__ import annotations

import asyncio
import logging
import random
from types import TracebackType
from typing import Optional

import aiohttp
from charset_normalizer import from_bytes as detect_encoding

from .protocols import HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (linkgrab/1.0)"

# Requests with a smaller budget than this are tried once
MIN_RETRY_TIMEOUT = 5.0


def charset_from_content_type(content_type: str) -> Optional[str]:
    """
    Pull the charset parameter out of a Content-Type header.

    Examples:
        >>> charset_from_content_type('text/html; charset="ISO-8859-1"')
        'ISO-8859-1'
        >>> charset_from_content_type("application/javascript") is None
        True
    """
    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip("\"'")
    return None


def decode_body(content: bytes, content_type: str = "") -> str:
    """Decode a body using the declared charset, then detection, then UTF-8."""
    charset = charset_from_content_type(content_type)
    if charset:
        try:
            return content.decode(charset)
        except (UnicodeDecodeError, LookupError):
            logger.debug(f"Declared charset {charset!r} does not decode the body")

    match = detect_encoding(content).best()
    if match is not None:
        return str(match)
    return content.decode("utf-8", errors="replace")


class AsyncHttpClient:
    """
    Fetches the documents a collection needs.

    The top-level page is retried on 429/5xx and connection errors with
    exponential backoff and jitter. Requests with a short timeout, such as
    external script scans, are tried exactly once; their caller enforces
    its own deadline anyway. Bodies over ``max_content_size`` are refused.

    Example:
        async with AsyncHttpClient(max_retries=2) as client:
            response = await client.get("https://example.org/")
            html = client.decode_content(response)
    """

    RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})
    RETRY_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError)

    def __init__(
        self,
        max_retries: int = 2,
        retry_base_delay: float = 0.5,
        max_content_size: int = 20 * 1024 * 1024,
        user_agent: str | None = None,
        proxy: str | None = None,
        default_timeout: float = 30.0,
    ) -> None:
        """
        Args:
            max_retries: Extra attempts after the first for retryable failures
            retry_base_delay: First backoff delay in seconds, doubled per attempt
            max_content_size: Largest accepted body in bytes
            user_agent: User-Agent header (a browser-like default otherwise)
            proxy: Proxy URL
            default_timeout: Timeout for requests that do not pass their own
        """
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._max_content_size = max_content_size
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._proxy = proxy
        self._default_timeout = default_timeout
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AsyncHttpClient:
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=32, limit_per_host=8, ttl_dns_cache=300),
            headers={"User-Agent": self._user_agent},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _backoff(self, attempt: int) -> float:
        return self._retry_base_delay * (2**attempt) + random.uniform(0, 0.5)

    async def _read_limited(self, response: aiohttp.ClientResponse) -> bytes:
        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > self._max_content_size:
            raise ValueError(f"Body too large: {declared} bytes")

        body = bytearray()
        async for chunk in response.content.iter_chunked(16384):
            body.extend(chunk)
            if len(body) > self._max_content_size:
                raise ValueError(f"Body exceeds {self._max_content_size} bytes")
        return bytes(body)

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """
        GET a document.

        A retryable status on the last attempt is returned, not raised;
        callers decide what a 503 page means.

        Raises:
            aiohttp.ClientError: Network failure after the last attempt
            asyncio.TimeoutError: Timeout on the last attempt
            ValueError: Body larger than the size limit
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        budget = timeout or self._default_timeout
        attempts = 1 + (self._max_retries if budget >= MIN_RETRY_TIMEOUT else 0)

        attempt = 0
        while True:
            last = attempt == attempts - 1
            try:
                async with self._session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=budget),
                    headers=headers,
                    proxy=self._proxy,
                    allow_redirects=True,
                ) as response:
                    if response.status in self.RETRY_STATUSES and not last:
                        delay = self._backoff(attempt)
                        logger.warning(f"{url} answered {response.status}, retrying in {delay:.1f}s")
                    else:
                        return HttpResponse(
                            status_code=response.status,
                            content=await self._read_limited(response),
                            content_type=response.headers.get("Content-Type", ""),
                            url=str(response.url),
                            headers=dict(response.headers),
                        )
            except self.RETRY_ERRORS as e:
                if last:
                    logger.debug(f"Giving up on {url} after {attempts} attempt(s): {e}")
                    raise
                delay = self._backoff(attempt)
                logger.debug(f"Fetching {url} failed ({e}), retrying in {delay:.1f}s")

            await asyncio.sleep(delay)
            attempt += 1

    def decode_content(self, response: HttpResponse) -> str:
        return decode_body(response.content, response.content_type)
