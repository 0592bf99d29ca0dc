"""The HTTP seam between the network and link extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class HttpResponse:
    """A fetched page, frame or script body. ``url`` is the post-redirect URL."""

    status_code: int
    content: bytes
    content_type: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)


class HttpClient(Protocol):
    """What frame sources and the extractor need from a client; tests pass fakes."""

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """Fetch ``url``; network failures propagate once retries are spent."""
        ...

    def decode_content(self, response: HttpResponse) -> str: ...
