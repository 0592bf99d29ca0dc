"""HTTP client for linkgrab."""

from .client import AsyncHttpClient, charset_from_content_type, decode_body
from .protocols import HttpClient, HttpResponse

__all__ = [
    "AsyncHttpClient",
    "HttpClient",
    "HttpResponse",
    "charset_from_content_type",
    "decode_body",
]
