"""Transport layer for the CAPI client.

Components:
- base: request handler interface
- pooled: handler on a shared aiohttp session
- streaming: one session per call, body streamed in chunks
"""

from .base import RequestHandler
from .pooled import PooledHttpHandler
from .streaming import StreamingHttpHandler

__all__ = [
    "PooledHttpHandler",
    "RequestHandler",
    "StreamingHttpHandler",
]
