"""Client for the CrowdSec central API (CAPI)."""

__version__ = "0.1.0"

from .client import CapiBaseClient, format_response_body
from .config import WatcherConfig, build_config, load_config
from .errors import (
    CapiAuthRequired,
    CapiAuthRetryExhausted,
    CapiClientError,
    CapiHttpError,
    CapiInvalidBody,
    CapiInvalidLength,
    CapiInvalidMethod,
    CapiRegistrationFailed,
    CapiRetryExhausted,
    CapiSignalValidationError,
    CapiTimeout,
    CapiTransportError,
    ConfigValidationError,
)
from .message import Request, Response
from .signal import build_signal
from .storage import FileStorage, MemoryStorage, StorageInterface
from .transport import PooledHttpHandler, RequestHandler, StreamingHttpHandler
from .watcher import Watcher

__all__ = [
    "CapiAuthRequired",
    "CapiAuthRetryExhausted",
    "CapiBaseClient",
    "CapiClientError",
    "CapiHttpError",
    "CapiInvalidBody",
    "CapiInvalidLength",
    "CapiInvalidMethod",
    "CapiRegistrationFailed",
    "CapiRetryExhausted",
    "CapiSignalValidationError",
    "CapiTimeout",
    "CapiTransportError",
    "ConfigValidationError",
    "FileStorage",
    "MemoryStorage",
    "PooledHttpHandler",
    "Request",
    "RequestHandler",
    "Response",
    "StorageInterface",
    "StreamingHttpHandler",
    "Watcher",
    "WatcherConfig",
    "__version__",
    "build_config",
    "build_signal",
    "load_config",
]
