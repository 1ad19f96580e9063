from .app import create_app
from .config import ProxyConfig
from .errors import ProxyError, UpstreamError, ValidationError

__version__ = "0.1.0"

__all__ = [
    "create_app",
    "ProxyConfig",
    "ProxyError",
    "UpstreamError",
    "ValidationError",
]
