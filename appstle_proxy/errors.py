from typing import Any, Optional


def is_blank(value: Any) -> bool:
    """True for null, "", 0 and false. Empty objects and lists count as values."""
    if value is None or value is False:
        return True
    return isinstance(value, (str, int, float)) and not value


class ProxyError(Exception):
    """Base class for errors the proxy maps to an HTTP response."""


class ValidationError(ProxyError):
    """A required request field is missing."""


class UpstreamError(ProxyError):
    """An outbound call failed.

    ``status_code`` and ``payload`` are only set when the upstream answered
    with a non-2xx response; transport failures carry just the message.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def details(self) -> Any:
        return self.message if is_blank(self.payload) else self.payload
