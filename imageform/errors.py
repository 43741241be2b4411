from __future__ import annotations


class ImageFormError(Exception):
    """Base error for imageform."""


class ReadError(ImageFormError):
    """Raised when a file part's content (or its sniff prefix) cannot be read."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class EncodeError(ImageFormError):
    """Raised when a form cannot be written or is used after finalize."""


class ConnectionError(ImageFormError):
    """Raised when a TCP/TLS connection fails."""


class TLSNegotiationError(ConnectionError):
    """Raised when the TLS handshake fails."""


class ProtocolError(ImageFormError):
    """Raised when an HTTP protocol error occurs."""


class APIError(ImageFormError):
    """Raised when the API answers with an error status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        type: str | None = None,
        code: str | None = None,
        param: str | None = None,
    ) -> None:
        super().__init__(f"[{status_code}] {message}")
        self.status_code = status_code
        self.message = message
        self.type = type
        self.code = code
        self.param = param
