"""Closed error taxonomy for the Huefy client.

Every failure surfaced by the client is a ``HuefyError``. The ``kind``
attribute names exactly one member of ``ErrorKind``; the subclasses exist so
callers can also catch by class. Retry decisions are made from ``kind`` alone.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Type


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    TEMPLATE_NOT_FOUND = "template_not_found"
    INVALID_TEMPLATE_DATA = "invalid_template_data"
    INVALID_RECIPIENT = "invalid_recipient"
    PROVIDER = "provider"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    DECODING = "decoding"
    UNKNOWN = "unknown"
    CANCELLED = "cancelled"


RETRYABLE_KINDS = frozenset(
    {ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.RATE_LIMIT, ErrorKind.SERVER}
)


class ErrorCode:
    """Machine-readable codes used by the API (and by the client locally)."""

    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    INVALID_TEMPLATE_DATA = "INVALID_TEMPLATE_DATA"
    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    BAD_GATEWAY = "BAD_GATEWAY"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    DECODING_ERROR = "DECODING_ERROR"
    CANCELLED = "CANCELLED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class HuefyError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN
    default_code: str = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details: Dict[str, Any] = dict(details or {})
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def __str__(self) -> str:
        return f"Huefy API error [{self.code}]: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )


class ValidationError(HuefyError):
    kind = ErrorKind.VALIDATION
    default_code = ErrorCode.VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        index: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field if field is not None else self.details.get("field")
        self.index = index
        if self.field is not None:
            self.details.setdefault("field", self.field)
        if index is not None:
            self.details.setdefault("index", index)


class AuthenticationError(HuefyError):
    kind = ErrorKind.AUTHENTICATION
    default_code = ErrorCode.AUTHENTICATION_FAILED


class TemplateNotFoundError(HuefyError):
    kind = ErrorKind.TEMPLATE_NOT_FOUND
    default_code = ErrorCode.TEMPLATE_NOT_FOUND

    def __init__(self, message: str, template_key: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.template_key = template_key or self.details.get("templateKey") or ""


class InvalidTemplateDataError(HuefyError):
    kind = ErrorKind.INVALID_TEMPLATE_DATA
    default_code = ErrorCode.INVALID_TEMPLATE_DATA

    def __init__(
        self, message: str, validation_errors: Optional[List[str]] = None, **kwargs: Any
    ):
        super().__init__(message, **kwargs)
        if validation_errors is None:
            raw = self.details.get("validationErrors") or []
            validation_errors = [str(v) for v in raw] if isinstance(raw, list) else []
        self.validation_errors = validation_errors


class InvalidRecipientError(HuefyError):
    kind = ErrorKind.INVALID_RECIPIENT
    default_code = ErrorCode.INVALID_RECIPIENT

    def __init__(self, message: str, recipient: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.recipient = recipient or self.details.get("recipient")


class ProviderError(HuefyError):
    kind = ErrorKind.PROVIDER
    default_code = ErrorCode.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        provider_code: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.provider = provider or self.details.get("provider") or ""
        self.provider_code = provider_code or self.details.get("providerCode") or ""


class RateLimitError(HuefyError):
    kind = ErrorKind.RATE_LIMIT
    default_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, message: str, retry_after: Optional[int] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NetworkError(HuefyError):
    kind = ErrorKind.NETWORK
    default_code = ErrorCode.NETWORK_ERROR


class TimeoutError(HuefyError):  # noqa: A001
    kind = ErrorKind.TIMEOUT
    default_code = ErrorCode.TIMEOUT


class ServerError(HuefyError):
    kind = ErrorKind.SERVER
    default_code = ErrorCode.INTERNAL_SERVER_ERROR


class DecodingError(HuefyError):
    kind = ErrorKind.DECODING
    default_code = ErrorCode.DECODING_ERROR


class UnknownError(HuefyError):
    kind = ErrorKind.UNKNOWN
    default_code = ErrorCode.UNKNOWN_ERROR


class CancelledError(HuefyError):
    kind = ErrorKind.CANCELLED
    default_code = ErrorCode.CANCELLED


ERROR_TYPES: Dict[ErrorKind, Type[HuefyError]] = {
    cls.kind: cls
    for cls in (
        ValidationError,
        AuthenticationError,
        TemplateNotFoundError,
        InvalidTemplateDataError,
        InvalidRecipientError,
        ProviderError,
        RateLimitError,
        NetworkError,
        TimeoutError,
        ServerError,
        DecodingError,
        UnknownError,
        CancelledError,
    )
}
