"""Python client for the Huefy templated-email API."""

from .client import HuefyClient
from .config import ClientConfig, RetryConfig
from .errors import CancelledError as HuefyCancelledError
from .errors import (
    AuthenticationError,
    DecodingError,
    ErrorCode,
    ErrorKind,
    HuefyError,
    InvalidRecipientError,
    InvalidTemplateDataError,
    NetworkError,
    ProviderError,
    RateLimitError,
    ServerError,
    TemplateNotFoundError,
    UnknownError,
    ValidationError,
)
from .errors import TimeoutError as HuefyTimeoutError
from .models import (
    BulkItemOutcome,
    BulkSendResult,
    EmailProvider,
    EmailSendRequest,
    HealthStatus,
    ProviderInfo,
    SendResult,
    TemplateValidation,
)
from .retry import CallContext
from .transport import SDK_VERSION as __version__

__all__ = [
    "AuthenticationError",
    "BulkItemOutcome",
    "BulkSendResult",
    "CallContext",
    "ClientConfig",
    "DecodingError",
    "EmailProvider",
    "EmailSendRequest",
    "ErrorCode",
    "ErrorKind",
    "HealthStatus",
    "HuefyCancelledError",
    "HuefyClient",
    "HuefyError",
    "HuefyTimeoutError",
    "InvalidRecipientError",
    "InvalidTemplateDataError",
    "NetworkError",
    "ProviderError",
    "ProviderInfo",
    "RateLimitError",
    "RetryConfig",
    "SendResult",
    "ServerError",
    "TemplateNotFoundError",
    "TemplateValidation",
    "UnknownError",
    "ValidationError",
]
