"""
Error classification.

Maps non-2xx responses (and per-item bulk errors) onto the closed taxonomy in
``huefy.errors``. Tolerates both error body shapes seen from the API:

- nested: {"error": {"code": ..., "message": ..., "details": {...}}}
- flat:   {"code": ..., "message": ..., "details": {...}}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Mapping, Optional

from .errors import (
    AuthenticationError,
    ErrorCode,
    HuefyError,
    InvalidRecipientError,
    InvalidTemplateDataError,
    NetworkError,
    ProviderError,
    RateLimitError,
    ServerError,
    TemplateNotFoundError,
    TimeoutError,
    UnknownError,
    ValidationError,
)

logger = logging.getLogger("huefy.classifier")

SERVER_ERROR_CODES = frozenset(
    {
        ErrorCode.INTERNAL_SERVER_ERROR,
        ErrorCode.SERVICE_UNAVAILABLE,
        ErrorCode.BAD_GATEWAY,
    }
)

_SIMPLE_CODES = {
    ErrorCode.AUTHENTICATION_FAILED: AuthenticationError,
    ErrorCode.VALIDATION_FAILED: ValidationError,
    ErrorCode.TIMEOUT: TimeoutError,
    ErrorCode.NETWORK_ERROR: NetworkError,
}


def classify(
    status_code: int, body: Optional[str], headers: Optional[Mapping[str, str]] = None
) -> HuefyError:
    """Classify a non-2xx HTTP response."""
    payload = _parse_error_body(body)
    if payload is None or not _has_error_fields(payload):
        error = _from_status(status_code, f"HTTP_{status_code}", body or "", {})
    else:
        error = classify_payload(payload, status_code=status_code)

    if isinstance(error, RateLimitError) and error.retry_after is None and headers:
        error.retry_after = parse_retry_after_header(headers)
    return error


def classify_payload(payload: Any, status_code: Optional[int] = None) -> HuefyError:
    """Classify a decoded error object; used directly for bulk item errors."""
    if isinstance(payload, str):
        return _from_status(status_code, ErrorCode.UNKNOWN_ERROR, payload, {})
    if not isinstance(payload, Mapping):
        code = f"HTTP_{status_code}" if status_code else ErrorCode.UNKNOWN_ERROR
        return _from_status(status_code, code, str(payload), {})

    inner = payload.get("error")
    if isinstance(inner, Mapping):
        source: Mapping[str, Any] = inner
    elif isinstance(inner, str) and "code" not in payload:
        source = {"message": inner}
    else:
        source = payload

    code = str(source.get("code") or "") or (
        f"HTTP_{status_code}" if status_code else ErrorCode.UNKNOWN_ERROR
    )
    message = str(source.get("message") or "")
    details = source.get("details")
    details = dict(details) if isinstance(details, Mapping) else {}
    if "retryAfter" not in details:
        for key in ("retryAfter", "retry_after"):
            if key in source or key in payload:
                details["retryAfter"] = source.get(key, payload.get(key))
                break

    return _from_code(code, message, details, status_code)


def _from_code(
    code: str, message: str, details: Dict[str, Any], status_code: Optional[int]
) -> HuefyError:
    kw = {"code": code, "details": details, "status_code": status_code}

    if code in _SIMPLE_CODES:
        return _SIMPLE_CODES[code](message, **kw)
    if code == ErrorCode.TEMPLATE_NOT_FOUND:
        return TemplateNotFoundError(message, **kw)
    if code == ErrorCode.INVALID_TEMPLATE_DATA:
        return InvalidTemplateDataError(message, **kw)
    if code == ErrorCode.INVALID_RECIPIENT:
        return InvalidRecipientError(message, **kw)
    if code == ErrorCode.PROVIDER_ERROR:
        return ProviderError(message, **kw)
    if code == ErrorCode.RATE_LIMIT_EXCEEDED:
        return RateLimitError(message, retry_after=_to_seconds(details.get("retryAfter")), **kw)
    if code in SERVER_ERROR_CODES:
        return ServerError(message, **kw)
    return _from_status(status_code, code, message, details)


def _from_status(
    status_code: Optional[int], code: str, message: str, details: Dict[str, Any]
) -> HuefyError:
    """Fallback for bodies without a recognized code."""
    kw = {"code": code, "details": details, "status_code": status_code}
    if status_code in (401, 403):
        return AuthenticationError(message, **kw)
    if status_code == 429:
        return RateLimitError(message, retry_after=_to_seconds(details.get("retryAfter")), **kw)
    if status_code is not None and 500 <= status_code <= 599:
        return ServerError(message, **kw)
    if status_code is not None:
        logger.debug(f"Unrecognized error code {code!r} for HTTP {status_code}")
    return UnknownError(message, **kw)


def _parse_error_body(body: Optional[str]) -> Optional[Any]:
    if not body:
        return None
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _has_error_fields(payload: Mapping[str, Any]) -> bool:
    return any(key in payload for key in ("error", "code", "message"))


def _to_seconds(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = int(float(value))
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def parse_retry_after_header(headers: Mapping[str, str]) -> Optional[int]:
    """
    Parse Retry-After from response headers.

    Supports both forms:
    - Retry-After: 120 (seconds)
    - Retry-After: Wed, 21 Oct 2025 07:28:00 GMT (HTTP-date)
    """
    headers_lower = {k.lower(): v for k, v in headers.items()}
    value = headers_lower.get("retry-after")
    if not value:
        return None

    seconds = _to_seconds(value)
    if seconds is not None:
        return seconds
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid Retry-After header: {value}")
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = int((dt - datetime.now(timezone.utc)).total_seconds())
    return max(delta, 0)
