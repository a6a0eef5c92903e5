"""Decoding of successful (2xx) response bodies into typed results."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from .classifier import classify_payload
from .errors import DecodingError
from .models import (
    BulkItemOutcome,
    BulkSendResult,
    HealthStatus,
    ProviderInfo,
    SendResult,
    TemplateValidation,
)

logger = logging.getLogger("huefy.decoding")

Body = Union[str, bytes, Mapping[str, Any]]


def decode_send_response(body: Body) -> SendResult:
    return _send_result(_as_object(body, "send response"))


def decode_bulk_response(body: Body, expected_count: Optional[int] = None) -> BulkSendResult:
    """
    Decode a bulk response; each item is decoded or classified on its own.

    A malformed item becomes a DecodingError in its own slot and never
    affects its neighbours. With ``expected_count`` the outcomes always
    line up 1:1 with the submitted batch: slots the server left out get a
    DecodingError, surplus results are dropped.
    """
    payload = _as_object(body, "bulk response")
    items = payload.get("results")
    if not isinstance(items, list):
        raise DecodingError("bulk response: 'results' must be a list")

    if expected_count is not None and len(items) != expected_count:
        logger.warning(
            f"Bulk response has {len(items)} results for {expected_count} emails"
        )
        items = items[:expected_count]

    outcomes = []
    for i, item in enumerate(items):
        outcomes.append(_bulk_item(i, item))
    for i in range(len(outcomes), expected_count or 0):
        outcomes.append(
            BulkItemOutcome(
                index=i,
                error=DecodingError(
                    f"bulk response: no result for item {i}", details={"index": i}
                ),
            )
        )
    return BulkSendResult(outcomes=outcomes)


def decode_health(body: Body) -> HealthStatus:
    payload = _as_object(body, "health response")
    status = payload.get("status")
    if not isinstance(status, str):
        raise DecodingError("health response: 'status' must be a string")
    timestamp = parse_timestamp(payload.get("timestamp"), "health response")
    if timestamp is None:
        raise DecodingError("health response: 'timestamp' is required")

    uptime = payload.get("uptime")
    if uptime is not None:
        if isinstance(uptime, bool) or not isinstance(uptime, (int, float)):
            raise DecodingError("health response: 'uptime' must be a number of seconds")
        uptime = timedelta(seconds=uptime)

    providers = payload.get("providers")
    if providers is not None:
        if not isinstance(providers, Mapping):
            raise DecodingError("health response: 'providers' must be an object")
        providers = {str(k): str(v) for k, v in providers.items()}

    version = payload.get("version")
    return HealthStatus(
        status=status,
        timestamp=timestamp,
        version=str(version) if version is not None else None,
        uptime=uptime,
        providers=providers,
    )


def decode_validation(body: Body) -> TemplateValidation:
    payload = _as_object(body, "validation response")
    valid = payload.get("valid")
    if not isinstance(valid, bool):
        raise DecodingError("validation response: 'valid' must be a boolean")
    errors = payload.get("errors") or []
    if not isinstance(errors, list):
        raise DecodingError("validation response: 'errors' must be a list")
    return TemplateValidation(valid=valid, errors=[str(e) for e in errors])


def decode_providers(body: Body) -> List[ProviderInfo]:
    payload = _as_object(body, "providers response")
    items = payload.get("providers")
    if not isinstance(items, list):
        raise DecodingError("providers response: 'providers' must be a list")

    providers = []
    for item in items:
        if not isinstance(item, Mapping) or not isinstance(item.get("name"), str):
            raise DecodingError("providers response: each provider needs a 'name'")
        providers.append(
            ProviderInfo(
                name=item["name"],
                status=str(item.get("status", "unknown")),
                description=item.get("description"),
                features=[str(f) for f in item.get("features") or []],
            )
        )
    return providers


def parse_timestamp(value: Any, where: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodingError(f"{where}: 'timestamp' must be a string")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise DecodingError(f"{where}: invalid timestamp {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _as_object(body: Body, where: str) -> Dict[str, Any]:
    if isinstance(body, Mapping):
        return dict(body)
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as e:
        raise DecodingError(f"{where}: body is not valid JSON") from e
    if not isinstance(payload, dict):
        raise DecodingError(f"{where}: expected a JSON object")
    return payload


def _send_result(payload: Mapping[str, Any]) -> SendResult:
    message_id = payload.get("messageId", payload.get("message_id"))
    if not isinstance(message_id, str) or not message_id:
        raise DecodingError("send response: 'messageId' is required")
    provider = payload.get("provider")
    if not isinstance(provider, str):
        raise DecodingError("send response: 'provider' is required")

    status = payload.get("status")
    if not isinstance(status, str):
        status = "sent" if payload.get("success", True) else "failed"
    timestamp = parse_timestamp(payload.get("timestamp"), "send response")

    message = payload.get("message")
    return SendResult(
        message_id=message_id,
        provider=provider,
        status=status,
        timestamp=timestamp or datetime.now(timezone.utc),
        message=message if isinstance(message, str) else None,
    )


def _bulk_item(index: int, item: Any) -> BulkItemOutcome:
    if not isinstance(item, Mapping):
        return BulkItemOutcome(
            index=index, error=DecodingError(f"bulk item {index}: expected an object")
        )

    if item.get("success") is True:
        # Some servers nest the send result, others inline it in the item.
        result = item.get("result")
        source = result if isinstance(result, Mapping) else item
        try:
            return BulkItemOutcome(index=index, result=_send_result(source))
        except DecodingError as e:
            e.details.setdefault("index", index)
            return BulkItemOutcome(index=index, error=e)

    error = item.get("error")
    if error is None:
        error = {"code": "UNKNOWN_ERROR", "message": f"bulk item {index} failed"}
    classified = classify_payload(error)
    classified.details.setdefault("index", index)
    return BulkItemOutcome(index=index, error=classified)
