"""Client-side request validation and construction."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, Union

from email_validator import EmailNotValidError, validate_email

from .errors import ValidationError
from .models import BulkSendRequest, EmailProvider, EmailSendRequest, TemplateValidationRequest

ProviderLike = Union[EmailProvider, str, None]


def build_send_request(
    template_key: str,
    data: Optional[Mapping[str, Any]],
    recipient: str,
    provider: ProviderLike = None,
    strict_recipient: bool = False,
) -> EmailSendRequest:
    """Validate caller input and build a single-send request."""
    _check_str(template_key, "templateKey")
    _check_str(recipient, "recipient")
    if not template_key or not template_key.strip():
        raise ValidationError("templateKey is required", field="templateKey")
    if not recipient or not recipient.strip():
        raise ValidationError("recipient is required", field="recipient")
    if not is_basic_email(recipient):
        raise ValidationError(f"invalid email address: {recipient}", field="recipient")
    if strict_recipient:
        check_recipient_syntax(recipient)
    if data is None:
        raise ValidationError("data is required", field="data")

    return EmailSendRequest(
        template_key=template_key,
        data=_check_data(data, "data"),
        recipient=recipient,
        provider=parse_provider(provider),
    )


def build_bulk_request(
    items: Iterable[Union[EmailSendRequest, Mapping[str, Any]]],
    strict_recipient: bool = False,
) -> BulkSendRequest:
    """Validate every item of a batch; the first bad item fails the whole batch."""
    emails = []
    for i, item in enumerate(items):
        try:
            emails.append(_build_item(item, strict_recipient))
        except ValidationError as e:
            raise ValidationError(
                f"validation failed for item {i}: {e.message}",
                field=e.field,
                index=i,
            ) from e
    if not emails:
        raise ValidationError("emails cannot be empty", field="emails")
    return BulkSendRequest(emails=tuple(emails))


def build_validate_request(
    template_key: str, test_data: Optional[Mapping[str, Any]]
) -> TemplateValidationRequest:
    _check_str(template_key, "templateKey")
    if not template_key or not template_key.strip():
        raise ValidationError("templateKey is required", field="templateKey")
    if test_data is None:
        raise ValidationError("testData is required", field="testData")
    return TemplateValidationRequest(
        template_key=template_key, test_data=_check_data(test_data, "testData")
    )


def is_basic_email(address: str) -> bool:
    return "@" in address and "." in address


def check_recipient_syntax(recipient: str) -> None:
    """Full RFC syntax check (no DNS lookups)."""
    try:
        validate_email(recipient, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(
            f"invalid email address: {recipient} ({e})", field="recipient"
        ) from e


def parse_provider(provider: ProviderLike) -> Optional[EmailProvider]:
    if provider is None or isinstance(provider, EmailProvider):
        return provider
    if isinstance(provider, str):
        try:
            return EmailProvider(provider.strip().lower())
        except ValueError:
            pass
    raise ValidationError(f"invalid provider: {provider}", field="provider")


def _build_item(
    item: Union[EmailSendRequest, Mapping[str, Any]], strict_recipient: bool
) -> EmailSendRequest:
    if isinstance(item, EmailSendRequest):
        return build_send_request(
            item.template_key, item.data, item.recipient, item.provider, strict_recipient
        )
    if not isinstance(item, Mapping):
        raise ValidationError(f"unsupported item type: {type(item).__name__}")
    return build_send_request(
        item.get("template_key", item.get("templateKey", "")),
        item.get("data"),
        item.get("recipient", ""),
        item.get("provider", item.get("providerType")),
        strict_recipient,
    )


def _check_str(value: Any, field: str) -> None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(
            f"{field} must be a string, not {type(value).__name__}", field=field
        )


def _check_data(data: Any, path: str) -> dict:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{path} must be an object", field=path)
    return {key: _check_json(value, f"{path}.{key}", key) for key, value in data.items()}


def _check_json(value: Any, path: str, key: Any = None) -> Any:
    # Copies the payload so the built request does not alias caller state.
    if not isinstance(key, (str, type(None))):
        raise ValidationError(f"{path}: keys must be strings", field=path)
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"{path}: non-finite number", field=path)
        return value
    if isinstance(value, Mapping):
        return {k: _check_json(v, f"{path}.{k}", k) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_check_json(v, f"{path}[{i}]") for i, v in enumerate(value)]
    raise ValidationError(
        f"{path}: value of type {type(value).__name__} is not JSON-serializable",
        field=path,
    )
