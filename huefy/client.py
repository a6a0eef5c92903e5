"""Huefy API client.

Usage
  client = HuefyClient("your-api-key")
  result = client.send_email(
      "welcome-email",
      {"name": "John Doe", "company": "Acme Corp"},
      "john@example.com",
  )
  print(result.message_id)
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

import requests

from .classifier import classify
from .config import ClientConfig
from .decoding import (
    decode_bulk_response,
    decode_health,
    decode_providers,
    decode_send_response,
    decode_validation,
)
from .errors import CancelledError, HuefyError, TemplateNotFoundError
from .models import (
    BulkItemOutcome,
    BulkSendRequest,
    BulkSendResult,
    EmailSendRequest,
    HealthStatus,
    ProviderInfo,
    SendResult,
    TemplateValidation,
)
from .retry import CallContext, RetryPolicy
from .transport import RawResponse, Transport
from .validation import (
    ProviderLike,
    build_bulk_request,
    build_send_request,
    build_validate_request,
)

BulkItem = Union[EmailSendRequest, Mapping[str, Any]]


class HuefyClient:
    """Sends template-based emails through the Huefy API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None,
        on_retry: Optional[Callable[[int, HuefyError, float], None]] = None,
    ):
        if config is None:
            if not api_key:
                raise ValueError("api_key or config is required")
            config = ClientConfig(api_key=api_key)
        elif api_key and api_key != config.api_key:
            raise ValueError("pass api_key either directly or through config, not both")

        self.config = config
        self._transport = Transport(config, session=session)
        retry_kwargs: dict = {"on_retry": on_retry}
        if sleep is not None:
            retry_kwargs["sleep"] = sleep
        self._retry = RetryPolicy(config.retry, **retry_kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> "HuefyClient":
        return cls(config=ClientConfig.from_env(**overrides))

    def __enter__(self) -> "HuefyClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    def __repr__(self) -> str:
        return f"HuefyClient(base_url={self.config.base_url!r})"

    # --------------------------
    # Public API
    # --------------------------

    def send_email(
        self,
        template_key: str,
        data: Optional[Mapping[str, Any]],
        recipient: str,
        provider: ProviderLike = None,
        *,
        context: Optional[CallContext] = None,
    ) -> SendResult:
        """Send a single email using a stored template."""
        request = build_send_request(
            template_key,
            data,
            recipient,
            provider,
            strict_recipient=self.config.validate_recipient_syntax,
        )
        return self.send(request, context=context)

    def send(
        self, request: EmailSendRequest, *, context: Optional[CallContext] = None
    ) -> SendResult:
        """Send an already-built request."""
        try:
            raw = self._call("POST", "/emails/send", request.to_wire(), context)
        except TemplateNotFoundError as e:
            _fill_template_key(e, request)
            raise
        return decode_send_response(raw.text)

    def send_bulk_emails(
        self, items: Iterable[BulkItem], *, context: Optional[CallContext] = None
    ) -> BulkSendResult:
        """
        Send a batch of emails.

        In ``batch`` mode the whole batch is one request; in ``individual``
        mode every item is its own call and one item's failure never stops
        the others. Either way outcomes line up with the input order.
        """
        bulk = build_bulk_request(
            items, strict_recipient=self.config.validate_recipient_syntax
        )
        if self.config.bulk_mode == "individual":
            return self._send_individually(bulk, context)

        raw = self._call("POST", "/emails/bulk", bulk.to_wire(), context)
        result = decode_bulk_response(raw.text, expected_count=len(bulk.emails))
        for outcome in result.outcomes:
            if isinstance(outcome.error, TemplateNotFoundError):
                _fill_template_key(outcome.error, bulk.emails[outcome.index])
        return result

    def health_check(self, *, context: Optional[CallContext] = None) -> HealthStatus:
        raw = self._call("GET", "/health", None, context)
        return decode_health(raw.text)

    def validate_template(
        self,
        template_key: str,
        test_data: Optional[Mapping[str, Any]],
        *,
        context: Optional[CallContext] = None,
    ) -> TemplateValidation:
        """Ask the API whether ``test_data`` renders ``template_key``."""
        request = build_validate_request(template_key, test_data)
        raw = self._call("POST", "/templates/validate", request.to_wire(), context)
        return decode_validation(raw.text)

    def get_providers(self, *, context: Optional[CallContext] = None) -> List[ProviderInfo]:
        raw = self._call("GET", "/providers", None, context)
        return decode_providers(raw.text)

    # --------------------------
    # Internals
    # --------------------------

    def _call(
        self,
        method: str,
        path: str,
        body: Optional[dict],
        context: Optional[CallContext],
    ) -> RawResponse:
        def attempt(remaining: Optional[float]) -> RawResponse:
            raw = self._transport.execute(method, path, body, timeout=remaining)
            if not raw.ok:
                raise classify(raw.status_code, raw.text, raw.headers)
            return raw

        return self._retry.run(attempt, context)

    def _send_individually(
        self, bulk: BulkSendRequest, context: Optional[CallContext]
    ) -> BulkSendResult:
        outcomes = []
        for i, request in enumerate(bulk.emails):
            try:
                result = self.send(request, context=context)
                outcomes.append(BulkItemOutcome(index=i, result=result))
            except CancelledError:
                raise
            except HuefyError as e:
                e.details.setdefault("index", i)
                outcomes.append(BulkItemOutcome(index=i, error=e))
        return BulkSendResult(outcomes=outcomes)


def _fill_template_key(error: TemplateNotFoundError, request: EmailSendRequest) -> None:
    # The server does not always echo the key back in the error details.
    if not error.template_key:
        error.template_key = request.template_key
        error.details.setdefault("templateKey", request.template_key)
