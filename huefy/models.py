"""Shared data models for the Huefy email API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from .errors import HuefyError

JSONValue = Union[str, int, float, bool, None, List["JSONValue"], Dict[str, "JSONValue"]]


class EmailProvider(str, Enum):
    SES = "ses"
    SENDGRID = "sendgrid"
    MAILGUN = "mailgun"
    MAILCHIMP = "mailchimp"


@dataclass(frozen=True)
class EmailSendRequest:
    template_key: str
    data: Dict[str, JSONValue]
    recipient: str
    provider: Optional[EmailProvider] = None

    def to_wire(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "templateKey": self.template_key,
            "data": self.data,
            "recipient": self.recipient,
        }
        if self.provider is not None:
            body["providerType"] = self.provider.value
        return body


@dataclass(frozen=True)
class BulkSendRequest:
    emails: Tuple[EmailSendRequest, ...]

    def to_wire(self) -> Dict[str, Any]:
        return {"emails": [email.to_wire() for email in self.emails]}


@dataclass(frozen=True)
class TemplateValidationRequest:
    template_key: str
    test_data: Dict[str, JSONValue]

    def to_wire(self) -> Dict[str, Any]:
        return {"templateKey": self.template_key, "testData": self.test_data}


@dataclass
class SendResult:
    message_id: str
    provider: str
    status: str
    timestamp: datetime
    message: Optional[str] = None  # server's human-readable summary


@dataclass
class BulkItemOutcome:
    index: int  # position in the submitted batch
    result: Optional[SendResult] = None
    error: Optional["HuefyError"] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.result is not None


@dataclass
class BulkSendResult:
    outcomes: List[BulkItemOutcome]

    @property
    def total_count(self) -> int:
        return len(self.outcomes)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failure_count(self) -> int:
        return self.total_count - self.success_count

    def results(self) -> List[SendResult]:
        """Successful send results, in submission order."""
        return [o.result for o in self.outcomes if o.result is not None]

    def errors(self) -> List["HuefyError"]:
        """Per-item errors, in submission order."""
        return [o.error for o in self.outcomes if o.error is not None]


@dataclass
class HealthStatus:
    status: str
    timestamp: datetime
    version: Optional[str] = None
    uptime: Optional[timedelta] = None
    providers: Optional[Dict[str, str]] = None

    @property
    def healthy(self) -> bool:
        return self.status.lower() in ("ok", "healthy", "up")


@dataclass
class TemplateValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class ProviderInfo:
    name: str
    status: str
    description: Optional[str] = None
    features: List[str] = field(default_factory=list)
