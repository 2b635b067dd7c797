"""
Domain models for tracking module.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class TrackedLink:
    link_id: str
    url: str
    chat_id: int
    clicks: int = 0
    message_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def has_message(self) -> bool:
        return self.message_id is not None


@dataclass(frozen=True)
class InlineButton:
    """Single counter button: visible label, URL it points at and the token returned on press."""

    label: str
    activation_url: str
    correlation_token: str


@dataclass(frozen=True)
class ButtonPress:
    link_id: str
    query_id: str


class RegistrationStatus(str, Enum):
    HELP = "help"
    INVALID_URL = "invalid_url"
    CREATED = "created"
    FAILED = "failed"


@dataclass(frozen=True)
class RegistrationResult:
    status: RegistrationStatus
    link: Optional[TrackedLink] = None
    message_id: Optional[int] = None


class ClickStatus(str, Enum):
    COUNTED = "counted"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class ClickResult:
    status: ClickStatus
    link_id: str
    clicks: Optional[int] = None
    edited: bool = False
    acknowledged: bool = False


@dataclass(frozen=True)
class TransactionResult(Generic[T]):
    committed: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None
