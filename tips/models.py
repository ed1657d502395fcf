"""
Data models for the tips backend.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass
class Tip:
    """A short piece of content with a reference url and a category label."""
    text: str
    url: str
    category: str
    id: Optional[int] = None
    created_at: int = 0


@dataclass
class Subscription:
    """A user's standing consent to be notified through an intent."""
    user_id: str
    intent: str
    id: Optional[int] = None
    args: dict = field(default_factory=dict)


class OptInState(Enum):
    NOT_ASKED = "not_asked"
    PROMPTED = "prompted"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class PermissionRequest:
    """Asks the platform for permission to push updates for an intent."""
    intent: str
    permissions: list = field(default_factory=lambda: ["UPDATE"])


@dataclass
class UpdateRegistration:
    """Asks the platform to invoke an intent on a recurring schedule."""
    intent: str
    arguments: list
    frequency: str


@dataclass
class DeliveryResult:
    """Outcome of one push delivery."""
    user_id: str
    intent: str
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class DispatchReport:
    """Per-subscriber results for one tip-created event."""
    tip_id: Optional[int]
    results: list = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)


@dataclass
class ConversationSession:
    """Per-dialogue state. Round-trips through the webhook payload and is
    never written to the subscription store."""
    daily_notification_asked: bool = False
    push_notification_asked: bool = False
    push_opt_in: OptInState = OptInState.NOT_ASKED
    daily_opt_in: OptInState = OptInState.NOT_ASKED
    push_target_intent: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ConversationSession":
        data = data or {}
        return cls(
            daily_notification_asked=bool(data.get("daily_notification_asked", False)),
            push_notification_asked=bool(data.get("push_notification_asked", False)),
            push_opt_in=OptInState(data.get("push_opt_in", OptInState.NOT_ASKED.value)),
            daily_opt_in=OptInState(data.get("daily_opt_in", OptInState.NOT_ASKED.value)),
            push_target_intent=data.get("push_target_intent"),
        )

    def to_dict(self) -> dict:
        return {
            "daily_notification_asked": self.daily_notification_asked,
            "push_notification_asked": self.push_notification_asked,
            "push_opt_in": self.push_opt_in.value,
            "daily_opt_in": self.daily_opt_in.value,
            "push_target_intent": self.push_target_intent,
        }
