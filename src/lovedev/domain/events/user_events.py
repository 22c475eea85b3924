"""User lifecycle events published to the email notification consumers.

Each event type is bound to its own topic so a consumer (the email service)
can subscribe to just the notifications it renders. Events are published
only after the transaction that produced them has committed.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

TOPIC_EMAIL_VERIFY = "email.verify"
TOPIC_EMAIL_WELCOME = "email.welcome"
TOPIC_EMAIL_RESET_PASSWORD = "email.reset.password"

EVENT_SCHEMA_VERSION = "1.0"


class UserEventType(str, Enum):
    USER_VERIFY_EMAIL = "USER_VERIFY_EMAIL"
    USER_WELCOME_EMAIL = "USER_WELCOME_EMAIL"
    USER_RESET_PASSWORD = "USER_RESET_PASSWORD"

    @property
    def topic(self) -> str:
        return _TOPICS[self]


_TOPICS = {
    UserEventType.USER_VERIFY_EMAIL: TOPIC_EMAIL_VERIFY,
    UserEventType.USER_WELCOME_EMAIL: TOPIC_EMAIL_WELCOME,
    UserEventType.USER_RESET_PASSWORD: TOPIC_EMAIL_RESET_PASSWORD,
}


@dataclass(frozen=True)
class UserEvent:
    """Envelope for a user event.

    Attributes:
        event_type: What happened; also selects the topic.
        user_id: The user the event is about.
        source: Name of the emitting service.
        data: Event-specific payload (email, first name, one-time token...).
        correlation_id: Correlation id of the originating request, if any.
        event_id: Unique id of this event.
        timestamp: When the event was created (UTC).
        version: Envelope schema version.
    """

    event_type: UserEventType
    user_id: UUID
    source: str
    data: Dict[str, Any] = field(default_factory=dict)
    correlation_id: Optional[str] = None
    event_id: UUID = field(default_factory=uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = EVENT_SCHEMA_VERSION

    @property
    def topic(self) -> str:
        return self.event_type.topic

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation consumed by the notification service."""
        return {
            "eventId": str(self.event_id),
            "eventType": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
            "version": self.version,
            "correlationId": self.correlation_id,
            "userId": str(self.user_id),
            "data": self.data,
        }
