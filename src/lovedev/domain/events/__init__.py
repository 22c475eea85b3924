from .user_events import (
    TOPIC_EMAIL_RESET_PASSWORD,
    TOPIC_EMAIL_VERIFY,
    TOPIC_EMAIL_WELCOME,
    UserEvent,
    UserEventType,
)

__all__ = [
    "TOPIC_EMAIL_RESET_PASSWORD",
    "TOPIC_EMAIL_VERIFY",
    "TOPIC_EMAIL_WELCOME",
    "UserEvent",
    "UserEventType",
]
