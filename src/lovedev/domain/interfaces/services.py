"""Service interfaces for infrastructure the domain depends on."""

from abc import ABC, abstractmethod

from lovedev.domain.events.user_events import UserEvent


class IEventPublisher(ABC):
    """Interface for domain event publishing."""

    @abstractmethod
    async def publish(self, event: UserEvent) -> None:
        """Publish a domain event to the topic its type is bound to.

        Args:
            event: Domain event to publish

        Raises:
            EventPublishError: If the bus rejects the event.
        """
        pass
