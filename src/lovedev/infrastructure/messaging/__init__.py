from .event_publisher import InMemoryEventPublisher, RedisStreamEventPublisher, build_event_publisher

__all__ = ["InMemoryEventPublisher", "RedisStreamEventPublisher", "build_event_publisher"]
