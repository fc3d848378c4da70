from .base import EventPayload, EventPublisher, EventPublisherFactory

__all__ = [
    "EventPayload",
    "EventPublisher",
    "EventPublisherFactory",
]
