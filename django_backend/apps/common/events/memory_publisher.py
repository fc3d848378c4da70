import logging
from typing import Dict, List
from .base import EventPublisher, EventPayload

logger = logging.getLogger(__name__)


class MemoryEventPublisher(EventPublisher):
    """Keeps published events in process; used by tests and local runs without a broker"""

    def __init__(self):
        self.events: Dict[str, List[Dict]] = {}

    def publish(self, topic: str, event: EventPayload, key: str = None) -> bool:
        event_data = event.to_dict()
        if key:
            event_data['key'] = key

        self.events.setdefault(topic, []).append(event_data)
        logger.debug("Event stored in memory for topic %s: %s", topic, event.event_type)
        return True

    def get_events(self, topic: str) -> List[Dict]:
        return self.events.get(topic, [])

    def clear_events(self, topic: str = None):
        if topic:
            self.events.pop(topic, None)
        else:
            self.events.clear()

    def close(self):
        self.events.clear()
