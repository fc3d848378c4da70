import logging

from kafka.errors import KafkaError

from apps.common.kafka.config import KafkaConnection
from .base import EventPublisher, EventPayload

logger = logging.getLogger(__name__)


class KafkaEventPublisher(EventPublisher):
    """Kafka implementation of EventPublisher"""

    def __init__(self):
        self.producer = KafkaConnection.get_producer()

    def publish(self, topic: str, event: EventPayload, key: str = None) -> bool:
        """
        Send the event as JSON to a Kafka topic.

        The producer's serializers encode the value and key, so the payload
        goes in as a plain dict.
        """
        if self.producer is None:
            logger.warning("Kafka producer unavailable, dropping %s event", event.event_type)
            return False

        try:
            self.producer.send(topic=topic, value=event.to_dict(), key=key)
            self.producer.flush()
        except KafkaError as e:
            logger.error("Failed to publish event to topic %s: %s", topic, e)
            return False

        logger.info("Event published to topic %s: %s", topic, event.event_type)
        return True

    def close(self):
        KafkaConnection.close_producer()
        self.producer = None
