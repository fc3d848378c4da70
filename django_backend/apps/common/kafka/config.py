import json
import logging

from django.conf import settings
from kafka import KafkaProducer
from kafka.errors import KafkaError

logger = logging.getLogger(__name__)


TASK_EVENTS_TOPIC = "task-events"


class KafkaConnection:
    _producer = None

    @classmethod
    def get_producer(cls):
        if cls._producer is None:
            servers = settings.KAFKA_BOOTSTRAP_SERVERS.split(",")
            try:
                cls._producer = KafkaProducer(
                    bootstrap_servers=servers,
                    value_serializer=lambda x: json.dumps(x).encode("utf-8"),
                    key_serializer=lambda x: x.encode("utf-8") if x else None,
                    retries=3,
                    retry_backoff_ms=300,
                    request_timeout_ms=30000,
                    acks="all",
                )
                logger.info("Kafka producer initialized for %s", servers)
            except KafkaError as e:
                logger.error("Failed to initialize Kafka producer: %s", e)
                cls._producer = None
        return cls._producer

    @classmethod
    def close_producer(cls):
        if cls._producer:
            cls._producer.close()
            cls._producer = None
