from unittest import mock

from django.test import SimpleTestCase, override_settings

from apps.common.events import EventPayload
from apps.common.events.base import EventPublisherFactory
from apps.common.events.memory_publisher import MemoryEventPublisher
from apps.tasks.producer import publish_task_completed


class MemoryEventPublisherTest(SimpleTestCase):
    """Test cases for the in-process publisher"""

    def test_publish_and_read_back(self):
        publisher = MemoryEventPublisher()
        payload = EventPayload("task_created", 7, data={"task_id": 3})

        self.assertTrue(publisher.publish("task-events", payload, key="3"))

        events = publisher.get_events("task-events")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]["user_id"], 7)
        self.assertEqual(events[0]["key"], "3")
        self.assertIn("timestamp", events[0])

    def test_clear_events(self):
        publisher = MemoryEventPublisher()
        publisher.publish("a", EventPayload("x", 1))
        publisher.publish("b", EventPayload("y", 1))

        publisher.clear_events("a")
        self.assertEqual(publisher.get_events("a"), [])
        self.assertEqual(len(publisher.get_events("b")), 1)


class EventPublisherFactoryTest(SimpleTestCase):
    """Test cases for publisher selection"""

    def tearDown(self):
        EventPublisherFactory.reset_publisher()

    @override_settings(EVENT_PUBLISHER_TYPE="memory")
    def test_memory_publisher_is_singleton(self):
        EventPublisherFactory.reset_publisher()
        first = EventPublisherFactory.get_publisher()

        self.assertIsInstance(first, MemoryEventPublisher)
        self.assertIs(first, EventPublisherFactory.get_publisher())

    @override_settings(EVENT_PUBLISHER_TYPE="carrier-pigeon")
    def test_unknown_type(self):
        EventPublisherFactory.reset_publisher()
        with self.assertRaises(ValueError):
            EventPublisherFactory.get_publisher()

    def test_publish_failure_is_reported_not_raised(self):
        broken = mock.Mock()
        broken.publish.side_effect = RuntimeError("broker gone")

        with mock.patch.object(EventPublisherFactory, "get_publisher", return_value=broken):
            with self.assertLogs("apps.tasks.producer.events", level="ERROR"):
                self.assertFalse(publish_task_completed(1, 2, "Inspect site"))


@override_settings(KAFKA_BOOTSTRAP_SERVERS="kafka-1:9092,kafka-2:9092")
class KafkaEventPublisherTest(SimpleTestCase):
    """Test cases for the Kafka publisher with a stubbed producer"""

    def setUp(self):
        from apps.common.kafka.config import KafkaConnection
        KafkaConnection._producer = None

    def tearDown(self):
        from apps.common.kafka.config import KafkaConnection
        KafkaConnection._producer = None

    def test_sends_dict_value_with_key(self):
        from apps.common.events.kafka_publisher import KafkaEventPublisher

        with mock.patch("apps.common.kafka.config.KafkaProducer") as producer_cls:
            publisher = KafkaEventPublisher()
            ok = publisher.publish("task-events", EventPayload("task_deleted", 4, data={"task_id": 9}), key="9")

        self.assertTrue(ok)
        self.assertEqual(producer_cls.call_args.kwargs["bootstrap_servers"], ["kafka-1:9092", "kafka-2:9092"])
        sent = producer_cls.return_value.send.call_args.kwargs
        self.assertEqual(sent["topic"], "task-events")
        self.assertEqual(sent["key"], "9")
        self.assertEqual(sent["value"]["data"], {"task_id": 9})

    def test_kafka_error_returns_false(self):
        from kafka.errors import KafkaError
        from apps.common.events.kafka_publisher import KafkaEventPublisher

        with mock.patch("apps.common.kafka.config.KafkaProducer") as producer_cls:
            producer_cls.return_value.send.side_effect = KafkaError("down")
            publisher = KafkaEventPublisher()
            with self.assertLogs("apps.common.events.kafka_publisher", level="ERROR"):
                self.assertFalse(publisher.publish("task-events", EventPayload("x", 1)))
