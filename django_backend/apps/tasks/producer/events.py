import logging
from enum import Enum
from typing import Dict, Any, Optional

from apps.common.events import EventPayload
from apps.common.events.base import EventPublisherFactory
from apps.common.kafka.config import TASK_EVENTS_TOPIC

logger = logging.getLogger(__name__)


class TaskEventType(Enum):
    """Task event types"""
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_COMPLETED = "task_completed"
    TASK_DELETED = "task_deleted"
    TASK_FILES_UPLOADED = "task_files_uploaded"


def publish_task_event(
    event_type: TaskEventType,
    user_id: Optional[int],
    data: Dict[str, Any],
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Publish a task event through the configured publisher.

    Args:
        event_type: Type of task event
        user_id: ID of the user performing the action
        data: Event-specific data, keyed by task_id when there is one
        metadata: Additional metadata (optional)

    Returns:
        bool: True if event was published successfully
    """
    payload = EventPayload(
        event_type=event_type.value,
        user_id=user_id,
        data=data,
        metadata=metadata
    )

    try:
        publisher = EventPublisherFactory.get_publisher()
        # task_id keeps all events of one task in the same partition
        message_key = str(data.get('task_id', user_id))
        success = publisher.publish(topic=TASK_EVENTS_TOPIC, event=payload, key=message_key)
    except Exception:
        logger.exception("Error publishing task event %s", event_type.value)
        return False

    if success:
        logger.info("Task event published: %s", event_type.value)
    else:
        logger.error("Failed to publish task event: %s", event_type.value)
    return success


def publish_task_created(user_id: int, task_id: int, title: str, priority: str = None,
                         assigned_to_id: int = None):
    """Publishes task creation event"""
    data = {
        'task_id': task_id,
        'title': title,
        'priority': priority,
        'assigned_to_id': assigned_to_id,
        'action': 'create'
    }
    return publish_task_event(TaskEventType.TASK_CREATED, user_id, data)


def publish_task_updated(user_id: int, task_id: int, title: str, changes: Dict[str, Any]):
    """Publishes task update event"""
    data = {
        'task_id': task_id,
        'title': title,
        'changes': changes,
        'action': 'update'
    }
    return publish_task_event(TaskEventType.TASK_UPDATED, user_id, data)


def publish_task_completed(user_id: int, task_id: int, title: str):
    """Publishes task completion event"""
    data = {
        'task_id': task_id,
        'title': title,
        'action': 'complete'
    }
    return publish_task_event(TaskEventType.TASK_COMPLETED, user_id, data)


def publish_task_deleted(user_id: int, task_id: int, title: str):
    """Publishes task deletion event"""
    data = {
        'task_id': task_id,
        'title': title,
        'action': 'delete'
    }
    return publish_task_event(TaskEventType.TASK_DELETED, user_id, data)


def publish_task_files_uploaded(user_id: int, task_id: int, title: str, file_names):
    """Publishes file attachment event"""
    data = {
        'task_id': task_id,
        'title': title,
        'files': list(file_names),
        'action': 'upload'
    }
    return publish_task_event(TaskEventType.TASK_FILES_UPLOADED, user_id, data)
