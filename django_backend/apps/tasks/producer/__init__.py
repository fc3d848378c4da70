from .events import (
    TaskEventType,
    publish_task_event,
    publish_task_created,
    publish_task_updated,
    publish_task_completed,
    publish_task_deleted,
    publish_task_files_uploaded,
)

__all__ = [
    "TaskEventType",
    "publish_task_event",
    "publish_task_created",
    "publish_task_updated",
    "publish_task_completed",
    "publish_task_deleted",
    "publish_task_files_uploaded",
]
