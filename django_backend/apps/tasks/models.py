from typing import NamedTuple

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class TaskStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In Progress"
    IN_REVIEW = "in_review", "In Review"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    DONE = "done", "Done"


class TaskPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


# Statuses a plain user may move their own tasks into.
USER_STATUSES = frozenset({TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW, TaskStatus.DONE})

# Fields captured by a history snapshot, in snapshot order.
VERSIONED_FIELDS = (
    "title",
    "description",
    "priority",
    "due_date",
    "status",
    "workflow",
    "task_type",
    "assigned_to",
    "instructions",
    "custom_fields",
)


class TaskAccess(NamedTuple):
    read: bool
    write: bool
    admin_write: bool


class Workflow(models.Model):
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="workflows_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class TaskType(models.Model):
    """
    Admin-defined template of dynamic fields.

    `fields` is an ordered list of {"name", "kind", "required"} objects.
    """

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default="")
    fields = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="task_types_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def required_field_names(self):
        return [f["name"] for f in self.fields if f.get("required")]


class Task(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField()

    status = models.CharField(
        max_length=32,
        choices=TaskStatus.choices,
        default=TaskStatus.PENDING,
    )
    priority = models.CharField(
        max_length=16,
        choices=TaskPriority.choices,
    )
    due_date = models.DateTimeField()

    task_type = models.ForeignKey(
        TaskType,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks",
    )
    workflow = models.ForeignKey(
        Workflow,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks",
    )
    custom_fields = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tasks_created",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks_assigned",
    )
    assigned_at = models.DateTimeField(null=True, blank=True)

    start_time = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks_completed",
    )

    is_favorite = models.BooleanField(default=False)
    instructions = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status"], name="tasks_task_status_4a0a95_idx"),
            models.Index(fields=["priority"], name="tasks_task_priorit_a900d4_idx"),
            models.Index(fields=["due_date"], name="tasks_task_due_dat_bce847_idx"),
            models.Index(fields=["created_at"], name="tasks_task_created_be1ba2_idx"),
        ]
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return self.title

    def is_related(self, user) -> bool:
        """True when the user created the task or is its assignee."""
        return self.created_by_id == user.id or self.assigned_to_id == user.id

    def access_for(self, user) -> TaskAccess:
        """The single authorization rule every task operation consults."""
        if user is None or not user.is_authenticated:
            return TaskAccess(read=False, write=False, admin_write=False)
        if user.is_admin:
            return TaskAccess(read=True, write=True, admin_write=True)
        related = self.is_related(user)
        return TaskAccess(read=related, write=related, admin_write=False)

    def snapshot(self) -> dict:
        """JSON-ready copy of the versioned fields as they are right now."""
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "status": self.status,
            "workflow": self.workflow_id,
            "task_type": self.task_type_id,
            "assigned_to": self.assigned_to_id,
            "instructions": self.instructions,
            "custom_fields": list(self.custom_fields or []),
        }


class TaskFile(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="files")
    url = models.CharField(max_length=500)
    original_name = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=255)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["uploaded_at", "id"]

    def __str__(self) -> str:
        return self.original_name


class TaskHistory(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="history")
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="task_revisions",
    )
    snapshot = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    updated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["updated_at", "id"]
        indexes = [models.Index(fields=["task", "updated_at"], name="tasks_taskh_task_id_6f3e1c_idx")]
        verbose_name_plural = "task history"

    def __str__(self) -> str:
        return f"Revision #{self.pk} of {self.task_id}"
