"""
Task lifecycle operations.

Every mutation goes through here so that the permission rule, the history
snapshot and the completion/assignment stamps are applied the same way no
matter which endpoint triggered it. Functions take already-validated data
(see ``apps.tasks.api.serializers``) and raise DRF exceptions, which the API
exception handler turns into responses.
"""
import csv
import io
import logging
import re
import uuid
from datetime import timedelta

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from apps.common.exceptions import InternalError

from .custom_fields import check_required_fields, make_entry, merge_csv_rows
from .models import USER_STATUSES, Task, TaskFile, TaskHistory, TaskStatus
from .producer import (
    publish_task_completed,
    publish_task_created,
    publish_task_deleted,
    publish_task_files_uploaded,
    publish_task_updated,
)

logger = logging.getLogger(__name__)

CREATE_REQUIRED = ("title", "description", "priority", "due_date")
FREE_FIELDS = ("title", "description", "priority", "due_date", "instructions")
ADMIN_FIELDS = ("workflow", "task_type", "assigned_to")
CSV_CONTENT_TYPES = ("text/csv",)


def visible_tasks(user, admin_view=False):
    """Tasks the caller may list: everything for an admin asking for it, else own or assigned."""
    qs = Task.objects.select_related(
        "created_by", "assigned_to", "completed_by", "workflow", "task_type"
    ).prefetch_related("files")
    if user.is_admin and admin_view:
        return qs
    return qs.filter(Q(created_by=user) | Q(assigned_to=user))


def normalize_custom_fields(entries):
    return [
        make_entry(e.get("field_name"), e.get("field_kind"), e.get("value"))
        for e in entries or []
    ]


def _locked_task(task_id):
    try:
        return Task.objects.select_for_update().get(pk=task_id)
    except Task.DoesNotExist:
        raise NotFound("Task not found.")


def _require_write(task, user, message="You do not have permission to modify this task."):
    access = task.access_for(user)
    if not access.write:
        raise PermissionDenied(message)
    return access


def _record_history(task, user):
    return TaskHistory.objects.create(task=task, updated_by=user, snapshot=task.snapshot())


def _apply_status(task, status, user, now):
    """Set the status and keep the completion and start stamps consistent with it."""
    previous = task.status
    task.status = status
    if status == TaskStatus.DONE:
        if previous != TaskStatus.DONE:
            task.completed_at = now
            task.completed_by = user
    else:
        task.completed_at = None
        task.completed_by = None
    if status == TaskStatus.IN_PROGRESS and task.start_time is None:
        task.start_time = now
    return previous != TaskStatus.DONE and status == TaskStatus.DONE


def create_task(user, data):
    missing = [name for name in CREATE_REQUIRED if data.get(name) in (None, "")]
    if missing:
        raise ValidationError({name: ["This field is required."] for name in missing})

    now = timezone.now()
    task = Task(
        title=data["title"],
        description=data["description"],
        priority=data["priority"],
        due_date=data["due_date"],
        instructions=data.get("instructions"),
        custom_fields=normalize_custom_fields(data.get("custom_fields")),
        created_by=user,
    )

    if user.is_admin:
        task.workflow = data.get("workflow")
        task.task_type = data.get("task_type")
        if data.get("assigned_to") is not None:
            task.assigned_to = data["assigned_to"]
            task.assigned_at = now
    else:
        # workflow, task_type and assigned_to are dropped for plain users
        task.assigned_to = user
        task.assigned_at = now

    check_required_fields(task.task_type, task.custom_fields)
    task.save()
    logger.info("Task %s created by user %s", task.pk, user.pk)

    transaction.on_commit(lambda: publish_task_created(
        user.pk, task.pk, task.title, priority=task.priority, assigned_to_id=task.assigned_to_id
    ))
    return task


@transaction.atomic
def update_task(task_id, user, changes):
    """
    Apply a partial update and version the previous state.

    Keys absent from ``changes`` are left alone; keys present with null or
    empty values are written. A history entry is appended even when nothing
    ends up changing.
    """
    task = _locked_task(task_id)
    access = _require_write(task, user)
    now = timezone.now()

    if "custom_fields" in changes:
        changes = {**changes, "custom_fields": normalize_custom_fields(changes["custom_fields"])}

    task_type = changes["task_type"] if access.admin_write and "task_type" in changes else task.task_type
    check_required_fields(task_type, changes.get("custom_fields", task.custom_fields))

    _record_history(task, user)

    for name in FREE_FIELDS + ("custom_fields",):
        if name in changes:
            setattr(task, name, changes[name])

    if access.admin_write:
        if "workflow" in changes:
            task.workflow = changes["workflow"]
        if "task_type" in changes:
            task.task_type = changes["task_type"]
        if "assigned_to" in changes:
            task.assigned_to = changes["assigned_to"]
            task.assigned_at = now

    completed = False
    status = changes.get("status")
    if status is not None and (access.admin_write or status in USER_STATUSES):
        completed = _apply_status(task, status, user, now)

    task.save()
    logger.info("Task %s updated by user %s (%s)", task.pk, user.pk, ", ".join(sorted(changes)) or "no fields")

    changed = sorted(changes)
    transaction.on_commit(lambda: publish_task_updated(user.pk, task.pk, task.title, {"fields": changed}))
    if completed:
        transaction.on_commit(lambda: publish_task_completed(user.pk, task.pk, task.title))
    return task


def complete_task(task_id, user):
    return update_task(task_id, user, {"status": TaskStatus.DONE})


def _read_csv(upload):
    try:
        upload.seek(0)
        text = upload.read().decode("utf-8-sig")
        rows = list(csv.DictReader(io.StringIO(text)))
    except (UnicodeDecodeError, csv.Error) as exc:
        logger.warning("Could not parse CSV upload %s: %s", upload.name, exc)
        raise InternalError("Could not process CSV file.") from exc
    finally:
        upload.seek(0)
    return rows


def _storage_name(original_name):
    clean = re.sub(r"\s+", "_", original_name)
    return f"{settings.TASK_FILES_UPLOAD_DIR}/{uuid.uuid4()}_{clean}"


def _store(storage, upload):
    try:
        return storage.save(_storage_name(upload.name), upload)
    except OSError as exc:
        raise InternalError("Could not store uploaded file.") from exc


def _discard(storage, saved_names):
    for name in saved_names:
        try:
            storage.delete(name)
        except OSError:
            logger.exception("Could not remove orphaned upload %s", name)


@transaction.atomic
def attach_files(task_id, user, uploads, storage=None):
    """
    Store uploads in the blob store and attach them to the task.

    CSV files are parsed before anything is stored; their rows land in the
    reserved ``csv_data`` custom field. A parse failure aborts the whole call.
    """
    task = _locked_task(task_id)
    _require_write(task, user, "You do not have permission to upload files to this task.")

    uploads = list(uploads or [])
    if not uploads:
        raise ValidationError({"files": ["No files were uploaded."]})

    storage = storage or default_storage
    csv_rows = None
    for upload in uploads:
        if (upload.content_type or "").split(";")[0].strip() in CSV_CONTENT_TYPES:
            csv_rows = (csv_rows or []) + _read_csv(upload)

    # blobs written so far are removed again if anything below fails
    saved_names = []
    try:
        files = []
        for upload in uploads:
            saved_name = _store(storage, upload)
            saved_names.append(saved_name)
            files.append(TaskFile(
                task=task,
                url=storage.url(saved_name),
                original_name=upload.name,
                mime_type=upload.content_type or "application/octet-stream",
            ))
        TaskFile.objects.bulk_create(files)

        if csv_rows is not None:
            _record_history(task, user)
            task.custom_fields = merge_csv_rows(task.custom_fields, csv_rows)
            task.save(update_fields=["custom_fields", "updated_at"])
    except Exception:
        _discard(storage, saved_names)
        raise

    logger.info("User %s attached %d file(s) to task %s", user.pk, len(files), task.pk)
    names = [f.original_name for f in files]
    transaction.on_commit(lambda: publish_task_files_uploaded(user.pk, task.pk, task.title, names))
    return task


@transaction.atomic
def set_favorite(task_id, user, is_favorite):
    """Toggle the favorite flag; not versioned."""
    task = _locked_task(task_id)
    _require_write(task, user, "You do not have permission to favorite this task.")
    task.is_favorite = bool(is_favorite)
    task.save(update_fields=["is_favorite", "updated_at"])
    return task


@transaction.atomic
def delete_task(task_id, user):
    task = _locked_task(task_id)
    _require_write(task, user, "You do not have permission to delete this task.")
    pk, title = task.pk, task.title
    task.delete()
    logger.info("Task %s deleted by user %s", pk, user.pk)
    transaction.on_commit(lambda: publish_task_deleted(user.pk, pk, title))


def tasks_due_for_reminder(now=None):
    """Tasks not yet done whose due date falls inside the reminder window starting now."""
    now = now or timezone.now()
    window_end = now + timedelta(hours=settings.TASK_REMINDER_WINDOW_HOURS)
    return (
        Task.objects.select_related("assigned_to")
        .filter(due_date__gte=now, due_date__lte=window_end)
        .exclude(status=TaskStatus.DONE)
        .order_by("due_date", "id")
    )


def completed_between(user, start, end, admin_view=False):
    """Tasks completed in the inclusive date range, by the caller unless an admin asks for all."""
    qs = Task.objects.filter(
        status=TaskStatus.DONE,
        completed_at__date__gte=start,
        completed_at__date__lte=end,
    )
    if not (user.is_admin and admin_view):
        qs = qs.filter(completed_by=user)
    return qs.order_by("completed_at", "id")
