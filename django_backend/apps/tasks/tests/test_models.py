from datetime import timedelta

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from django.utils import timezone

from apps.tasks.custom_fields import (
    CSV_DATA_FIELD,
    ValueType,
    make_entry,
    merge_csv_rows,
    value_type_of,
)
from apps.tasks.models import (
    Task,
    TaskFile,
    TaskHistory,
    TaskPriority,
    TaskStatus,
    TaskType,
    Workflow,
)
from apps.users.models import UserRole

User = get_user_model()


class WorkflowAndTaskTypeModelTest(TestCase):
    """Test cases for the admin registries"""

    def test_workflow_ordering(self):
        """Test that workflows are ordered by name"""
        Workflow.objects.create(name="Zebra")
        Workflow.objects.create(name="Alpha")

        self.assertEqual([w.name for w in Workflow.objects.all()], ["Alpha", "Zebra"])

    def test_required_field_names(self):
        task_type = TaskType.objects.create(
            name="Safety Check",
            fields=[
                {"name": "Has extinguisher?", "kind": "checkbox", "required": True},
                {"name": "Notes", "kind": "text", "required": False},
                {"name": "Exits", "kind": "number"},
            ],
        )

        self.assertEqual(task_type.required_field_names(), ["Has extinguisher?"])
        self.assertEqual(str(task_type), "Safety Check")


class TaskModelTest(TestCase):
    """Test cases for Task model"""

    def setUp(self):
        """Set up test data"""
        self.owner = User.objects.create_user(email="owner@example.com", password="testpass123", name="Owner")
        self.assignee = User.objects.create_user(email="assignee@example.com", password="testpass123", name="Assignee")
        self.stranger = User.objects.create_user(email="stranger@example.com", password="testpass123", name="Stranger")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="testpass123", name="Admin", role=UserRole.ADMIN
        )
        self.task = Task.objects.create(
            title="Inspect site",
            description="Check the fire exits",
            priority=TaskPriority.HIGH,
            due_date=timezone.now() + timedelta(days=2),
            created_by=self.owner,
            assigned_to=self.assignee,
        )

    def test_defaults(self):
        """Test default values of a new task"""
        self.assertEqual(self.task.status, TaskStatus.PENDING)
        self.assertFalse(self.task.is_favorite)
        self.assertEqual(self.task.custom_fields, [])
        self.assertIsNone(self.task.completed_at)
        self.assertIsNone(self.task.instructions)
        self.assertEqual(str(self.task), "Inspect site")

    def test_access_for_owner_and_assignee(self):
        for user in (self.owner, self.assignee):
            access = self.task.access_for(user)
            self.assertTrue(access.read)
            self.assertTrue(access.write)
            self.assertFalse(access.admin_write)

    def test_access_for_unrelated_user(self):
        access = self.task.access_for(self.stranger)
        self.assertFalse(access.read)
        self.assertFalse(access.write)

    def test_access_for_admin(self):
        access = self.task.access_for(self.admin)
        self.assertTrue(access.read and access.write and access.admin_write)

    def test_access_for_anonymous(self):
        self.assertFalse(self.task.access_for(AnonymousUser()).read)

    def test_snapshot_is_json_ready(self):
        snapshot = self.task.snapshot()

        self.assertEqual(snapshot["title"], "Inspect site")
        self.assertEqual(snapshot["assigned_to"], self.assignee.id)
        self.assertIsNone(snapshot["workflow"])
        self.assertIsInstance(snapshot["due_date"], str)

    def test_deleting_workflow_detaches_tasks(self):
        workflow = Workflow.objects.create(name="Facilities")
        self.task.workflow = workflow
        self.task.save()

        workflow.delete()
        self.task.refresh_from_db()
        self.assertIsNone(self.task.workflow)

    def test_deleting_task_removes_files_and_history(self):
        TaskFile.objects.create(task=self.task, url="/media/a.pdf", original_name="a.pdf", mime_type="application/pdf")
        TaskHistory.objects.create(task=self.task, updated_by=self.owner, snapshot=self.task.snapshot())

        self.task.delete()
        self.assertEqual(TaskFile.objects.count(), 0)
        self.assertEqual(TaskHistory.objects.count(), 0)

    def test_default_ordering_newest_first(self):
        newer = Task.objects.create(
            title="Newer",
            description="x",
            priority=TaskPriority.LOW,
            due_date=timezone.now(),
            created_by=self.owner,
        )
        self.assertEqual(Task.objects.first(), newer)


class CustomFieldTest(TestCase):
    """Test cases for custom field entries"""

    def test_value_type_of(self):
        self.assertEqual(value_type_of(True), ValueType.BOOLEAN)
        self.assertEqual(value_type_of(3), ValueType.NUMBER)
        self.assertEqual(value_type_of(2.5), ValueType.NUMBER)
        self.assertEqual(value_type_of("ok"), ValueType.TEXT)
        self.assertEqual(value_type_of(None), ValueType.OPAQUE)
        self.assertEqual(value_type_of([{"a": "1"}]), ValueType.OPAQUE)

    def test_value_type_rejects_other_objects(self):
        with self.assertRaises(TypeError):
            value_type_of(object())

    def test_merge_csv_rows_replaces_previous_entry(self):
        fields = [make_entry("Notes", "text", "hi"), make_entry(CSV_DATA_FIELD, "csv", [{"a": "1"}])]

        merged = merge_csv_rows(fields, [{"a": "2"}])

        self.assertEqual(len(merged), 2)
        self.assertEqual(merged[0]["value"], "hi")
        self.assertEqual(merged[1]["field_name"], CSV_DATA_FIELD)
        self.assertEqual(merged[1]["value"], [{"a": "2"}])
