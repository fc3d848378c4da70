from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase
from django.utils import timezone

from apps.tasks.celery_tasks import reminder_message, send_due_date_reminders
from apps.tasks.models import Task, TaskPriority, TaskStatus

User = get_user_model()


class DueDateReminderTest(TestCase):
    """Test cases for the daily due date reminder scan"""

    def setUp(self):
        self.owner = User.objects.create_user(email="owner@example.com", password="testpass123", name="Owner")
        self.assignee = User.objects.create_user(email="assignee@example.com", password="testpass123", name="Ana")

    def make_task(self, hours, **fields):
        defaults = {
            "title": "Inspect site",
            "description": "Check the fire exits",
            "priority": TaskPriority.HIGH,
            "due_date": timezone.now() + timedelta(hours=hours),
            "created_by": self.owner,
            "assigned_to": self.assignee,
        }
        defaults.update(fields)
        return Task.objects.create(**defaults)

    def test_reminder_sent_for_task_due_soon(self):
        self.make_task(hours=6)

        sent = send_due_date_reminders()

        self.assertEqual(sent, 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["assignee@example.com"])
        self.assertIn("Inspect site", mail.outbox[0].subject)
        self.assertIn("Check the fire exits", mail.outbox[0].body)

    def test_tasks_outside_window_skipped(self):
        self.make_task(hours=48)
        self.make_task(hours=-2)

        self.assertEqual(send_due_date_reminders(), 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_done_tasks_skipped(self):
        self.make_task(hours=3, status=TaskStatus.DONE)

        self.assertEqual(send_due_date_reminders(), 0)

    def test_unassigned_tasks_skipped(self):
        self.make_task(hours=3, assigned_to=None)

        self.assertEqual(send_due_date_reminders(), 0)

    def test_mail_failure_does_not_stop_scan(self):
        self.make_task(hours=2)
        self.make_task(hours=4, title="Second")

        with mock.patch("apps.tasks.celery_tasks.send_mail", side_effect=[OSError("smtp down"), 1]):
            sent = send_due_date_reminders()

        self.assertEqual(sent, 1)

    def test_reminder_message(self):
        task = self.make_task(hours=5)

        subject, body = reminder_message(task)

        self.assertIn("Inspect site", subject)
        self.assertIn("Ana", body)
        self.assertIn("Pending", body)
