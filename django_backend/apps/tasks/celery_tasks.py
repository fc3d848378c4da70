import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.db import DatabaseError
from django.utils import timezone

from apps.tasks.services import tasks_due_for_reminder

logger = logging.getLogger(__name__)


def reminder_message(task):
    due = timezone.localtime(task.due_date).strftime("%Y-%m-%d %H:%M")
    subject = f"[Reminder] Task \"{task.title}\" is due soon"
    body = (
        f"Hello {task.assigned_to.name},\n\n"
        f"The task \"{task.title}\" is due in less than "
        f"{settings.TASK_REMINDER_WINDOW_HOURS} hours.\n\n"
        f"Description: {task.description}\n"
        f"Due date: {due}\n"
        f"Status: {task.get_status_display()}\n\n"
        f"Don't miss the deadline!\n"
    )
    return subject, body


@shared_task
def send_due_date_reminders():
    """
    Email the assignee of every task that is not done and falls due within
    the reminder window. Tasks without a reachable assignee are skipped.
    Returns the number of reminders sent.
    """
    logger.info("Checking tasks close to their due date")
    try:
        tasks = list(tasks_due_for_reminder())
    except DatabaseError:
        logger.exception("Reminder scan failed while querying tasks")
        return 0

    sent = 0
    for task in tasks:
        user = task.assigned_to
        if user is None or not user.email:
            continue

        subject, body = reminder_message(task)
        try:
            send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [user.email])
        except OSError:
            logger.exception("Could not send reminder for task %s to %s", task.id, user.email)
            continue

        sent += 1
        logger.info("Due date reminder sent to %s for task %s", user.email, task.id)

    return sent
