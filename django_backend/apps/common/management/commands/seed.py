from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone
from apps.users.models import UserRole
from apps.tasks.models import Task, TaskPriority, TaskStatus, TaskType, Workflow
from apps.tasks.custom_fields import make_entry
import random
from datetime import timedelta

User = get_user_model()

SAFETY_CHECK_FIELDS = [
    {"name": "Has extinguisher?", "kind": "checkbox", "required": True},
    {"name": "Inspector notes", "kind": "text", "required": False},
    {"name": "Exits counted", "kind": "number", "required": False},
]


class Command(BaseCommand):
    help = 'Seed the database with sample data'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=10,
            help='Number of users to create'
        )
        parser.add_argument(
            '--tasks',
            type=int,
            default=40,
            help='Number of tasks to create'
        )

    def handle(self, *args, **options):
        self.stdout.write('Starting database seeding...')

        users = self.create_users(options['users'])
        admin = users[0]
        workflows = self.create_workflows(admin)
        task_types = self.create_task_types(admin)
        tasks = self.create_tasks(users, workflows, task_types, options['tasks'])

        self.stdout.write(
            self.style.SUCCESS(
                f'\nSeed data created successfully!\n'
                f'Users: {len(users)}\n'
                f'Workflows: {len(workflows)}\n'
                f'Task types: {len(task_types)}\n'
                f'Tasks: {len(tasks)}\n\n'
                f'Admin user: admin@example.com / admin123\n'
                f'Regular users: [email] / password123\n\n'
                f'Sample users created:\n' +
                '\n'.join([f'- {user.email} (password123)' for user in users[1:6]])
            )
        )

    def create_users(self, num_users):
        self.stdout.write('Creating users...')

        FIRST_NAMES = [
            'Alice', 'Bob', 'Charlie', 'Diana', 'Eve', 'Frank', 'Grace', 'Henry',
            'Ivy', 'Jack', 'Kate', 'Liam', 'Mia', 'Noah', 'Olivia', 'Peter',
        ]

        LAST_NAMES = [
            'Smith', 'Johnson', 'Williams', 'Brown', 'Jones', 'Garcia', 'Miller',
            'Davis', 'Wilson', 'Anderson', 'Thomas', 'Moore',
        ]

        users = []

        admin = User.objects.filter(email='admin@example.com').first()
        if admin is None:
            admin = User.objects.create_superuser(
                email='admin@example.com', password='admin123', name='Admin User'
            )
            self.stdout.write(f'Created admin user: {admin.email}')
        users.append(admin)

        for i in range(num_users):
            first_name = random.choice(FIRST_NAMES)
            last_name = random.choice(LAST_NAMES)
            email = f"{first_name.lower()}.{last_name.lower()}{i}@example.com"

            user = User.objects.filter(email=email).first()
            if user is None:
                user = User.objects.create_user(
                    email=email,
                    password='password123',
                    name=f"{first_name} {last_name}",
                    role=UserRole.USER,
                )
            users.append(user)

        return users

    def create_workflows(self, admin):
        self.stdout.write('Creating workflows...')

        WORKFLOWS = ['Facilities', 'Onboarding', 'Quality Control']

        workflows = []
        for name in WORKFLOWS:
            workflow, _ = Workflow.objects.get_or_create(
                name=name,
                defaults={
                    'description': f"Tasks for the {name.lower()} process",
                    'created_by': admin,
                }
            )
            workflows.append(workflow)

        return workflows

    def create_task_types(self, admin):
        self.stdout.write('Creating task types...')

        safety, _ = TaskType.objects.get_or_create(
            name='Safety Check',
            defaults={
                'description': 'Periodic inspection of a site',
                'fields': SAFETY_CHECK_FIELDS,
                'created_by': admin,
            }
        )
        review, _ = TaskType.objects.get_or_create(
            name='Document Review',
            defaults={
                'description': 'Read and sign off a document',
                'fields': [{"name": "Document link", "kind": "text", "required": True}],
                'created_by': admin,
            }
        )
        return [safety, review]

    def create_tasks(self, users, workflows, task_types, num_tasks):
        self.stdout.write('Creating tasks...')

        members = users[1:] or users
        tasks = []

        for i in range(num_tasks):
            creator = random.choice(users)
            assignee = random.choice(members)
            task_type = random.choice(task_types) if random.random() > 0.4 else None
            task_title = f"Task {i+1}: {random.choice(['Inspect', 'Review', 'Prepare', 'Audit', 'Update'])} {random.choice(['site', 'report', 'checklist', 'document', 'equipment'])}"

            # Random due date within the next 30 days
            due_date = timezone.now() + timedelta(days=random.randint(1, 30))

            custom_fields = []
            if task_type is not None and task_type.name == 'Safety Check':
                custom_fields = [
                    make_entry("Has extinguisher?", "checkbox", random.random() > 0.2),
                    make_entry("Exits counted", "number", random.randint(1, 6)),
                ]

            status = random.choice([TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW, TaskStatus.DONE])
            task = Task.objects.create(
                title=task_title,
                description=f"Description for {task_title}",
                status=status,
                priority=random.choice(TaskPriority.values),
                due_date=due_date,
                created_by=creator,
                assigned_to=assignee,
                assigned_at=timezone.now(),
                workflow=random.choice(workflows) if random.random() > 0.3 else None,
                task_type=task_type,
                custom_fields=custom_fields,
            )

            if status in (TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW, TaskStatus.DONE):
                task.start_time = timezone.now() - timedelta(days=random.randint(1, 5))
            if status == TaskStatus.DONE:
                task.completed_at = timezone.now()
                task.completed_by = assignee
            task.save()

            tasks.append(task)

        return tasks
