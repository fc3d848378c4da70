import csv

from django.http import HttpResponse
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import SearchFilter
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from apps.tasks import services
from apps.tasks.models import Task, TaskType, Workflow
from apps.users.api.permissions import IsAdminRole
from .filters import TaskFilter
from .permissions import IsAdminRoleOrReadOnly, IsOwnerOrAssigneeOrAdmin
from .serializers import (
    FavoriteSerializer,
    ProductivityQuerySerializer,
    TaskHistorySerializer,
    TaskSerializer,
    TaskTypeSerializer,
    TaskWriteSerializer,
    WorkflowSerializer,
)

EXPORT_COLUMNS = ["id", "title", "description", "priority", "due_date", "status", "created_at", "owner"]


class WorkflowViewSet(viewsets.ModelViewSet):
    queryset = Workflow.objects.select_related("created_by").order_by("name")
    serializer_class = WorkflowSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminRole]

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


class TaskTypeViewSet(viewsets.ModelViewSet):
    queryset = TaskType.objects.select_related("created_by").order_by("name")
    serializer_class = TaskTypeSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminRoleOrReadOnly]

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


class TaskViewSet(viewsets.ModelViewSet):
    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated, IsOwnerOrAssigneeOrAdmin]
    filter_backends = [DjangoFilterBackend, SearchFilter]
    filterset_class = TaskFilter
    search_fields = ["title", "description"]

    def admin_view(self):
        return self.request.query_params.get("admin_view") == "true"

    def get_queryset(self):
        if self.action == "list":
            return services.visible_tasks(self.request.user, admin_view=self.admin_view())
        return Task.objects.select_related(
            "created_by", "assigned_to", "completed_by", "workflow", "task_type"
        ).prefetch_related("files")

    def respond(self, task, status_code=status.HTTP_200_OK):
        return Response(
            TaskSerializer(task, context=self.get_serializer_context()).data,
            status=status_code,
        )

    def create(self, request, *args, **kwargs):
        ser = TaskWriteSerializer(data=request.data, context=self.get_serializer_context())
        ser.is_valid(raise_exception=True)
        task = services.create_task(request.user, ser.validated_data)
        return self.respond(task, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        # PUT and PATCH both only touch the keys that were sent
        task = self.get_object()
        ser = TaskWriteSerializer(data=request.data, partial=True, context=self.get_serializer_context())
        ser.is_valid(raise_exception=True)
        task = services.update_task(task.pk, request.user, ser.validated_data)
        return self.respond(task)

    def destroy(self, request, *args, **kwargs):
        task = self.get_object()
        services.delete_task(task.pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], parser_classes=[MultiPartParser, FormParser])
    def files(self, request, pk=None):
        task = self.get_object()
        task = services.attach_files(task.pk, request.user, request.FILES.getlist("files"))
        return self.respond(task)

    @action(detail=True, methods=["patch"])
    def favorite(self, request, pk=None):
        task = self.get_object()
        ser = FavoriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        task = services.set_favorite(task.pk, request.user, ser.validated_data["is_favorite"])
        return self.respond(task)

    @action(detail=True, methods=["patch"])
    def complete(self, request, pk=None):
        task = self.get_object()
        task = services.complete_task(task.pk, request.user)
        return self.respond(task)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        task = self.get_object()
        qs = task.history.select_related("updated_by").order_by("updated_at", "id")
        return Response(TaskHistorySerializer(qs, many=True).data)

    @action(detail=False, methods=["get"])
    def export(self, request):
        """The caller's tasks as a CSV attachment."""
        tasks = services.visible_tasks(request.user).order_by("due_date", "id")
        stamp = timezone.now().strftime("%Y%m%d")

        response = HttpResponse(content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="tasks-{stamp}.csv"'
        writer = csv.writer(response)
        writer.writerow(EXPORT_COLUMNS)
        for t in tasks:
            writer.writerow([
                t.id,
                t.title,
                t.description,
                t.priority,
                t.due_date.isoformat(),
                t.status,
                t.created_at.isoformat(),
                t.created_by.name,
            ])
        return response

    @action(detail=False, methods=["get"])
    def productivity(self, request):
        """Tasks completed within [start, end]."""
        ser = ProductivityQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        start, end = ser.validated_data["start"], ser.validated_data["end"]

        qs = services.completed_between(request.user, start, end, admin_view=ser.validated_data["admin_view"])
        tasks = [
            {"id": t.id, "title": t.title, "completed_at": t.completed_at.isoformat()}
            for t in qs
        ]
        return Response({
            "start": start.isoformat(),
            "end": end.isoformat(),
            "completed_count": len(tasks),
            "tasks": tasks,
        })
