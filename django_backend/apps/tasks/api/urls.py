from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import TaskViewSet, TaskTypeViewSet, WorkflowViewSet

router = DefaultRouter()
router.register(r"tasks", TaskViewSet, basename="tasks")
router.register(r"task-types", TaskTypeViewSet, basename="task-types")
router.register(r"workflows", WorkflowViewSet, basename="workflows")

urlpatterns = [
    path("", include(router.urls)),
]
