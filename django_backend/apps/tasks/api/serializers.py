from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.tasks.custom_fields import ValueType, value_type_of
from apps.tasks.models import (
    Task,
    TaskFile,
    TaskHistory,
    TaskPriority,
    TaskStatus,
    TaskType,
    Workflow,
)
from apps.users.api.serializers import UserSummarySerializer

User = get_user_model()

DUE_DATE_FORMATS = ["iso-8601", "%Y-%m-%d"]


class WorkflowSerializer(serializers.ModelSerializer):
    created_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = Workflow
        fields = ["id", "name", "description", "created_by", "created_at"]
        read_only_fields = ["id", "created_by", "created_at"]


class WorkflowSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Workflow
        fields = ["id", "name"]


class TaskTypeFieldSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    kind = serializers.CharField(max_length=50)
    required = serializers.BooleanField(default=False)


class TaskTypeSerializer(serializers.ModelSerializer):
    created_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = TaskType
        fields = ["id", "name", "description", "fields", "created_by", "created_at"]
        read_only_fields = ["id", "created_by", "created_at"]

    def get_fields(self):
        # "fields" clashes with Serializer.fields, so the nested list is added here
        fields = super().get_fields()
        fields["fields"] = serializers.ListField(child=TaskTypeFieldSerializer(), required=False)
        return fields

    def validate(self, attrs):
        if "fields" in attrs:
            attrs["fields"] = [dict(f) for f in attrs["fields"]]
            names = [f["name"] for f in attrs["fields"]]
            if len(names) != len(set(names)):
                raise serializers.ValidationError({"fields": "Field names must be unique."})
        return attrs


class TaskTypeSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskType
        fields = ["id", "name"]


class CustomFieldValueSerializer(serializers.Serializer):
    field_name = serializers.CharField(max_length=200)
    field_kind = serializers.CharField(max_length=50)
    value = serializers.JSONField(required=False, allow_null=True, default=None)
    value_type = serializers.ChoiceField(choices=ValueType.choices, read_only=True)

    def validate_value(self, value):
        try:
            value_type_of(value)
        except TypeError as exc:
            raise serializers.ValidationError(str(exc))
        return value

    def to_internal_value(self, data):
        return dict(super().to_internal_value(data))


class TaskFileSerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskFile
        fields = ["id", "url", "original_name", "mime_type", "uploaded_at"]


class TaskSerializer(serializers.ModelSerializer):
    """Read shape of a task, with related users and registries resolved."""

    created_by = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    completed_by = UserSummarySerializer(read_only=True)
    workflow = WorkflowSummarySerializer(read_only=True)
    task_type = TaskTypeSummarySerializer(read_only=True)
    custom_fields = CustomFieldValueSerializer(many=True, read_only=True)
    files = TaskFileSerializer(many=True, read_only=True)

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "priority",
            "due_date",
            "status",
            "task_type",
            "workflow",
            "custom_fields",
            "files",
            "created_by",
            "assigned_to",
            "assigned_at",
            "start_time",
            "completed_at",
            "completed_by",
            "is_favorite",
            "instructions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TaskWriteSerializer(serializers.Serializer):
    """
    Input for task creation and updates.

    Used with ``partial=True`` for updates so that only keys present in the
    request reach ``validated_data``.
    """

    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    priority = serializers.ChoiceField(choices=TaskPriority.choices)
    due_date = serializers.DateTimeField(input_formats=DUE_DATE_FORMATS)
    status = serializers.ChoiceField(choices=TaskStatus.choices, required=False)
    workflow = serializers.PrimaryKeyRelatedField(
        queryset=Workflow.objects.all(), required=False, allow_null=True
    )
    task_type = serializers.PrimaryKeyRelatedField(
        queryset=TaskType.objects.all(), required=False, allow_null=True
    )
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(), required=False, allow_null=True
    )
    instructions = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    custom_fields = CustomFieldValueSerializer(many=True, required=False)

    ADMIN_ONLY_FIELDS = ("workflow", "task_type", "assigned_to")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is None or not getattr(user, "is_admin", False):
            # plain users' values are dropped, so they are never looked up
            for name in self.ADMIN_ONLY_FIELDS:
                self.fields.pop(name, None)


class FavoriteSerializer(serializers.Serializer):
    is_favorite = serializers.BooleanField()


class TaskHistorySerializer(serializers.ModelSerializer):
    updated_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = TaskHistory
        fields = ["id", "updated_at", "updated_by", "snapshot"]


class ProductivityQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()
    admin_view = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if attrs["start"] > attrs["end"]:
            raise serializers.ValidationError({"end": "End date must not be before start date."})
        return attrs
