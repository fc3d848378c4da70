import django_filters

from apps.tasks.models import Task, TaskPriority, TaskStatus


class TaskFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=TaskStatus.choices)
    priority = django_filters.ChoiceFilter(choices=TaskPriority.choices)
    workflow = django_filters.NumberFilter(field_name="workflow_id")
    task_type = django_filters.NumberFilter(field_name="task_type_id")
    favorite = django_filters.BooleanFilter(method="filter_favorite")
    sort_by = django_filters.ChoiceFilter(
        choices=[("due_date", "Due date"), ("priority", "Priority")],
        method="filter_sort_by",
    )

    class Meta:
        model = Task
        fields = ["status", "priority", "workflow", "task_type", "favorite", "sort_by"]

    def filter_favorite(self, queryset, name, value):
        # favorite=false means "don't filter", not "only non-favorites"
        if value:
            return queryset.filter(is_favorite=True)
        return queryset

    def filter_sort_by(self, queryset, name, value):
        # priority orders by the stored label, so high < low < medium
        return queryset.order_by(value, "id")
