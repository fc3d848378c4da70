"""
Answers to a task type's dynamic fields.

Each entry stored in ``Task.custom_fields`` looks like::

    {"field_name": "Has extinguisher?", "field_kind": "checkbox",
     "value": true, "value_type": "boolean"}

``value_type`` tags the JSON value so readers do not have to sniff it.
"""
from django.conf import settings
from django.db import models
from rest_framework.exceptions import ValidationError

# Reserved entry that receives rows parsed from uploaded CSV files.
CSV_DATA_FIELD = "csv_data"


class ValueType(models.TextChoices):
    TEXT = "text", "Text"
    BOOLEAN = "boolean", "Boolean"
    NUMBER = "number", "Number"
    OPAQUE = "opaque", "Opaque"


def value_type_of(value) -> str:
    # bool is an int subclass, test it first
    if isinstance(value, bool):
        return ValueType.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueType.NUMBER
    if isinstance(value, str):
        return ValueType.TEXT
    if value is None or isinstance(value, (dict, list)):
        return ValueType.OPAQUE
    raise TypeError(f"Unsupported custom field value: {type(value).__name__}")


def make_entry(field_name, field_kind, value) -> dict:
    return {
        "field_name": field_name,
        "field_kind": field_kind,
        "value": value,
        "value_type": value_type_of(value),
    }


def merge_csv_rows(custom_fields, rows):
    """Replace the reserved CSV entry with the given rows, keeping every other answer."""
    kept = [f for f in custom_fields or [] if f.get("field_name") != CSV_DATA_FIELD]
    kept.append(make_entry(CSV_DATA_FIELD, "csv", rows))
    return kept


def check_required_fields(task_type, custom_fields):
    """
    Reject answers missing a field the task type marks as required.

    Only enforced when TASKS_STRICT_CUSTOM_FIELDS is on; by default custom
    fields are stored as sent.
    """
    if task_type is None or not getattr(settings, "TASKS_STRICT_CUSTOM_FIELDS", False):
        return
    answered = {f.get("field_name") for f in custom_fields or []}
    missing = [name for name in task_type.required_field_names() if name not in answered]
    if missing:
        raise ValidationError({"custom_fields": [f"Missing required field: {name}" for name in missing]})
