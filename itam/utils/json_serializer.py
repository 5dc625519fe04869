"""
JSON serializer utility for converting Python objects to JSON-safe values
"""
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel
from sqlalchemy import inspect


def to_json_safe(value: Any) -> Any:
    """
    Recursively convert Python objects to JSON-safe values

    Args:
        value: Any Python object to convert

    Returns:
        JSON-safe equivalent of the input value
    """
    if value is None:
        return None
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, (str, int, float, bool)):
        return value
    elif isinstance(value, (date, datetime, time)):
        return value.isoformat()
    elif isinstance(value, Decimal):
        return float(value)
    elif isinstance(value, dict):
        return {k: to_json_safe(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple, set)):
        return [to_json_safe(item) for item in value]
    elif isinstance(value, BaseModel):
        return to_json_safe(value.model_dump())
    return str(value)


def sanitize_for_json(obj: Any) -> Any:
    """
    Sanitize values before saving to JSON columns (audit_logs.old_values/new_values).
    """
    return to_json_safe(obj)


def model_snapshot(instance: Any, exclude: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """
    Column values of an ORM instance as a JSON-safe dict.

    Secrets never reach the audit trail.
    """
    skipped = {"password_hash"} | set(exclude or ())
    mapper = inspect(instance).mapper
    return {
        attr.key: to_json_safe(getattr(instance, attr.key))
        for attr in mapper.column_attrs
        if attr.key not in skipped
    }
