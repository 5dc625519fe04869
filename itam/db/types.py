"""
Column type helpers
"""
import enum
from typing import Type

from sqlalchemy import Enum as SQLEnum


def enum_type(enum_cls: Type[enum.Enum], name: str) -> SQLEnum:
    """
    SQL enum that stores the member *values* (``in_use``), not the member names.

    Partial-index predicates and raw SQL compare against these values.
    """
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
