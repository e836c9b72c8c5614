# backend/servicehub/models/base_enum.py
"""
Safe enum helpers for SQLAlchemy.

Columns built with ``create_safe_enum`` persist enum VALUES ('pending'), not
NAMES ('PENDING'), and reject anything outside the vocabulary when the row is
written. Status casing is therefore fixed at the storage boundary and reads
never need to normalise it.

Usage:
    from servicehub.models.base_enum import create_safe_enum

    class MyModel(Base):
        status = Column(
            create_safe_enum(MyStatus, "my_status"),
            nullable=False,
            default=MyStatus.ACTIVE,
        )
"""

from enum import Enum
from typing import Sequence, Type

from sqlalchemy import Enum as SAEnum


def create_safe_enum(
    enum_class: Type[Enum],
    name: str,
    *,
    native_enum: bool = False,
    create_constraint: bool = True,
    validate_strings: bool = True,
) -> SAEnum:
    """
    Create a SQLAlchemy Enum that stores enum values and validates writes.

    Args:
        enum_class: The (str, Enum) class to use
        name: Type/constraint name
        native_enum: Use a PostgreSQL native enum type (default False: VARCHAR + CHECK)
        create_constraint: Emit a CHECK constraint listing the allowed values
        validate_strings: Reject plain strings that are not enum values

    Returns:
        SQLAlchemy Enum column type configured for value-based storage
    """
    verify_enum_consistency(enum_class)
    return SAEnum(
        enum_class,
        name=name,
        native_enum=native_enum,
        create_constraint=create_constraint,
        validate_strings=validate_strings,
        values_callable=_get_enum_values,
        length=max(len(member.value) for member in enum_class),
    )


def _get_enum_values(enum_class: Type[Enum]) -> Sequence[str]:
    """SQLAlchemy defaults to enum NAMES; return the VALUES instead."""
    return [member.value for member in enum_class]


def verify_enum_consistency(enum_class: Type[Enum]) -> None:
    """
    Verify that an enum is safe for database storage.

    Raises:
        AssertionError: If the enum does not inherit from str, or a value is
            not a lower-case string
    """
    if not issubclass(enum_class, str):
        raise AssertionError(
            f"{enum_class.__name__} must inherit from (str, Enum) for safe database storage"
        )

    for member in enum_class:
        if not isinstance(member.value, str):
            raise AssertionError(
                f"{enum_class.__name__}.{member.name} value must be a string, "
                f"got {type(member.value).__name__}"
            )
        if member.value != member.value.lower():
            raise AssertionError(
                f"{enum_class.__name__}.{member.name} value must be lower-case, got {member.value!r}"
            )
