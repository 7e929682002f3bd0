"""
Update operation descriptors.

A descriptor marks a field in an update request as a partial mutation
instead of a plain replacement value::

    base.update({"views": increment(), "tags": append("new")}, "item-1")
"""

import enum
from dataclasses import dataclass

from .types import JSONValue


class Op(enum.Enum):
    """Kinds of field mutation understood by the store."""
    SET = "set"
    INCREMENT = "increment"
    APPEND = "append"
    PREPEND = "prepend"
    TRIM = "trim"
    DELETE = "delete"


@dataclass(frozen=True)
class Descriptor:
    """A single field mutation. TRIM and DELETE carry no value."""
    op: Op
    value: JSONValue = None


def increment(value: int | float = 1) -> Descriptor:
    """Add `value` to a numeric field. Negative values decrement."""
    return Descriptor(Op.INCREMENT, value)


def append(value: JSONValue) -> Descriptor:
    """Append `value` (or each element of a list) to a list field."""
    return Descriptor(Op.APPEND, value)


def prepend(value: JSONValue) -> Descriptor:
    """Prepend `value` (or each element of a list) to a list field."""
    return Descriptor(Op.PREPEND, value)


def trim() -> Descriptor:
    """Remove the field from the item."""
    return Descriptor(Op.TRIM)


def set_(value: JSONValue) -> Descriptor:
    """Replace the field. Same as passing the plain value."""
    return Descriptor(Op.SET, value)


def delete() -> Descriptor:
    """Delete the field."""
    return Descriptor(Op.DELETE)


class Util:
    """Descriptor factories bound to a Base, e.g. ``base.util.increment(2)``."""

    increment = staticmethod(increment)
    append = staticmethod(append)
    prepend = staticmethod(prepend)
    trim = staticmethod(trim)
    set = staticmethod(set_)
    delete = staticmethod(delete)
