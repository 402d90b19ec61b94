"""Ordered field sequence management.

Every mutation renumbers the sequence before returning, so callers only ever
observe ``order == position + 1`` with unique identifiers.
"""

import logging
import time
import uuid
from typing import Optional

from form_builder.models.template import CHOICE_TYPES, FieldOption, FieldType, FormField

logger = logging.getLogger(__name__)


class SchemaInvariantViolation(ValueError):
    """Raised when a field sequence has duplicate ids or non-dense order"""


class FieldNotFoundError(KeyError):
    """Raised when an operation addresses a field id that is not in the sequence"""


def generate_field_id() -> str:
    """Unique, time-prefixed field identifier"""
    return f"field_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def default_field(field_type: FieldType, field_id: Optional[str] = None) -> FormField:
    """A new field of ``field_type`` with per-type defaults"""
    field_type = FieldType(field_type)
    field = FormField(
        id=field_id or generate_field_id(),
        type=field_type,
        label=f"New {field_type.value} field",
    )
    if field_type in CHOICE_TYPES:
        field.options = [
            FieldOption(value="option1", label="Option 1"),
            FieldOption(value="option2", label="Option 2"),
        ]
    elif field_type == FieldType.HTML:
        field.label = "HTML block"
        field.placeholder = "<p>Custom content</p>"
    elif field_type == FieldType.DIVIDER:
        field.label = "Divider"
    return field


def check_invariants(fields: list[FormField]) -> None:
    """Assert unique ids and dense 1-based ordering"""
    seen: set[str] = set()
    for position, field in enumerate(fields):
        if field.id in seen:
            raise SchemaInvariantViolation(f"Duplicate field id '{field.id}'")
        seen.add(field.id)
        if field.order != position + 1:
            raise SchemaInvariantViolation(
                f"Field '{field.id}' at position {position} has order {field.order}"
            )


class FieldOrderManager:
    """Insert, move, duplicate and delete fields of one template in place"""

    def __init__(self, fields: list[FormField]):
        self.fields = fields

    def __len__(self) -> int:
        return len(self.fields)

    def index_of(self, field_id: str) -> int:
        for index, field in enumerate(self.fields):
            if field.id == field_id:
                return index
        raise FieldNotFoundError(field_id)

    def get(self, field_id: str) -> FormField:
        return self.fields[self.index_of(field_id)]

    def normalize(self) -> None:
        """Sort by existing order (stable) and renumber; used on load"""
        self.fields.sort(key=lambda f: f.order)
        self._renumber()

    def insert(self, field_type: FieldType, at_index: Optional[int] = None) -> FormField:
        """Create a new field at ``at_index`` (appended when omitted)"""
        if at_index is None or at_index > len(self.fields):
            at_index = len(self.fields)
        at_index = max(at_index, 0)

        field = default_field(field_type)
        while any(f.id == field.id for f in self.fields):
            field.id = generate_field_id()

        self.fields.insert(at_index, field)
        self._renumber()
        logger.debug(f"Inserted {field.type.value} field '{field.id}' at {at_index}")
        return field

    def move(self, from_index: int, to_index: int) -> None:
        """Move the field at ``from_index`` so it ends up at ``to_index``"""
        count = len(self.fields)
        if not 0 <= from_index < count:
            raise IndexError(f"from_index {from_index} out of range (0..{count - 1})")
        if not 0 <= to_index < count:
            raise IndexError(f"to_index {to_index} out of range (0..{count - 1})")
        if from_index == to_index:
            return

        field = self.fields.pop(from_index)
        self.fields.insert(to_index, field)
        self._renumber()

    def duplicate(self, field_id: str) -> FormField:
        """Deep-copy a field under a new id and append it"""
        original = self.get(field_id)
        copy = original.model_copy(deep=True)
        copy.id = generate_field_id()
        while any(f.id == copy.id for f in self.fields):
            copy.id = generate_field_id()
        copy.label = f"{original.label} (Copy)"

        self.fields.append(copy)
        self._renumber()
        return copy

    def delete(self, field_id: str) -> FormField:
        field = self.fields.pop(self.index_of(field_id))
        self._renumber()
        return field

    def _renumber(self) -> None:
        for position, field in enumerate(self.fields):
            field.order = position + 1
        check_invariants(self.fields)
