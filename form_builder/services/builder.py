"""Authoring workflow for a single form template"""

import logging
from datetime import datetime
from typing import Any, Optional

from form_builder.db.base import TemplateStore
from form_builder.models.results import SaveResult
from form_builder.models.template import (
    ConditionalRule,
    FieldOption,
    FieldType,
    FormField,
    FormSettings,
    FormStyling,
    FormTemplate,
    TemplateCategory,
    TemplateStatus,
    ValidationRule,
)
from form_builder.services.ordering import FieldOrderManager
from form_builder.services.validation import publish_problems

logger = logging.getLogger(__name__)

# Properties update_field refuses to touch
READ_ONLY_FIELD_PROPERTIES = {"id", "order"}


def _deep_merge(base: dict, patch: dict) -> dict:
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class BuilderSession:
    """Edits a template field by field and hands it to a store on save.

    All field mutations go through ``FieldOrderManager`` so the sequence stays
    densely ordered. The session also tracks which field is selected in the
    authoring UI; nothing else about the UI lives here.
    """

    def __init__(self, template: Optional[FormTemplate] = None):
        self.template = template.model_copy(deep=True) if template else FormTemplate()
        # Stored templates may carry gaps in their order; reject duplicate ids
        self.order.normalize()
        self.selected_field_id: Optional[str] = None
        self.is_dirty = False

    @property
    def order(self) -> FieldOrderManager:
        return FieldOrderManager(self.template.fields)

    @property
    def fields(self) -> list[FormField]:
        return self.template.fields

    @property
    def selected_field(self) -> Optional[FormField]:
        if self.selected_field_id is None:
            return None
        return self.template.get_field(self.selected_field_id)

    def _touch(self) -> None:
        self.is_dirty = True

    # -- template details -------------------------------------------------

    def set_details(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> None:
        if name is not None:
            self.template.name = name
        if description is not None:
            self.template.description = description
        if category is not None:
            self.template.category = TemplateCategory(category)
        if tags is not None:
            self.template.tags = list(tags)
        self._touch()

    def update_styling(self, patch: dict[str, Any]) -> FormStyling:
        merged = _deep_merge(self.template.styling.model_dump(), patch)
        self.template.styling = FormStyling.model_validate(merged)
        self._touch()
        return self.template.styling

    def update_settings(self, patch: dict[str, Any]) -> FormSettings:
        merged = _deep_merge(self.template.settings.model_dump(), patch)
        self.template.settings = FormSettings.model_validate(merged)
        self._touch()
        return self.template.settings

    # -- field sequence ---------------------------------------------------

    def add_field(self, field_type: FieldType, index: Optional[int] = None) -> FormField:
        """Insert a new field and select it"""
        field = self.order.insert(FieldType(field_type), index)
        self.selected_field_id = field.id
        self._touch()
        return field

    def delete_field(self, field_id: str) -> FormField:
        field = self.order.delete(field_id)
        self.selected_field_id = None
        self._touch()
        return field

    def duplicate_field(self, field_id: str) -> FormField:
        copy = self.order.duplicate(field_id)
        self.selected_field_id = copy.id
        self._touch()
        return copy

    def move_field(self, from_index: int, to_index: int) -> None:
        self.order.move(from_index, to_index)
        self._touch()

    def move_relative(self, field_id: str, target_id: str, after: bool = False) -> None:
        """Drop ``field_id`` before (or after) ``target_id``"""
        order = self.order
        from_index = order.index_of(field_id)
        target_index = order.index_of(target_id)
        if field_id == target_id:
            return
        if after:
            to_index = target_index if from_index < target_index else target_index + 1
        else:
            to_index = target_index - 1 if from_index < target_index else target_index
        self.move_field(from_index, to_index)

    def select_field(self, field_id: Optional[str]) -> Optional[FormField]:
        if field_id is not None:
            self.order.index_of(field_id)
        self.selected_field_id = field_id
        return self.selected_field

    # -- field properties -------------------------------------------------

    def update_field(self, field_id: str, **changes: Any) -> FormField:
        """Apply property changes (label, placeholder, required, width, ...)"""
        return self.apply_field_changes(field_id, changes)

    def apply_field_changes(self, field_id: str, changes: dict[str, Any]) -> FormField:
        """Same as ``update_field`` for a change set held in a mapping.

        A ``conditional`` change gets the checks ``set_conditional`` applies.
        Nothing is modified when any change is rejected.
        """
        blocked = READ_ONLY_FIELD_PROPERTIES.intersection(changes)
        if blocked:
            raise ValueError(f"Field properties cannot be edited: {', '.join(sorted(blocked))}")
        unknown = set(changes) - set(FormField.model_fields)
        if unknown:
            raise ValueError(f"Unknown field properties: {', '.join(sorted(unknown))}")

        index = self.order.index_of(field_id)
        current = self.template.fields[index]
        updated = FormField.model_validate({**current.model_dump(), **changes})

        rule = updated.conditional
        if "conditional" in changes and rule is not None:
            if rule.field_id == field_id:
                raise ValueError("A field cannot depend on itself")
            if self.template.get_field(rule.field_id) is None:
                raise ValueError(f"Conditional rule depends on unknown field '{rule.field_id}'")

        self.template.fields[index] = updated
        self._touch()
        return updated

    def add_option(self, field_id: str, value: str = "", label: str = "") -> FieldOption:
        field = self.order.get(field_id)
        option = FieldOption(value=value, label=label)
        field.options.append(option)
        self._touch()
        return option

    def update_option(self, field_id: str, index: int, **changes: Any) -> FieldOption:
        field = self.order.get(field_id)
        option = FieldOption.model_validate({**field.options[index].model_dump(), **changes})
        field.options[index] = option
        self._touch()
        return option

    def remove_option(self, field_id: str, index: int) -> FieldOption:
        field = self.order.get(field_id)
        option = field.options.pop(index)
        self._touch()
        return option

    def add_rule(
        self,
        field_id: str,
        rule_type: str,
        value: Any = None,
        message: Optional[str] = None,
    ) -> ValidationRule:
        field = self.order.get(field_id)
        rule = ValidationRule(type=str(getattr(rule_type, "value", rule_type)), value=value, message=message)
        field.validation.append(rule)
        self._touch()
        return rule

    def remove_rule(self, field_id: str, index: int) -> ValidationRule:
        field = self.order.get(field_id)
        rule = field.validation.pop(index)
        self._touch()
        return rule

    def set_conditional(self, field_id: str, depends_on: str, operator: str, value: Any) -> ConditionalRule:
        field = self.order.get(field_id)
        if depends_on == field_id:
            raise ValueError("A field cannot depend on itself")
        self.order.index_of(depends_on)
        rule = ConditionalRule(
            field_id=depends_on,
            operator=str(getattr(operator, "value", operator)),
            value=value,
        )
        field.conditional = rule
        self._touch()
        return rule

    def clear_conditional(self, field_id: str) -> None:
        self.order.get(field_id).conditional = None
        self._touch()

    # -- persistence ------------------------------------------------------

    def build(self) -> FormTemplate:
        """Independent copy of the template as it stands"""
        return self.template.model_copy(deep=True)

    def save_problem(self) -> Optional[str]:
        """Reason the template cannot be saved yet, if any"""
        if not self.template.name.strip():
            return "Please enter a form name"
        if not self.template.fields:
            return "Please add at least one field to the form"
        return None

    def save(self, store: TemplateStore) -> SaveResult:
        reason = self.save_problem()
        if reason:
            logger.info(f"Save rejected: {reason}")
            return SaveResult(saved=False, reason=reason)

        template = self.build()
        try:
            if template.id:
                stored = store.update(template.id, template.model_dump(exclude={"id", "created_at"}))
            else:
                stored = store.create(template)
        except Exception as e:
            logger.warning(f"Failed to save template '{template.name}': {e}")
            return SaveResult(saved=False, reason=f"Failed to save form template: {e}")

        self.template = stored.model_copy(deep=True)
        self.is_dirty = False
        return SaveResult(saved=True, template=stored)

    def publish(self, store: TemplateStore) -> SaveResult:
        """Mark the template active and save it, if it is complete"""
        problems = publish_problems(self.template)
        if problems:
            return SaveResult(saved=False, reason="; ".join(problems))

        previous = (self.template.status, self.template.is_published, self.template.published_at)
        self.template.status = TemplateStatus.ACTIVE
        self.template.is_published = True
        self.template.published_at = datetime.now()

        result = self.save(store)
        if not result.saved:
            self.template.status, self.template.is_published, self.template.published_at = previous
        return result
