"""Runtime renderer: fills in a published template.

The renderer owns three pieces of state: the live value map, the visible
field set and the error map. The template itself is never modified.

Visibility is recomputed from scratch after every value change. Values of
fields that become hidden are kept, so showing the field again restores what
the user typed, but hidden values are never part of a submission.
"""

import logging
from typing import Any, Optional

from form_builder.db.base import SubmissionSink
from form_builder.models.results import RendererState, SubmitResult
from form_builder.models.template import FieldType, FormField, FormTemplate
from form_builder.services.conditions import visible_field_ids
from form_builder.services.ordering import FieldNotFoundError
from form_builder.services.validation import is_empty, validate_values
from form_builder.services.widgets import WidgetRegistry

logger = logging.getLogger(__name__)


class FieldView:
    """What an adapter needs to draw one visible field"""

    def __init__(self, field: FormField, value: Any, error: Optional[str], widget: Any):
        self.field = field
        self.value = value
        self.error = error
        self.widget = widget

    @property
    def id(self) -> str:
        return self.field.id


def initial_values(template: FormTemplate) -> dict[str, Any]:
    """Values implied by checkbox options marked as selected"""
    values: dict[str, Any] = {}
    for field in template.fields:
        if field.type != FieldType.CHECKBOX:
            continue
        selected = [o.value for o in field.options if o.selected]
        if not selected:
            continue
        if len(field.options) > 1:
            values[field.id] = selected
        else:
            values[field.id] = True
    return values


class FormRenderer:
    """Interactive state for one person filling in one template"""

    def __init__(
        self,
        template: FormTemplate,
        widgets: Optional[WidgetRegistry] = None,
        values: Optional[dict[str, Any]] = None,
    ):
        self.template = template.model_copy(deep=True)
        self.fields = self.template.ordered_fields()
        self.widgets = widgets or WidgetRegistry()
        self.values: dict[str, Any] = initial_values(self.template)
        self.values.update(values or {})
        self.errors: dict[str, str] = {}
        self.state = RendererState.EDITING
        self.visible: set[str] = set()
        self._recompute_visibility()

    def _recompute_visibility(self) -> None:
        self.visible = visible_field_ids(self.fields, self.values)

    def _field(self, field_id: str) -> FormField:
        field = self.template.get_field(field_id)
        if field is None:
            raise FieldNotFoundError(field_id)
        return field

    def set_value(self, field_id: str, value: Any) -> None:
        """Store a value, drop the field's stale error and refresh visibility"""
        self._field(field_id)
        self.values[field_id] = value
        self.errors.pop(field_id, None)
        self.state = RendererState.EDITING
        self._recompute_visibility()

    def clear_value(self, field_id: str) -> None:
        self._field(field_id)
        self.values.pop(field_id, None)
        self.errors.pop(field_id, None)
        self.state = RendererState.EDITING
        self._recompute_visibility()

    def is_visible(self, field_id: str) -> bool:
        return field_id in self.visible

    def visible_fields(self) -> list[FormField]:
        return [f for f in self.fields if f.id in self.visible]

    def field_views(self) -> list[FieldView]:
        return [
            FieldView(
                field=field,
                value=self.values.get(field.id),
                error=self.errors.get(field.id),
                widget=self.widgets.widget_for(field.type),
            )
            for field in self.visible_fields()
        ]

    def progress(self) -> Optional[int]:
        """Percent of visible inputs filled in, when the progress bar is enabled"""
        if not self.template.settings.enable_progress_bar:
            return None
        inputs = [f for f in self.visible_fields() if f.is_input]
        if not inputs:
            return None
        filled = len([f for f in inputs if not is_empty(self.values.get(f.id))])
        return round(filled * 100 / len(inputs))

    def accepted_values(self) -> dict[str, Any]:
        """Value map restricted to visible inputs"""
        return {
            f.id: self.values[f.id]
            for f in self.fields
            if f.is_input and f.id in self.visible and f.id in self.values
        }

    def submit(self, sink: Optional[SubmissionSink] = None) -> SubmitResult:
        """Validate every visible field; accept the values or report errors"""
        self.state = RendererState.VALIDATING
        self._recompute_visibility()
        errors = validate_values(self.fields, self.values, self.visible, self.template.settings)
        self.errors = errors

        if errors:
            self.state = RendererState.REJECTED
            logger.debug(f"Submission rejected with {len(errors)} error(s)")
            return SubmitResult(state=self.state, errors=dict(errors))

        values = self.accepted_values()
        self.state = RendererState.ACCEPTED
        submission_id = None
        if sink is not None:
            submission_id = sink.record(self.template.id, values).id
        return SubmitResult(state=self.state, values=values, submission_id=submission_id)

    def reset(self) -> None:
        self.values = initial_values(self.template)
        self.errors = {}
        self.state = RendererState.EDITING
        self._recompute_visibility()
