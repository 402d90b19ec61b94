"""Template transport shape, export and import"""

import csv
import io
import json
import logging
from typing import Any

from form_builder.db.base import TemplateNotFoundError, TemplateStore
from form_builder.models.template import FormTemplate
from form_builder.services.ordering import FieldOrderManager

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv")

CSV_COLUMNS = [
    "order", "id", "type", "label", "required", "width",
    "placeholder", "help_text", "options", "validation", "conditional",
]


def template_to_dict(template: FormTemplate) -> dict[str, Any]:
    """JSON-compatible transport shape; fields stay in array order"""
    return template.model_dump(mode="json")


def template_from_dict(payload: dict[str, Any]) -> FormTemplate:
    return FormTemplate.model_validate(payload)


def _csv_options(template_field) -> str:
    return "; ".join(f"{o.value}={o.label}" for o in template_field.options)


def _csv_rules(template_field) -> str:
    parts = []
    for rule in template_field.validation:
        parts.append(rule.type if rule.value is None else f"{rule.type}({rule.value})")
    return "; ".join(parts)


def _csv_condition(template_field) -> str:
    rule = template_field.conditional
    if rule is None:
        return ""
    return f"{rule.field_id} {rule.operator} {json.dumps(rule.value)}"


def export_template(template: FormTemplate, fmt: str = "json") -> str:
    """Render ``template`` as JSON or as a CSV field listing"""
    if fmt == "json":
        return json.dumps(template_to_dict(template), ensure_ascii=False, indent=2)
    if fmt == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_COLUMNS)
        for field in template.ordered_fields():
            writer.writerow([
                field.order,
                field.id,
                field.type.value,
                field.label,
                "yes" if field.required else "no",
                field.width,
                field.placeholder,
                field.help_text or "",
                _csv_options(field),
                _csv_rules(field),
                _csv_condition(field),
            ])
        return buffer.getvalue()
    raise ValueError(f"Unsupported export format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}")


def import_template(payload: dict[str, Any], store: TemplateStore, overwrite: bool = False) -> FormTemplate:
    """Create a template from an exported payload.

    With ``overwrite`` an existing template with the same id is replaced;
    otherwise the import always creates a new template.
    """
    template = template_from_dict(payload)
    FieldOrderManager(template.fields).normalize()

    if overwrite and template.id:
        try:
            store.get(template.id)
        except TemplateNotFoundError:
            logger.info(f"Template {template.id} not found, importing as new")
        else:
            return store.update(template.id, template.model_dump(exclude={"id", "created_at"}))

    return store.create(template)
