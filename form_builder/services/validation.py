"""Field validation engine.

``validate_field`` returns ``None`` when a value is acceptable or the message
to show next to the field. Rules run in declaration order and the first
failing rule wins, so each field surfaces a single error at a time.

Rules this module does not recognise, and regex rules whose pattern does not
compile, always pass: a template authoring mistake must not make a form
impossible to complete.
"""

import logging
import math
import re
from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import ValidationError

from form_builder.models.submission import UploadedFile
from form_builder.models.template import (
    CHOICE_TYPES,
    ConditionOperator,
    FieldType,
    FormField,
    FormSettings,
    FormTemplate,
    ValidationRule,
    ValidationRuleType,
)
from form_builder.services.conditions import as_text

logger = logging.getLogger(__name__)

# Whole-value patterns, applied with fullmatch
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"\+?[\d \t\-()]+")
# Scheme prefix check, applied with match
URL_PATTERN = re.compile(r"^https?://.+")

# Parameter used when a rule carries none
RULE_DEFAULTS = {
    ValidationRuleType.MIN_LENGTH: 0,
    ValidationRuleType.MAX_LENGTH: 100,
    ValidationRuleType.MIN_VALUE: 0,
    ValidationRuleType.MAX_VALUE: 100,
}


def is_empty(value: Any) -> bool:
    """True when a value counts as "not filled in".

    ``0`` is a value; ``False`` is an unticked checkbox and therefore empty.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    # Reject inf and nan
    return number if math.isfinite(number) else None


def _rule_param(rule: ValidationRule) -> float:
    default = RULE_DEFAULTS.get(ValidationRuleType(rule.type), 0)
    if rule.value is None or rule.value == "":
        return float(default)
    number = _to_number(rule.value)
    if number is None:
        logger.warning(f"Rule '{rule.type}' has non-numeric parameter {rule.value!r}, using {default}")
        return float(default)
    return number


def _check_min_length(value: Any, rule: ValidationRule) -> bool:
    return len(as_text(value)) >= _rule_param(rule)


def _check_max_length(value: Any, rule: ValidationRule) -> bool:
    return len(as_text(value)) <= _rule_param(rule)


def _check_min_value(value: Any, rule: ValidationRule) -> bool:
    number = _to_number(value)
    return number is not None and number >= _rule_param(rule)


def _check_max_value(value: Any, rule: ValidationRule) -> bool:
    number = _to_number(value)
    return number is not None and number <= _rule_param(rule)


def _check_email(value: Any, rule: ValidationRule) -> bool:
    return EMAIL_PATTERN.fullmatch(as_text(value)) is not None


def _check_phone(value: Any, rule: ValidationRule) -> bool:
    return PHONE_PATTERN.fullmatch(as_text(value)) is not None


def _check_url(value: Any, rule: ValidationRule) -> bool:
    return bool(URL_PATTERN.match(as_text(value)))


def _check_regex(value: Any, rule: ValidationRule) -> bool:
    if rule.value is None or rule.value == "":
        return True
    try:
        pattern = re.compile(str(rule.value))
    except re.error as e:
        logger.warning(f"Ignoring regex rule with invalid pattern {rule.value!r}: {e}")
        return True
    return pattern.search(as_text(value)) is not None


RULE_CHECKS: dict[str, Callable[[Any, ValidationRule], bool]] = {
    ValidationRuleType.MIN_LENGTH.value: _check_min_length,
    ValidationRuleType.MAX_LENGTH.value: _check_max_length,
    ValidationRuleType.MIN_VALUE.value: _check_min_value,
    ValidationRuleType.MAX_VALUE.value: _check_max_value,
    ValidationRuleType.EMAIL.value: _check_email,
    ValidationRuleType.PHONE.value: _check_phone,
    ValidationRuleType.URL.value: _check_url,
    ValidationRuleType.REGEX.value: _check_regex,
}


def _check_file(field: FormField, value: Any, settings: FormSettings) -> Optional[str]:
    """Apply the template's upload settings to a picked file"""
    try:
        upload = value if isinstance(value, UploadedFile) else UploadedFile.model_validate(value)
    except ValidationError:
        return None

    if not settings.allow_file_uploads:
        return f"{field.label}: file uploads are not accepted"
    if upload.size > settings.max_file_size:
        limit_mb = settings.max_file_size / (1024 * 1024)
        return f"{field.label}: file is larger than {limit_mb:.1f} MB"
    if settings.allowed_file_types and upload.content_type not in settings.allowed_file_types:
        return f"{field.label}: file type {upload.content_type} is not allowed"
    return None


def validate_field(
    field: FormField,
    value: Any,
    settings: Optional[FormSettings] = None,
) -> Optional[str]:
    """Validate one value against its field definition"""
    if not field.is_input:
        return None

    if is_empty(value):
        if field.required:
            return f"{field.label} is required"
        return None

    if field.type == FieldType.FILE and settings is not None:
        error = _check_file(field, value, settings)
        if error:
            return error

    for rule in field.validation:
        check = RULE_CHECKS.get(rule.type)
        if check is None:
            logger.warning(f"Field '{field.id}' has unknown validation rule '{rule.type}', skipping")
            continue
        if not check(value, rule):
            return rule.message or f"{field.label} is invalid"

    return None


def validate_values(
    fields: Iterable[FormField],
    values: Mapping[str, Any],
    visible: Optional[set[str]] = None,
    settings: Optional[FormSettings] = None,
) -> dict[str, str]:
    """Validate every (visible) field, returning ``field id -> message``"""
    errors: dict[str, str] = {}
    for field in fields:
        if visible is not None and field.id not in visible:
            continue
        error = validate_field(field, values.get(field.id), settings)
        if error:
            errors[field.id] = error
    return errors


def publish_problems(template: FormTemplate) -> list[str]:
    """List everything that keeps ``template`` from being published"""
    problems: list[str] = []

    if not template.name.strip():
        problems.append("Template name is required")
    if not template.fields:
        problems.append("Template must contain at least one field")

    known_ids = {f.id for f in template.fields}
    known_rules = {t.value for t in ValidationRuleType}
    known_operators = {o.value for o in ConditionOperator}

    for field in template.fields:
        name = field.label or field.id

        if field.type in (FieldType.SELECT, FieldType.RADIO) and not field.options:
            problems.append(f"'{name}' needs at least one option")
        if field.type in CHOICE_TYPES:
            values = [o.value for o in field.options]
            if any(not v.strip() for v in values):
                problems.append(f"'{name}' has an option without a value")
            if len(set(values)) != len(values):
                problems.append(f"'{name}' has duplicate option values")

        for rule in field.validation:
            if rule.type not in known_rules:
                problems.append(f"'{name}' uses unknown validation rule '{rule.type}'")
            elif rule.type == ValidationRuleType.REGEX and rule.value:
                try:
                    re.compile(str(rule.value))
                except re.error:
                    problems.append(f"'{name}' has an invalid pattern {rule.value!r}")

        rule = field.conditional
        if rule is not None:
            if rule.field_id == field.id:
                problems.append(f"'{name}' cannot depend on itself")
            elif rule.field_id not in known_ids:
                problems.append(f"'{name}' depends on a field that does not exist")
            if rule.operator not in known_operators:
                problems.append(f"'{name}' uses unknown operator '{rule.operator}'")

    return problems
