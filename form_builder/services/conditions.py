"""Conditional visibility evaluation.

A field with no conditional rule is always visible. Otherwise the rule's
operator is applied to the current value of the referenced field. Bad rules
never hide a field: an unknown operator, or a rule pointing at a field the
template does not have, leaves the field visible and is logged, so a broken
template can still be filled in.
"""

import logging
import math
from typing import Any, Iterable, Mapping

from form_builder.models.template import ConditionOperator, FormField

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion ("1" != 1, True != 1)"""
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def as_text(value: Any) -> str:
    """Coerce a stored value to text for substring tests"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple, set)):
        return ",".join(as_text(item) for item in value)
    return str(value)


def as_number(value: Any) -> float:
    """Coerce a stored value to a number; anything non-numeric becomes 0"""
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0.0
    if math.isnan(number):
        return 0.0
    return number


def is_visible(field: FormField, values: Mapping[str, Any]) -> bool:
    """Decide whether ``field`` is shown for the current ``values``"""
    rule = field.conditional
    if rule is None:
        return True

    current = values.get(rule.field_id)
    operator = rule.operator

    if operator == ConditionOperator.EQUALS:
        return strict_equals(current, rule.value)
    if operator == ConditionOperator.NOT_EQUALS:
        return not strict_equals(current, rule.value)
    if operator == ConditionOperator.CONTAINS:
        return as_text(rule.value) in as_text(current)
    if operator == ConditionOperator.NOT_CONTAINS:
        return as_text(rule.value) not in as_text(current)
    if operator == ConditionOperator.GREATER_THAN:
        return as_number(current) > as_number(rule.value)
    if operator == ConditionOperator.LESS_THAN:
        return as_number(current) < as_number(rule.value)

    logger.warning(
        f"Field '{field.id}' has unknown conditional operator '{operator}', showing it"
    )
    return True


def visible_field_ids(fields: Iterable[FormField], values: Mapping[str, Any]) -> set[str]:
    """Recompute the visible field set from scratch.

    Every field is evaluated against the same value map, so the result does
    not depend on the order in which values were entered.
    """
    fields = list(fields)
    known_ids = {f.id for f in fields}
    visible: set[str] = set()

    for field in fields:
        rule = field.conditional
        if rule is not None and rule.field_id not in known_ids:
            logger.warning(
                f"Field '{field.id}' depends on unknown field '{rule.field_id}', showing it"
            )
            visible.add(field.id)
            continue
        if is_visible(field, values):
            visible.add(field.id)

    return visible
