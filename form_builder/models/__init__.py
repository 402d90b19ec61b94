"""Data models"""

from form_builder.models.template import (
    ALLOWED_WIDTHS,
    CHOICE_TYPES,
    DISPLAY_ONLY_TYPES,
    ConditionalRule,
    ConditionOperator,
    FieldOption,
    FieldStyling,
    FieldType,
    FormField,
    FormSettings,
    FormStyling,
    FormTemplate,
    TemplateCategory,
    TemplateStatus,
    ValidationRule,
    ValidationRuleType,
)
from form_builder.models.submission import (
    FormSubmission,
    SubmissionStatus,
    UploadedFile,
)
from form_builder.models.results import (
    RendererState,
    SaveResult,
    SubmitResult,
)

__all__ = [
    "ALLOWED_WIDTHS",
    "CHOICE_TYPES",
    "DISPLAY_ONLY_TYPES",
    "ConditionalRule",
    "ConditionOperator",
    "FieldOption",
    "FieldStyling",
    "FieldType",
    "FormField",
    "FormSettings",
    "FormStyling",
    "FormTemplate",
    "TemplateCategory",
    "TemplateStatus",
    "ValidationRule",
    "ValidationRuleType",
    "FormSubmission",
    "SubmissionStatus",
    "UploadedFile",
    "RendererState",
    "SaveResult",
    "SubmitResult",
]
