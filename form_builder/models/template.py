"""Form template models"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class FieldType(str, Enum):
    """Closed set of field types a template may contain"""
    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    FILE = "file"
    DIVIDER = "divider"     # display only
    HTML = "html"           # display only, markup lives in placeholder


# Types that never hold a value
DISPLAY_ONLY_TYPES = frozenset({FieldType.DIVIDER, FieldType.HTML})

# Types whose widget is driven by the options list
CHOICE_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX})

ALLOWED_WIDTHS = (25, 33, 50, 66, 75, 100)


class ValidationRuleType(str, Enum):
    """Known validation rule types"""
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    MIN_VALUE = "min_value"
    MAX_VALUE = "max_value"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    REGEX = "regex"


class ConditionOperator(str, Enum):
    """Known conditional visibility operators"""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class TemplateCategory(str, Enum):
    BOOKING = "booking"
    INQUIRY = "inquiry"
    REGISTRATION = "registration"
    SURVEY = "survey"
    CUSTOM = "custom"


class TemplateStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class FieldOption(BaseModel):
    """A value/label pair offered by select, radio and checkbox fields"""
    value: str
    label: str
    selected: bool = False


class ValidationRule(BaseModel):
    """A constraint on a field's value.

    ``type`` is kept as a plain string so templates carrying rule types this
    version does not know still load; such rules always pass.
    """
    type: str
    value: Any = None
    message: Optional[str] = None


class ConditionalRule(BaseModel):
    """Shows the owning field only while the referenced field's value matches"""
    field_id: str
    operator: str
    value: Any = None


class FieldStyling(BaseModel):
    class_name: Optional[str] = None
    style: dict[str, Any] = {}


class FormField(BaseModel):
    """A single input (or display element) of a form template"""
    id: str
    type: FieldType
    label: str
    placeholder: str = ""
    help_text: Optional[str] = None
    required: bool = False
    width: int = 100
    order: int = 0
    options: list[FieldOption] = []
    validation: list[ValidationRule] = []
    conditional: Optional[ConditionalRule] = None
    styling: Optional[FieldStyling] = None

    @field_validator("width")
    @classmethod
    def _check_width(cls, value: int) -> int:
        if value not in ALLOWED_WIDTHS:
            raise ValueError(f"width must be one of {ALLOWED_WIDTHS}")
        return value

    @property
    def is_input(self) -> bool:
        """True for fields that collect a value"""
        return self.type not in DISPLAY_ONLY_TYPES


class ThemeColors(BaseModel):
    primary: str = "#3b82f6"
    secondary: str = "#64748b"
    accent: str = "#06b6d4"
    background: str = "#ffffff"
    text: str = "#1f2937"
    error: str = "#ef4444"


class ThemeFonts(BaseModel):
    heading: str = "Inter, sans-serif"
    body: str = "Inter, sans-serif"


class ThemeSpacing(BaseModel):
    small: str = "0.5rem"
    medium: str = "1rem"
    large: str = "2rem"


class Theme(BaseModel):
    colors: ThemeColors = Field(default_factory=ThemeColors)
    fonts: ThemeFonts = Field(default_factory=ThemeFonts)
    spacing: ThemeSpacing = Field(default_factory=ThemeSpacing)


class LayoutStyling(BaseModel):
    max_width: str = "600px"
    padding: str = "2rem"
    border_radius: str = "0.5rem"
    box_shadow: str = "0 4px 6px -1px rgba(0, 0, 0, 0.1)"


class InputStyling(BaseModel):
    height: str = "2.5rem"
    border_radius: str = "0.375rem"
    border_width: str = "1px"
    border_color: str = "#d1d5db"
    focus_border_color: str = "#3b82f6"
    background_color: str = "#ffffff"


class ButtonStyling(BaseModel):
    height: str = "2.5rem"
    border_radius: str = "0.375rem"
    font_size: str = "0.875rem"
    font_weight: str = "500"


class FormStyling(BaseModel):
    """Presentation parameters, consumed only by renderers"""
    theme: Theme = Field(default_factory=Theme)
    layout: LayoutStyling = Field(default_factory=LayoutStyling)
    fields: InputStyling = Field(default_factory=InputStyling)
    buttons: ButtonStyling = Field(default_factory=ButtonStyling)


class FormSettings(BaseModel):
    """Behaviour toggles and messages for a rendered form"""
    submit_url: Optional[str] = None
    method: str = "POST"
    redirect_url: Optional[str] = None
    success_message: str = "Thank you! Your form has been submitted successfully."
    error_message: str = "There was an error submitting your form. Please try again."
    enable_progress_bar: bool = False
    enable_save_progress: bool = False
    allow_file_uploads: bool = False
    max_file_size: int = 5 * 1024 * 1024
    allowed_file_types: list[str] = ["image/jpeg", "image/png", "application/pdf"]
    enable_captcha: bool = False
    captcha_provider: Optional[str] = None
    enable_analytics: bool = True
    custom_css: Optional[str] = None


class FormTemplate(BaseModel):
    """A complete, ordered, styled form definition"""
    id: Optional[str] = None
    name: str = ""
    description: str = ""
    category: TemplateCategory = TemplateCategory.BOOKING
    fields: list[FormField] = []
    styling: FormStyling = Field(default_factory=FormStyling)
    settings: FormSettings = Field(default_factory=FormSettings)
    status: TemplateStatus = TemplateStatus.DRAFT
    tags: list[str] = []
    is_published: bool = False
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def field_count(self) -> int:
        return len(self.fields)

    @property
    def required_field_count(self) -> int:
        return len([f for f in self.fields if f.required])

    def get_field(self, field_id: str) -> Optional[FormField]:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def ordered_fields(self) -> list[FormField]:
        """Fields in render order"""
        return sorted(self.fields, key=lambda f: f.order)
