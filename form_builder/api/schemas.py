"""Request/response schemas for the form builder API"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from form_builder.models.template import FieldType, FormTemplate


class TemplateSummary(BaseModel):
    """A template in the templates list"""
    id: str
    name: str
    description: str = ""
    category: str
    status: str
    field_count: int = 0
    required_field_count: int = 0
    is_published: bool = False
    updated_at: Optional[datetime] = None

    @classmethod
    def from_template(cls, template: FormTemplate) -> "TemplateSummary":
        return cls(
            id=template.id or "",
            name=template.name,
            description=template.description,
            category=template.category.value,
            status=template.status.value,
            field_count=template.field_count,
            required_field_count=template.required_field_count,
            is_published=template.is_published,
            updated_at=template.updated_at,
        )


class Pagination(BaseModel):
    current: int = 1
    pages: int = 1
    total: int = 0
    limit: int = 0


class TemplateListResponse(BaseModel):
    """Response for listing templates"""
    templates: list[TemplateSummary] = []
    pagination: Pagination = Field(default_factory=Pagination)


class DuplicateRequest(BaseModel):
    """Request to copy a template; defaults to '<name> (Copy)'"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)


class ImportRequest(BaseModel):
    data: dict[str, Any]
    overwrite: bool = False


class PreviewRequest(BaseModel):
    """Current values of a form being filled in"""
    values: dict[str, Any] = {}


class PreviewResponse(BaseModel):
    """Which fields are visible for the given values"""
    visible_field_ids: list[str] = []
    progress: Optional[int] = None


class DeleteResponse(BaseModel):
    deleted: bool = True


# =========================================================
# Builder session API schemas
# =========================================================

class BuilderSessionCreateRequest(BaseModel):
    """Start authoring; ``template_id`` edits an existing template"""
    template_id: Optional[str] = None


class BuilderSessionResponse(BaseModel):
    """Current state of a builder session"""
    session_id: str
    template: FormTemplate
    selected_field_id: Optional[str] = None
    is_dirty: bool = False


class DetailsRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[list[str]] = None


class AddFieldRequest(BaseModel):
    type: FieldType
    index: Optional[int] = Field(None, ge=0)


class MoveFieldRequest(BaseModel):
    """A reorder gesture expressed as two positions"""
    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)


class SelectFieldRequest(BaseModel):
    field_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response"""
    status: str  # "ok" | "error"
    store_mode: str
    version: str = "0.1.0"
    active_sessions: int = 0
