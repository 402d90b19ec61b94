"""Abstract store interfaces, implemented by the SQLite and in-memory backends"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from pydantic import BaseModel

from form_builder.models.submission import FormSubmission
from form_builder.models.template import FormTemplate, TemplateStatus


class TemplateNotFoundError(LookupError):
    """Raised when a template id is unknown to the store"""


class TemplateFilters(BaseModel):
    """Listing filters; ``None`` means "any" """
    search: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    sort_by: str = "updated_at"
    sort_order: str = "desc"
    page: int = 1
    limit: Optional[int] = None


# Fields a patch may never overwrite
PROTECTED_FIELDS = {"id", "created_at"}


class TemplateStore(ABC):
    """Persistence of form templates.
    Implemented by both SQLite and in-memory backends."""

    @abstractmethod
    def list(self, filters: Optional[TemplateFilters] = None) -> List[FormTemplate]:
        """List templates matching ``filters``."""

    @abstractmethod
    def get(self, template_id: str) -> FormTemplate:
        """Get template by ID. Raises TemplateNotFoundError."""

    @abstractmethod
    def create(self, template: FormTemplate) -> FormTemplate:
        """Persist a new template. Returns it with a store-assigned ID."""

    @abstractmethod
    def update(self, template_id: str, patch: dict[str, Any]) -> FormTemplate:
        """Apply ``patch`` to a stored template. Returns the updated copy."""

    @abstractmethod
    def duplicate(self, template_id: str, new_name: str) -> FormTemplate:
        """Copy a template under a new ID and name, as an unpublished draft."""

    @abstractmethod
    def delete(self, template_id: str) -> None:
        """Delete a template. Raises TemplateNotFoundError."""


class SubmissionSink(ABC):
    """Receiver of accepted form values"""

    @abstractmethod
    def record(self, template_id: Optional[str], values: dict[str, Any]) -> FormSubmission:
        """Store accepted values. Returns the recorded submission."""

    @abstractmethod
    def list_for_template(self, template_id: str) -> List[FormSubmission]:
        """Submissions recorded for a template, oldest first."""


def matches_filters(template: FormTemplate, filters: TemplateFilters) -> bool:
    """Shared filter predicate for backends that filter in Python"""
    if filters.search:
        needle = filters.search.lower()
        if needle not in template.name.lower() and needle not in template.description.lower():
            return False
    if filters.status and filters.status != "all" and template.status.value != filters.status:
        return False
    if filters.category and filters.category != "all" and template.category.value != filters.category:
        return False
    return True


def sort_and_page(templates: List[FormTemplate], filters: TemplateFilters) -> List[FormTemplate]:
    """Order and paginate an already filtered list"""
    sort_by = filters.sort_by if filters.sort_by in ("updated_at", "created_at", "name") else "updated_at"

    def key(template: FormTemplate):
        value = getattr(template, sort_by)
        if sort_by == "name":
            return value.lower()
        return value.isoformat() if value else ""

    ordered = sorted(templates, key=key, reverse=filters.sort_order == "desc")
    if not filters.limit:
        return ordered
    start = (max(filters.page, 1) - 1) * filters.limit
    return ordered[start:start + filters.limit]


def prepare_duplicate(template: FormTemplate, new_name: str) -> FormTemplate:
    """Copy of ``template`` ready to be created as a new draft"""
    copy = template.model_copy(deep=True)
    copy.id = None
    copy.name = new_name
    copy.status = TemplateStatus.DRAFT
    copy.is_published = False
    copy.published_at = None
    copy.created_at = None
    copy.updated_at = None
    return copy


def apply_patch(template: FormTemplate, patch: dict[str, Any]) -> FormTemplate:
    """Merge ``patch`` into ``template`` and re-validate the result"""
    data = template.model_dump()
    for key, value in patch.items():
        if key in PROTECTED_FIELDS:
            continue
        data[key] = value
    return FormTemplate.model_validate(data)
