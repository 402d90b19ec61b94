"""Template API routes"""

import logging
import math
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import ValidationError

from form_builder.api.schemas import (
    DeleteResponse,
    DuplicateRequest,
    ImportRequest,
    Pagination,
    PreviewRequest,
    PreviewResponse,
    TemplateListResponse,
    TemplateSummary,
)
from form_builder.db import get_store
from form_builder.db.base import TemplateFilters, TemplateNotFoundError, TemplateStore
from form_builder.models.template import FormTemplate
from form_builder.services.builder import BuilderSession
from form_builder.services.ordering import SchemaInvariantViolation
from form_builder.services.renderer import FormRenderer
from form_builder.services.serialization import EXPORT_FORMATS, export_template, import_template
from form_builder.utils.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/templates", tags=["templates"])

MEDIA_TYPES = {"json": "application/json", "csv": "text/csv"}


def _get_or_404(store: TemplateStore, template_id: str) -> FormTemplate:
    try:
        return store.get(template_id)
    except TemplateNotFoundError:
        raise HTTPException(status_code=404, detail=f"Template '{template_id}' not found")


@router.get("", response_model=TemplateListResponse)
async def list_templates(
    search: str | None = None,
    status: str | None = None,
    category: str | None = None,
    sort_by: str = "updated_at",
    sort_order: str = "desc",
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=100),
    store: TemplateStore = Depends(get_store),
):
    """List templates with search, status and category filters."""
    limit = limit or get_settings().default_page_size
    filters = TemplateFilters(
        search=search, status=status, category=category,
        sort_by=sort_by, sort_order=sort_order,
    )
    total = len(store.list(filters))
    page_items = store.list(filters.model_copy(update={"page": page, "limit": limit}))

    return TemplateListResponse(
        templates=[TemplateSummary.from_template(t) for t in page_items],
        pagination=Pagination(
            current=page,
            pages=max(1, math.ceil(total / limit)),
            total=total,
            limit=limit,
        ),
    )


@router.post("", response_model=FormTemplate, status_code=201)
async def create_template(template: FormTemplate, store: TemplateStore = Depends(get_store)):
    """Create a template; the same pre-save checks as the builder apply."""
    template.id = None
    try:
        session = BuilderSession(template)
    except SchemaInvariantViolation as e:
        raise HTTPException(status_code=422, detail=str(e))

    result = session.save(store)
    if not result.saved:
        raise HTTPException(status_code=422, detail=result.reason)
    return result.template


@router.post("/import", response_model=FormTemplate, status_code=201)
async def import_template_route(request: ImportRequest, store: TemplateStore = Depends(get_store)):
    """Import an exported template, optionally replacing the one with the same id."""
    try:
        return import_template(request.data, store, overwrite=request.overwrite)
    except (ValidationError, SchemaInvariantViolation) as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/{template_id}", response_model=FormTemplate)
async def get_template(template_id: str, store: TemplateStore = Depends(get_store)):
    return _get_or_404(store, template_id)


@router.put("/{template_id}", response_model=FormTemplate)
async def update_template(
    template_id: str,
    patch: dict[str, Any],
    store: TemplateStore = Depends(get_store),
):
    """Apply a partial update to a stored template."""
    try:
        return store.update(template_id, patch)
    except TemplateNotFoundError:
        raise HTTPException(status_code=404, detail=f"Template '{template_id}' not found")
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{template_id}/duplicate", response_model=FormTemplate, status_code=201)
async def duplicate_template(
    template_id: str,
    request: DuplicateRequest | None = None,
    store: TemplateStore = Depends(get_store),
):
    original = _get_or_404(store, template_id)
    name = request.name if request and request.name else f"{original.name} (Copy)"
    return store.duplicate(template_id, name)


@router.delete("/{template_id}", response_model=DeleteResponse)
async def delete_template(template_id: str, store: TemplateStore = Depends(get_store)):
    try:
        store.delete(template_id)
    except TemplateNotFoundError:
        raise HTTPException(status_code=404, detail=f"Template '{template_id}' not found")
    return DeleteResponse()


@router.get("/{template_id}/export")
async def export_template_route(
    template_id: str,
    fmt: str = Query("json", alias="format"),
    store: TemplateStore = Depends(get_store),
):
    if fmt not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported format '{fmt}'")
    template = _get_or_404(store, template_id)
    filename = f"{template.name or 'template'}.{fmt}".replace(" ", "_")
    return Response(
        content=export_template(template, fmt),
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{template_id}/preview", response_model=PreviewResponse)
async def preview_template(
    template_id: str,
    request: PreviewRequest,
    store: TemplateStore = Depends(get_store),
):
    """Visible fields and progress for a set of values. Nothing is validated."""
    template = _get_or_404(store, template_id)
    known_ids = {f.id for f in template.fields}
    values = {k: v for k, v in request.values.items() if k in known_ids}
    renderer = FormRenderer(template, values=values)
    return PreviewResponse(
        visible_field_ids=[f.id for f in renderer.visible_fields()],
        progress=renderer.progress(),
    )
