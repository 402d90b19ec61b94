"""Builder session API routes"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from form_builder.api.schemas import (
    AddFieldRequest,
    BuilderSessionCreateRequest,
    BuilderSessionResponse,
    DeleteResponse,
    DetailsRequest,
    MoveFieldRequest,
    SelectFieldRequest,
)
from form_builder.api.session_store import BuilderSessionStore, SessionEntry
from form_builder.db import get_store
from form_builder.db.base import TemplateNotFoundError, TemplateStore
from form_builder.models.template import FormField
from form_builder.services.ordering import FieldNotFoundError, SchemaInvariantViolation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/builder/sessions", tags=["builder"])

# Shared session store, replaced from app.py via init_store()
store: BuilderSessionStore = BuilderSessionStore()


def init_store(shared_store: BuilderSessionStore):
    """Set the shared session store (called from app.py)."""
    global store
    store = shared_store


def _session_response(entry: SessionEntry) -> BuilderSessionResponse:
    builder = entry.builder
    return BuilderSessionResponse(
        session_id=entry.session_id,
        template=builder.template,
        selected_field_id=builder.selected_field_id,
        is_dirty=builder.is_dirty,
    )


async def _get_entry(session_id: str) -> SessionEntry:
    entry = await store.get(session_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Builder session not found or expired")
    return entry


def _field_error(e: Exception) -> HTTPException:
    """Map builder exceptions to HTTP errors"""
    if isinstance(e, FieldNotFoundError):
        return HTTPException(status_code=404, detail=f"Field {e} not found")
    if isinstance(e, IndexError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=422, detail=str(e))


@router.post("", response_model=BuilderSessionResponse, status_code=201)
async def create_session(
    request: BuilderSessionCreateRequest,
    templates: TemplateStore = Depends(get_store),
):
    """Start authoring a new template, or an existing one by id."""
    template = None
    if request.template_id:
        try:
            template = templates.get(request.template_id)
        except TemplateNotFoundError:
            raise HTTPException(status_code=404, detail=f"Template '{request.template_id}' not found")

    try:
        entry = await store.create(template)
    except SchemaInvariantViolation as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_response(entry)


@router.get("/{session_id}", response_model=BuilderSessionResponse)
async def get_session(session_id: str):
    return _session_response(await _get_entry(session_id))


@router.delete("/{session_id}", response_model=DeleteResponse)
async def close_session(session_id: str):
    """Discard a session and any unsaved edits."""
    return DeleteResponse(deleted=await store.delete(session_id))


@router.patch("/{session_id}/details", response_model=BuilderSessionResponse)
async def update_details(session_id: str, request: DetailsRequest):
    entry = await _get_entry(session_id)
    try:
        entry.builder.set_details(**request.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _session_response(entry)


@router.post("/{session_id}/fields", response_model=FormField, status_code=201)
async def add_field(session_id: str, request: AddFieldRequest):
    entry = await _get_entry(session_id)
    return entry.builder.add_field(request.type, request.index)


@router.patch("/{session_id}/fields/{field_id}", response_model=FormField)
async def update_field(session_id: str, field_id: str, changes: dict[str, Any]):
    """Change field properties: label, placeholder, rules, options, conditional..."""
    entry = await _get_entry(session_id)
    try:
        return entry.builder.apply_field_changes(field_id, changes)
    except (FieldNotFoundError, ValidationError, ValueError) as e:
        raise _field_error(e)


@router.delete("/{session_id}/fields/{field_id}", response_model=FormField)
async def delete_field(session_id: str, field_id: str):
    entry = await _get_entry(session_id)
    try:
        return entry.builder.delete_field(field_id)
    except FieldNotFoundError as e:
        raise _field_error(e)


@router.post("/{session_id}/fields/{field_id}/duplicate", response_model=FormField, status_code=201)
async def duplicate_field(session_id: str, field_id: str):
    entry = await _get_entry(session_id)
    try:
        return entry.builder.duplicate_field(field_id)
    except FieldNotFoundError as e:
        raise _field_error(e)


@router.post("/{session_id}/move", response_model=BuilderSessionResponse)
async def move_field(session_id: str, request: MoveFieldRequest):
    """Apply a drag-and-drop reorder expressed as two indices."""
    entry = await _get_entry(session_id)
    try:
        entry.builder.move_field(request.from_index, request.to_index)
    except IndexError as e:
        raise _field_error(e)
    return _session_response(entry)


@router.post("/{session_id}/select", response_model=BuilderSessionResponse)
async def select_field(session_id: str, request: SelectFieldRequest):
    entry = await _get_entry(session_id)
    try:
        entry.builder.select_field(request.field_id)
    except FieldNotFoundError as e:
        raise _field_error(e)
    return _session_response(entry)


@router.post("/{session_id}/save", response_model=BuilderSessionResponse)
async def save_session(session_id: str, templates: TemplateStore = Depends(get_store)):
    """Persist the template; rejected saves return 422 with the reason."""
    entry = await _get_entry(session_id)
    result = entry.builder.save(templates)
    if not result.saved:
        raise HTTPException(status_code=422, detail=result.reason)
    return _session_response(entry)


@router.post("/{session_id}/publish", response_model=BuilderSessionResponse)
async def publish_session(session_id: str, templates: TemplateStore = Depends(get_store)):
    entry = await _get_entry(session_id)
    result = entry.builder.publish(templates)
    if not result.saved:
        raise HTTPException(status_code=422, detail=result.reason)
    return _session_response(entry)
