"""Result models returned by the builder session and the renderer"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from form_builder.models.template import FormTemplate


class RendererState(str, Enum):
    """Lifecycle of a runtime form"""
    EDITING = "editing"
    VALIDATING = "validating"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SaveResult(BaseModel):
    """Outcome of a builder save; ``reason`` explains a rejection"""
    saved: bool
    reason: Optional[str] = None
    template: Optional[FormTemplate] = None


class SubmitResult(BaseModel):
    """Outcome of a renderer submit"""
    state: RendererState
    values: dict[str, Any] = {}
    errors: dict[str, str] = {}
    submission_id: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.state == RendererState.ACCEPTED
