"""Submission models"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class UploadedFile(BaseModel):
    """Metadata of a file picked for a ``file`` field; the bytes travel elsewhere"""
    filename: str
    content_type: str
    size: int = 0


class FormSubmission(BaseModel):
    """Accepted values handed to the submission sink"""
    id: str
    template_id: Optional[str] = None
    values: dict[str, Any] = {}
    status: SubmissionStatus = SubmissionStatus.PENDING
    submitted_at: datetime = Field(default_factory=datetime.now)
