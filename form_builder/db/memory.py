"""In-memory template store and submission sink"""

import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional

from form_builder.db.base import (
    SubmissionSink,
    TemplateFilters,
    TemplateNotFoundError,
    TemplateStore,
    apply_patch,
    matches_filters,
    prepare_duplicate,
    sort_and_page,
)
from form_builder.models.submission import FormSubmission
from form_builder.models.template import FormTemplate

logger = logging.getLogger(__name__)


class InMemoryTemplateStore(TemplateStore):
    """Process-local store; every read and write goes through deep copies"""

    def __init__(self):
        self._templates: dict[str, FormTemplate] = {}

    def list(self, filters: Optional[TemplateFilters] = None) -> List[FormTemplate]:
        filters = filters or TemplateFilters()
        matching = [
            t.model_copy(deep=True)
            for t in self._templates.values()
            if matches_filters(t, filters)
        ]
        return sort_and_page(matching, filters)

    def get(self, template_id: str) -> FormTemplate:
        if template_id not in self._templates:
            raise TemplateNotFoundError(template_id)
        return self._templates[template_id].model_copy(deep=True)

    def create(self, template: FormTemplate) -> FormTemplate:
        stored = template.model_copy(deep=True)
        stored.id = str(uuid.uuid4())
        now = datetime.now()
        stored.created_at = now
        stored.updated_at = now
        self._templates[stored.id] = stored
        logger.info(f"Created template {stored.id} ('{stored.name}')")
        return stored.model_copy(deep=True)

    def update(self, template_id: str, patch: dict[str, Any]) -> FormTemplate:
        updated = apply_patch(self.get(template_id), patch)
        updated.updated_at = datetime.now()
        self._templates[template_id] = updated
        logger.info(f"Updated template {template_id}")
        return updated.model_copy(deep=True)

    def duplicate(self, template_id: str, new_name: str) -> FormTemplate:
        return self.create(prepare_duplicate(self.get(template_id), new_name))

    def delete(self, template_id: str) -> None:
        if self._templates.pop(template_id, None) is None:
            raise TemplateNotFoundError(template_id)
        logger.info(f"Deleted template {template_id}")


class InMemorySubmissionSink(SubmissionSink):
    def __init__(self):
        self.submissions: List[FormSubmission] = []

    def record(self, template_id: Optional[str], values: dict[str, Any]) -> FormSubmission:
        submission = FormSubmission(id=str(uuid.uuid4()), template_id=template_id, values=dict(values))
        self.submissions.append(submission)
        return submission

    def list_for_template(self, template_id: str) -> List[FormSubmission]:
        return [s for s in self.submissions if s.template_id == template_id]
