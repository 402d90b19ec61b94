"""SQLite template store and submission sink"""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
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
from form_builder.utils.config import get_settings

logger = logging.getLogger(__name__)


def get_db_path() -> Path:
    """Get database path from settings"""
    settings = get_settings()
    return Path(settings.database_path)


@contextmanager
def get_connection(db_path: Optional[Path] = None):
    """Get a database connection as context manager"""
    db_path = Path(db_path) if db_path else get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Optional[Path] = None):
    """Initialize database with schema"""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        # Form templates table; the full template lives in payload
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS form_templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                category TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'draft',
                payload TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_templates_status
            ON form_templates(status)
        """)

        # Submissions table
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS form_submissions (
                id TEXT PRIMARY KEY,
                template_id TEXT,
                form_values TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                submitted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_submissions_template
            ON form_submissions(template_id)
        """)


def _json_default(value: Any) -> Any:
    """Serialize models (e.g. uploaded file metadata) and dates inside values"""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _row_to_template(row: sqlite3.Row) -> FormTemplate:
    return FormTemplate.model_validate_json(row["payload"])


class SQLiteTemplateStore(TemplateStore):
    """Templates stored as JSON documents, with indexed summary columns"""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else get_db_path()
        init_db(self.db_path)

    def _write(self, conn: sqlite3.Connection, template: FormTemplate) -> None:
        conn.execute("""
            INSERT OR REPLACE INTO form_templates
            (id, name, category, status, payload, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            template.id,
            template.name,
            template.category.value,
            template.status.value,
            template.model_dump_json(),
            template.created_at.isoformat() if template.created_at else None,
            template.updated_at.isoformat() if template.updated_at else None,
        ))

    def list(self, filters: Optional[TemplateFilters] = None) -> List[FormTemplate]:
        filters = filters or TemplateFilters()
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT payload FROM form_templates").fetchall()
        templates = [_row_to_template(row) for row in rows]
        return sort_and_page([t for t in templates if matches_filters(t, filters)], filters)

    def get(self, template_id: str) -> FormTemplate:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT payload FROM form_templates WHERE id = ?", (template_id,)
            ).fetchone()
        if not row:
            raise TemplateNotFoundError(template_id)
        return _row_to_template(row)

    def create(self, template: FormTemplate) -> FormTemplate:
        stored = template.model_copy(deep=True)
        stored.id = str(uuid.uuid4())
        now = datetime.now()
        stored.created_at = now
        stored.updated_at = now

        with get_connection(self.db_path) as conn:
            self._write(conn, stored)
        logger.info(f"Created template {stored.id} ('{stored.name}')")
        return stored

    def update(self, template_id: str, patch: dict[str, Any]) -> FormTemplate:
        current = self.get(template_id)
        updated = apply_patch(current, patch)
        updated.updated_at = datetime.now()

        with get_connection(self.db_path) as conn:
            self._write(conn, updated)
        logger.info(f"Updated template {template_id}")
        return updated

    def duplicate(self, template_id: str, new_name: str) -> FormTemplate:
        return self.create(prepare_duplicate(self.get(template_id), new_name))

    def delete(self, template_id: str) -> None:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM form_templates WHERE id = ?", (template_id,))
            deleted = cursor.rowcount
        if not deleted:
            raise TemplateNotFoundError(template_id)
        logger.info(f"Deleted template {template_id}")


class SQLiteSubmissionSink(SubmissionSink):
    """Accepted submissions stored alongside the templates"""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else get_db_path()
        init_db(self.db_path)

    def record(self, template_id: Optional[str], values: dict[str, Any]) -> FormSubmission:
        submission = FormSubmission(id=str(uuid.uuid4()), template_id=template_id, values=values)
        with get_connection(self.db_path) as conn:
            conn.execute("""
                INSERT INTO form_submissions (id, template_id, form_values, status, submitted_at)
                VALUES (?, ?, ?, ?, ?)
            """, (
                submission.id,
                template_id,
                json.dumps(values, ensure_ascii=False, default=_json_default),
                submission.status.value,
                submission.submitted_at.isoformat(),
            ))
        logger.info(f"Recorded submission {submission.id} for template {template_id}")
        return submission

    def list_for_template(self, template_id: str) -> List[FormSubmission]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM form_submissions WHERE template_id = ? ORDER BY submitted_at",
                (template_id,),
            ).fetchall()
        return [
            FormSubmission(
                id=row["id"],
                template_id=row["template_id"],
                values=json.loads(row["form_values"]),
                status=row["status"],
                submitted_at=datetime.fromisoformat(row["submitted_at"]),
            )
            for row in rows
        ]
