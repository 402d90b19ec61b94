"""Template store and submission sink backends"""

from form_builder.db.base import (
    SubmissionSink,
    TemplateFilters,
    TemplateNotFoundError,
    TemplateStore,
)
from form_builder.db.memory import InMemorySubmissionSink, InMemoryTemplateStore
from form_builder.db.sqlite import SQLiteSubmissionSink, SQLiteTemplateStore, init_db
from form_builder.utils.config import get_settings

# Shared in-memory backends so every caller in a process sees the same data
_memory_store: InMemoryTemplateStore | None = None
_memory_sink: InMemorySubmissionSink | None = None


def get_store() -> TemplateStore:
    """Template store for the configured backend (STORE_MODE)"""
    global _memory_store
    settings = get_settings()
    if settings.store_mode == "memory":
        if _memory_store is None:
            _memory_store = InMemoryTemplateStore()
        return _memory_store
    return SQLiteTemplateStore()


def get_submission_sink() -> SubmissionSink:
    """Submission sink for the configured backend (STORE_MODE)"""
    global _memory_sink
    settings = get_settings()
    if settings.store_mode == "memory":
        if _memory_sink is None:
            _memory_sink = InMemorySubmissionSink()
        return _memory_sink
    return SQLiteSubmissionSink()


__all__ = [
    "SubmissionSink",
    "TemplateFilters",
    "TemplateNotFoundError",
    "TemplateStore",
    "InMemorySubmissionSink",
    "InMemoryTemplateStore",
    "SQLiteSubmissionSink",
    "SQLiteTemplateStore",
    "init_db",
    "get_store",
    "get_submission_sink",
]
