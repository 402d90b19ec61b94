"""In-memory store of builder sessions"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from form_builder.models.template import FormTemplate
from form_builder.services.builder import BuilderSession


class SessionEntry:
    """A session entry holding the builder and its activity timestamps"""

    def __init__(self, session_id: str, template: Optional[FormTemplate] = None):
        self.session_id = session_id
        self.builder = BuilderSession(template)
        self.created_at = datetime.now()
        self.last_active = datetime.now()

    def touch(self):
        self.last_active = datetime.now()


class BuilderSessionStore:
    """Keeps authoring sessions in memory.

    - Sessions idle longer than the TTL are evicted by ``evict_expired``
    - When full, the least recently active session makes room for a new one
    - Unsaved edits of an evicted session are lost; the template store only
      sees what was saved
    """

    def __init__(self, ttl_minutes: int = 30, max_sessions: int = 1000):
        self._sessions: dict[str, SessionEntry] = {}
        self._ttl = timedelta(minutes=ttl_minutes)
        self._max = max_sessions
        self._lock = asyncio.Lock()

    async def create(self, template: Optional[FormTemplate] = None) -> SessionEntry:
        """Start a new session, optionally editing an existing template"""
        async with self._lock:
            if len(self._sessions) >= self._max:
                self._evict_oldest()
            entry = SessionEntry(str(uuid4()), template)
            self._sessions[entry.session_id] = entry
            return entry

    async def get(self, session_id: str) -> Optional[SessionEntry]:
        """Get session by ID, returns None if not found or expired"""
        async with self._lock:
            entry = self._sessions.get(session_id)
            if entry and (datetime.now() - entry.last_active) < self._ttl:
                entry.touch()
                return entry
            return None

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def evict_expired(self) -> int:
        """Remove expired sessions"""
        async with self._lock:
            now = datetime.now()
            expired = [
                sid for sid, entry in self._sessions.items()
                if (now - entry.last_active) >= self._ttl
            ]
            for sid in expired:
                del self._sessions[sid]
            return len(expired)

    def _evict_oldest(self):
        """Remove the oldest session to make room (called under lock)"""
        if not self._sessions:
            return
        oldest_id = min(self._sessions, key=lambda sid: self._sessions[sid].last_active)
        del self._sessions[oldest_id]

    @property
    def active_count(self) -> int:
        return len(self._sessions)
