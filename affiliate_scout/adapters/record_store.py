"""
Record Store interface for Affiliate Scout.

The store is an external collaborator; the pipeline only needs the
operations below. Implementations are injected into the prober and the
orchestrator at construction time.
"""
import asyncio
import copy
from typing import Any, Dict, Iterable, List, Optional, Protocol

from affiliate_scout.errors import RecordStoreError, SubjectNotFoundError
from affiliate_scout.models.subject import (
    FACT_FIELDS,
    PendingSubject,
    Subject,
    SubjectStatus,
)
from affiliate_scout.utils.logger import LayerLogger


UPDATABLE_FIELDS = frozenset(
    ("tool_name", "website_url", "status", "outreach_status", "notes") + FACT_FIELDS
)


class RecordStore(Protocol):
    """Read/write surface the discovery pipeline depends on."""

    async def fetch_pending(self, limit: int) -> List[PendingSubject]:
        """Up to ``limit`` subjects with status Pending, in queue order."""
        ...

    async def get_subject(self, subject_id: str) -> Optional[Subject]:
        """Full projection of one subject, or None."""
        ...

    async def count_pending(self) -> int:
        """Number of subjects with status Pending."""
        ...

    async def update_subject(self, subject_id: str, fields: Dict[str, Any]) -> None:
        """Partial update: fields not named stay untouched."""
        ...

    async def list_ids_by_status(self, status: str) -> List[str]:
        """Ids of every subject currently in ``status`` (used by bulk reset)."""
        ...


class InMemoryRecordStore:
    """
    Process-local record store.

    Rows are flat dicts keyed by id, kept in insertion order so the pending
    queue is FIFO. Used by the test suite and for local runs without a
    configured backend.
    """

    def __init__(self, rows: Optional[Iterable[Dict[str, Any]]] = None):
        self.logger = LayerLogger("memory_store")
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        for row in rows or []:
            self.add(row)

    def add(self, row: Dict[str, Any]) -> Subject:
        """Insert a new subject row (status Pending unless given)."""
        subject = Subject.from_row({"status": SubjectStatus.PENDING.value, **row})
        self._rows[subject.id] = subject.to_row()
        return subject

    def row(self, subject_id: str) -> Dict[str, Any]:
        """Raw copy of a stored row, for inspection."""
        if subject_id not in self._rows:
            raise SubjectNotFoundError(subject_id)
        return copy.deepcopy(self._rows[subject_id])

    async def fetch_pending(self, limit: int) -> List[PendingSubject]:
        async with self._lock:
            pending = [
                PendingSubject(id=row["id"], tool_name=row["tool_name"], website_url=row["website_url"])
                for row in self._rows.values()
                if row.get("status") == SubjectStatus.PENDING.value
            ]
        return pending[:limit]

    async def get_subject(self, subject_id: str) -> Optional[Subject]:
        async with self._lock:
            row = self._rows.get(subject_id)
            return Subject.from_row(copy.deepcopy(row)) if row else None

    async def count_pending(self) -> int:
        async with self._lock:
            return sum(
                1 for row in self._rows.values()
                if row.get("status") == SubjectStatus.PENDING.value
            )

    async def list_ids_by_status(self, status: str) -> List[str]:
        async with self._lock:
            return [row["id"] for row in self._rows.values() if row.get("status") == status]

    async def update_subject(self, subject_id: str, fields: Dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise RecordStoreError(f"Unknown fields for update: {sorted(unknown)}")

        async with self._lock:
            row = self._rows.get(subject_id)
            if row is None:
                raise SubjectNotFoundError(subject_id)
            row.update(copy.deepcopy(to_plain_fields(fields)))

        self.logger.log_action("update_subject", "completed", subject_id=subject_id, fields=sorted(fields))


def to_plain_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Enum members to their values so stored rows hold plain JSON types."""
    return {key: getattr(value, "value", value) for key, value in fields.items()}
