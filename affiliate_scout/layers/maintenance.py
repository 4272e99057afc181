"""
Subject maintenance operations: explicit resets back to Pending.
"""
from typing import Optional

from affiliate_scout.adapters.record_store import RecordStore
from affiliate_scout.errors import SubjectNotFoundError
from affiliate_scout.layers.merger import FactMerger
from affiliate_scout.models.subject import SubjectStatus
from affiliate_scout.utils.logger import LayerLogger


class SubjectResetter:
    """Clears affiliate facts and re-queues subjects for discovery."""

    def __init__(self, store: RecordStore, merger: Optional[FactMerger] = None):
        self.store = store
        self.merger = merger or FactMerger()
        self.logger = LayerLogger("subject_resetter")

    async def reset_subject(self, subject_id: str) -> None:
        """
        Reset one subject.

        Raises:
            SubjectNotFoundError: no subject with this id
        """
        if await self.store.get_subject(subject_id) is None:
            raise SubjectNotFoundError(subject_id)

        await self.store.update_subject(subject_id, self.merger.build_reset())
        self.logger.log_action("reset_subject", "completed", subject_id=subject_id)

    async def reset_by_status(self, status: SubjectStatus) -> int:
        """Reset every subject currently in ``status``; returns how many were reset."""
        subject_ids = await self.store.list_ids_by_status(status.value)
        payload = self.merger.build_reset(notes=f"Reset from {status.value} status")

        for subject_id in subject_ids:
            await self.store.update_subject(subject_id, payload)

        self.logger.log_action("reset_by_status", "completed", reset_status=status.value, count=len(subject_ids))
        return len(subject_ids)
