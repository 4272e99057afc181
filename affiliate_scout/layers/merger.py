"""
Fact Merger for Affiliate Scout.
Reconciles a discovery outcome with the subject's stored record.

Merge rules:
- status, outreach_status, notes: always overwritten
- affiliate_url, commission, cookie_duration, payout_type: always written,
  null included, so a pass that finds nothing clears stale terms
- contact_email, contact_page_url, favicon_url, logo_url, image_url:
  first-writer-wins (only fill an empty stored value)
- tags, use_cases, features: capped union with the stored lists
- social_links: replaced only when the pass found some
"""
from typing import Any, Dict, Optional

from affiliate_scout.models.subject import (
    LIST_FIELD_CAPS,
    AffiliateFacts,
    DiscoveryOutcome,
    OutreachStatus,
    Subject,
    SubjectStatus,
    merge_unique,
)
from affiliate_scout.utils.logger import LayerLogger


OVERWRITE_FIELDS = ("affiliate_url", "commission", "cookie_duration", "payout_type")

FIRST_WRITER_FIELDS = ("contact_email", "contact_page_url", "favicon_url", "logo_url", "image_url")

RESET_NOTES = "Reset to pending"


class FactMerger:
    """Builds partial update payloads for the record store."""

    def __init__(self):
        self.logger = LayerLogger("fact_merger")

    def build_update(self, outcome: DiscoveryOutcome, existing: Optional[Subject]) -> Dict[str, Any]:
        """
        Produce the partial update for one discovery pass.

        Args:
            outcome: Classification and facts from the prober
            existing: Fresh read of the stored subject (None if unreadable)

        Returns:
            Column -> value mapping; columns not named stay untouched
        """
        new = outcome.facts
        stored = existing.facts if existing else AffiliateFacts()

        update: Dict[str, Any] = {
            "status": outcome.status.value,
            "outreach_status": outcome.outreach_status.value,
            "notes": outcome.notes,
        }

        for name in OVERWRITE_FIELDS:
            update[name] = getattr(new, name)

        kept = []
        for name in FIRST_WRITER_FIELDS:
            value = getattr(new, name)
            if not value:
                continue
            if getattr(stored, name):
                kept.append(name)
                continue
            update[name] = value

        for name, cap in LIST_FIELD_CAPS.items():
            incoming = getattr(new, name)
            if incoming:
                update[name] = merge_unique(getattr(stored, name), incoming, cap)

        if new.social_links:
            update["social_links"] = [link.model_dump() for link in new.social_links]

        self.logger.log_action(
            "merge",
            "completed",
            subject_id=outcome.subject_id,
            written=sorted(update),
            kept_existing=kept,
        )
        return update

    def build_reset(self, notes: str = RESET_NOTES) -> Dict[str, Any]:
        """Payload returning a subject to Pending with every affiliate fact cleared."""
        update: Dict[str, Any] = {
            "status": SubjectStatus.PENDING.value,
            "outreach_status": OutreachStatus.NEEDS_CONTACT.value,
            "notes": notes,
        }
        for name, value in AffiliateFacts().model_dump().items():
            update[name] = value
        return update
