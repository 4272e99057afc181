"""
Subject and Affiliate Facts models for Affiliate Scout.

A Subject is one catalog entry (a product or tool) researched for an
affiliate program. Its AffiliateFacts bundle is stored flat on the same
record, so the field names below double as record-store column names.
"""
from typing import Any, Dict, Iterable, List, Optional
from enum import Enum
from pydantic import BaseModel, Field


# Size caps for the set-valued facts
MAX_TAGS = 20
MAX_USE_CASES = 10
MAX_FEATURES = 15

LIST_FIELD_CAPS = {
    "tags": MAX_TAGS,
    "use_cases": MAX_USE_CASES,
    "features": MAX_FEATURES,
}


def merge_unique(existing: Optional[Iterable[str]], new: Optional[Iterable[str]], cap: int) -> List[str]:
    """
    Union of two lists without duplicates, existing items first, truncated to ``cap``.

    Merging the same input twice gives the same result.
    """
    merged: List[str] = []
    seen = set()
    for item in list(existing or []) + list(new or []):
        if not item or item in seen:
            continue
        seen.add(item)
        merged.append(item)
    return merged[:cap]


class SubjectStatus(str, Enum):
    """Discovery lifecycle status."""
    PENDING = "Pending"
    FOUND = "Found"
    NOT_FOUND = "Not Found"


class OutreachStatus(str, Enum):
    """What a human should do next with the subject."""
    NEEDS_CONTACT = "Needs Contact"
    AFFILIATE_FOUND = "Affiliate Found"
    NEEDS_VERIFICATION = "Needs Verification"


class DiscoveryStage(str, Enum):
    """Stage of the staged discovery that produced (or failed to produce) a candidate."""
    HOMEPAGE_SCAN = "homepage_scan"
    PATH_PROBE = "path_probe"
    FALLBACK_SEARCH = "fallback_search"
    DONE = "done"


class SocialLink(BaseModel):
    """A social profile link with its platform inferred from the domain."""
    platform: str
    url: str


class AffiliateFacts(BaseModel):
    """
    Structured commercial, contact and branding data for a subject.

    Built incrementally by the signal extractors during a discovery pass.
    """
    # Commercial terms
    affiliate_url: Optional[str] = None
    commission: Optional[str] = None
    cookie_duration: Optional[str] = None
    payout_type: Optional[str] = None

    # Contact
    contact_email: Optional[str] = None
    contact_page_url: Optional[str] = None
    social_links: List[SocialLink] = Field(default_factory=list)

    # Branding
    favicon_url: Optional[str] = None
    logo_url: Optional[str] = None
    image_url: Optional[str] = None

    # Descriptive lists
    tags: List[str] = Field(default_factory=list)
    use_cases: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)

    def fill_missing(self, other: "AffiliateFacts") -> "AffiliateFacts":
        """
        Return a copy where every empty field is taken from ``other``.

        Values already present on ``self`` always win; the descriptive
        lists are unioned instead, ``self`` items first.
        """
        data = self.model_dump()
        for name, value in other.model_dump().items():
            if name in LIST_FIELD_CAPS:
                data[name] = merge_unique(data.get(name), value, LIST_FIELD_CAPS[name])
            elif not data.get(name) and value:
                data[name] = value
        return AffiliateFacts.model_validate(data)

    def get_present_fields(self) -> List[str]:
        """Return list of non-empty fields."""
        return [name for name, value in self.model_dump().items() if value]

    def get_missing_fields(self) -> List[str]:
        """Return list of empty fields."""
        return [name for name, value in self.model_dump().items() if not value]


FACT_FIELDS = tuple(AffiliateFacts.model_fields.keys())


class PendingSubject(BaseModel):
    """The minimal projection returned when pulling the pending queue."""
    id: str
    tool_name: str
    website_url: str


class Subject(BaseModel):
    """Full projection of a stored subject record."""
    id: str
    tool_name: str
    website_url: str
    status: SubjectStatus = SubjectStatus.PENDING
    outreach_status: Optional[OutreachStatus] = OutreachStatus.NEEDS_CONTACT
    notes: Optional[str] = None
    facts: AffiliateFacts = Field(default_factory=AffiliateFacts)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Subject":
        """Build a Subject from a flat store row."""
        facts_data = {name: row.get(name) for name in FACT_FIELDS if row.get(name) is not None}
        return cls(
            id=str(row["id"]),
            tool_name=str(row.get("tool_name") or ""),
            website_url=str(row.get("website_url") or ""),
            status=row.get("status") or SubjectStatus.PENDING,
            outreach_status=row.get("outreach_status") or None,
            notes=row.get("notes"),
            facts=AffiliateFacts.model_validate(facts_data),
        )

    def to_row(self) -> Dict[str, Any]:
        """Flatten into a store row (enum values as plain strings)."""
        row = {
            "id": self.id,
            "tool_name": self.tool_name,
            "website_url": self.website_url,
            "status": self.status.value,
            "outreach_status": self.outreach_status.value if self.outreach_status else None,
            "notes": self.notes,
        }
        row.update(self.facts.model_dump())
        return row


class DiscoveryOutcome(BaseModel):
    """Classification plus extracted facts for one discovery pass."""
    subject_id: str
    stage: DiscoveryStage
    status: SubjectStatus
    outreach_status: OutreachStatus
    notes: str
    facts: AffiliateFacts = Field(default_factory=AffiliateFacts)


class SubjectResult(BaseModel):
    """Per-subject pipeline result reported by the orchestrator."""
    subject_id: str
    tool_name: str
    success: bool
    status: Optional[SubjectStatus] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    """Aggregate counts for one batch."""
    total: int = 0
    successful: int = 0
    failed: int = 0
    results: List[SubjectResult] = Field(default_factory=list)


class AutoRunSummary(BaseModel):
    """Aggregate counts for an auto-continuation run."""
    batches: int = 0
    total_processed: int = 0
    total_successful: int = 0
    total_failed: int = 0
    stopped_reason: Optional[str] = None
