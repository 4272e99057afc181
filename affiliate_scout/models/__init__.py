"""Models package initialization."""
from affiliate_scout.models.subject import (
    AffiliateFacts,
    AutoRunSummary,
    BatchResult,
    DiscoveryOutcome,
    DiscoveryStage,
    OutreachStatus,
    PendingSubject,
    SocialLink,
    Subject,
    SubjectResult,
    SubjectStatus,
)

__all__ = [
    "AffiliateFacts",
    "AutoRunSummary",
    "BatchResult",
    "DiscoveryOutcome",
    "DiscoveryStage",
    "OutreachStatus",
    "PendingSubject",
    "SocialLink",
    "Subject",
    "SubjectResult",
    "SubjectStatus",
]
