"""Exception types raised across Affiliate Scout."""


class AffiliateScoutError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(AffiliateScoutError):
    """Required configuration is missing or invalid."""


class RecordStoreError(AffiliateScoutError):
    """The record store rejected a read or an update."""


class SubjectNotFoundError(AffiliateScoutError):
    """No subject exists with the requested id."""

    def __init__(self, subject_id: str):
        super().__init__(f"Subject not found: {subject_id}")
        self.subject_id = subject_id
