"""HTML signal extractors: pure functions over raw HTML and a base URL."""
from affiliate_scout.extractors.branding import extract_favicon, extract_hero_image, extract_logo
from affiliate_scout.extractors.catalog import CatalogSignals, extract_catalog
from affiliate_scout.extractors.links import (
    LinkCandidate,
    extract_domain,
    extract_social_links,
    find_affiliate_links,
    find_contact_link,
    normalize_url,
    normalize_website,
    origin_of,
)
from affiliate_scout.extractors.terms import (
    ProgramTerms,
    extract_emails,
    extract_program_terms,
    pick_contact_email,
)

__all__ = [
    "CatalogSignals",
    "LinkCandidate",
    "ProgramTerms",
    "extract_catalog",
    "extract_domain",
    "extract_emails",
    "extract_favicon",
    "extract_hero_image",
    "extract_logo",
    "extract_program_terms",
    "extract_social_links",
    "find_affiliate_links",
    "find_contact_link",
    "normalize_url",
    "normalize_website",
    "origin_of",
    "pick_contact_email",
]
