"""
Subject Prober for Affiliate Scout.
Runs the staged discovery for one subject and persists the merged result.

Stages, short-circuiting at the first one that yields a candidate:
    HOMEPAGE_SCAN -> PATH_PROBE -> FALLBACK_SEARCH -> DONE

Contact discovery and homepage enrichment always run, whatever the
affiliate outcome, so Not Found subjects still carry outreach data.
"""
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from affiliate_scout.adapters.fetch_client import (
    AFFILIATE_PROBE_TIMEOUT,
    CONTACT_PAGE_TIMEOUT,
    CONTACT_PROBE_TIMEOUT,
    PAGE_TIMEOUT,
    FetchClient,
)
from affiliate_scout.adapters.record_store import RecordStore
from affiliate_scout.adapters.search_oracle import NullSearchOracle, SearchOracle, SearchVerdict
from affiliate_scout.extractors import (
    extract_catalog,
    extract_domain,
    extract_emails,
    extract_favicon,
    extract_hero_image,
    extract_logo,
    extract_program_terms,
    extract_social_links,
    find_affiliate_links,
    find_contact_link,
    normalize_website,
    origin_of,
    pick_contact_email,
)
from affiliate_scout.extractors.soup import make_soup
from affiliate_scout.layers.merger import FactMerger
from affiliate_scout.models.subject import (
    AffiliateFacts,
    DiscoveryOutcome,
    DiscoveryStage,
    OutreachStatus,
    PendingSubject,
    SubjectStatus,
)
from affiliate_scout.utils.logger import LayerLogger


# Conventional affiliate program paths, probed in order
AFFILIATE_PATHS = [
    "/affiliate", "/affiliates", "/partners", "/partner-program",
    "/referral", "/referrals", "/ambassador", "/affiliate-program",
    "/partner-with-us", "/partnerships",
]

# Conventional contact page paths, probed in order
CONTACT_PATHS = [
    "/contact", "/contact-us", "/support", "/help", "/about/contact",
    "/about-us/contact", "/get-in-touch", "/reach-us",
]

NOTES_FOUND_ON_HOMEPAGE = "Found on website"
NOTES_FOUND_ON_PATH = "Found at common affiliate path"
NOTES_SEARCH_UNVERIFIED = "Potential affiliate program found via search (unverified)"
NOTES_NOT_FOUND = "No affiliate program found after thorough search"
NOTES_NOT_FOUND_SEARCH_UNAVAILABLE = "No affiliate program found on website; search signal unavailable"


class SubjectProber:
    """
    Staged discovery plus the per-subject pipeline.

    The record store, fetch client and search oracle are all injected;
    nothing here reaches for process-wide state.
    """

    def __init__(
        self,
        store: RecordStore,
        fetch_client: Optional[FetchClient] = None,
        search_oracle: Optional[SearchOracle] = None,
        merger: Optional[FactMerger] = None,
    ):
        self.store = store
        self.fetch_client = fetch_client or FetchClient()
        self.search_oracle = search_oracle or NullSearchOracle()
        self.merger = merger or FactMerger()
        self.logger = LayerLogger("subject_prober")

    # =========================================================================
    # PER-SUBJECT PIPELINE
    # =========================================================================

    async def process(self, subject: PendingSubject) -> DiscoveryOutcome:
        """
        Discover, merge against a fresh read of the stored row, and persist.

        Store errors propagate; the orchestrator turns them into a failure.
        """
        outcome = await self.discover(subject)

        existing = await self.store.get_subject(subject.id)
        update = self.merger.build_update(outcome, existing)
        await self.store.update_subject(subject.id, update)

        self.logger.log_action(
            "subject_persisted",
            "completed",
            subject_id=subject.id,
            subject_status=outcome.status.value,
            fields=sorted(update),
        )
        return outcome

    async def discover(self, subject: PendingSubject) -> DiscoveryOutcome:
        """
        Run the staged discovery for one subject. Never touches the store.

        Args:
            subject: Pending subject (id, name, website)

        Returns:
            DiscoveryOutcome with classification and extracted facts
        """
        website = normalize_website(subject.website_url)

        self.logger.log_action("discovery", "started", subject_id=subject.id, url=website)

        # Homepage is fetched once and reused by every stage
        homepage = await self.fetch_client.fetch(website, timeout=PAGE_TIMEOUT)
        homepage_soup = make_soup(homepage.body) if homepage.ok else None
        if homepage_soup is None:
            self.logger.log_fallback(
                from_source="homepage_scan",
                to_source="path_probe",
                reason="Homepage unavailable",
                url=website,
                status_code=homepage.status_code,
                error=homepage.error,
            )

        # Links on the homepage resolve against where redirects landed
        page_url = homepage.url if homepage.ok else website

        stage, affiliate_url = await self._locate_program(page_url, origin_of(page_url), homepage_soup)

        contact_page_url, contact_email = await self.find_contact(page_url, homepage_soup)
        base_facts = AffiliateFacts()
        if homepage_soup is not None:
            base_facts = self.extract_page_facts(homepage.body, page_url, soup=homepage_soup)
        base_facts = base_facts.model_copy(update={
            "contact_page_url": contact_page_url,
            "contact_email": contact_email,
        })

        if affiliate_url:
            facts = await self._affiliate_page_facts(affiliate_url)
            facts = facts.model_copy(update={"affiliate_url": affiliate_url}).fill_missing(base_facts)
            notes = NOTES_FOUND_ON_HOMEPAGE if stage == DiscoveryStage.HOMEPAGE_SCAN else NOTES_FOUND_ON_PATH
            outcome = DiscoveryOutcome(
                subject_id=subject.id,
                stage=stage,
                status=SubjectStatus.FOUND,
                outreach_status=OutreachStatus.AFFILIATE_FOUND,
                notes=notes,
                facts=facts,
            )
        else:
            outcome = await self._fallback_search(subject, website, base_facts)

        self.logger.log_decision(
            decision=outcome.status.value,
            reason=outcome.notes,
            url=website,
            subject_id=subject.id,
            stage=outcome.stage.value,
            outreach_status=outcome.outreach_status.value,
        )
        return outcome

    # =========================================================================
    # STAGED DISCOVERY
    # =========================================================================

    async def _locate_program(
        self,
        website: str,
        origin: str,
        homepage_soup: Optional[BeautifulSoup],
    ) -> Tuple[DiscoveryStage, Optional[str]]:
        """HOMEPAGE_SCAN then PATH_PROBE; first stage with a candidate wins."""
        if homepage_soup is not None:
            candidates = find_affiliate_links(homepage_soup, website)
            if candidates:
                self.logger.log_decision(
                    decision="affiliate_link_on_homepage",
                    reason=f"Anchor matched affiliate keywords: {candidates[0].text[:60]!r}",
                    url=candidates[0].url,
                    candidates=len(candidates),
                )
                return DiscoveryStage.HOMEPAGE_SCAN, candidates[0].url

            self.logger.log_fallback(
                from_source="homepage_scan",
                to_source="path_probe",
                reason="No affiliate anchors on homepage",
                url=website,
            )

        path_url = await self.probe_paths(origin, AFFILIATE_PATHS, timeout=AFFILIATE_PROBE_TIMEOUT)
        if path_url:
            return DiscoveryStage.PATH_PROBE, path_url

        return DiscoveryStage.FALLBACK_SEARCH, None

    async def probe_paths(self, origin: str, paths: List[str], timeout: float) -> Optional[str]:
        """
        Ordered presence search: the first path answering exactly 200 wins.

        Paths are probed one at a time so the search stops at the first hit.
        """
        for path in paths:
            url = f"{origin}{path}"
            result = await self.fetch_client.fetch(url, timeout=timeout)
            self.logger.log_http_probe(
                url=origin,
                endpoint=path,
                status_code=result.status_code,
                result="found" if result.ok else "absent",
            )
            if result.ok:
                return url
        return None

    async def _fallback_search(
        self,
        subject: PendingSubject,
        website: str,
        base_facts: AffiliateFacts,
    ) -> DiscoveryOutcome:
        """Ask the oracle; a positive answer is only ever a lead to verify."""
        domain = extract_domain(website)
        try:
            verdict = await self.search_oracle.check(subject.tool_name, domain)
        except Exception as e:
            self.logger.log_error(
                f"Search oracle failed: {str(e)}",
                error_type="search_error",
                subject_id=subject.id,
            )
            verdict = SearchVerdict.UNKNOWN

        if verdict == SearchVerdict.LIKELY:
            placeholder = f"{website.rstrip('/')}/affiliate"
            return DiscoveryOutcome(
                subject_id=subject.id,
                stage=DiscoveryStage.FALLBACK_SEARCH,
                status=SubjectStatus.FOUND,
                outreach_status=OutreachStatus.NEEDS_VERIFICATION,
                notes=NOTES_SEARCH_UNVERIFIED,
                facts=base_facts.model_copy(update={"affiliate_url": placeholder}),
            )

        notes = NOTES_NOT_FOUND if verdict == SearchVerdict.UNLIKELY else NOTES_NOT_FOUND_SEARCH_UNAVAILABLE
        return DiscoveryOutcome(
            subject_id=subject.id,
            stage=DiscoveryStage.DONE,
            status=SubjectStatus.NOT_FOUND,
            outreach_status=OutreachStatus.NEEDS_CONTACT,
            notes=notes,
            facts=base_facts,
        )

    # =========================================================================
    # CONTACT DISCOVERY
    # =========================================================================

    async def find_contact(
        self,
        website: str,
        homepage_soup: Optional[BeautifulSoup],
    ) -> Tuple[Optional[str], Optional[str]]:
        """
        Locate a contact page and the email published on it.

        Priority:
        1. Conventional contact paths (exact 200)
        2. First homepage anchor mentioning "contact"
        """
        contact_url = await self.probe_paths(origin_of(website), CONTACT_PATHS, timeout=CONTACT_PROBE_TIMEOUT)
        if not contact_url and homepage_soup is not None:
            contact_url = find_contact_link(homepage_soup, website)

        if not contact_url:
            self.logger.log_action("contact_discovery", "not_found", url=website)
            return None, None

        email = None
        page = await self.fetch_client.fetch(contact_url, timeout=CONTACT_PAGE_TIMEOUT)
        if page.ok:
            email = pick_contact_email(extract_emails(page.body))

        self.logger.log_action(
            "contact_discovery",
            "completed",
            contact_page_url=contact_url,
            email_found=bool(email),
        )
        return contact_url, email

    # =========================================================================
    # PAGE FACT EXTRACTION
    # =========================================================================

    async def _affiliate_page_facts(self, affiliate_url: str) -> AffiliateFacts:
        page = await self.fetch_client.fetch(affiliate_url, timeout=PAGE_TIMEOUT)
        if not page.ok:
            self.logger.log_fallback(
                from_source="affiliate_page",
                to_source="homepage_facts",
                reason="Affiliate page unavailable",
                url=affiliate_url,
                status_code=page.status_code,
            )
            return AffiliateFacts()
        return self.extract_page_facts(page.body, affiliate_url, include_terms=True)

    def extract_page_facts(
        self,
        html: str,
        base_url: str,
        include_terms: bool = False,
        soup: Optional[BeautifulSoup] = None,
    ) -> AffiliateFacts:
        """
        Run every extractor over one page.

        Program terms, emails and the contact anchor are only read from
        affiliate pages (``include_terms``); the homepage contributes
        branding, social links and catalog lists.
        """
        soup = soup if soup is not None else make_soup(html)
        catalog = extract_catalog(soup)

        facts = AffiliateFacts(
            social_links=extract_social_links(soup, base_url),
            favicon_url=extract_favicon(soup, base_url),
            logo_url=extract_logo(soup, base_url),
            image_url=extract_hero_image(soup, base_url),
            tags=catalog.tags,
            use_cases=catalog.use_cases,
            features=catalog.features,
        )

        if include_terms:
            terms = extract_program_terms(soup)
            facts = facts.model_copy(update={
                "commission": terms.commission,
                "cookie_duration": terms.cookie_duration,
                "payout_type": terms.payout_type,
                "contact_email": pick_contact_email(extract_emails(html)),
                "contact_page_url": find_contact_link(soup, base_url),
            })

        self.logger.log_extraction(
            source="affiliate_page" if include_terms else "homepage",
            fields_present=facts.get_present_fields(),
            fields_missing=facts.get_missing_fields(),
            url=base_url,
        )
        return facts
