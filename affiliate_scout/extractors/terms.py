"""
Text-level signal extractors: contact emails and affiliate program terms
(commission, cookie window, payout model).
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from affiliate_scout.extractors.soup import HtmlInput, safe_extract, visible_text


EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Placeholder addresses that show up in templates and form hints
EMAIL_BLACKLIST = ["example.com", "yourdomain", "domain.com", "@email", "@mail"]

# Retina asset names like logo@2x.png look like emails
ASSET_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".avif", ".ico", ".css", ".js")

PREFERRED_EMAIL_HINTS = ["affiliate", "partner", "referral"]

_NUM = r"\d+(?:,\d{3})*(?:\.\d+)?"
_CUR = r"[$€£]"
_RANGE_SEP = r"\s*(?:-|–|to)\s*"
_PERIOD = r"(?:day|week|month|year)s?"

# Ordered: fuller phrasings first so "15% commission per sale" is kept whole
COMMISSION_PATTERNS: List[Pattern] = [
    re.compile(
        rf"((?:up\s*to\s*)?{_NUM}%?(?:{_RANGE_SEP}{_NUM})?%\s*(?:recurring\s*|lifetime\s*)?commissions?"
        rf"(?:\s*(?:per|on|for)\s*(?:each\s*|every\s*)?(?:sale|referral|signup|sign-up|purchase|order|customer)s?)?)"
    ),
    re.compile(rf"({_NUM}%\s*(?:of|on)\s*(?:each|every|all)\s*(?:sale|purchase|order|payment)s?)"),
    re.compile(rf"({_NUM}%\s*per\s*(?:sale|referral|signup))"),
    re.compile(rf"(commission(?:\s*rate)?(?:\s*of)?\s*(?:up\s*to\s*)?{_NUM}%(?:{_RANGE_SEP}{_NUM}%)?)"),
    re.compile(
        rf"(earn\s*(?:up\s*to\s*)?{_CUR}?{_NUM}%?(?:{_RANGE_SEP}{_CUR}?{_NUM}%?)?"
        rf"(?:\s*(?:per|for\s*(?:each|every))\s*(?:sale|referral|signup|lead|customer))?)"
    ),
    re.compile(
        rf"(pay(?:s|ing|ment)?\s*(?:out\s*)?{_CUR}{_NUM}(?:{_RANGE_SEP}{_CUR}?{_NUM})?"
        rf"(?:\s*per\s*(?:sale|referral|signup|lead|customer))?)"
    ),
]

COOKIE_PATTERNS: List[Pattern] = [
    re.compile(rf"(\d+(?:{_RANGE_SEP}\d+)?[\s-]*{_PERIOD}[\s-]*cookies?(?:\s*(?:window|period|duration|life))?)"),
    re.compile(rf"(cookies?\s*(?:duration|period|lifetime|life|window)(?:\s*(?:of|is))?\s*\d+(?:{_RANGE_SEP}\d+)?[\s-]*{_PERIOD})"),
    re.compile(rf"(\d+(?:{_RANGE_SEP}\d+)?[\s-]*{_PERIOD}\s*(?:tracking|attribution)\s*(?:period|window))"),
    re.compile(rf"((?:tracking|attribution)\s*(?:period|window)(?:\s*of)?\s*\d+(?:{_RANGE_SEP}\d+)?[\s-]*{_PERIOD})"),
    re.compile(rf"(\d+(?:{_RANGE_SEP}\d+)?[\s-]*{_PERIOD}\s*referral\s*(?:period|window))"),
]

PAYOUT_PATTERNS: List[Pattern] = [
    re.compile(r"(revenue\s*share|rev\s*share)"),
    re.compile(r"(cost\s*per\s*acquisition|\bcpa\b)"),
    re.compile(r"(cost\s*per\s*lead|\bcpl\b)"),
    re.compile(r"(pay\s*per\s*click|\bppc\b)"),
    re.compile(r"(recurring\s*commissions?)"),
    re.compile(r"(lifetime\s*commissions?)"),
    re.compile(r"(one[\s-]time\s*commissions?)"),
    re.compile(r"(two[\s-]tier\s*commissions?)"),
]


@dataclass
class ProgramTerms:
    """Commercial terms found on an affiliate page."""
    commission: Optional[str] = None
    cookie_duration: Optional[str] = None
    payout_type: Optional[str] = None


def _is_placeholder(email: str) -> bool:
    lowered = email.lower()
    if lowered.endswith(ASSET_SUFFIXES):
        return True
    return any(marker in lowered for marker in EMAIL_BLACKLIST)


@safe_extract(list)
def extract_emails(html: HtmlInput) -> List[str]:
    """All email-shaped tokens in raw HTML, minus placeholders, in document order."""
    raw = html if isinstance(html, str) else str(html or "")
    emails: List[str] = []
    seen = set()
    for match in EMAIL_PATTERN.findall(raw):
        email = match.strip(".")
        key = email.lower()
        if key in seen or _is_placeholder(email):
            continue
        seen.add(key)
        emails.append(email)
    return emails


def pick_contact_email(emails: List[str]) -> Optional[str]:
    """Prefer an affiliate/partner/referral mailbox, otherwise the first address."""
    if not emails:
        return None
    for email in emails:
        local_part = email.split("@", 1)[0].lower()
        if any(hint in local_part for hint in PREFERRED_EMAIL_HINTS):
            return email
    return emails[0]


def _first_match(patterns: List[Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()
    return None


def page_text(html: HtmlInput) -> str:
    """Lower-cased visible text, the input the term patterns run against."""
    return visible_text(html).lower()


@safe_extract(lambda: None)
def extract_commission(text: str) -> Optional[str]:
    return _first_match(COMMISSION_PATTERNS, text.lower())


@safe_extract(lambda: None)
def extract_cookie_duration(text: str) -> Optional[str]:
    return _first_match(COOKIE_PATTERNS, text.lower())


@safe_extract(lambda: None)
def extract_payout_type(text: str) -> Optional[str]:
    return _first_match(PAYOUT_PATTERNS, text.lower())


@safe_extract(ProgramTerms)
def extract_program_terms(html: HtmlInput) -> ProgramTerms:
    """Run the three term categories independently over one page."""
    text = page_text(html)
    return ProgramTerms(
        commission=extract_commission(text),
        cookie_duration=extract_cookie_duration(text),
        payout_type=extract_payout_type(text),
    )
