"""
Link-level signal extractors: URL normalization, affiliate and contact
anchors, and social profile links.
"""
from typing import List, NamedTuple, Optional
from urllib.parse import urlparse

from affiliate_scout.extractors.soup import HtmlInput, clean_text, make_soup, safe_extract
from affiliate_scout.models.subject import SocialLink


# Keywords that mark an anchor as a possible affiliate program link
AFFILIATE_KEYWORDS = [
    "affiliate", "partner", "referral", "refer-a-friend", "refer a friend",
    "commission", "earn", "rewards", "ambassador", "partnership",
]

CONTACT_KEYWORD = "contact"

SOCIAL_MEDIA_DOMAINS = [
    "twitter.com", "x.com", "linkedin.com", "facebook.com", "instagram.com",
    "youtube.com", "discord.gg", "discord.com", "github.com", "medium.com",
    "tiktok.com", "pinterest.com", "reddit.com", "slack.com",
]

NON_WEB_SCHEMES = ("mailto:", "tel:", "javascript:", "data:", "sms:")


class LinkCandidate(NamedTuple):
    """An anchor that matched a keyword, with its normalized URL."""
    url: str
    text: str


def normalize_website(url: str) -> str:
    """Make sure a stored website URL carries a scheme (https by default)."""
    url = (url or "").strip()
    lowered = url.lower()
    if lowered.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    return f"https://{url}"


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for a URL (scheme added if missing)."""
    parsed = urlparse(normalize_website(url))
    return f"{parsed.scheme}://{parsed.netloc}"


def extract_domain(url: str) -> str:
    """Hostname of a URL, falling back to the raw input."""
    try:
        return urlparse(normalize_website(url)).hostname or url
    except ValueError:
        return url


def normalize_url(url: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """
    Resolve an href against the page it was found on.

    - absolute http(s) URLs pass through unchanged
    - ``//host/x`` takes the base scheme
    - ``/x`` and ``x`` resolve against the base origin
    - non-web schemes and bare fragments give None

    Without a base the input is treated as a scheme-less host.
    """
    if not url:
        return None
    url = url.strip()
    if not url:
        return None

    lowered = url.lower()
    if lowered.startswith(("http://", "https://")):
        return url
    if lowered.startswith(NON_WEB_SCHEMES) or url.startswith("#"):
        return None
    if base_url is None:
        return normalize_website(url)

    try:
        base = urlparse(normalize_website(base_url))
    except ValueError:
        return None
    if not base.netloc:
        return None

    if url.startswith("//"):
        return f"{base.scheme}:{url}"

    origin = f"{base.scheme}://{base.netloc}"
    if url.startswith("/"):
        return f"{origin}{url}"
    if url.startswith("./"):
        url = url[2:]
    return f"{origin}/{url}"


def _matches_keyword(text: str, href: str, keywords: List[str]) -> bool:
    text = text.lower()
    href = href.lower()
    return any(keyword in text or keyword in href for keyword in keywords)


@safe_extract(list)
def find_affiliate_links(html: HtmlInput, base_url: str) -> List[LinkCandidate]:
    """
    Find anchors whose text or href mentions an affiliate keyword.

    Candidates keep document order; duplicates by URL are dropped.
    """
    soup = make_soup(html)
    candidates: List[LinkCandidate] = []
    seen = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href") or ""
        text = clean_text(anchor.get_text(" "))
        if not _matches_keyword(text, href, AFFILIATE_KEYWORDS):
            continue
        url = normalize_url(href, base_url)
        if not url or url in seen:
            continue
        seen.add(url)
        candidates.append(LinkCandidate(url=url, text=text))

    return candidates


@safe_extract(lambda: None)
def find_contact_link(html: HtmlInput, base_url: str) -> Optional[str]:
    """First anchor whose text or href contains "contact"."""
    soup = make_soup(html)
    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href") or ""
        text = clean_text(anchor.get_text(" "))
        if not _matches_keyword(text, href, [CONTACT_KEYWORD]):
            continue
        url = normalize_url(href, base_url)
        if url:
            return url
    return None


def _social_platform(host: str) -> Optional[str]:
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    for domain in SOCIAL_MEDIA_DOMAINS:
        if host == domain or host.endswith("." + domain):
            if domain == "x.com":
                return "twitter"
            if "discord" in domain:
                return "discord"
            return domain.split(".")[0]
    return None


@safe_extract(list)
def extract_social_links(html: HtmlInput, base_url: str) -> List[SocialLink]:
    """Anchors pointing at a known social platform, labelled by platform."""
    soup = make_soup(html)
    links: List[SocialLink] = []
    seen = set()

    for anchor in soup.find_all("a", href=True):
        url = normalize_url(anchor.get("href"), base_url)
        if not url or url in seen:
            continue
        try:
            host = urlparse(url).hostname or ""
        except ValueError:
            continue
        platform = _social_platform(host)
        if platform:
            seen.add(url)
            links.append(SocialLink(platform=platform, url=url))

    return links
