"""
Catalog extractors: tags, use-cases and features for the subject listing.
"""
import re
from dataclasses import dataclass, field
from typing import Iterable, List

from affiliate_scout.extractors.soup import HtmlInput, clean_text, make_soup, safe_extract
from affiliate_scout.models.subject import MAX_FEATURES, MAX_TAGS, MAX_USE_CASES


TAG_SELECTORS = ".category, .categories, .tags, .tag"
TAG_SEPARATORS = re.compile(r"[,|/]")
MAX_TAG_LENGTH = 50

USE_CASE_SELECTORS = [
    ".features h3", ".benefits h3", ".use-cases h3",
    ".features h4", ".benefits h4", ".use-cases h4",
    ".features li", ".benefits li", ".use-cases li",
    ".features .title", ".benefits .title", ".use-cases .title",
    ".how-it-works h3", ".what-you-can-do h3", ".solutions h3",
]

FEATURE_SELECTORS = [
    ".features li", ".feature-list li", ".feature li",
    ".features-section li", ".key-features li",
    ".features .item", ".feature-list .item",
]

BULLET_MARKS = ("✓", "✅", "•")
LEADING_BULLET = re.compile(r"^[✓✅•]\s*")

MIN_ITEM_LENGTH = 5
MAX_ITEM_LENGTH = 150


@dataclass
class CatalogSignals:
    """Descriptive lists found on a page, de-duplicated and capped."""
    tags: List[str] = field(default_factory=list)
    use_cases: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)


def dedupe(items: Iterable[str], cap: int) -> List[str]:
    """Order-preserving de-duplication, truncated to ``cap`` entries."""
    result: List[str] = []
    seen = set()
    for item in items:
        if not item or item in seen:
            continue
        seen.add(item)
        result.append(item)
        if len(result) >= cap:
            break
    return result


def _plausible(text: str) -> bool:
    return MIN_ITEM_LENGTH <= len(text) <= MAX_ITEM_LENGTH


def _split_tags(raw: str) -> List[str]:
    parts = [clean_text(part) for part in TAG_SEPARATORS.split(raw)]
    return [part for part in parts if part and len(part) <= MAX_TAG_LENGTH]


def _texts(soup, selectors: List[str]) -> List[str]:
    texts = []
    for selector in selectors:
        for element in soup.select(selector):
            text = clean_text(element.get_text(" "))
            if text and _plausible(text):
                texts.append(text)
    return texts


@safe_extract(CatalogSignals)
def extract_catalog(html: HtmlInput) -> CatalogSignals:
    """Tags from keyword metadata and tag elements; use-cases and features from list sections."""
    soup = make_soup(html)

    tags: List[str] = []
    keywords = soup.find("meta", attrs={"name": re.compile(r"^keywords$", re.I)})
    if keywords and keywords.get("content"):
        tags.extend(_split_tags(keywords["content"]))
    for element in soup.select(TAG_SELECTORS):
        tags.extend(_split_tags(element.get_text(" ")))

    use_cases = _texts(soup, USE_CASE_SELECTORS)

    features = _texts(soup, FEATURE_SELECTORS)
    for item in soup.select("ul li"):
        text = clean_text(item.get_text(" "))
        if not any(mark in text for mark in BULLET_MARKS):
            continue
        text = LEADING_BULLET.sub("", text).strip()
        if _plausible(text):
            features.append(text)

    return CatalogSignals(
        tags=dedupe(tags, MAX_TAGS),
        use_cases=dedupe(use_cases, MAX_USE_CASES),
        features=dedupe(features, MAX_FEATURES),
    )
