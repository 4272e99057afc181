"""
Shared parsing helpers for the HTML signal extractors.
"""
import re
from functools import wraps
from typing import Any, Callable, Optional, Union

from bs4 import BeautifulSoup, Comment, Doctype

from affiliate_scout.utils.logger import LayerLogger

logger = LayerLogger("extractors")

HtmlInput = Union[str, bytes, BeautifulSoup, None]

INVISIBLE_TAGS = {"script", "style", "noscript", "template", "head", "title", "meta"}


def make_soup(html: HtmlInput) -> BeautifulSoup:
    """Parse raw HTML with lxml; an already parsed soup is passed through."""
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "lxml")


def safe_extract(default_factory: Callable[[], Any]):
    """
    Make an extractor total: any internal failure returns a fresh empty result.

    The failure is logged at debug level and never reaches sibling
    extractors or the pipeline.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.log_debug(
                    "extractor_failed",
                    extractor=func.__name__,
                    error=str(e),
                    error_type=e.__class__.__name__,
                )
                return default_factory()
        return wrapper
    return decorator


def visible_text(html: HtmlInput) -> str:
    """Visible page text with scripts, styles and comments removed, whitespace collapsed."""
    soup = make_soup(html)
    root = soup.body or soup
    parts = []
    for node in root.find_all(string=True):
        if isinstance(node, (Comment, Doctype)):
            continue
        if node.parent is not None and node.parent.name in INVISIBLE_TAGS:
            continue
        parts.append(str(node))
    return re.sub(r"\s+", " ", " ".join(parts)).strip()


def clean_text(value: Optional[str]) -> str:
    """Collapse whitespace in an element's text."""
    if not value:
        return ""
    return re.sub(r"\s+", " ", value).strip()


def parse_int(value: Optional[str]) -> Optional[int]:
    """Safely parse a leading integer from an attribute like ``"300"`` or ``"300px"``."""
    if not value:
        return None
    match = re.match(r"\s*(\d+)", str(value))
    if not match:
        return None
    return int(match.group(1))
