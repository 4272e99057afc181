"""
Branding extractors: favicon, logo and hero image.

Each walks an ordered list of CSS selectors and returns the first hit,
normalized against the page URL.
"""
from typing import Optional

from affiliate_scout.extractors.links import normalize_url
from affiliate_scout.extractors.soup import HtmlInput, make_soup, parse_int, safe_extract


FAVICON_SELECTORS = [
    'link[rel="icon"]',
    'link[rel="shortcut icon"]',
    'link[rel="apple-touch-icon"]',
    'link[rel="apple-touch-icon-precomposed"]',
]

LOGO_SELECTORS = [
    "header img",
    ".logo img",
    "#logo img",
    'a[href="/"] img',
    ".navbar-brand img",
    ".header img",
    ".site-logo img",
    ".brand img",
    'img[class*="logo"]',
]

HERO_SELECTORS = [
    ".hero img",
    ".banner img",
    ".product-image img",
    ".featured-image img",
    "main img",
    ".main-content img",
    ".hero-section img",
    "#hero img",
]

MIN_HERO_DIMENSION = 200


def _img_src(img) -> Optional[str]:
    return img.get("src") or img.get("data-src")


def _looks_like_brand_asset(src: str) -> bool:
    lowered = src.lower()
    return "logo" in lowered or "icon" in lowered


@safe_extract(lambda: None)
def extract_favicon(html: HtmlInput, base_url: str) -> Optional[str]:
    """Favicon from link tags, falling back to the conventional /favicon.ico."""
    soup = make_soup(html)
    for selector in FAVICON_SELECTORS:
        element = soup.select_one(selector)
        if element is not None and element.get("href"):
            url = normalize_url(element["href"], base_url)
            if url:
                return url
    return normalize_url("/favicon.ico", base_url)


@safe_extract(lambda: None)
def extract_logo(html: HtmlInput, base_url: str) -> Optional[str]:
    """Logo image from header and logo containers."""
    soup = make_soup(html)
    for selector in LOGO_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        src = _img_src(element)
        if src:
            url = normalize_url(src, base_url)
            if url:
                return url
    return None


@safe_extract(lambda: None)
def extract_hero_image(html: HtmlInput, base_url: str) -> Optional[str]:
    """
    Main product/hero image.

    Priority:
    1. Hero, banner and main-content images (never logos or icons)
    2. og:image meta tag
    3. First <img> declaring a width or height above 200
    """
    soup = make_soup(html)

    for selector in HERO_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        src = _img_src(element)
        if src and not _looks_like_brand_asset(src):
            url = normalize_url(src, base_url)
            if url:
                return url

    og_image = soup.find("meta", property="og:image")
    if og_image and og_image.get("content") and not _looks_like_brand_asset(og_image["content"]):
        url = normalize_url(og_image["content"], base_url)
        if url:
            return url

    for img in soup.find_all("img"):
        src = _img_src(img)
        if not src or _looks_like_brand_asset(src):
            continue
        width = parse_int(img.get("width")) or 0
        height = parse_int(img.get("height")) or 0
        if width > MIN_HERO_DIMENSION or height > MIN_HERO_DIMENSION:
            url = normalize_url(src, base_url)
            if url:
                return url

    return None
