"""Tests for URL normalization and link-level extractors."""

from affiliate_scout.extractors.links import (
    extract_domain,
    extract_social_links,
    find_affiliate_links,
    find_contact_link,
    normalize_url,
    normalize_website,
    origin_of,
)


BASE = "https://acme.test/pricing"


def test_absolute_urls_pass_through():
    assert normalize_url("https://other.test/a?b=1", BASE) == "https://other.test/a?b=1"
    assert normalize_url("http://other.test/", BASE) == "http://other.test/"


def test_normalization_is_idempotent():
    for href in ["/affiliates", "partners", "./refer", "//cdn.acme.test/logo.png"]:
        once = normalize_url(href, BASE)
        assert normalize_url(once, BASE) == once


def test_root_relative_resolves_against_origin():
    assert normalize_url("/affiliates", BASE) == "https://acme.test/affiliates"


def test_relative_paths_resolve_against_origin():
    assert normalize_url("partners", BASE) == "https://acme.test/partners"
    assert normalize_url("./partners", BASE) == "https://acme.test/partners"


def test_protocol_relative_takes_base_scheme():
    assert normalize_url("//cdn.acme.test/logo.png", "http://acme.test") == "http://cdn.acme.test/logo.png"


def test_non_web_hrefs_are_dropped():
    for href in ["mailto:hi@acme.test", "tel:+123", "javascript:void(0)", "#pricing", "", None]:
        assert normalize_url(href, BASE) is None


def test_scheme_less_host_gets_https():
    assert normalize_website("acme.test") == "https://acme.test"
    assert normalize_url("acme.test") == "https://acme.test"
    assert normalize_website("http://acme.test") == "http://acme.test"


def test_origin_and_domain():
    assert origin_of("acme.test/some/page") == "https://acme.test"
    assert origin_of("http://acme.test:8080/x") == "http://acme.test:8080"
    assert extract_domain("https://www.acme.test/x") == "www.acme.test"


def test_find_affiliate_links_keeps_order_and_dedupes():
    html = """
    <html><body>
      <a href="/pricing">Pricing</a>
      <a href="/affiliates">Affiliate Program</a>
      <a href="https://acme.test/affiliates">Join our affiliates</a>
      <a href="/refer">Refer a friend</a>
    </body></html>
    """
    candidates = find_affiliate_links(html, "https://acme.test")

    assert [c.url for c in candidates] == [
        "https://acme.test/affiliates",
        "https://acme.test/refer",
    ]
    assert candidates[0].text == "Affiliate Program"


def test_find_affiliate_links_matches_href_keyword():
    html = '<a href="/partner-program">Work with us</a>'
    candidates = find_affiliate_links(html, "https://acme.test")
    assert [c.url for c in candidates] == ["https://acme.test/partner-program"]


def test_find_affiliate_links_on_empty_input():
    assert find_affiliate_links("", "https://acme.test") == []
    assert find_affiliate_links(None, "https://acme.test") == []


def test_find_contact_link():
    html = '<a href="/about">About</a><a href="/contact-sales">Talk to sales</a>'
    assert find_contact_link(html, "https://acme.test") == "https://acme.test/contact-sales"
    assert find_contact_link("<p>nothing</p>", "https://acme.test") is None


def test_social_links_are_labelled_by_platform():
    html = """
    <footer>
      <a href="https://x.com/acme">X</a>
      <a href="https://www.linkedin.com/company/acme">LinkedIn</a>
      <a href="https://discord.gg/acme">Discord</a>
      <a href="https://github.com/acme">GitHub</a>
      <a href="https://www.dropbox.com/s/file">Download</a>
    </footer>
    """
    links = extract_social_links(html, "https://acme.test")

    assert [(link.platform, link.url) for link in links] == [
        ("twitter", "https://x.com/acme"),
        ("linkedin", "https://www.linkedin.com/company/acme"),
        ("discord", "https://discord.gg/acme"),
        ("github", "https://github.com/acme"),
    ]
