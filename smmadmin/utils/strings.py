"""String processing utilities for smmadmin."""

from typing import Iterable, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment


# Formatting tags kept in post bodies; anything else is unwrapped to its text
ALLOWED_TAGS = {
    "a", "abbr", "b", "blockquote", "br", "caption", "cite", "code", "col",
    "colgroup", "dd", "div", "dl", "dt", "em", "figcaption", "figure",
    "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "kbd", "li", "mark",
    "ol", "p", "pre", "q", "s", "small", "span", "strong", "sub", "sup",
    "table", "tbody", "td", "tfoot", "th", "thead", "time", "tr", "u", "ul",
}

# Tags removed together with their content
DROPPED_TAGS = ["script", "style", "textarea", "option", "noscript", "iframe"]

ALLOWED_ATTRIBUTES = {
    "a": {"href", "name", "target"},
}

ALLOWED_URL_SCHEMES = {"", "http", "https", "ftp", "mailto", "tel"}


def parse_languages(value: Optional[str]) -> List[str]:
    """Split a comma-separated language list, dropping blanks.

    Args:
        value: Raw form value such as "en, de,,fr"

    Returns:
        List of language codes
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def join_hashtags(hashtags: Optional[Iterable[str]]) -> str:
    return " ".join(hashtags or [])


def _is_safe_url(url: str) -> bool:
    return urlparse(url.strip()).scheme.lower() in ALLOWED_URL_SCHEMES


def sanitize_html(html: Optional[str]) -> str:
    """Strip unsafe markup from user-supplied post HTML.

    Scripts, styles and comments are removed entirely, unknown tags are
    replaced by their text, and all attributes are dropped except links
    with a safe URL scheme.

    Args:
        html: Raw HTML (may be None)

    Returns:
        Sanitized HTML string
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(DROPPED_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue

        allowed = ALLOWED_ATTRIBUTES.get(tag.name, set())
        tag.attrs = {
            name: value for name, value in tag.attrs.items() if name in allowed
        }
        href = tag.attrs.get("href")
        if href and not _is_safe_url(href):
            del tag.attrs["href"]

    return str(soup)
