"""Plain-text extraction from HTML error pages.

Carriers and their proxies answer failures with HTML pages. ``clean_html``
reduces such a page to readable text for an error message.
"""

import re

from bs4 import BeautifulSoup

_SPACES = re.compile(r" +")
_LEADING_SPACES = re.compile(r"^ +", re.MULTILINE)
_TRAILING_SPACES = re.compile(r" +$", re.MULTILINE)
_BLANK_LINES = re.compile(r"\n{3,}")


def clean_html(html: str) -> str:
    """Reduce an HTML document to its visible text.

    Keeps only the body content when there is one, drops tags and
    comments, turns non-breaking spaces into spaces, collapses runs of
    spaces, trims every line and limits blank lines to one.

    Args:
        html: Raw response body.

    Returns:
        Cleaned text, possibly empty.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    node = soup.body or soup
    text = node.get_text().replace("\r", "").replace("\u00a0", " ")
    text = _SPACES.sub(" ", text)
    text = _LEADING_SPACES.sub("", text)
    text = _TRAILING_SPACES.sub("", text)
    text = _BLANK_LINES.sub("\n\n", text)
    return text.strip()
