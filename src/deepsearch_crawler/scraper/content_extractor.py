"""Article content extraction from raw HTML.

Strips boilerplate elements, picks the first matching content container from
:data:`~deepsearch_crawler.scraper.config.ARTICLE_SELECTORS` (falling back to
``<body>``), and converts it to markdown with ``html2text``: ATX headings,
fenced code blocks, ``*`` emphasis, no hard wrapping.

Extraction is a pure function and never raises; malformed input degrades to
whatever text can be recovered, or an empty string.
"""

from __future__ import annotations

import logging
import re

import html2text
from bs4 import BeautifulSoup

from deepsearch_crawler.scraper.config import ARTICLE_SELECTORS, STRIP_SELECTORS

logger = logging.getLogger(__name__)

_CODE_BLOCK_RE = re.compile(r"\[code\](.*?)\[/code\]", re.DOTALL)
_BLANK_RUN_RE = re.compile(r"\n{3,}")


# ---------------------------------------------------------------------------
# Markdown conversion
# ---------------------------------------------------------------------------


def _make_converter() -> html2text.HTML2Text:
    """Return an ``HTML2Text`` instance configured for stable markdown output."""
    h = html2text.HTML2Text()
    h.body_width = 0
    h.unicode_snob = True
    h.ignore_links = False
    h.ignore_images = False
    h.ignore_emphasis = False
    h.emphasis_mark = "*"
    h.strong_mark = "**"
    h.mark_code = True
    return h


def _fence_code_blocks(markdown: str) -> str:
    """Rewrite html2text ``[code]...[/code]`` markers as fenced code blocks."""

    def _replace(match: re.Match[str]) -> str:
        lines = match.group(1).strip("\n").split("\n")
        body = "\n".join(line[4:] if line.startswith("    ") else line for line in lines)
        return f"```\n{body.rstrip()}\n```"

    return _CODE_BLOCK_RE.sub(_replace, markdown)


def html_to_markdown(fragment: str) -> str:
    """Convert an HTML fragment to markdown.

    A fresh converter is built per call; ``HTML2Text`` keeps parse state on
    the instance and is not safe to share across concurrent fetches.
    """
    markdown = _make_converter().handle(fragment)
    markdown = _fence_code_blocks(markdown)
    lines = [line.rstrip() for line in markdown.split("\n")]
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))


# ---------------------------------------------------------------------------
# Public extraction function
# ---------------------------------------------------------------------------


def extract_article_text(html: str) -> str:
    """Extract the readable article content of a page as markdown.

    Args:
        html: Raw HTML string (may be partial or malformed).

    Returns:
        Markdown with leading and trailing whitespace removed.  Empty when
        nothing readable could be recovered.
    """
    try:
        soup = BeautifulSoup(html or "", "html.parser")
        for element in soup.select(STRIP_SELECTORS):
            element.decompose()

        content = ""
        for selector in ARTICLE_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                content = html_to_markdown(element.decode_contents())
                break

        if not content.strip():
            body = soup.body if soup.body is not None else soup
            content = html_to_markdown(body.decode_contents())

        return content.strip()
    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: content extraction failed: %s", exc)
        return ""
