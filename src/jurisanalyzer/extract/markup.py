"""Structured-markup helpers — BeautifulSoup queries over portal HTML."""

from __future__ import annotations

import re

import html2text
from bs4 import BeautifulSoup, Tag

from jurisanalyzer.extract.rules import ECLI_PREFIX_TAGS, ECLI_TOKEN_RE, STRIP_TAGS

# html2text converter for rich blocks (sumário)
_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.body_width = 0

_BLANK_RUN_RE = re.compile(r"\n{3,}")


def parse(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def first_match(soup: BeautifulSoup, selectors: tuple[str, ...]) -> Tag | None:
    """Return the first element matching the ranked *selectors* that has text."""
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None and node.get_text(strip=True):
            return node
    return None


def select_text(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    """Single-line text of the first matching element, whitespace collapsed."""
    node = first_match(soup, selectors)
    if node is None:
        return None
    return " ".join(node.get_text(" ", strip=True).split())


def select_list_text(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    """Text of the first match with child items joined by ``;``."""
    node = first_match(soup, selectors)
    if node is None:
        return None
    return node.get_text(";", strip=True)


def select_block(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    """Multi-line text of the first matching element, line breaks kept."""
    node = first_match(soup, selectors)
    if node is None:
        return None
    return block_text(node)


def select_rich_text(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    """Inner HTML of the first match converted to readable text via html2text."""
    node = first_match(soup, selectors)
    if node is None:
        return None
    return _h2t.handle(node.decode_contents()).strip()


def prefixed_ecli(soup: BeautifulSoup) -> str | None:
    """Find an ECLI in the first h2/div/span whose text starts with ``ECLI:``."""
    for node in soup.find_all(list(ECLI_PREFIX_TAGS)):
        text = node.get_text(" ", strip=True)
        if text.startswith("ECLI:"):
            match = ECLI_TOKEN_RE.match(text)
            return match.group(0) if match else text.split()[0]
    return None


def body_text(soup: BeautifulSoup) -> str:
    """Whole-document text with non-content tags removed.

    Decomposes tags in place, so call it after every other query on *soup*.
    """
    for tag in soup.find_all(list(STRIP_TAGS)):
        tag.decompose()
    root = soup.body or soup
    return block_text(root)


def block_text(node: Tag | BeautifulSoup) -> str:
    lines = (line.strip() for line in node.get_text("\n").splitlines())
    text = "\n".join(lines).strip()
    return _BLANK_RUN_RE.sub("\n\n", text)
