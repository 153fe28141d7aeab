"""Plain-text helpers — labelled lines and label-delimited blocks."""

from __future__ import annotations

import re

from jurisanalyzer.extract.rules import BLOCK_STOP_RE


def labelled_value(text: str, patterns: tuple[re.Pattern[str], ...]) -> str | None:
    """Return the value of the first labelled line matched by *patterns*."""
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1).strip()
            if value:
                return value
    return None


def labelled_block(
    text: str,
    start: re.Pattern[str],
    stop: re.Pattern[str] | None = BLOCK_STOP_RE,
) -> str | None:
    """Return the text between the *start* label and the next *stop* label.

    Without a *stop* match the block runs to the end of *text*. Empty blocks
    count as a miss.
    """
    match = start.search(text)
    if match is None:
        return None
    rest = text[match.end():]
    if stop is not None:
        end = stop.search(rest)
        if end is not None:
            rest = rest[: end.start()]
    block = rest.strip()
    return block or None
