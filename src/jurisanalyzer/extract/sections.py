"""Heuristics over the full decision text: descriptors, reasoning, co-signers."""

from __future__ import annotations

import logging

from jurisanalyzer.db.models import UNKNOWN
from jurisanalyzer.extract.rules import (
    DECISION_HEADERS,
    DESCRIPTOR_SPLIT_RE,
    LEADING_NUMBERING_RE,
    MIN_LINE_LENGTH,
    NOISE_MARKERS,
    REASONING_HEADERS,
)

logger = logging.getLogger(__name__)


def split_descriptors(raw: str | None) -> list[str]:
    """Split a descriptor string on ``,`` / ``;``; empties dropped, order kept."""
    if not raw:
        return []
    return [d.strip() for d in DESCRIPTOR_SPLIT_RE.split(raw) if d.strip()]


def isolate_reasoning(
    text: str,
    *,
    fallback_offset: int,
    decision_min_offset: int,
) -> str:
    """Cut the legal-reasoning section out of a full decision text.

    The first header pattern (in priority order) that matches anywhere marks
    the start. Without a header, the first *fallback_offset* characters are
    skipped, assuming report and facts fill the opening of the document. The
    section ends at the first decision header found past *decision_min_offset*
    characters from its start.
    """
    start: int | None = None
    for pattern in REASONING_HEADERS:
        match = pattern.search(text)
        if match:
            start = match.start()
            break

    if start is None:
        logger.debug("No reasoning header found; skipping %d chars", fallback_offset)
        return text[fallback_offset:].strip() if len(text) > fallback_offset else text.strip()

    section = text[start:].strip()
    for pattern in DECISION_HEADERS:
        for match in pattern.finditer(section):
            if match.start() > decision_min_offset:
                return section[: match.start()].strip()
    return section


def find_cosigners(
    text: str,
    relator: str,
    *,
    window: int,
    max_length: int,
) -> list[str]:
    """Return the names signing right after the last mention of *relator*.

    Lines in the window that are too long, too short, or carry a noise marker
    (nota, voto, página) are dropped; leading numbering is stripped.
    """
    if not relator or relator == UNKNOWN:
        return []

    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if len(line) >= MIN_LINE_LENGTH]

    needle = relator.lower()
    anchor = next(
        (i for i in range(len(lines) - 1, -1, -1) if needle in lines[i].lower()),
        None,
    )
    if anchor is None:
        logger.debug("Relator %r not found in text; no co-signers", relator)
        return []

    names: list[str] = []
    for line in lines[anchor + 1 : anchor + 1 + window]:
        lowered = line.lower()
        if len(line) >= max_length or any(marker in lowered for marker in NOISE_MARKERS):
            continue
        name = LEADING_NUMBERING_RE.sub("", line).strip()
        if len(name) >= MIN_LINE_LENGTH:
            names.append(name)
    return names
