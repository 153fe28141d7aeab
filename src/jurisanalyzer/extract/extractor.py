"""Field extractor — raw captured document → LegalRecord.

Each field is resolved independently through its own ordered rule chain
(markup selectors or labelled lines, then the locator for the ECLI, then the
"Desconhecido" placeholder), so a miss in one field never blocks the others.
Only a failure to process the document as a whole is reported as an error.
"""

from __future__ import annotations

import logging
import time
import urllib.parse
from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup

from jurisanalyzer.config import ExtractionCfg
from jurisanalyzer.db.models import UNKNOWN, LegalRecord, sanitize_name
from jurisanalyzer.extract import markup, plaintext
from jurisanalyzer.extract.rules import (
    ECLI_TOKEN_RE,
    FULL_TEXT_START_RE,
    LABELS,
    MARKUP_TOKEN_RE,
    SELECTORS,
    SUMMARY_START_RE,
)
from jurisanalyzer.extract.sections import find_cosigners, isolate_reasoning, split_descriptors

logger = logging.getLogger(__name__)

PARSE_FAILURE = "parse-failure"


@dataclass
class ExtractionError:
    reason: str
    message: str


@dataclass
class ExtractionResult:
    """Outcome of ``extract()``: a record on success, an error otherwise."""

    success: bool
    record: LegalRecord | None = None
    error: ExtractionError | None = None


@dataclass
class CapturedText:
    """A captured document as seen by the resolvers."""

    raw: str
    locator: str
    soup: BeautifulSoup | None = None


Resolver = Callable[[CapturedText], "str | None"]


def is_markup(raw_content: str) -> bool:
    """True when *raw_content* carries characteristic HTML tag tokens."""
    return MARKUP_TOKEN_RE.search(raw_content) is not None


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------


def _css(field: str, query: Callable = markup.select_text) -> Resolver:
    selectors = SELECTORS[field]

    def resolve(doc: CapturedText) -> str | None:
        return query(doc.soup, selectors) if doc.soup is not None else None

    return resolve


def _label(field: str) -> Resolver:
    patterns = LABELS[field]

    def resolve(doc: CapturedText) -> str | None:
        return plaintext.labelled_value(doc.raw, patterns)

    return resolve


def _prefixed_ecli(doc: CapturedText) -> str | None:
    return markup.prefixed_ecli(doc.soup) if doc.soup is not None else None


def _ecli_token(doc: CapturedText) -> str | None:
    match = ECLI_TOKEN_RE.search(doc.raw)
    return match.group(0) if match else None


def _ecli_label(doc: CapturedText) -> str | None:
    value = plaintext.labelled_value(doc.raw, LABELS["ecli"])
    if value is None:
        return None
    return value if value.upper().startswith("ECLI") else f"ECLI:{value}"


def _ecli_from_locator(doc: CapturedText) -> str | None:
    """Decode an ECLI encoded in the last path segment of the locator.

    Example:
        ".../ECLI_PT_STJ_2022_167_15" -> "ECLI:PT:STJ:2022:167:15"
    """
    path = urllib.parse.urlparse(doc.locator).path or doc.locator
    segments = [s for s in path.split("/") if s]
    if not segments:
        return None
    segment = urllib.parse.unquote(segments[-1])
    if not segment.upper().startswith("ECLI"):
        return None
    return segment.replace("_", ":")


def _summary_block(doc: CapturedText) -> str | None:
    return plaintext.labelled_block(doc.raw, SUMMARY_START_RE)


def _full_text_block(doc: CapturedText) -> str | None:
    return plaintext.labelled_block(doc.raw, FULL_TEXT_START_RE, stop=None)


def _whole_text(doc: CapturedText) -> str | None:
    return doc.raw.strip() or None


def _body_text(doc: CapturedText) -> str | None:
    if doc.soup is None:
        return None
    return markup.body_text(doc.soup) or None


# Rule chains, tried in order; texto_integral must stay last in the markup
# chain because the body fallback decomposes tags.
MARKUP_RULES: dict[str, tuple[Resolver, ...]] = {
    "ecli": (_css("ecli"), _prefixed_ecli, _ecli_from_locator),
    "processo": (_css("processo"),),
    "data": (_css("data"),),
    "relator": (_css("relator"),),
    "descritores": (_css("descritores", markup.select_list_text),),
    "sumario": (_css("sumario", markup.select_rich_text),),
    "texto_integral": (_css("texto_integral", markup.select_block), _body_text),
}

TEXT_RULES: dict[str, tuple[Resolver, ...]] = {
    "ecli": (_ecli_token, _ecli_label, _ecli_from_locator),
    "processo": (_label("processo"),),
    "data": (_label("data"),),
    "relator": (_label("relator"),),
    "descritores": (_label("descritores"),),
    "sumario": (_summary_block,),
    "texto_integral": (_full_text_block, _whole_text),
}


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class FieldExtractor:
    """Turn captured HTML or pasted text into a LegalRecord.

    Args:
        config: Extraction tuning; defaults match ``ExtractionCfg()``.
        clock:  Returns the current time in seconds; used for synthetic ids.
    """

    def __init__(
        self,
        config: ExtractionCfg | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cfg = config or ExtractionCfg()
        self._clock = clock

    def extract(self, raw_content: str, source_locator: str) -> ExtractionResult:
        """Extract a record from *raw_content*. Never raises.

        Returns:
            ExtractionResult with ``success=True`` and a record, or with an
            ``ExtractionError(reason="parse-failure")`` and no record.
        """
        try:
            record = self._build(raw_content, source_locator)
        except Exception as exc:
            logger.warning("Could not parse document from %s: %s", source_locator, exc)
            return ExtractionResult(
                success=False,
                error=ExtractionError(reason=PARSE_FAILURE, message=str(exc)),
            )
        return ExtractionResult(success=True, record=record)

    def _build(self, raw_content: str, source_locator: str) -> LegalRecord:
        if not isinstance(raw_content, str):
            raise TypeError(f"raw content must be text, got {type(raw_content).__name__}")

        locator = source_locator or ""
        if is_markup(raw_content):
            doc = CapturedText(raw_content, locator, markup.parse(raw_content))
            rules = MARKUP_RULES
        else:
            doc = CapturedText(raw_content, locator)
            rules = TEXT_RULES

        ecli = _resolve(rules, "ecli", doc) or UNKNOWN
        processo = _resolve(rules, "processo", doc) or UNKNOWN
        data = _resolve(rules, "data", doc) or UNKNOWN
        relator = _resolve(rules, "relator", doc) or UNKNOWN
        descritores = split_descriptors(_resolve(rules, "descritores", doc))
        sumario = _resolve(rules, "sumario", doc) or ""
        texto_integral = _resolve(rules, "texto_integral", doc) or ""

        fundamentacao = None
        if self._cfg.isolate_reasoning:
            fundamentacao = isolate_reasoning(
                texto_integral,
                fallback_offset=self._cfg.reasoning_fallback_offset,
                decision_min_offset=self._cfg.decision_min_offset,
            )

        adjuntos = find_cosigners(
            texto_integral,
            relator,
            window=self._cfg.cosigner_window,
            max_length=self._cfg.cosigner_max_length,
        )

        record_id = ecli if ecli != UNKNOWN else self._synthetic_id(processo)
        return LegalRecord(
            id=record_id,
            ecli=ecli,
            processo=processo,
            data=data,
            relator=relator,
            descritores=descritores,
            sumario=sumario,
            texto_integral=texto_integral,
            fundamentacao=fundamentacao,
            adjuntos=adjuntos,
            url=locator,
            file_name=sanitize_name(record_id),
        )

    def _synthetic_id(self, processo: str) -> str:
        millis = int(self._clock() * 1000)
        if processo == UNKNOWN:
            return f"captura_{millis}"
        return f"{sanitize_name(processo)}_{millis}"


def _resolve(rules: dict[str, tuple[Resolver, ...]], field: str, doc: CapturedText) -> str | None:
    for resolver in rules[field]:
        value = resolver(doc)
        if value:
            return value
    logger.debug("Field %r unresolved for %s", field, doc.locator)
    return None


_default_extractor = FieldExtractor()


def extract(raw_content: str, source_locator: str) -> ExtractionResult:
    """Extract with default settings. See ``FieldExtractor.extract``."""
    return _default_extractor.extract(raw_content, source_locator)
