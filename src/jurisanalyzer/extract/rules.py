"""Extraction rules as data: selectors, labels and section headers.

Everything the extractor matches against lives here so new portal layouts or
label spellings are added by extending a tuple, not by editing control flow.
Selectors target the CSM jurisprudence portal (jurisprudencia.csm.org.pt).
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------

MARKUP_TOKEN_RE = re.compile(
    r"<\s*(?:html|head|body|div|p|span|table|br|section|article)\b[^>]*>"
    r"|</\s*[a-z][a-z0-9]*\s*>",
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Structured-markup rules: ranked CSS selectors, first non-empty match wins
# ---------------------------------------------------------------------------

SELECTORS: dict[str, tuple[str, ...]] = {
    "ecli": (".ecli-id", ".field-name-ecli .field-item", ".field-name-ecli"),
    "processo": (".field-name-processo .field-item", ".process-number"),
    "data": (".field-name-data-do-acordao .field-item", ".judgment-date"),
    "relator": (".field-name-relator .field-item", ".judge-name"),
    "descritores": (".field-name-descritores .field-items", ".descriptors"),
    "sumario": (".field-name-sumario .field-item", "#sumario"),
    "texto_integral": (".field-name-texto-integral .field-item", "#texto-integral"),
}

# Elements scanned for text starting with "ECLI:" when no selector matched.
ECLI_PREFIX_TAGS: tuple[str, ...] = ("h2", "div", "span")

# Tags removed before falling back to the whole body text.
STRIP_TAGS: tuple[str, ...] = ("script", "style", "nav", "footer", "head", "noscript")

# ---------------------------------------------------------------------------
# Plain-text rules: labelled lines anchored to line boundaries
# ---------------------------------------------------------------------------

_FLAGS = re.IGNORECASE | re.MULTILINE


def _label(label: str) -> re.Pattern[str]:
    return re.compile(rf"^[ \t]*{label}[ \t]*:[ \t]*(\S.*?)[ \t]*$", _FLAGS)


LABELS: dict[str, tuple[re.Pattern[str], ...]] = {
    "ecli": (_label(r"ECLI"),),
    "processo": (_label(r"(?:N\.?[ºo°][ \t]+(?:do[ \t]+)?)?Processo"),),
    "data": (
        _label(r"Data[ \t]+(?:do[ \t]+)?Ac[óo]rd[ãa]o"),
        _label(r"Data[ \t]+da[ \t]+Decis[ãa]o"),
        _label(r"Data"),
    ),
    "relator": (_label(r"Relator(?:a)?"), _label(r"Juiz[ \t]+Relator(?:a)?")),
    "descritores": (_label(r"Descritor(?:es)?"),),
}

ECLI_TOKEN_RE = re.compile(r"\bECLI:[A-Z]{2}:[A-Z0-9]+:\d{4}:[\w.\-]+(?::[\w.\-]+)*")

# Summary block: starts after a "Sumário" label, stops at the next known label.
SUMMARY_START_RE = re.compile(r"^[ \t]*Sum[áa]rio[ \t]*(?::[ \t]*|$)", _FLAGS)
FULL_TEXT_START_RE = re.compile(
    r"^[ \t]*(?:Decis[ãa]o[ \t]+)?Texto[ \t]+Integral[ \t]*(?::[ \t]*|$)", _FLAGS
)
BLOCK_STOP_RE = re.compile(
    r"^[ \t]*(?:Decis[ãa]o[ \t]+Texto[ \t]+(?:Integral|Parcial)|Texto[ \t]+Integral"
    r"|Meio[ \t]+Processual|Vota[çc][ãa]o|Decis[ãa]o)[ \t]*:",
    _FLAGS,
)

DESCRIPTOR_SPLIT_RE = re.compile(r"[,;]")

# ---------------------------------------------------------------------------
# Body-section isolation
# ---------------------------------------------------------------------------

_ROMAN = r"(?:[IVX]+[ \t]*[.)\-–]?[ \t]*)?"


def _header(body: str) -> re.Pattern[str]:
    return re.compile(rf"^[ \t]*{_ROMAN}{body}[ \t]*[:.]?[ \t]*$", _FLAGS)


# Start of the legal reasoning, in priority order.
REASONING_HEADERS: tuple[re.Pattern[str], ...] = (
    _header(r"Fundamenta[çc][ãa]o[ \t]+(?:de[ \t]+)?Direito"),
    _header(r"Aprecia[çc][ãa]o"),
    _header(r"O[ \t]+Direito"),
    _header(r"Quest[õo]es[ \t]+a[ \t]+decidir"),
    _header(r"Cumpre[ \t]+apreciar"),
    _header(r"Fundamenta[çc][ãa]o[ \t]+Jur[íi]dica"),
    _header(r"Enquadramento[ \t]+jur[íi]dico"),
)

# Start of the dispositive part that closes the reasoning.
DECISION_HEADERS: tuple[re.Pattern[str], ...] = (
    _header(r"Decis[ãa]o"),
    _header(r"Dispositivo"),
    re.compile(r"^[ \t]*Pelo[ \t]+exposto[ \t]*[,.:]", _FLAGS),
)

# ---------------------------------------------------------------------------
# Co-signers
# ---------------------------------------------------------------------------

NOISE_MARKERS: tuple[str, ...] = ("nota", "voto", "página")
LEADING_NUMBERING_RE = re.compile(r"^[\d\s.,;:()\-–—•*]+")
MIN_LINE_LENGTH = 3
