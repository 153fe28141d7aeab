"""Domain models shared by the extractor, the store and the query layer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

# Placeholder for fields the extractor could not resolve.
UNKNOWN = "Desconhecido"

# Characters that are unsafe in file names on common filesystems.
_UNSAFE_NAME_RE = re.compile(r'[:/\\?%*|"<>]')


def sanitize_name(name: str) -> str:
    """Replace filesystem-unsafe characters with ``_``.

    Example:
        "ECLI:PT:STJ:2022:167.15" -> "ECLI_PT_STJ_2022_167.15"
    """
    return _UNSAFE_NAME_RE.sub("_", name.strip())


class ImportMalformed(ValueError):
    """Raised when a serialized record cannot be turned into a LegalRecord."""


@dataclass
class LegalRecord:
    """One court decision (acórdão) in structured form.

    Attribute names are snake_case; ``to_dict()`` / ``from_dict()`` map them to
    the stable serialized field names (``textoIntegral``, ``fileName``).
    """

    id: str
    ecli: str = UNKNOWN
    processo: str = UNKNOWN
    data: str = UNKNOWN
    relator: str = UNKNOWN
    descritores: list[str] = field(default_factory=list)
    sumario: str = ""
    texto_integral: str = ""
    fundamentacao: str | None = None
    adjuntos: list[str] = field(default_factory=list)
    url: str = ""
    file_name: str | None = None

    @property
    def has_ecli(self) -> bool:
        return bool(self.ecli) and self.ecli != UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "ecli": self.ecli,
            "processo": self.processo,
            "data": self.data,
            "relator": self.relator,
            "descritores": list(self.descritores),
            "sumario": self.sumario,
            "textoIntegral": self.texto_integral,
            "adjuntos": list(self.adjuntos),
            "url": self.url,
        }
        if self.fundamentacao is not None:
            data["fundamentacao"] = self.fundamentacao
        if self.file_name is not None:
            data["fileName"] = self.file_name
        return data

    @classmethod
    def from_dict(cls, data: Any) -> LegalRecord:
        """Validate *data* and build a LegalRecord.

        Raises:
            ImportMalformed: If *data* is not a mapping, has no usable ``ecli``,
                or carries list fields of the wrong shape.
        """
        if not isinstance(data, dict):
            raise ImportMalformed(f"expected an object, got {type(data).__name__}")

        ecli = data.get("ecli")
        if not isinstance(ecli, str) or not ecli.strip():
            raise ImportMalformed("record has no 'ecli'")

        record_id = data.get("id") or ecli
        if not isinstance(record_id, str):
            raise ImportMalformed(f"record '{ecli}' has a non-string 'id'")

        return cls(
            id=record_id,
            ecli=ecli,
            processo=_text(data, "processo", UNKNOWN),
            data=_text(data, "data", UNKNOWN),
            relator=_text(data, "relator", UNKNOWN),
            descritores=_string_list(data, "descritores", ecli),
            sumario=_text(data, "sumario", ""),
            texto_integral=_text(data, "textoIntegral", ""),
            fundamentacao=_optional_text(data, "fundamentacao"),
            adjuntos=_string_list(data, "adjuntos", ecli),
            url=_text(data, "url", ""),
            file_name=_optional_text(data, "fileName"),
        )


@dataclass
class RawCapture:
    """Captured text or markup awaiting extraction."""

    name: str
    content: str
    subfolder: str | None = None
    timestamp: float | None = None


# ------------------------------------------------------------------
# from_dict helpers
# ------------------------------------------------------------------


def _text(data: dict, key: str, default: str) -> str:
    value = data.get(key)
    if value is None:
        return default
    return str(value)


def _optional_text(data: dict, key: str) -> str | None:
    value = data.get(key)
    return None if value is None else str(value)


def _string_list(data: dict, key: str, ecli: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ImportMalformed(f"record '{ecli}' has a non-list '{key}'")
    return [str(v) for v in value]
