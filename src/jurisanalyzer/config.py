"""JurisAnalyzer configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (JURIS_STORAGE_DIR, JURIS_DB_PATH, JURIS_LLM_MODEL)
  3. Per-project juris.yaml
  4. Global ~/.jurisanalyzer/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".jurisanalyzer"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "juris.yaml"

# Key names that look like credentials: forbidden in global config.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["storage", "extraction", "ingest", "llm"])

PORTAL_PREFIX = "https://jurisprudencia.csm.org.pt/"

_DEFAULT_PROXIES: tuple[str, ...] = (
    "https://api.allorigins.win/raw?url={url}",
    "https://corsproxy.io/?url={url}",
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class StorageCfg:
    """Where captures and records live (juris.yaml: storage:).

    Attributes:
        directory: Directory for the direct-handle backend. When unset, or
            when the directory cannot be written, the virtual backend is used.
        db_path: SQLite file backing the virtual backend.
    """

    directory: str | None = None
    db_path: str = ".juris.db"


@dataclass
class ExtractionCfg:
    """Heuristic extraction tuning (juris.yaml: extraction:).

    ``reasoning_fallback_offset`` is an approximation of where the report and
    facts sections end in an average decision, not a guaranteed boundary.
    """

    isolate_reasoning: bool = True
    reasoning_fallback_offset: int = 6_000
    decision_min_offset: int = 800
    cosigner_window: int = 5
    cosigner_max_length: int = 100


@dataclass
class IngestCfg:
    """Capture pipeline settings (juris.yaml: ingest:)."""

    portal_prefix: str = PORTAL_PREFIX
    min_content_length: int = 200
    min_fetch_length: int = 500
    fetch_timeout: float = 20.0
    batch_delay: float = 0.5
    proxies: list[str] = field(default_factory=lambda: list(_DEFAULT_PROXIES))


@dataclass
class LlmCfg:
    """Query collaborator settings (juris.yaml: llm:)."""

    model: str = "gemini/gemini-2.5-pro"
    temperature: float = 0.1
    max_context_chars: int = 15_000


@dataclass
class JurisConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    storage: StorageCfg = field(default_factory=StorageCfg)
    extraction: ExtractionCfg = field(default_factory=ExtractionCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)
    llm: LlmCfg = field(default_factory=LlmCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate_portal_prefix(prefix: str) -> None:
    if not prefix.startswith(("https://", "http://")):
        raise ConfigError(
            f"ingest.portal_prefix must be an http(s) URL prefix, got '{prefix}'."
        )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> JurisConfig:
    """Build a *JurisConfig* from a merged raw YAML dict."""
    cfg = JurisConfig()

    if "storage" in data:
        s = data["storage"] or {}
        cfg.storage = StorageCfg(
            directory=s.get("directory") or cfg.storage.directory,
            db_path=str(s.get("db_path", cfg.storage.db_path)),
        )

    if "extraction" in data:
        e = data["extraction"] or {}
        d = cfg.extraction
        cfg.extraction = ExtractionCfg(
            isolate_reasoning=bool(e.get("isolate_reasoning", d.isolate_reasoning)),
            reasoning_fallback_offset=int(
                e.get("reasoning_fallback_offset", d.reasoning_fallback_offset)
            ),
            decision_min_offset=int(e.get("decision_min_offset", d.decision_min_offset)),
            cosigner_window=int(e.get("cosigner_window", d.cosigner_window)),
            cosigner_max_length=int(e.get("cosigner_max_length", d.cosigner_max_length)),
        )

    if "ingest" in data:
        i = data["ingest"] or {}
        d = cfg.ingest
        proxies = i.get("proxies", d.proxies)
        cfg.ingest = IngestCfg(
            portal_prefix=str(i.get("portal_prefix", d.portal_prefix)),
            min_content_length=int(i.get("min_content_length", d.min_content_length)),
            min_fetch_length=int(i.get("min_fetch_length", d.min_fetch_length)),
            fetch_timeout=float(i.get("fetch_timeout", d.fetch_timeout)),
            batch_delay=float(i.get("batch_delay", d.batch_delay)),
            proxies=[str(p) for p in (proxies or [])],
        )

    if "llm" in data:
        m = data["llm"] or {}
        cfg.llm = LlmCfg(
            model=str(m.get("model", cfg.llm.model)),
            temperature=float(m.get("temperature", cfg.llm.temperature)),
            max_context_chars=int(m.get("max_context_chars", cfg.llm.max_context_chars)),
        )

    return cfg


def _apply_env_overrides(cfg: JurisConfig) -> JurisConfig:
    """Apply JURIS_* environment variable overrides."""
    if directory := os.environ.get("JURIS_STORAGE_DIR"):
        cfg.storage.directory = directory
    if db_path := os.environ.get("JURIS_DB_PATH"):
        cfg.storage.db_path = db_path
    if model := os.environ.get("JURIS_LLM_MODEL"):
        cfg.llm.model = model
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> JurisConfig:
    """Load and return a merged *JurisConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *juris.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *JurisConfig* with env var overrides applied.

    Raises:
        ConfigError: If global config contains API-key-like fields, or if
            ``ingest.portal_prefix`` is not an http(s) URL.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    _validate_portal_prefix(cfg.ingest.portal_prefix)

    return _apply_env_overrides(cfg)
