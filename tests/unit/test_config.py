"""Tests for the jurisanalyzer config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from jurisanalyzer.config import PORTAL_PREFIX, ConfigError, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


@pytest.fixture
def missing_global(tmp_path: Path) -> Path:
    return tmp_path / "nonexistent" / "config.yaml"


# ---------------------------------------------------------------------------
# Defaults: no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path, missing_global: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.storage.directory is None
    assert cfg.storage.db_path == ".juris.db"
    assert cfg.extraction.isolate_reasoning is True
    assert cfg.extraction.reasoning_fallback_offset == 6_000
    assert cfg.extraction.cosigner_window == 5
    assert cfg.ingest.portal_prefix == PORTAL_PREFIX
    assert cfg.ingest.min_content_length == 200
    assert cfg.ingest.min_fetch_length == 500
    assert len(cfg.ingest.proxies) == 2
    assert cfg.llm.model == "gemini/gemini-2.5-pro"
    assert cfg.llm.max_context_chars == 15_000


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.llm.model == "gemini/gemini-2.5-pro"


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"llm": {"model": "openai/gpt-4o"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.llm.model == "openai/gpt-4o"
    assert cfg.llm.temperature == pytest.approx(0.1)


def test_load_config_project_partial_override(tmp_path: Path) -> None:
    """Per-project juris.yaml overrides one field; global values for other fields survive."""
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"ingest": {"batch_delay": 2.0, "fetch_timeout": 5}})

    _write_yaml(tmp_path / "juris.yaml", {"ingest": {"batch_delay": 0}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.ingest.batch_delay == 0
    assert cfg.ingest.fetch_timeout == pytest.approx(5.0)


def test_load_config_extraction_section(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(
        tmp_path / "juris.yaml",
        {"extraction": {"isolate_reasoning": False, "reasoning_fallback_offset": 3000}},
    )
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.extraction.isolate_reasoning is False
    assert cfg.extraction.reasoning_fallback_offset == 3000
    assert cfg.extraction.decision_min_offset == 800


def test_load_config_empty_proxy_list(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "juris.yaml", {"ingest": {"proxies": []}})
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.ingest.proxies == []


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


def test_env_overrides_project(tmp_path: Path, missing_global: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "juris.yaml", {"storage": {"db_path": "project.db"}})
    monkeypatch.setenv("JURIS_DB_PATH", "env.db")
    monkeypatch.setenv("JURIS_STORAGE_DIR", str(tmp_path / "acordaos"))
    monkeypatch.setenv("JURIS_LLM_MODEL", "ollama/llama3")

    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)
    assert cfg.storage.db_path == "env.db"
    assert cfg.storage.directory == str(tmp_path / "acordaos")
    assert cfg.llm.model == "ollama/llama3"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def test_global_config_with_api_key_raises(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"llm": {"api_key": "secret"}})

    with pytest.raises(ConfigError, match="llm.api_key"):
        load_config(project_dir=tmp_path, global_config_path=global_cfg)


def test_unknown_top_level_key_warns(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "juris.yaml", {"chunkers": {"pdf": {}}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert any("chunkers" in str(w.message) for w in caught)


def test_invalid_portal_prefix_raises(tmp_path: Path, missing_global: Path) -> None:
    _write_yaml(tmp_path / "juris.yaml", {"ingest": {"portal_prefix": "jurisprudencia.csm.org.pt"}})

    with pytest.raises(ConfigError, match="portal_prefix"):
        load_config(project_dir=tmp_path, global_config_path=missing_global)
