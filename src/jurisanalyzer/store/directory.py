"""Direct-handle backend — plain files in a user-chosen directory.

Layout:
  <root>/<name>.txt                 raw capture
  <root>/<subfolder>/<name>.txt     raw capture filed under a subfolder
  <root>/<sanitized id>.json        legal record (pretty-printed)

Listing walks subdirectories recursively.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from jurisanalyzer.db.models import ImportMalformed, LegalRecord, RawCapture
from jurisanalyzer.store.base import DIRECT, StorageBackend, StorageUnavailable

logger = logging.getLogger(__name__)

_RAW_SUFFIX = ".txt"
_RECORD_SUFFIX = ".json"
_PROBE_NAME = ".juris-write-probe"


class DirectoryBackend(StorageBackend):
    """Store captures and records as files under *root*.

    Acquisition creates *root* if needed and proves it is writable; any
    failure raises StorageUnavailable so the caller can fall back.
    """

    mode = DIRECT

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            probe = self.root / _PROBE_NAME
            probe.write_text("", encoding="utf-8")
            probe.unlink()
        except OSError as exc:
            raise StorageUnavailable(
                f"Directory '{self.root}' is not writable: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Raw captures
    # ------------------------------------------------------------------

    def save_raw_capture(self, capture: RawCapture) -> None:
        target_dir = self.root / capture.subfolder if capture.subfolder else self.root
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / f"{capture.name}{_RAW_SUFFIX}"
        # One entry per name, whichever subfolder it was filed under before
        for existing in self._raw_paths(capture.name):
            if existing != target:
                existing.unlink(missing_ok=True)
        _atomic_write(target, capture.content)

    def list_raw_captures(self) -> list[RawCapture]:
        captures: list[RawCapture] = []
        for path in sorted(self.root.rglob(f"*{_RAW_SUFFIX}")):
            try:
                with path.open(encoding="utf-8", newline="") as fh:
                    content = fh.read()
                mtime = path.stat().st_mtime
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable capture %s: %s", path, exc)
                continue
            parent = path.parent.relative_to(self.root)
            captures.append(
                RawCapture(
                    name=path.stem,
                    content=content,
                    subfolder=None if parent == Path(".") else parent.as_posix(),
                    timestamp=mtime,
                )
            )
        return captures

    def delete_raw_capture(self, name: str) -> None:
        for path in self._raw_paths(name):
            path.unlink(missing_ok=True)

    def _raw_paths(self, name: str) -> list[Path]:
        # Compare stems instead of globbing on the name: names may contain [ ].
        return [p for p in self.root.rglob(f"*{_RAW_SUFFIX}") if p.stem == name]

    # ------------------------------------------------------------------
    # Legal records
    # ------------------------------------------------------------------

    def record_path(self, key: str) -> Path:
        return self.root / f"{key}{_RECORD_SUFFIX}"

    def save_legal_record(self, record: LegalRecord, key: str) -> None:
        text = json.dumps(record.to_dict(), indent=2, ensure_ascii=False)
        _atomic_write(self.record_path(key), text)

    def list_legal_records(self) -> list[LegalRecord]:
        records: list[LegalRecord] = []
        for path in sorted(self.root.rglob(f"*{_RECORD_SUFFIX}")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                records.append(LegalRecord.from_dict(data))
            except (OSError, ValueError, ImportMalformed) as exc:
                logger.warning("Skipping unreadable record file %s: %s", path, exc)
        return records


def _atomic_write(path: Path, text: str) -> None:
    """Write *text* to *path* via a temp file + rename, so readers never see half a file."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=path.suffix + ".part")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
