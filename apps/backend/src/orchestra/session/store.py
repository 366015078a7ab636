"""File-based transcript storage for exported session reports."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .report import SessionReport

try:  # pragma: no cover - platform-dependent import
    import fcntl
except ImportError:  # pragma: no cover - non-POSIX
    fcntl = None


class TranscriptStore:
    """Stores one JSON transcript per session id; re-exporting overwrites it.

    Writers in this process are serialized by a thread lock and, on POSIX,
    writers in other processes by ``flock`` on ``.transcripts.lock``. A
    transcript file is only ever replaced whole, so readers never see a
    partial export.
    """

    LOCK_NAME = ".transcripts.lock"

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._mutex = threading.RLock()

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        with self._mutex:
            if fcntl is None:
                yield
                return
            fd = os.open(self.base_dir / self.LOCK_NAME, os.O_RDWR | os.O_CREAT, 0o644)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                yield
            finally:
                os.close(fd)  # closing drops the flock

    def _path(self, session_id: str) -> Path:
        return self.base_dir / f"{session_id}.json"

    def _replace(self, target: Path, payload: str) -> None:
        staging = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.base_dir,
            prefix=f".{target.stem}-",
            suffix=".part",
            delete=False,
        )
        try:
            with staging:
                staging.write(payload)
                staging.flush()
                os.fsync(staging.fileno())
            os.replace(staging.name, target)
        except BaseException:
            Path(staging.name).unlink(missing_ok=True)
            raise

    def save(self, report: SessionReport) -> str:
        """Save a report and return its session id."""
        with self._exclusive():
            self._replace(self._path(report.session_id), report.model_dump_json(indent=2))
        return report.session_id

    def load(self, session_id: str) -> SessionReport | None:
        with self._exclusive():
            path = self._path(session_id)
            if not path.exists():
                return None
            return SessionReport.model_validate(json.loads(path.read_text()))

    def list_ids(self) -> list[str]:
        with self._exclusive():
            return sorted(path.stem for path in self.base_dir.glob("*.json"))

    def delete(self, session_id: str) -> bool:
        with self._exclusive():
            path = self._path(session_id)
            if not path.exists():
                return False
            path.unlink()
            return True
