from __future__ import annotations

"""
JSON snapshot persistence for the proposal ledger.

- Atomic write: temp file in the same directory, fsync, os.replace
- Rolling backups (.bak1, .bak2, ...) rotated before each save
- Load fallback: primary -> bak1 -> bak2 -> ...
- A .journal marker exists only while a save is in flight, so a leftover
  marker means the previous process died mid-save
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
PathLike = Union[str, Path]


def _fsync_dir(dir_path: Path) -> None:
    # not supported on every platform; the replace itself is still atomic
    try:
        fd = os.open(str(dir_path), os.O_DIRECTORY)
    except (AttributeError, OSError):
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _json_dumps(obj: JsonDict) -> bytes:
    return json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":")).encode("utf-8")


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(tmp_path), str(path))
        _fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def read_json(path: Path) -> Optional[JsonDict]:
    if not path.exists():
        return None
    try:
        obj = json.loads(path.read_bytes().decode("utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        log.warning("Unreadable ledger snapshot at %s", path, exc_info=True)
        return None
    return obj if isinstance(obj, dict) else None


class AtomicLedgerStore:
    def __init__(self, path: PathLike, *, keep_backups: int = 2) -> None:
        self.path = Path(path)
        self.keep_backups = int(keep_backups)

    @property
    def journal_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".journal")

    def backup_path(self, n: int) -> Path:
        return self.path.with_suffix(self.path.suffix + f".bak{n}")

    def exists(self) -> bool:
        return self.path.exists()

    def candidates(self) -> List[Path]:
        return [self.path] + [self.backup_path(i) for i in range(1, self.keep_backups + 1)]

    def load(self) -> Optional[JsonDict]:
        if self.journal_path.exists():
            log.warning("Previous save of %s did not complete; trying backups if needed", self.path)

        for p in self.candidates():
            obj = read_json(p)
            if obj is not None:
                if p != self.path:
                    log.warning("Loaded ledger from backup %s", p)
                return obj
        return None

    def save(self, state: JsonDict) -> None:
        data = _json_dumps(state)

        atomic_write_bytes(self.journal_path, b"1")
        self._rotate_backups()
        atomic_write_bytes(self.path, data)
        self.journal_path.unlink()

    def _rotate_backups(self) -> None:
        if self.keep_backups <= 0:
            return

        # .bak(N-1) -> .bakN, then primary -> .bak1
        for i in range(self.keep_backups, 1, -1):
            src = self.backup_path(i - 1)
            if src.exists():
                os.replace(str(src), str(self.backup_path(i)))

        if self.path.exists():
            os.replace(str(self.path), str(self.backup_path(1)))
