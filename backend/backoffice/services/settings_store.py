from __future__ import annotations
import json, os, tempfile, threading
from pathlib import Path
from typing import Iterator, Protocol

import structlog

from backoffice.errors import StorageError
from backoffice.services.export import DOMAIN_FIELDS, parse_settings

log = structlog.get_logger()

Fields = dict[str, str]


class KeyValueStore(Protocol):
    def get(self, key: str) -> Fields | None: ...
    def set(self, key: str, fields: Fields) -> bool: ...
    def delete(self, key: str) -> bool: ...
    def items(self) -> Iterator[tuple[str, Fields]]: ...


class FlatFileStore:
    """
    Whole-file JSON store for small admin settings (domains, downloaders, ...).
    Every write rewrites the file through a temp file in the same directory
    and os.replace, so readers see either the old or the new file, never a
    truncated one.
    Share one instance per file: the lock only orders writers that go through
    the same object.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Fields]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"could not read {self.path}") from e
        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except ValueError as e:
            log.error("settings_store_corrupt", path=str(self.path), error=str(e))
            raise StorageError(f"{self.path} is not valid JSON") from e

    def _write_atomic(self, data: dict[str, Fields]) -> bool:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError as e:
            log.error("settings_store_write_failed", path=str(self.path), error=str(e))
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            return False
        return True

    def get(self, key: str) -> Fields | None:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, fields: Fields) -> bool:
        if not key:
            return False
        with self._lock:
            data = self._load()
            data[key] = dict(fields)
            return self._write_atomic(data)

    def set_many(self, rows: dict[str, Fields]) -> bool:
        with self._lock:
            data = self._load()
            data.update({k: dict(v) for k, v in rows.items()})
            return self._write_atomic(data)

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._load()
            if key not in data:
                return False
            del data[key]
            return self._write_atomic(data)

    def items(self) -> Iterator[tuple[str, Fields]]:
        with self._lock:
            data = self._load()
        return iter(data.items())


def import_settings(store: FlatFileStore, text: str, fields: tuple[str, ...] = DOMAIN_FIELDS) -> tuple[int, list[int]]:
    """Merge an exchange file into the store; parsed keys overwrite existing ones."""
    entries, skipped = parse_settings(text, fields)
    if entries and not store.set_many(entries):
        raise StorageError(f"could not write {store.path}")
    log.info("settings_imported", path=str(store.path), imported=len(entries), skipped=len(skipped))
    return len(entries), skipped
