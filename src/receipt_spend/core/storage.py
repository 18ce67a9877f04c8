from __future__ import annotations

import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from receipt_spend.core.config import settings
from receipt_spend.core.logging import get_logger, log_event, log_exception, monotonic_ms

logger = get_logger(__name__)


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class StoredObject:
    key: str
    byte_size: int


class LocalObjectStorage:
    """Uploaded receipts on local disk, addressed by slash-separated keys."""

    def __init__(self, root: Path):
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root.resolve() not in path.parents:
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    def put(self, *, key: str, body: bytes) -> StoredObject:
        start = time.monotonic()
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body)
        except Exception:
            log_exception(
                logger,
                "storage.put.failure",
                storage_key=key,
                byte_size=len(body),
            )
            raise
        log_event(
            logger,
            "storage.put.success",
            storage_key=key,
            byte_size=len(body),
            duration_ms=monotonic_ms(start),
        )
        return StoredObject(key=key, byte_size=len(body))

    def get(self, *, key: str) -> bytes:
        path = self._path(key)
        if not path.exists():
            log_event(logger, "storage.get.failure", storage_key=key)
            raise StorageError(f"Object not found: {key}")
        return path.read_bytes()

    def delete(self, *, key: str) -> None:
        path = self._path(key)
        if path.exists():
            try:
                path.unlink()
            except Exception:
                log_exception(logger, "storage.delete.failure", storage_key=key)
                raise

    def delete_prefix(self, *, prefix: str) -> int:
        path = self._path(prefix.rstrip("/"))
        if not path.exists():
            return 0
        if path.is_file():
            path.unlink()
            return 1
        removed = sum(1 for p in path.rglob("*") if p.is_file())
        shutil.rmtree(path)
        log_event(logger, "storage.delete_prefix", prefix=prefix, removed=removed)
        return removed


_storage: LocalObjectStorage | None = None


def _storage_root() -> Path:
    root = settings.local_storage_path
    if not root.is_absolute():
        root = Path(os.getcwd()) / root
    return root


def get_storage() -> LocalObjectStorage:
    global _storage  # noqa: PLW0603
    if _storage is None:
        _storage = LocalObjectStorage(_storage_root())
    return _storage


def diagnose_storage(*, write_test: bool = False) -> dict[str, Any]:
    root = _storage_root()
    result: dict[str, Any] = {"ok": True, "backend": "local", "root": str(root)}
    if not write_test:
        return result

    key = f"diagnostics/healthz-{time.time_ns()}.txt"
    body = b"ok"
    storage = LocalObjectStorage(root)
    try:
        storage.put(key=key, body=body)
        out = storage.get(key=key)
        storage.delete(key=key)
    except Exception as e:  # noqa: BLE001
        result["ok"] = False
        result["error_type"] = type(e).__name__
        result["error"] = str(e)
        return result

    result["write_test"] = {"ok": out == body, "key": key, "byte_size": len(body)}
    if out != body:
        result["ok"] = False
    return result
