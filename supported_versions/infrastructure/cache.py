"""File-backed cache of the last verified policy document per server."""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from supported_versions.core.schema import PolicyDocument
from supported_versions.domain.servers import SupportedVersionsSource

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "supportedVersions:"


def cache_key(server_url: str) -> str:
    return f"{CACHE_KEY_PREFIX}{server_url}"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    document: PolicyDocument
    source: SupportedVersionsSource


class CacheStore(Protocol):
    """Persistence contract for verified policy documents."""

    def get(self, server_url: str) -> CacheEntry | None: ...

    def set(self, server_url: str, document: PolicyDocument, source: SupportedVersionsSource) -> None: ...


class FileCacheStore:
    """JSON key-value file; last writer wins per key. Access is serialised on one lock."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable supported versions cache %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(data, fp, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def get(self, server_url: str) -> CacheEntry | None:
        with self._lock:
            raw = self._read_all().get(cache_key(server_url))
        if not isinstance(raw, dict):
            return None
        try:
            return CacheEntry(
                document=PolicyDocument.model_validate(raw.get("document")),
                source=SupportedVersionsSource(raw.get("source")),
            )
        except (ValidationError, ValueError) as exc:
            logger.warning("Discarding corrupt cache entry for %s: %s", server_url, exc)
            return None

    def set(self, server_url: str, document: PolicyDocument, source: SupportedVersionsSource) -> None:
        with self._lock:
            data = self._read_all()
            data[cache_key(server_url)] = {"source": source.value, "document": document.to_wire()}
            self._write_all(data)


class InMemoryCacheStore:
    """Process-local cache used in tests."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, server_url: str) -> CacheEntry | None:
        return self._entries.get(cache_key(server_url))

    def set(self, server_url: str, document: PolicyDocument, source: SupportedVersionsSource) -> None:
        self._entries[cache_key(server_url)] = CacheEntry(document=document, source=source)

    def reset(self) -> None:
        self._entries.clear()
