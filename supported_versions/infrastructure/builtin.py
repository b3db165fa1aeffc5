"""Loader for the policy token bundled with the application."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from supported_versions.core.errors import VerificationError
from supported_versions.core.schema import PolicyDocument
from supported_versions.core.verifier import PUBLIC_KEY, decode

logger = logging.getLogger(__name__)


class BuiltinSupportedVersions:
    """Reads and verifies the bundled token once, then serves it from memory."""

    def __init__(self, path: Path, *, public_key: str | bytes = PUBLIC_KEY) -> None:
        self._path = Path(path)
        self._public_key = public_key
        self._loaded = False
        self._document: PolicyDocument | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> PolicyDocument | None:
        if self._loaded:
            return self._document
        async with self._lock:
            if not self._loaded:
                self._document = await self._read()
                self._loaded = True
        return self._document

    async def _read(self) -> PolicyDocument | None:
        try:
            token = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except OSError as exc:
            logger.warning("Error loading builtin supported versions from %s: %s", self._path, exc)
            return None
        try:
            return decode(token, public_key=self._public_key)
        except VerificationError as exc:
            logger.error("Builtin supported versions at %s failed verification: %s", self._path, exc)
            return None
