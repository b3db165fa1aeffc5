"""Domain entities for connected servers."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from supported_versions.core.schema import PolicyDocument

FetchState = Literal["idle", "loading", "success", "error"]


class SupportedVersionsSource(str, Enum):
    """Where a verified policy document was obtained."""

    SERVER = "server"
    CLOUD = "cloud"
    BUILTIN = "builtin"


@dataclass(slots=True)
class ServerRef:
    """Known facts about a connected server, owned by the server registry."""

    url: str
    title: str | None = None
    version: str | None = None
    unique_id: str | None = None
    version_check_failure_count: int = 0
    supported_versions: PolicyDocument | None = None
    supported_versions_source: SupportedVersionsSource | None = None
    supported_versions_fetch_state: FetchState = "idle"
    last_successful_version_check: datetime | None = None
