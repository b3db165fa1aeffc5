"""Events exchanged with the host application."""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from supported_versions.core.schema import PolicyDocument

from .servers import SupportedVersionsSource


@dataclass(frozen=True, slots=True)
class ServerEvent:
    type: ClassVar[str] = "server-event"

    url: str


# inbound


@dataclass(frozen=True, slots=True)
class ServerReady(ServerEvent):
    type: ClassVar[str] = "server-ready"


@dataclass(frozen=True, slots=True)
class SupportedVersionDialogDismissed(ServerEvent):
    type: ClassVar[str] = "dialog-dismissed"


@dataclass(frozen=True, slots=True)
class ServerReloaded(ServerEvent):
    type: ClassVar[str] = "server-reloaded"


INBOUND_EVENTS: dict[str, type[ServerEvent]] = {
    event.type: event for event in (ServerReady, SupportedVersionDialogDismissed, ServerReloaded)
}


# outbound


@dataclass(frozen=True, slots=True)
class SupportedVersionsLoading(ServerEvent):
    type: ClassVar[str] = "loading"


@dataclass(frozen=True, slots=True)
class ServerVersionUpdated(ServerEvent):
    type: ClassVar[str] = "version-updated"

    version: str


@dataclass(frozen=True, slots=True)
class ServerUniqueIdUpdated(ServerEvent):
    type: ClassVar[str] = "unique-id-updated"

    unique_id: str


@dataclass(frozen=True, slots=True)
class SupportedVersionsUpdated(ServerEvent):
    """A verified document is available for ``url``.

    ``from_cache`` marks documents served from the cache store after every
    live source failed; ``cached_source`` then records where the cached
    document originally came from.
    """

    type: ClassVar[str] = "supported-versions-updated"

    supported_versions: PolicyDocument
    source: SupportedVersionsSource
    from_cache: bool = False
    cached_source: SupportedVersionsSource | None = None

    @property
    def fresh(self) -> bool:
        return not self.from_cache and self.source is not SupportedVersionsSource.BUILTIN


@dataclass(frozen=True, slots=True)
class SupportedVersionsError(ServerEvent):
    type: ClassVar[str] = "supported-versions-error"
