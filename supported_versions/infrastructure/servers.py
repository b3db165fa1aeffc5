"""Infrastructure layer for the server registry."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Protocol

from supported_versions.domain.events import (
    ServerEvent,
    ServerUniqueIdUpdated,
    ServerVersionUpdated,
    SupportedVersionsError,
    SupportedVersionsLoading,
    SupportedVersionsUpdated,
)
from supported_versions.domain.servers import ServerRef

from .events import EventBus


class ServerRegistry(Protocol):
    """Read/observe contract for the connected servers."""

    def add_server(self, url: str, *, title: str | None = None, version: str | None = None) -> ServerRef: ...

    def get(self, url: str) -> ServerRef | None: ...

    def list_servers(self) -> list[ServerRef]: ...

    def apply(self, event: ServerEvent) -> None: ...

    def reset(self) -> None: ...


class InMemoryServerRegistry:
    """Simple in-memory registry that folds service events into server state."""

    def __init__(self) -> None:
        self._servers: dict[str, ServerRef] = {}

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    def add_server(self, url: str, *, title: str | None = None, version: str | None = None) -> ServerRef:
        server = self._servers.get(url)
        if server is None:
            server = ServerRef(url=url, title=title, version=version)
            self._servers[url] = server
        else:
            server.title = title or server.title
            server.version = version or server.version
        return server

    def get(self, url: str) -> ServerRef | None:
        return self._servers.get(url)

    def list_servers(self) -> list[ServerRef]:
        return sorted(self._servers.values(), key=lambda server: server.url)

    def reset(self) -> None:
        self._servers.clear()

    # ------------------------------------------------------------------
    # event reduction
    # ------------------------------------------------------------------
    def apply(self, event: ServerEvent) -> None:
        server = self._servers.get(event.url)
        if server is None:
            return

        if isinstance(event, SupportedVersionsLoading):
            server.supported_versions_fetch_state = "loading"
        elif isinstance(event, ServerVersionUpdated):
            server.version = event.version
        elif isinstance(event, ServerUniqueIdUpdated):
            server.unique_id = event.unique_id
        elif isinstance(event, SupportedVersionsUpdated):
            server.supported_versions = event.supported_versions
            server.supported_versions_source = event.source
            server.supported_versions_fetch_state = "success"
            if event.fresh:
                server.version_check_failure_count = 0
                server.last_successful_version_check = datetime.now(timezone.utc)
        elif isinstance(event, SupportedVersionsError):
            server.supported_versions_fetch_state = "error"
            server.version_check_failure_count += 1

    def bind(self, bus: EventBus) -> list[Callable[[], None]]:
        """Subscribe the reducer to every outbound event type."""

        return [
            bus.listen(event_type, self.apply)
            for event_type in (
                SupportedVersionsLoading,
                ServerVersionUpdated,
                ServerUniqueIdUpdated,
                SupportedVersionsUpdated,
                SupportedVersionsError,
            )
        ]
