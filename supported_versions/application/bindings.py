"""Wire host events and the refresh command to the check scheduler.

A completed cascade is one check, whatever source it ended on; the registry
counts one failure per check through the error event. The scheduler's own
retry only covers checks that raise.
"""
from __future__ import annotations

from typing import Callable

from supported_versions.domain import (
    ServerEvent,
    ServerReady,
    ServerReloaded,
    SupportedVersionDialogDismissed,
)
from supported_versions.infrastructure import EventBus
from supported_versions.workers.scheduler import CheckScheduler

from .supported_versions import CascadeResult, SupportedVersionsService


class SupportedVersionsBindings:
    def __init__(self, service: SupportedVersionsService, scheduler: CheckScheduler) -> None:
        self._service = service
        self._scheduler = scheduler

    async def check(self, url: str) -> CascadeResult | None:
        return await self._service.update_supported_versions_data(url)

    def on_server_ready(self, event: ServerEvent) -> None:
        self._scheduler.schedule_check(event.url, self.check)

    def on_server_reloaded(self, event: ServerEvent) -> None:
        self._scheduler.schedule_check(event.url, self.check)

    def on_dialog_dismissed(self, event: ServerEvent) -> None:
        self._scheduler.schedule_check(event.url, self.check, immediate=True)

    async def refresh(self, server_url: str) -> CascadeResult | None:
        """On-demand refresh: bypasses debounce and throttle and waits for the outcome."""

        return await self._scheduler.run_now(server_url, self.check)

    def bind(self, bus: EventBus) -> list[Callable[[], None]]:
        return [
            bus.listen(ServerReady, self.on_server_ready),
            bus.listen(SupportedVersionDialogDismissed, self.on_dialog_dismissed),
            bus.listen(ServerReloaded, self.on_server_reloaded),
        ]


def check_supported_version_servers(
    bus: EventBus,
    service: SupportedVersionsService,
    scheduler: CheckScheduler,
) -> SupportedVersionsBindings:
    """Subscribe the supported-versions checks to the host events."""

    bindings = SupportedVersionsBindings(service, scheduler)
    bindings.bind(bus)
    return bindings
