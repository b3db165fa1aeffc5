"""Process wiring for the supported-versions subsystem."""
from __future__ import annotations

from dataclasses import dataclass

import httpx

from supported_versions.core.config import Settings, load_settings
from supported_versions.core.verifier import PUBLIC_KEY
from supported_versions.infrastructure import (
    BuiltinSupportedVersions,
    FileCacheStore,
    InMemoryEventBus,
    InMemoryServerRegistry,
    ReleasesClient,
)
from supported_versions.workers.scheduler import CheckScheduler

from .bindings import SupportedVersionsBindings, check_supported_version_servers
from .supported_versions import SupportedVersionsService


@dataclass
class SupportedVersionsRuntime:
    settings: Settings
    registry: InMemoryServerRegistry
    bus: InMemoryEventBus
    cache: FileCacheStore
    builtin: BuiltinSupportedVersions
    client: ReleasesClient
    service: SupportedVersionsService
    scheduler: CheckScheduler
    bindings: SupportedVersionsBindings

    async def aclose(self) -> None:
        await self.scheduler.shutdown()
        await self.client.aclose()


def build_runtime(settings: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> SupportedVersionsRuntime:
    """Wire registry, bus, sources, service and scheduler from ``settings``."""

    settings = settings or load_settings()
    public_key = settings.read_public_key() or PUBLIC_KEY

    registry = InMemoryServerRegistry()
    bus = InMemoryEventBus()
    registry.bind(bus)

    cache = FileCacheStore(settings.cache_path)
    builtin = BuiltinSupportedVersions(settings.builtin_path, public_key=public_key)
    client = ReleasesClient(
        cloud_url=settings.cloud_url,
        timeout=settings.request_timeout,
        http_client=http_client,
    )
    service = SupportedVersionsService(
        registry,
        bus,
        client,
        cache,
        builtin,
        public_key=public_key,
        fetch_attempts=settings.fetch_attempts,
        fetch_retry_delay=settings.fetch_retry_delay,
    )
    scheduler = CheckScheduler(
        registry,
        debounce_delay=settings.debounce_delay,
        throttle_interval=settings.throttle_interval,
        retry_delays=settings.retry_delays,
        max_retry_attempts=settings.max_retry_attempts,
        failure_threshold=settings.failure_threshold,
    )
    bindings = check_supported_version_servers(bus, service, scheduler)

    return SupportedVersionsRuntime(
        settings=settings,
        registry=registry,
        bus=bus,
        cache=cache,
        builtin=builtin,
        client=client,
        service=service,
        scheduler=scheduler,
        bindings=bindings,
    )
