"""Application service resolving supported-versions data for a server.

Sources are consulted in a fixed order and the first verified document wins:

1. the policy signed into the server's own ``api/info`` response,
2. the vendor cloud, which needs the workspace unique id,
3. the last verified document in the cache store,
4. the builtin document bundled with the application.

Cache and builtin hits are served together with an error event so the host
can show that the data could not be refreshed.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from supported_versions.core.errors import DataMissingError, NetworkError, VerificationError
from supported_versions.core.evaluator import (
    SupportStatus,
    TranslatedMessage,
    evaluate,
    translate_expiration_message,
)
from supported_versions.core.schema import PolicyDocument
from supported_versions.core.verifier import PUBLIC_KEY, decode
from supported_versions.domain import (
    ServerEvent,
    ServerRef,
    ServerUniqueIdUpdated,
    ServerVersionUpdated,
    SupportedVersionsError,
    SupportedVersionsLoading,
    SupportedVersionsSource,
    SupportedVersionsUpdated,
)
from supported_versions.infrastructure import (
    BuiltinSupportedVersions,
    CacheStore,
    EventBus,
    ReleasesClient,
    ServerRegistry,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[None]]

FETCH_ATTEMPTS = 3
FETCH_RETRY_DELAY = 2.0


@dataclass(frozen=True, slots=True)
class CascadeResult:
    """Outcome of one pass through the source cascade."""

    url: str
    source: SupportedVersionsSource | None
    document: PolicyDocument | None
    fresh: bool


@dataclass(frozen=True, slots=True)
class ServerSupportReport:
    url: str
    status: SupportStatus
    translated: TranslatedMessage | None = None


class SupportedVersionsService:
    """Coordinates fetching, verification, caching and fallback per server."""

    def __init__(
        self,
        registry: ServerRegistry,
        bus: EventBus,
        client: ReleasesClient,
        cache: CacheStore,
        builtin: BuiltinSupportedVersions,
        *,
        public_key: str | bytes = PUBLIC_KEY,
        fetch_attempts: int = FETCH_ATTEMPTS,
        fetch_retry_delay: float = FETCH_RETRY_DELAY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._registry = registry
        self._bus = bus
        self._client = client
        self._cache = cache
        self._builtin = builtin
        self._public_key = public_key
        self._fetch_attempts = max(1, fetch_attempts)
        self._fetch_retry_delay = fetch_retry_delay
        self._sleep = sleep

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _emit(self, event: ServerEvent) -> None:
        self._bus.dispatch(event)

    async def _with_retries(self, label: str, call: Callable[[], Awaitable[T]]) -> T | None:
        """Run ``call`` up to the configured attempts; None once exhausted."""

        for attempt in range(1, self._fetch_attempts + 1):
            try:
                return await call()
            except NetworkError as exc:
                logger.warning("%s failed (attempt %d/%d): %s", label, attempt, self._fetch_attempts, exc)
            if attempt < self._fetch_attempts:
                await self._sleep(self._fetch_retry_delay)
        logger.error("%s failed after %d attempts", label, self._fetch_attempts)
        return None

    def _verify(self, token: str | None, url: str, source: SupportedVersionsSource) -> PolicyDocument | None:
        if not token:
            return None
        try:
            return decode(token, public_key=self._public_key)
        except VerificationError as exc:
            logger.error("Error decoding %s supported versions for %s: %s", source.value, url, exc)
            return None

    async def _store(self, url: str, document: PolicyDocument, source: SupportedVersionsSource) -> None:
        try:
            await asyncio.to_thread(self._cache.set, url, document, source)
        except OSError as exc:
            logger.warning("Could not cache supported versions for %s: %s", url, exc)

    async def _fetch_unique_id(self, server: ServerRef) -> str | None:
        try:
            unique_id = await self._client.get_unique_id(server.url)
        except DataMissingError as exc:
            logger.warning("%s", exc)
        except NetworkError as exc:
            logger.warning("Error fetching unique ID for %s: %s", server.url, exc)
        else:
            self._emit(ServerUniqueIdUpdated(url=server.url, unique_id=unique_id))
            return unique_id
        return server.unique_id

    def _publish(
        self,
        url: str,
        document: PolicyDocument,
        source: SupportedVersionsSource,
        **extra: object,
    ) -> None:
        self._emit(SupportedVersionsUpdated(url=url, supported_versions=document, source=source, **extra))

    # ------------------------------------------------------------------
    # cascade
    # ------------------------------------------------------------------
    async def update_supported_versions_data(self, url: str) -> CascadeResult | None:
        """Resolve and publish supported-versions data for the server at ``url``."""

        server = self._registry.get(url)
        if server is None:
            return None

        self._emit(SupportedVersionsLoading(url=url))

        server_info = await self._with_retries(
            f"Fetching server info for {url}",
            lambda: self._client.get_server_info(url),
        )
        if server_info is not None:
            if server_info.version:
                self._emit(ServerVersionUpdated(url=url, version=server_info.version))
            document = self._verify(server_info.signed, url, SupportedVersionsSource.SERVER)
            if document is not None:
                await self._store(url, document, SupportedVersionsSource.SERVER)
                self._publish(url, document, SupportedVersionsSource.SERVER)
                return CascadeResult(url, SupportedVersionsSource.SERVER, document, fresh=True)

        unique_id = await self._fetch_unique_id(server)
        if unique_id:
            cloud_info = await self._with_retries(
                f"Fetching cloud supported versions for {url}",
                lambda: self._client.get_cloud_info(url, unique_id),
            )
            document = self._verify(cloud_info.signed if cloud_info else None, url, SupportedVersionsSource.CLOUD)
            if document is not None:
                await self._store(url, document, SupportedVersionsSource.CLOUD)
                self._publish(url, document, SupportedVersionsSource.CLOUD)
                return CascadeResult(url, SupportedVersionsSource.CLOUD, document, fresh=True)

        return await self._fall_back(url)

    async def _fall_back(self, url: str) -> CascadeResult:
        cached = await asyncio.to_thread(self._cache.get, url)
        if cached is not None:
            logger.warning("Serving cached %s supported versions for %s", cached.source.value, url)
            self._publish(
                url,
                cached.document,
                SupportedVersionsSource.CLOUD,
                from_cache=True,
                cached_source=cached.source,
            )
            self._emit(SupportedVersionsError(url=url))
            return CascadeResult(url, SupportedVersionsSource.CLOUD, cached.document, fresh=False)

        builtin = await self._builtin.load()
        if builtin is not None:
            logger.warning("Serving builtin supported versions for %s", url)
            await self._store(url, builtin, SupportedVersionsSource.BUILTIN)
            self._publish(url, builtin, SupportedVersionsSource.BUILTIN)
            self._emit(SupportedVersionsError(url=url))
            return CascadeResult(url, SupportedVersionsSource.BUILTIN, builtin, fresh=False)

        logger.error("No supported versions available for %s", url)
        self._emit(SupportedVersionsError(url=url))
        return CascadeResult(url, None, None, fresh=False)

    # ------------------------------------------------------------------
    # evaluation
    # ------------------------------------------------------------------
    async def get_support_status(self, url: str, *, language: str = "en") -> ServerSupportReport | None:
        server = self._registry.get(url)
        if server is None:
            return None

        builtin = await self._builtin.load()
        status = evaluate(
            server,
            server.supported_versions,
            fallback_messages=builtin.messages if builtin else None,
        )
        translated = None
        if status.message is not None and status.expiration is not None:
            translated = translate_expiration_message(
                status.i18n,
                status.message,
                status.expiration,
                language,
                server_name=server.title,
                server_url=server.url,
                server_version=server.version,
            )
        return ServerSupportReport(url=url, status=status, translated=translated)
