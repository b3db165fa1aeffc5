"""Domain layer definitions."""

from .events import (
    INBOUND_EVENTS,
    ServerEvent,
    ServerReady,
    ServerReloaded,
    ServerUniqueIdUpdated,
    ServerVersionUpdated,
    SupportedVersionDialogDismissed,
    SupportedVersionsError,
    SupportedVersionsLoading,
    SupportedVersionsUpdated,
)
from .servers import ServerRef, SupportedVersionsSource

__all__ = [
    "INBOUND_EVENTS",
    "ServerEvent",
    "ServerReady",
    "ServerRef",
    "ServerReloaded",
    "ServerUniqueIdUpdated",
    "ServerVersionUpdated",
    "SupportedVersionDialogDismissed",
    "SupportedVersionsError",
    "SupportedVersionsLoading",
    "SupportedVersionsSource",
    "SupportedVersionsUpdated",
]
