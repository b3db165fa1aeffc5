"""Application layer services."""

from .bindings import SupportedVersionsBindings, check_supported_version_servers
from .runtime import SupportedVersionsRuntime, build_runtime
from .supported_versions import CascadeResult, ServerSupportReport, SupportedVersionsService

__all__ = [
    "CascadeResult",
    "ServerSupportReport",
    "SupportedVersionsBindings",
    "SupportedVersionsRuntime",
    "SupportedVersionsService",
    "build_runtime",
    "check_supported_version_servers",
]
