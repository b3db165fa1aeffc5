from __future__ import annotations


class VersionCheckError(Exception):
    """Base class for failures while resolving supported-versions data."""


class NetworkError(VersionCheckError):
    """Raised when a server, unique-id or cloud request fails."""


class VerificationError(VersionCheckError):
    """Raised when a signed policy document cannot be trusted."""


class DataMissingError(VersionCheckError):
    """Raised when a response is well formed but lacks the expected data."""

