from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PolicyModel(BaseModel):
    """Shared configuration for documents decoded from signed tokens."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class Message(PolicyModel):
    remaining_days: int = Field(alias="remainingDays")
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    type: Literal["primary", "warning", "danger"] | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    link: str | None = None


class VersionEntry(PolicyModel):
    version: str
    expiration: datetime
    messages: list[Message] | None = None

    @field_validator("expiration")
    @classmethod
    def expiration_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class PolicyException(PolicyModel):
    """Workspace-scoped override evaluated before the general version list."""

    domain: str | None = None
    unique_id: str | None = Field(default=None, alias="uniqueId")
    versions: list[VersionEntry] = Field(default_factory=list)
    messages: list[Message] | None = None


class PolicyDocument(PolicyModel):
    """Trusted supported-versions payload, only ever built from a verified token."""

    timestamp: str | None = None
    versions: list[VersionEntry] | None = None
    exceptions: PolicyException | None = None
    enforcement_start_date: datetime | None = Field(default=None, alias="enforcementStartDate")
    messages: list[Message] | None = None
    i18n: dict[str, dict[str, str]] | None = None

    @field_validator("enforcement_start_date")
    @classmethod
    def enforcement_as_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SignedPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    signed: str | None = None


class ServerInfo(BaseModel):
    """Subset of the ``api/info`` response used for version checks."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str | None = None
    supported_versions: SignedPayload | None = Field(default=None, alias="supportedVersions")

    @field_validator("supported_versions", mode="before")
    @classmethod
    def _wrap_bare_token(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"signed": value}
        return value

    @property
    def signed(self) -> str | None:
        return self.supported_versions.signed if self.supported_versions else None


class CloudInfo(SignedPayload):
    """Response of the vendor-cloud supported-versions endpoint."""
