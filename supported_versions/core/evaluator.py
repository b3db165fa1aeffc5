"""Decide whether a server version is inside the supported window.

The evaluation fails open: a server without a known version, or without a
policy document, is treated as supported. Exceptions scoped to a workspace
win over the general version list, and an enforcement start date in the
future acts as a grace period for versions that are no longer listed.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence

from supported_versions.domain.servers import ServerRef

from .schema import Message, PolicyDocument, VersionEntry
from .versions import TildeRange, tilde_range

_SECONDS_PER_HOUR = 3600
_SECONDS_PER_DAY = 86400


@dataclass(frozen=True, slots=True)
class SupportStatus:
    supported: bool
    message: Message | None = None
    i18n: dict[str, dict[str, str]] | None = None
    expiration: datetime | None = None


@dataclass(frozen=True, slots=True)
class TranslatedMessage:
    title: str | None = None
    subtitle: str | None = None
    description: str | None = None
    link: str | None = None


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def _whole_units(delta_seconds: float, unit: int) -> int:
    # truncate towards zero like a calendar diff
    return int(delta_seconds / unit)


def get_expiration_message(
    messages: Sequence[Message] | None,
    expiration: datetime | None,
    *,
    now: datetime | None = None,
) -> Message | None:
    """Pick the most urgent message tier that still covers the countdown."""

    current = _now(now)
    if not messages or expiration is None or expiration < current:
        return None

    remaining = (expiration - current).total_seconds()
    if _whole_units(remaining, _SECONDS_PER_DAY) < 0:
        return None

    hours_left = _whole_units(remaining, _SECONDS_PER_HOUR)
    for message in sorted(messages, key=lambda item: item.remaining_days):
        if hours_left <= message.remaining_days * 24:
            return message
    return None


def _find_matching(entries: Sequence[VersionEntry] | None, version_range: TildeRange) -> VersionEntry | None:
    for entry in entries or ():
        if version_range.satisfied_by(entry.version):
            return entry
    return None


def _supported(
    document: PolicyDocument,
    expiration: datetime,
    messages: Sequence[Message] | None,
    now: datetime,
) -> SupportStatus:
    message = get_expiration_message(messages, expiration, now=now)
    return SupportStatus(
        supported=True,
        message=message,
        i18n=document.i18n if message else None,
        expiration=expiration,
    )


def evaluate(
    server: ServerRef | None,
    document: PolicyDocument | None = None,
    *,
    fallback_messages: Sequence[Message] | None = None,
    now: datetime | None = None,
) -> SupportStatus:
    """Evaluate ``server`` against ``document``.

    ``fallback_messages`` are used when neither the matching entry nor the
    document carries its own messages (normally the builtin document's).
    """

    if server is None or not server.version or document is None or document.versions is None:
        return SupportStatus(supported=True)

    current = _now(now)
    version_range = tilde_range(server.version)
    if version_range is None:
        return SupportStatus(supported=True)

    exceptions = document.exceptions
    if exceptions is not None:
        exception = _find_matching(exceptions.versions, version_range)
        if exception is not None and exception.expiration > current:
            messages = exception.messages or exceptions.messages or fallback_messages
            return _supported(document, exception.expiration, messages, current)

    supported_version = _find_matching(document.versions, version_range)
    if supported_version is not None and supported_version.expiration > current:
        messages = document.messages or fallback_messages
        return _supported(document, supported_version.expiration, messages, current)

    enforcement_start = document.enforcement_start_date
    if enforcement_start is not None and enforcement_start > current:
        return _supported(document, enforcement_start, document.messages, current)

    return SupportStatus(supported=False)


def _apply_params(template: str, params: dict[str, Any]) -> str:
    if not params:
        return template
    pattern = re.compile(r"\{\{(" + "|".join(re.escape(key) for key in params) + r")\}\}")
    return pattern.sub(lambda match: str(params[match.group(1)]), template)


def translate_expiration_message(
    i18n: dict[str, dict[str, str]] | None,
    message: Message | None,
    expiration: datetime,
    language: str,
    *,
    server_name: str | None = None,
    server_url: str | None = None,
    server_version: str | None = None,
    now: datetime | None = None,
) -> TranslatedMessage | None:
    """Render a message tier's template keys in ``language`` (English fallback)."""

    if message is None or not i18n:
        return None

    remaining = (expiration - _now(now)).total_seconds()
    params: dict[str, Any] = {
        "instance_version": server_version,
        "instance_ws_name": server_name,
        "instance_domain": server_url,
        "remaining_days": _whole_units(remaining, _SECONDS_PER_DAY),
        **message.params,
    }
    dictionary = i18n.get(language) or i18n.get("en") or {}

    def translate(key: str | None) -> str | None:
        if key and dictionary.get(key):
            return _apply_params(dictionary[key], params)
        return None

    return TranslatedMessage(
        title=translate(message.title),
        subtitle=translate(message.subtitle),
        description=translate(message.description),
        link=message.link,
    )
