from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from supported_versions.core.evaluator import (
    evaluate,
    get_expiration_message,
    translate_expiration_message,
)
from supported_versions.core.schema import Message, PolicyDocument
from supported_versions.core.versions import TildeRange, coerce, tilde_range
from supported_versions.domain import ServerRef

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _document(**fields) -> PolicyDocument:
    return PolicyDocument.model_validate(fields)


def _server(version: str | None = "7.1.3") -> ServerRef:
    return ServerRef(url="https://chat.example.com", title="Example", version=version)


def _tiers() -> list[Message]:
    return [Message.model_validate({"remainingDays": days, "title": f"tier_{days}"}) for days in (30, 7, 15)]


def test_missing_document_or_version_fails_open():
    document = _document(versions=[{"version": "7.1.0", "expiration": NOW - timedelta(days=1)}])

    assert evaluate(_server(), None, now=NOW).supported is True
    assert evaluate(_server(version=None), document, now=NOW).supported is True
    assert evaluate(None, document, now=NOW).supported is True
    assert evaluate(_server(), _document(), now=NOW).supported is True


def test_matching_unexpired_version_is_supported():
    document = _document(versions=[{"version": "7.1.0", "expiration": NOW + timedelta(days=90)}])

    status = evaluate(_server("7.1.3"), document, now=NOW)

    assert status.supported is True
    assert status.expiration == NOW + timedelta(days=90)
    assert status.message is None


def test_expired_version_without_grace_period_is_unsupported():
    document = _document(versions=[{"version": "7.1.0", "expiration": NOW - timedelta(days=1)}])

    assert evaluate(_server("7.1.3"), document, now=NOW).supported is False


def test_unlisted_minor_is_unsupported():
    document = _document(versions=[{"version": "7.1.0", "expiration": NOW + timedelta(days=90)}])

    assert evaluate(_server("7.2.0"), document, now=NOW).supported is False


def test_exception_wins_over_general_list():
    document = _document(
        versions=[{"version": "7.1.0", "expiration": NOW + timedelta(days=200)}],
        messages=[{"remainingDays": 365, "title": "general"}],
        exceptions={
            "domain": "chat.example.com",
            "uniqueId": "ws-1",
            "versions": [
                {
                    "version": "7.1.2",
                    "expiration": NOW + timedelta(days=20),
                    "messages": [{"remainingDays": 30, "title": "exception"}],
                }
            ],
        },
        i18n={"en": {"exception": "Exception applies"}},
    )

    status = evaluate(_server("7.1.3"), document, now=NOW)

    assert status.supported is True
    assert status.expiration == NOW + timedelta(days=20)
    assert status.message.title == "exception"
    assert status.i18n == {"en": {"exception": "Exception applies"}}


def test_expired_exception_falls_back_to_general_list():
    document = _document(
        versions=[{"version": "7.1.0", "expiration": NOW + timedelta(days=200)}],
        exceptions={"versions": [{"version": "7.1.0", "expiration": NOW - timedelta(days=1)}]},
    )

    status = evaluate(_server("7.1.3"), document, now=NOW)

    assert status.supported is True
    assert status.expiration == NOW + timedelta(days=200)


def test_future_enforcement_start_is_a_grace_period():
    document = _document(
        versions=[{"version": "7.1.0", "expiration": NOW - timedelta(days=1)}],
        enforcementStartDate=NOW + timedelta(days=10),
        messages=[{"remainingDays": 15, "title": "grace"}],
    )

    status = evaluate(_server("7.1.3"), document, now=NOW)

    assert status.supported is True
    assert status.expiration == NOW + timedelta(days=10)
    assert status.message.title == "grace"


def test_past_enforcement_start_is_enforced():
    document = _document(
        versions=[{"version": "7.1.0", "expiration": NOW - timedelta(days=1)}],
        enforcementStartDate=NOW - timedelta(days=10),
    )

    assert evaluate(_server("7.1.3"), document, now=NOW).supported is False


def test_fallback_messages_used_when_document_has_none():
    document = _document(versions=[{"version": "7.1.0", "expiration": NOW + timedelta(days=3)}])

    status = evaluate(_server("7.1.3"), document, fallback_messages=_tiers(), now=NOW)

    assert status.message.title == "tier_7"


@pytest.mark.parametrize(("days", "expected"), [(5, 7), (10, 15), (20, 30)])
def test_expiration_message_picks_most_urgent_covering_tier(days, expected):
    message = get_expiration_message(_tiers(), NOW + timedelta(days=days), now=NOW)

    assert message.remaining_days == expected


def test_expiration_message_none_when_outside_every_tier_or_expired():
    assert get_expiration_message(_tiers(), NOW + timedelta(days=45), now=NOW) is None
    assert get_expiration_message(_tiers(), NOW - timedelta(hours=1), now=NOW) is None
    assert get_expiration_message([], NOW + timedelta(days=5), now=NOW) is None
    assert get_expiration_message(_tiers(), None, now=NOW) is None


def test_translation_substitutes_parameters_with_english_fallback():
    message = Message.model_validate(
        {
            "remainingDays": 15,
            "title": "title_key",
            "description": "description_key",
            "link": "https://docs.example.com",
            "params": {"instance_domain": "override.example.com"},
        }
    )
    i18n = {
        "en": {
            "title_key": "{{instance_ws_name}} ({{instance_version}}) expires in {{remaining_days}} days",
            "description_key": "Visit {{instance_domain}}",
        }
    }

    translated = translate_expiration_message(
        i18n,
        message,
        NOW + timedelta(days=10, hours=5),
        "fr",
        server_name="Example",
        server_url="https://chat.example.com",
        server_version="7.1.3",
        now=NOW,
    )

    assert translated.title == "Example (7.1.3) expires in 10 days"
    assert translated.description == "Visit override.example.com"
    assert translated.subtitle is None
    assert translated.link == "https://docs.example.com"


def test_translation_requires_message_and_dictionary():
    message = Message.model_validate({"remainingDays": 15, "title": "title_key"})

    assert translate_expiration_message(None, message, NOW, "en") is None
    assert translate_expiration_message({"en": {}}, None, NOW, "en") is None


def test_version_helpers():
    assert coerce("v7.1.3-rc.1") == (7, 1, 3)
    assert coerce("7") == (7, 0, 0)
    assert coerce("develop") is None
    assert tilde_range("7.1.3") == TildeRange(major=7, minor=1)
    assert str(tilde_range("7.1.3")) == "~7.1"
    assert tilde_range("7") == TildeRange(major=7)
    assert tilde_range("seven") is None
    assert tilde_range("v7.1.0") == TildeRange(major=7, minor=1)
    assert tilde_range("=7.1.0") == TildeRange(major=7, minor=1)
    assert TildeRange(major=7, minor=1).satisfied_by("7.1.0")
    assert not TildeRange(major=7, minor=1).satisfied_by("7.2.0")
    assert TildeRange(major=7).satisfied_by("7.9.1")


def test_prefixed_server_version_is_still_enforced():
    document = _document(versions=[{"version": "7.1.0", "expiration": NOW - timedelta(days=1)}])

    assert evaluate(_server("v7.1.3"), document, now=NOW).supported is False
