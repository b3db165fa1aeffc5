from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def _generate_keypair() -> tuple[bytes, bytes]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem, public_pem


@pytest.fixture(scope="session")
def keypair() -> tuple[bytes, bytes]:
    return _generate_keypair()


@pytest.fixture(scope="session")
def other_keypair() -> tuple[bytes, bytes]:
    return _generate_keypair()


@pytest.fixture(scope="session")
def private_key(keypair) -> bytes:
    return keypair[0]


@pytest.fixture(scope="session")
def public_key(keypair) -> bytes:
    return keypair[1]


def iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@pytest.fixture
def policy() -> dict:
    """A policy supporting 7.1.x for another 60 days, with messages and translations."""
    now = datetime.now(timezone.utc)
    return {
        "timestamp": iso(now),
        "versions": [
            {"version": "7.1.0", "expiration": iso(now + timedelta(days=60))},
            {"version": "6.9.0", "expiration": iso(now - timedelta(days=10))},
        ],
        "messages": [
            {
                "remainingDays": 15,
                "title": "message_title",
                "description": "message_description",
                "type": "warning",
                "params": {},
            }
        ],
        "i18n": {
            "en": {
                "message_title": "{{instance_ws_name}} expires in {{remaining_days}} days",
                "message_description": "Version {{instance_version}} at {{instance_domain}}",
            },
            "de": {
                "message_title": "{{instance_ws_name}} läuft in {{remaining_days}} Tagen ab",
            },
        },
    }
