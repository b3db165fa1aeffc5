from __future__ import annotations

import asyncio
import json
from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[1]))

from supported_versions.core.schema import PolicyDocument
from supported_versions.core.verifier import encode
from supported_versions.domain import SupportedVersionsSource
from supported_versions.infrastructure import BuiltinSupportedVersions, FileCacheStore, cache_key

URL = "https://chat.example.com"


def test_file_cache_persists_entries_per_server(tmp_path, policy):
    path = tmp_path / "state" / "supported-versions.json"
    document = PolicyDocument.model_validate(policy)

    FileCacheStore(path).set(URL, document, SupportedVersionsSource.CLOUD)
    entry = FileCacheStore(path).get(URL)

    assert entry.document == document
    assert entry.source is SupportedVersionsSource.CLOUD
    assert FileCacheStore(path).get("https://other.example.com") is None

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert list(raw) == [cache_key(URL)]
    assert raw[cache_key(URL)]["source"] == "cloud"


def test_file_cache_last_writer_wins(tmp_path, policy):
    store = FileCacheStore(tmp_path / "cache.json")
    document = PolicyDocument.model_validate(policy)
    store.set(URL, document, SupportedVersionsSource.SERVER)
    store.set(URL, document, SupportedVersionsSource.BUILTIN)

    assert store.get(URL).source is SupportedVersionsSource.BUILTIN


def test_file_cache_treats_corrupt_data_as_miss(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    assert FileCacheStore(path).get(URL) is None

    path.write_text(json.dumps({cache_key(URL): {"source": "mars", "document": {}}}), encoding="utf-8")
    assert FileCacheStore(path).get(URL) is None


def test_builtin_loads_once_and_verifies(tmp_path, policy, private_key, public_key):
    path = tmp_path / "supportedVersions.jwt"
    path.write_text(encode(policy, private_key), encoding="utf-8")
    builtin = BuiltinSupportedVersions(path, public_key=public_key)

    async def runner():
        first = await builtin.load()
        path.unlink()
        second = await builtin.load()
        return first, second

    first, second = asyncio.run(runner())

    assert first == PolicyDocument.model_validate(policy)
    assert second is first


def test_builtin_missing_or_untrusted_yields_none(tmp_path, policy, other_keypair, public_key):
    missing = BuiltinSupportedVersions(tmp_path / "absent.jwt", public_key=public_key)
    assert asyncio.run(missing.load()) is None

    path = tmp_path / "forged.jwt"
    path.write_text(encode(policy, other_keypair[0]), encoding="utf-8")
    forged = BuiltinSupportedVersions(path, public_key=public_key)
    assert asyncio.run(forged.load()) is None


def test_file_cache_keeps_every_server_under_concurrent_writes(tmp_path, policy):
    store = FileCacheStore(tmp_path / "cache.json")
    document = PolicyDocument.model_validate(policy)
    urls = [f"https://chat{index}.example.com" for index in range(40)]

    async def runner() -> None:
        await asyncio.gather(
            *(asyncio.to_thread(store.set, url, document, SupportedVersionsSource.SERVER) for url in urls)
        )

    asyncio.run(runner())

    missing = [url for url in urls if store.get(url) is None]
    assert missing == []
    assert len(json.loads(store.path.read_text(encoding="utf-8"))) == len(urls)
