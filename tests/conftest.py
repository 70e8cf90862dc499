"""
Shared pytest fixtures for cover collector tests.

Provides:
- Fake HTTP responses and a recording session
- Blockfrost-shaped payload builders
- An in-memory orchestrator wired to fake collaborators
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import requests

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if SRC_ROOT.is_dir():
    sys.path.insert(0, str(SRC_ROOT))

from cover_collector.models import AssetDetails, AssetRecord  # noqa: E402
from cover_collector.orchestrator import CoverFetchOrchestrator  # noqa: E402

POLICY_ID = "b" * 56


# =============================================================================
# HTTP fakes
# =============================================================================


class FakeResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        content: bytes = b"",
        json_body: Any = None,
        url: str = "https://example.com/",
    ) -> None:
        self.status_code = status_code
        self.url = url
        if json_body is not None:
            content = json.dumps(json_body).encode("utf-8")
        self.content = content

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.content.decode("utf-8"))

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeSession:
    """Session double that records calls and replays scripted responses.

    ``routes`` maps a URL to a response, an exception, or a list of either
    (consumed in order; the last entry repeats).
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes: dict[str, Any] = dict(routes or {})
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if url not in self.routes:
            return FakeResponse(status_code=404, url=url)
        entry = self.routes[url]
        if isinstance(entry, list):
            entry = entry.pop(0) if len(entry) > 1 else entry[0]
        if isinstance(entry, Exception):
            raise entry
        return entry

    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Disable retry backoff sleeps and record the requested delays."""
    delays: list[float] = []
    monkeypatch.setattr("cover_collector.network_utils.time.sleep", delays.append)
    return delays


# =============================================================================
# Collaborator fakes for the orchestrator
# =============================================================================


def cover_metadata(name: str, cid: str) -> dict[str, Any]:
    return {
        "name": name,
        "image": f"ipfs://thumb-{cid}",
        "files": [{"mediaType": "image/png", "name": name, "src": f"ipfs://{cid}"}],
    }


class FakeDirectory:
    def __init__(self, known: set[str] | None = None) -> None:
        self.known = set(known or ())
        self.calls = 0

    def is_known_policy(self, policy_id: str) -> bool:
        self.calls += 1
        return policy_id in self.known


class FakeChain:
    """Stands in for both the Blockfrost client and the metadata resolver."""

    def __init__(self, assets: list[tuple[str, str]], metadata: dict[str, dict[str, Any] | None]) -> None:
        self.assets = assets
        self.metadata = metadata
        self.listed: list[str] = []
        self.detail_calls: list[str] = []

    def iter_policy_assets(self, policy_id: str):
        self.listed.append(policy_id)
        for asset, quantity in self.assets:
            yield AssetRecord(asset=asset, quantity=quantity)

    def asset_details(self, asset: str) -> AssetDetails:
        self.detail_calls.append(asset)
        return AssetDetails(asset=asset, onchain_metadata=self.metadata.get(asset))


class FakeFetcher:
    def __init__(self, blobs: dict[str, bytes], failing: set[str] | None = None) -> None:
        self.blobs = blobs
        self.failing = set(failing or ())
        self.fetched: list[str] = []

    def fetch_cid(self, cid: str) -> bytes:
        from cover_collector.exceptions import FetchError

        self.fetched.append(cid)
        if cid in self.failing:
            raise FetchError(f"failed to fetch {cid}", context={"cid": cid})
        return self.blobs[cid]


@pytest.fixture
def make_orchestrator(tmp_path: Path) -> Callable[..., tuple[CoverFetchOrchestrator, FakeChain, FakeFetcher]]:
    from cover_collector.metadata import MetadataResolver

    def _make(
        assets: list[tuple[str, str]],
        metadata: dict[str, dict[str, Any] | None],
        blobs: dict[str, bytes],
        *,
        known: set[str] | None = None,
        failing: set[str] | None = None,
        chunk_size: int = 10,
        work_dir: Path | None = None,
    ) -> tuple[CoverFetchOrchestrator, FakeChain, FakeFetcher]:
        chain = FakeChain(assets, metadata)
        fetcher = FakeFetcher(blobs, failing)
        orchestrator = CoverFetchOrchestrator(
            directory=FakeDirectory({POLICY_ID} if known is None else known),
            client=chain,
            resolver=MetadataResolver(chain),
            fetcher=fetcher,
            work_dir=work_dir or tmp_path / "covers",
            chunk_size=chunk_size,
        )
        return orchestrator, chain, fetcher

    return _make
