from __future__ import annotations

import pytest

from conftest import cover_metadata
from cover_collector.exceptions import ParseError, UnsupportedCoverPathError
from cover_collector.metadata import MetadataResolver, cid_from_path, extract_cover_path
from cover_collector.models import AssetDetails


@pytest.mark.parametrize(
    "metadata",
    [
        None,
        {},
        {"name": "No files"},
        {"files": []},
        {"files": "ipfs://Qm"},
        {"files": [{"mediaType": "image/png"}]},
        {"files": [{"src": ["ipfs://Qm", "split"]}]},
        {"files": [{"src": ""}]},
    ],
)
def test_extract_cover_path_without_cover(metadata) -> None:
    assert extract_cover_path(AssetDetails(asset="a", onchain_metadata=metadata)) is None


def test_extract_cover_path_uses_first_file() -> None:
    metadata = cover_metadata("Book", "QmFirst")
    metadata["files"].append({"src": "ipfs://QmSecond"})
    assert extract_cover_path(AssetDetails(asset="a", onchain_metadata=metadata)) == "ipfs://QmFirst"


def test_cid_from_path_strips_scheme() -> None:
    assert cid_from_path("ipfs://QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG") == (
        "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"
    )


@pytest.mark.parametrize("path", ["https://example.com/cover.png", "ipfs://", "Qm123"])
def test_cid_from_path_rejects_other_references(path: str) -> None:
    with pytest.raises(UnsupportedCoverPathError) as excinfo:
        cid_from_path(path)
    # Recorded per asset by the orchestrator, so it must not look like a fatal parse error
    assert not isinstance(excinfo.value, ParseError)


class StubClient:
    def __init__(self, details: AssetDetails) -> None:
        self.details = details

    def asset_details(self, asset: str) -> AssetDetails:
        return self.details


def test_resolver_returns_path_and_logs_name(caplog: pytest.LogCaptureFixture) -> None:
    resolver = MetadataResolver(StubClient(AssetDetails("a", cover_metadata("Frankenstein", "QmF"))))
    with caplog.at_level("INFO", logger="cover_collector.metadata"):
        assert resolver.resolve_cover_path("a") == "ipfs://QmF"
    assert "Frankenstein" in caplog.text


def test_resolver_without_metadata_returns_none() -> None:
    assert MetadataResolver(StubClient(AssetDetails("a"))).resolve_cover_path("a") is None
