from __future__ import annotations

import logging
from typing import Any

from cover_collector.exceptions import UnsupportedCoverPathError
from cover_collector.models import AssetDetails

logger = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"


def extract_cover_path(details: AssetDetails) -> str | None:
    """Return ``onchain_metadata.files[0].src`` if it is a string."""
    metadata = details.onchain_metadata
    if not metadata:
        return None
    files = metadata.get("files")
    if not isinstance(files, list) or not files or not isinstance(files[0], dict):
        return None
    src = files[0].get("src")
    return src if isinstance(src, str) and src else None


def cid_from_path(path: str) -> str:
    """Strip the ``ipfs://`` scheme from a metadata path."""
    if not path.startswith(IPFS_SCHEME):
        raise UnsupportedCoverPathError(
            f"cover path {path!r} is not an {IPFS_SCHEME} reference",
            context={"path": path},
        )
    cid = path[len(IPFS_SCHEME):]
    if not cid:
        raise UnsupportedCoverPathError(f"cover path {path!r} has an empty content id", context={"path": path})
    return cid


class MetadataResolver:
    def __init__(self, client: Any) -> None:
        self.client = client

    def resolve_cover_path(self, asset: str) -> str | None:
        details = self.client.asset_details(asset)
        path = extract_cover_path(details)
        if path is not None:
            logger.info("Found high-res cover for %r", details.display_name)
        return path
