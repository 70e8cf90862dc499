"""Sequential, deduplicated download of policy cover images.

Assets are enumerated lazily and handled in chunks of ``chunk_size``; every
asset goes through the same steps, one at a time:

    quantity check -> already on disk? -> resolve cover path -> CID seen?
    -> fetch -> content digest seen? -> atomic write

Files already in ``work_dir`` and new downloads both count toward
``max_files``; duplicates and assets without a cover do not. The dedup sets
live on the orchestrator instance and are never persisted, so re-running the
command resumes from whatever is on disk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from itertools import islice
from pathlib import Path
from typing import Any, TypeVar

from cover_collector.blockfrost import BlockfrostClient
from cover_collector.config import Settings
from cover_collector.directory import CollectionDirectory
from cover_collector.exceptions import FetchError, InvalidPolicyError, ParseError, UnsupportedCoverPathError
from cover_collector.fetcher import ContentFetcher
from cover_collector.logging_config import LogContext
from cover_collector.metadata import MetadataResolver, cid_from_path
from cover_collector.models import AssetOutcome, AssetRecord, RunSummary
from cover_collector.utils.hash import sha256_bytes, sha256_file
from cover_collector.utils.http import create_session
from cover_collector.utils.io import write_bytes_atomic
from cover_collector.utils.paths import ensure_dir, is_safe_filename

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Per-asset failures that are recorded and skipped instead of aborting the run
ISOLATED_ERRORS = (FetchError, UnsupportedCoverPathError)


def chunked(items: Iterable[T], size: int) -> Iterator[list[T]]:
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    iterator = iter(items)
    while chunk := list(islice(iterator, size)):
        yield chunk


class CoverFetchOrchestrator:
    def __init__(
        self,
        *,
        directory: Any,
        client: Any,
        resolver: Any,
        fetcher: Any,
        work_dir: Path,
        chunk_size: int = 10,
    ) -> None:
        self.directory = directory
        self.client = client
        self.resolver = resolver
        self.fetcher = fetcher
        self.work_dir = Path(work_dir)
        self.chunk_size = chunk_size
        self.seen_cids: set[str] = set()
        self.seen_digests: set[str] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        work_dir: Path,
        session: Any | None = None,
    ) -> CoverFetchOrchestrator:
        session = session if session is not None else create_session(user_agent=settings.user_agent)
        client = BlockfrostClient(
            settings.project_id,
            api_base=settings.api_base,
            page_size=settings.page_size,
            retry=settings.retry,
            timeout=settings.timeout,
            session=session,
        )
        return cls(
            directory=CollectionDirectory(settings.directory_url, timeout=settings.timeout, session=session),
            client=client,
            resolver=MetadataResolver(client),
            fetcher=ContentFetcher(
                settings.gateway_base,
                retry=settings.retry,
                timeout=settings.timeout,
                ipfs_project_id=settings.ipfs_project_id,
                session=session,
            ),
            work_dir=work_dir,
            chunk_size=settings.chunk_size,
        )

    def run(self, policy_id: str, max_files: int) -> RunSummary:
        """Download up to ``max_files`` covers for ``policy_id``.

        Raises:
            InvalidPolicyError: the policy is not listed by the collections
                directory; no Blockfrost request has been made
            ParseError: an upstream response or quantity field is malformed
        """
        if not self.directory.is_known_policy(policy_id):
            raise InvalidPolicyError(policy_id)

        summary = RunSummary(policy_id=policy_id, max_files=max_files)
        if summary.budget_exhausted:
            return summary
        ensure_dir(self.work_dir)
        for chunk in chunked(self.client.iter_policy_assets(policy_id), self.chunk_size):
            self._fetch_chunk(chunk, summary)
            if summary.budget_exhausted:
                break
        return summary

    def _fetch_chunk(self, chunk: list[AssetRecord], summary: RunSummary) -> None:
        for record in chunk:
            if summary.budget_exhausted:
                break
            with LogContext(policy_id=summary.policy_id, asset=record.asset):
                try:
                    outcome = self.process_asset(record)
                except ISOLATED_ERRORS as exc:
                    logger.warning("Skipping asset %r: %s", record.asset, exc)
                    summary.record(record.asset, AssetOutcome.FAILED, str(exc))
                    continue
            summary.record(record.asset, outcome)

    def final_path(self, asset: str) -> Path:
        if not is_safe_filename(asset):
            raise ParseError(f"asset id {asset!r} is not usable as a file name", context={"asset": asset})
        return self.work_dir / asset

    def process_asset(self, record: AssetRecord) -> AssetOutcome:
        if record.parsed_quantity() <= 0:
            return AssetOutcome.SKIPPED_QUANTITY

        final_path = self.final_path(record.asset)
        if final_path.exists():
            logger.info("Asset %r already downloaded", record.asset)
            # Remember the content so the same image is not saved under another name
            self.seen_digests.add(sha256_file(final_path))
            return AssetOutcome.ALREADY_PRESENT

        path = self.resolver.resolve_cover_path(record.asset)
        if path is None:
            logger.info("Asset without high-res cover image: %r", record.asset)
            return AssetOutcome.NO_COVER

        cid = cid_from_path(path)
        if cid in self.seen_cids:
            logger.info("High-res cover %r for asset %r is the same as existing one", path, record.asset)
            return AssetOutcome.DUPLICATE

        data = self.fetcher.fetch_cid(cid)
        self.seen_cids.add(cid)
        digest = sha256_bytes(data)
        if digest in self.seen_digests:
            logger.info("High-res cover %r for asset %r is the same as existing one", path, record.asset)
            return AssetOutcome.DUPLICATE

        write_bytes_atomic(final_path, data)
        self.seen_digests.add(digest)
        logger.info("Saved high-res cover for asset %r (%d bytes)", record.asset, len(data))
        return AssetOutcome.DOWNLOADED
