"""Lookup of the policy ids listed by the book.io collections directory.

The directory answers ``GET /api/v0/collections`` with::

    {"type": "collection", "data": [{"collection_id": ..., "description": ...,
                                     "blockchain": ..., "network": ...}, ...]}

An unreachable directory or a non-success status yields an empty set, which
callers treat as "policy not recognized". A successful response that is not
shaped like the above is a ``ParseError``.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from cover_collector.config import DEFAULT_DIRECTORY_URL
from cover_collector.exceptions import ParseError
from cover_collector.utils.http import DEFAULT_TIMEOUT, create_session

logger = logging.getLogger(__name__)


def parse_collection_ids(payload: Any, *, url: str = DEFAULT_DIRECTORY_URL) -> set[str]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise ParseError(
            f"collections response from {url} has no 'data' array",
            context={"url": url},
        )
    ids: set[str] = set()
    for entry in data:
        collection_id = entry.get("collection_id") if isinstance(entry, dict) else None
        if not isinstance(collection_id, str):
            raise ParseError(
                f"collections response from {url} has an entry without 'collection_id'",
                context={"url": url, "entry": entry},
            )
        ids.add(collection_id)
    return ids


class CollectionDirectory:
    def __init__(
        self,
        url: str = DEFAULT_DIRECTORY_URL,
        *,
        timeout: float | tuple[float, float] = DEFAULT_TIMEOUT,
        session: Any | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session if session is not None else create_session()

    def fetch_known_policy_ids(self) -> set[str]:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            logger.warning("Collections directory %s unreachable: %s", self.url, exc)
            return set()
        if not response.ok:
            logger.warning("Collections directory %s returned HTTP %s", self.url, response.status_code)
            return set()
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError(
                f"collections response from {self.url} is not valid JSON",
                context={"url": self.url},
            ) from exc
        ids = parse_collection_ids(payload, url=self.url)
        logger.debug("Collections directory lists %d policy ids", len(ids))
        return ids

    def is_known_policy(self, policy_id: str) -> bool:
        return policy_id in self.fetch_known_policy_ids()
