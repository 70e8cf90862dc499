"""Minimal Blockfrost client for the two asset endpoints the collector needs.

Endpoints:
    GET /assets/policy/{policy_id}   paginated listing of ``{asset, quantity}``
    GET /assets/{asset}              asset details incl. ``onchain_metadata``

Every request carries the ``project_id`` header and goes through
``network_utils._with_retries``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import requests

from cover_collector.config import DEFAULT_PAGE_SIZE
from cover_collector.exceptions import FetchError, ParseError
from cover_collector.models import AssetDetails, AssetRecord
from cover_collector.network_utils import RetryPolicy, _with_retries
from cover_collector.secrets import SecretStr
from cover_collector.utils.http import DEFAULT_TIMEOUT, create_session

logger = logging.getLogger(__name__)


class BlockfrostClient:
    def __init__(
        self,
        project_id: SecretStr,
        *,
        api_base: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        retry: RetryPolicy | None = None,
        timeout: float | tuple[float, float] = DEFAULT_TIMEOUT,
        session: Any | None = None,
    ) -> None:
        self._project_id = project_id
        self.api_base = api_base.rstrip("/")
        self.page_size = page_size
        self.retry = retry or RetryPolicy()
        self.timeout = timeout
        self.session = session if session is not None else create_session()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.api_base}/{path.lstrip('/')}"
        headers = {"project_id": self._project_id.reveal()}

        def _request() -> Any:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response

        def _log_retry(attempt: int, exc: Exception) -> None:
            logger.warning("Blockfrost request %s failed (attempt %d): %s", url, attempt, exc)

        try:
            response = _with_retries(_request, policy=self.retry, on_retry=_log_retry)
        except requests.exceptions.RequestException as exc:
            raise FetchError(
                f"Blockfrost request failed for {url}: {exc}",
                context={"url": url},
            ) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(
                f"Blockfrost returned malformed JSON for {url}",
                context={"url": url},
            ) from exc

    def iter_policy_assets(self, policy_id: str) -> Iterator[AssetRecord]:
        """Yield the assets minted under ``policy_id``, one page at a time.

        Pages are requested lazily; the listing ends at the first page holding
        fewer than ``page_size`` entries.
        """
        page = 1
        while True:
            payload = self._get(
                f"assets/policy/{policy_id}",
                params={"page": page, "count": self.page_size, "order": "asc"},
            )
            if not isinstance(payload, list):
                raise ParseError(
                    f"asset listing page {page} for policy {policy_id} is not a JSON array",
                    context={"policy_id": policy_id, "page": page},
                )
            logger.debug("Fetched %d assets from page %d of policy %s", len(payload), page, policy_id)
            for entry in payload:
                yield AssetRecord.from_api(entry)
            if len(payload) < self.page_size:
                return
            page += 1

    def asset_details(self, asset: str) -> AssetDetails:
        return AssetDetails.from_api(asset, self._get(f"assets/{asset}"))
