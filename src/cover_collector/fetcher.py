from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

import requests

from cover_collector.config import DEFAULT_GATEWAY_BASE
from cover_collector.exceptions import FetchError
from cover_collector.network_utils import RetryPolicy, _with_retries
from cover_collector.secrets import SecretStr
from cover_collector.utils.http import DEFAULT_TIMEOUT, create_session, http_get_bytes

logger = logging.getLogger(__name__)

BLOCKFROST_IPFS_HOST = "ipfs.blockfrost.io"


class ContentFetcher:
    """Fetches raw content from an IPFS HTTP gateway.

    Each GET is retried according to ``retry``; once the attempts are spent
    the last error surfaces as ``FetchError``. ``ipfs_project_id`` is sent as
    the ``project_id`` header only when the gateway is Blockfrost's own
    (``ipfs.blockfrost.io``); any other gateway never sees it.
    """

    def __init__(
        self,
        gateway_base: str = DEFAULT_GATEWAY_BASE,
        *,
        retry: RetryPolicy | None = None,
        timeout: float | tuple[float, float] = DEFAULT_TIMEOUT,
        ipfs_project_id: SecretStr | None = None,
        session: Any | None = None,
    ) -> None:
        self.gateway_base = gateway_base if gateway_base.endswith("/") else gateway_base + "/"
        self.retry = retry or RetryPolicy()
        self.timeout = timeout
        self._ipfs_project_id = ipfs_project_id
        self.session = session if session is not None else create_session()

    @property
    def is_blockfrost_gateway(self) -> bool:
        return (urlparse(self.gateway_base).hostname or "").lower() == BLOCKFROST_IPFS_HOST

    def gateway_url(self, cid: str) -> str:
        return self.gateway_base + cid.lstrip("/")

    def _headers(self) -> Mapping[str, str] | None:
        if self._ipfs_project_id and self.is_blockfrost_gateway:
            return {"project_id": self._ipfs_project_id.reveal()}
        return None

    def fetch_bytes(self, url: str) -> bytes:
        headers = self._headers()

        def _log_retry(attempt: int, exc: Exception) -> None:
            logger.warning("Gateway request %s failed (attempt %d): %s", url, attempt, exc)

        try:
            return _with_retries(
                lambda: http_get_bytes(self.session, url, timeout=self.timeout, headers=headers),
                policy=self.retry,
                on_retry=_log_retry,
            )
        except requests.exceptions.RequestException as exc:
            raise FetchError(f"failed to fetch {url}: {exc}", context={"url": url}) from exc

    def fetch_cid(self, cid: str) -> bytes:
        return self.fetch_bytes(self.gateway_url(cid))
