from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import requests

from cover_collector.__version__ import __version__ as VERSION

DEFAULT_CONNECT_TIMEOUT = 15.0
DEFAULT_READ_TIMEOUT = 120.0
DEFAULT_TIMEOUT = (DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT)


def build_user_agent(name: str = "book-cover-collector", version: str = VERSION) -> str:
    """Build a default User-Agent string."""
    return f"{name}/{version}"


def create_session(
    *,
    user_agent: str | None = None,
    headers: Mapping[str, str] | None = None,
) -> requests.Session:
    """Create a requests session with the default User-Agent and extra headers.

    Retries are not mounted on the adapter; callers wrap individual calls in
    ``network_utils._with_retries`` so backoff stays under their control.
    """
    session = requests.Session()
    session.headers["User-Agent"] = user_agent or build_user_agent()
    if headers:
        session.headers.update(headers)
    return session


def http_get_bytes(
    session: Any,
    url: str,
    *,
    timeout: float | tuple[float, float] = DEFAULT_TIMEOUT,
    headers: Mapping[str, str] | None = None,
) -> bytes:
    """GET ``url`` and return the body, raising ``HTTPError`` on 4xx/5xx."""
    response = session.get(url, timeout=timeout, headers=dict(headers) if headers else None)
    response.raise_for_status()
    return response.content
