"""Runtime settings for the cover collector.

Credentials come from the environment; everything else has a default that an
optional YAML file can override. The YAML file is validated against
``schemas/config.schema.json`` before use.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft7Validator, FormatChecker

from cover_collector.exceptions import (
    ConfigValidationError,
    MissingCredentialError,
    YamlParseError,
)
from cover_collector.network_utils import RetryPolicy
from cover_collector.secrets import SecretStr
from cover_collector.utils.http import DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT

ENV_PROJECT_ID = "BLOCKFROST_PROJECT_ID"
ENV_IPFS_PROJECT_ID = "BLOCKFROST_IPFS_PROJECT_ID"
ENV_CONFIG_PATH = "BOOK_COVERS_CONFIG"

DEFAULT_DIRECTORY_URL = "https://api.book.io/api/v0/collections"
DEFAULT_GATEWAY_BASE = "https://ipfs.io/ipfs/"
DEFAULT_CHUNK_SIZE = 10
DEFAULT_PAGE_SIZE = 100

NETWORK_API_BASES = {
    "mainnet": "https://cardano-mainnet.blockfrost.io/api/v0",
    "preprod": "https://cardano-preprod.blockfrost.io/api/v0",
    "preview": "https://cardano-preview.blockfrost.io/api/v0",
}


def api_base_for_project(project_id: str) -> str:
    """Pick the Blockfrost endpoint matching the network prefix of a project id."""
    for network, base in NETWORK_API_BASES.items():
        if project_id.startswith(network):
            return base
    return NETWORK_API_BASES["mainnet"]


@dataclass(frozen=True)
class Settings:
    project_id: SecretStr
    api_base: str
    ipfs_project_id: SecretStr = field(default_factory=lambda: SecretStr(None))
    directory_url: str = DEFAULT_DIRECTORY_URL
    gateway_base: str = DEFAULT_GATEWAY_BASE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    page_size: int = DEFAULT_PAGE_SIZE
    user_agent: str | None = None
    timeout: tuple[float, float] = (DEFAULT_CONNECT_TIMEOUT, DEFAULT_READ_TIMEOUT)
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def with_overrides(self, **changes: Any) -> Settings:
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


@cache
def load_schema(schema_name: str = "config") -> dict[str, Any]:
    schema_path = resources.files("cover_collector").joinpath("schemas", f"{schema_name}.schema.json")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def validate_config(config: Any, *, config_path: Path | None = None) -> None:
    validator = Draft7Validator(load_schema(), format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(config), key=lambda exc: list(exc.path))
    if not errors:
        return
    location = str(config_path) if config_path else "<config>"
    lines = [f"Schema validation failed for {location}."]
    error_details: list[dict[str, str]] = []
    for error in errors[:10]:
        path = ".".join(str(p) for p in error.path) if error.path else "<root>"
        lines.append(f"- {path}: {error.message}")
        error_details.append({"path": path, "message": error.message})
    if len(errors) > 10:
        lines.append(f"... and {len(errors) - 10} more errors.")
    raise ConfigValidationError(
        "\n".join(lines),
        context={
            "path": location,
            "errors": error_details,
            "truncated": len(errors) > 10,
        },
    )


def read_config_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise YamlParseError(
            f"Cannot read config file {path}: {exc.strerror or exc}",
            context={"path": str(path)},
        ) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise YamlParseError(
            f"YAML parse error in {path}: {exc}",
            context={"path": str(path), "error": str(exc)},
        ) from exc
    if data is None:
        data = {}
    validate_config(data, config_path=path)
    return data


def load_settings(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build settings from the environment and an optional YAML file.

    Raises:
        MissingCredentialError: ``BLOCKFROST_PROJECT_ID`` is unset or blank
        YamlParseError: the config file is unreadable or not valid YAML
        ConfigValidationError: the config file does not match the schema
    """
    env = os.environ if environ is None else environ
    project_id = (env.get(ENV_PROJECT_ID) or "").strip()
    if not project_id:
        raise MissingCredentialError(
            f"{ENV_PROJECT_ID} is not set; export your Blockfrost project id",
            variable=ENV_PROJECT_ID,
        )

    if config_path is None and env.get(ENV_CONFIG_PATH):
        config_path = Path(env[ENV_CONFIG_PATH])
    data = read_config_file(config_path) if config_path else {}

    timeout_cfg = data.get("timeout") or {}
    return Settings(
        project_id=SecretStr(project_id),
        ipfs_project_id=SecretStr((env.get(ENV_IPFS_PROJECT_ID) or "").strip() or None),
        api_base=str(data.get("api_base") or api_base_for_project(project_id)).rstrip("/"),
        directory_url=data.get("directory_url", DEFAULT_DIRECTORY_URL),
        gateway_base=data.get("gateway_base", DEFAULT_GATEWAY_BASE),
        chunk_size=int(data.get("chunk_size", DEFAULT_CHUNK_SIZE)),
        page_size=int(data.get("page_size", DEFAULT_PAGE_SIZE)),
        user_agent=data.get("user_agent"),
        timeout=(
            float(timeout_cfg.get("connect", DEFAULT_CONNECT_TIMEOUT)),
            float(timeout_cfg.get("read", DEFAULT_READ_TIMEOUT)),
        ),
        retry=RetryPolicy.from_dict(data.get("retry")),
    )
