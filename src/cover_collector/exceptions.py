from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_INVALID_POLICY = 3
EXIT_FETCH_ERROR = 4
EXIT_PARSE_ERROR = 5
EXIT_PARTIAL_FAILURE = 6


@dataclass
class CoverCollectorError(Exception):
    message: str
    code: str = "cover_collector_error"
    context: dict[str, Any] = field(default_factory=dict)
    exit_code = 1

    def __init__(self, message: str, *, code: str | None = None, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.context = dict(context or {})

    def __str__(self) -> str:
        return self.message

    def as_log_fields(self) -> dict[str, Any]:
        return {
            "error_code": self.code,
            "error_message": self.message,
            "error_context": self.context,
        }


class ConfigError(CoverCollectorError):
    code = "config_error"
    exit_code = EXIT_CONFIG_ERROR


class MissingCredentialError(ConfigError):
    code = "missing_credential"

    def __init__(self, message: str, *, variable: str) -> None:
        super().__init__(message, context={"variable": variable})


class YamlParseError(ConfigError):
    code = "yaml_parse_error"


class ConfigValidationError(ConfigError):
    code = "config_validation_error"


class InvalidPolicyError(CoverCollectorError):
    code = "invalid_policy"
    exit_code = EXIT_INVALID_POLICY

    def __init__(self, policy_id: str) -> None:
        super().__init__(f"invalid policy id {policy_id!r}", context={"policy_id": policy_id})


class FetchError(CoverCollectorError):
    code = "fetch_error"
    exit_code = EXIT_FETCH_ERROR


class ParseError(CoverCollectorError):
    code = "parse_error"
    exit_code = EXIT_PARSE_ERROR


class UnsupportedCoverPathError(CoverCollectorError):
    """A cover reference that is not an ipfs:// address; the asset is skipped, the run goes on."""

    code = "unsupported_cover_path"
    exit_code = EXIT_PARSE_ERROR
