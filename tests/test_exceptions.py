from __future__ import annotations

import pytest

from cover_collector.exceptions import (
    EXIT_CONFIG_ERROR,
    EXIT_FETCH_ERROR,
    EXIT_INVALID_POLICY,
    EXIT_PARSE_ERROR,
    ConfigError,
    ConfigValidationError,
    CoverCollectorError,
    FetchError,
    InvalidPolicyError,
    MissingCredentialError,
    ParseError,
    UnsupportedCoverPathError,
    YamlParseError,
)


@pytest.mark.parametrize(
    ("error", "code", "exit_code"),
    [
        (ConfigError("bad"), "config_error", EXIT_CONFIG_ERROR),
        (YamlParseError("bad"), "yaml_parse_error", EXIT_CONFIG_ERROR),
        (ConfigValidationError("bad"), "config_validation_error", EXIT_CONFIG_ERROR),
        (MissingCredentialError("bad", variable="X"), "missing_credential", EXIT_CONFIG_ERROR),
        (InvalidPolicyError("abc"), "invalid_policy", EXIT_INVALID_POLICY),
        (FetchError("bad"), "fetch_error", EXIT_FETCH_ERROR),
        (ParseError("bad"), "parse_error", EXIT_PARSE_ERROR),
        (UnsupportedCoverPathError("bad"), "unsupported_cover_path", EXIT_PARSE_ERROR),
    ],
)
def test_error_codes_and_exit_codes(error: CoverCollectorError, code: str, exit_code: int) -> None:
    assert error.code == code
    assert error.exit_code == exit_code
    assert isinstance(error, CoverCollectorError)


def test_exit_codes_are_distinct() -> None:
    codes = [EXIT_CONFIG_ERROR, EXIT_INVALID_POLICY, EXIT_FETCH_ERROR, EXIT_PARSE_ERROR]
    assert len(set(codes)) == len(codes)
    assert 0 not in codes


def test_explicit_code_overrides_class_default() -> None:
    assert FetchError("x", code="gateway_down").code == "gateway_down"


def test_as_log_fields_includes_context() -> None:
    err = InvalidPolicyError("deadbeef")
    assert str(err) == "invalid policy id 'deadbeef'"
    assert err.as_log_fields() == {
        "error_code": "invalid_policy",
        "error_message": "invalid policy id 'deadbeef'",
        "error_context": {"policy_id": "deadbeef"},
    }
