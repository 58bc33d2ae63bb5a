"""
Unit tests for AppSettings — defaults, environment overrides and validation.

Every test constructs settings with _env_file=None so a developer's .env
never leaks into the assertions.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fallback_roots.config import DEFAULT_CERTDATA_URL, DEFAULT_OUTPUT, AppSettings
from fallback_roots.domain.models import DuplicatePolicy


def _settings(**overrides) -> AppSettings:
    return AppSettings(_env_file=None, **overrides)


class TestDefaults:
    def test_defaults(self, clean_env) -> None:
        """
        GIVEN no environment and no arguments
        WHEN AppSettings is created
        THEN it downloads from the upstream URL and writes the default output.
        """
        settings = _settings()

        assert settings.certdata_url == DEFAULT_CERTDATA_URL
        assert settings.certdata_path == ""
        assert settings.output == DEFAULT_OUTPUT
        assert settings.duplicate_policy is DuplicatePolicy.KEEP
        assert settings.http_timeout_seconds is None
        assert settings.log_level == "INFO"
        assert settings.uses_local_source is False


class TestEnvironment:
    def test_prefixed_variables_are_read(self, clean_env) -> None:
        clean_env.setenv("FALLBACK_ROOTS_OUTPUT", "out/roots.py")
        clean_env.setenv("FALLBACK_ROOTS_DUPLICATE_POLICY", "collapse")
        clean_env.setenv("FALLBACK_ROOTS_HTTP_TIMEOUT_SECONDS", "2.5")

        settings = _settings()

        assert settings.output == "out/roots.py"
        assert settings.duplicate_policy is DuplicatePolicy.COLLAPSE
        assert settings.http_timeout_seconds == 2.5

    def test_arguments_override_environment(self, clean_env) -> None:
        clean_env.setenv("FALLBACK_ROOTS_OUTPUT", "from/env.py")
        assert _settings(output="from/flag.py").output == "from/flag.py"

    def test_unprefixed_variables_are_ignored(self, clean_env) -> None:
        clean_env.setenv("OUTPUT", "ignored.py")
        assert _settings().output == DEFAULT_OUTPUT


class TestSourceSelection:
    def test_path_takes_precedence(self, clean_env) -> None:
        settings = _settings(certdata_path="certdata.txt", certdata_url="https://example.org/c.txt")
        assert settings.uses_local_source is True

    def test_url_scheme_is_left_to_the_http_client(self, clean_env) -> None:
        settings = _settings(certdata_url="ftp://example.org/certdata.txt")
        assert settings.uses_local_source is False

    def test_empty_url_with_path_is_accepted(self, clean_env) -> None:
        settings = _settings(certdata_url="", certdata_path="certdata.txt")
        assert settings.uses_local_source is True


class TestValidation:
    def test_log_level_is_normalized(self, clean_env) -> None:
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_is_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError, match="Unknown log level"):
            _settings(log_level="LOUD")

    def test_timeout_must_be_positive(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            _settings(http_timeout_seconds=0)

    def test_output_must_not_be_empty(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            _settings(output="")

    def test_unknown_duplicate_policy_is_rejected(self, clean_env) -> None:
        with pytest.raises(ValidationError):
            _settings(duplicate_policy="merge")
