from __future__ import annotations

import logging

import pytest

from specguard.core.settings import SpecGuardSettings, configure_settings, get_flag_env, get_settings


def test_defaults_when_environment_is_empty():
    settings = SpecGuardSettings.from_env({})
    assert settings == SpecGuardSettings()
    assert settings.spec_path == "openapi.yaml"
    assert settings.base_ref == "origin/main"
    assert settings.enforce_semver is False


def test_values_are_read_from_prefixed_variables():
    settings = SpecGuardSettings.from_env(
        {
            "SPECGUARD_LOG_LEVEL": "debug",
            "SPECGUARD_LOG_FORMAT": "JSON",
            "SPECGUARD_SPEC_PATH": "api/openapi.json",
            "SPECGUARD_BASE_REF": "release/1.x",
            "SPECGUARD_GIT_TIMEOUT_SECONDS": "2.5",
            "SPECGUARD_ENFORCE_SEMVER": "yes",
            "SPECGUARD_WARN_MISSING_EXAMPLES": "off",
        }
    )
    assert settings.log_level == "DEBUG"
    assert settings.log_format == "json"
    assert settings.spec_path == "api/openapi.json"
    assert settings.base_ref == "release/1.x"
    assert settings.git_timeout_seconds == 2.5
    assert settings.enforce_semver is True
    assert settings.warn_missing_examples is False


def test_custom_prefix():
    settings = SpecGuardSettings.from_env({"CI_BASE_REF": "develop"}, env_prefix="CI_")
    assert settings.base_ref == "develop"


@pytest.mark.parametrize(
    ("key", "raw"),
    [
        ("SPECGUARD_ENFORCE_SEMVER", "sometimes"),
        ("SPECGUARD_GIT_TIMEOUT_SECONDS", "soon"),
        ("SPECGUARD_LOG_FORMAT", "xml"),
    ],
)
def test_invalid_values_fall_back_to_defaults(caplog, key, raw):
    with caplog.at_level(logging.WARNING, logger="specguard"):
        settings = SpecGuardSettings.from_env({key: raw})
    assert settings == SpecGuardSettings()
    assert caplog.records


def test_lowercase_variables_are_accepted_with_a_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="specguard"):
        assert get_flag_env("SPECGUARD_BASE_REF", env={"specguard_base_ref": "main"}) == "main"
    assert "deprecated lowercase" in caplog.text
    assert get_flag_env("SPECGUARD_BASE_REF", default="x", env={}) == "x"


def test_with_overrides_skips_none():
    settings = SpecGuardSettings().with_overrides(base_ref="main", spec_path=None)
    assert settings.base_ref == "main"
    assert settings.spec_path == "openapi.yaml"


def test_configured_settings_are_returned(monkeypatch):
    configured = SpecGuardSettings(base_ref="trunk")
    configure_settings(configured)
    assert get_settings() is configured

    configure_settings(None)
    monkeypatch.setenv("SPECGUARD_BASE_REF", "from-env")
    assert get_settings().base_ref == "from-env"
    assert get_settings() is get_settings()
