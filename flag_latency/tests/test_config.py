"""Configuration sources, precedence and validation."""
from __future__ import annotations

import json
import os

import pytest
from pydantic import ValidationError

from flag_latency.base.errors import ConfigurationError, ErrorCode
from flag_latency.config import CONFIG_FILE_ENV, load_config_file, resolve_settings
from flag_latency.config.env import is_placeholder, load_dotenv_once, resolve_env_value
from flag_latency.config.settings import DEFAULT_API_BASE_URL, ProbeSettings

COMPLETE_ENV = {
    "LD_SDK_KEY": "sdk-env",
    "LD_API_TOKEN": "api-env",
    "LD_PROJECT": "default",
    "LD_ENVIRONMENT": "test",
    "LD_FLAG_KEY": "latency-probe",
    "LD_CONTEXT": '{"kind": "user", "key": "probe-user"}',
}


@pytest.fixture()
def complete_env(monkeypatch):
    for k, v in COMPLETE_ENV.items():
        monkeypatch.setenv(k, v)


def test_settings_from_environment(complete_env):
    settings = resolve_settings(use_dotenv=False)

    assert settings.sdk_key == "sdk-env"  # nosec B101
    assert settings.project_key == "default"  # nosec B101
    assert settings.context == {"kind": "user", "key": "probe-user"}  # nosec B101
    assert settings.log_level == "info"  # nosec B101
    assert settings.api_base_url == DEFAULT_API_BASE_URL  # nosec B101


def test_overrides_win_and_none_falls_through(complete_env):
    settings = resolve_settings({"flagKey": "cli-flag", "sdkKey": None, "logLevel": "WARNING"}, use_dotenv=False)

    assert settings.flag_key == "cli-flag"  # nosec B101
    assert settings.sdk_key == "sdk-env"  # nosec B101
    assert settings.log_level == "warn"  # nosec B101


def test_alias_environment_names(monkeypatch, complete_env):
    monkeypatch.delenv("LD_PROJECT")
    monkeypatch.setenv("LD_PROJECT_KEY", "alias-project")

    assert resolve_env_value("project_key") == ("alias-project", "LD_PROJECT_KEY")  # nosec B101
    assert resolve_settings(use_dotenv=False).project_key == "alias-project"  # nosec B101


def test_missing_settings_raise_configuration_error():
    with pytest.raises(ConfigurationError) as info:
        resolve_settings(use_dotenv=False)

    assert info.value.code is ErrorCode.CONFIGURATION  # nosec B101
    for name in ("sdk_key", "api_token", "project_key", "environment_key", "flag_key", "context"):
        assert name in info.value.fields  # nosec B101


@pytest.mark.parametrize("context", ['{"kind": "user"}', "[1, 2]", "{not json"])
def test_invalid_context_is_rejected(monkeypatch, complete_env, context):
    monkeypatch.setenv("LD_CONTEXT", context)

    with pytest.raises(ConfigurationError) as info:
        resolve_settings(use_dotenv=False)

    assert info.value.fields == ("context",)  # nosec B101


def test_placeholder_values_are_rejected(monkeypatch, complete_env):
    monkeypatch.setenv("LD_API_TOKEN", "<api-token>")

    with pytest.raises(ConfigurationError) as info:
        resolve_settings(use_dotenv=False)

    assert info.value.fields == ("api_token",)  # nosec B101


@pytest.mark.parametrize(
    "value,expected",
    [("your-sdk-key", True), ("CHANGEME", True), ("<flag>", True), ("sdk-1234", False), (None, False)],
)
def test_is_placeholder(value, expected):
    assert is_placeholder(value) is expected  # nosec B101


def test_unknown_log_level_is_rejected(complete_env):
    with pytest.raises(ConfigurationError) as info:
        resolve_settings({"logLevel": "verbose"}, use_dotenv=False)
    assert info.value.fields == ("log_level",)  # nosec B101


def test_settings_are_frozen_and_strict():
    settings = ProbeSettings(
        sdk_key=" sdk ",
        api_token="api",
        project_key="p",
        environment_key="e",
        flag_key="f",
        context={"key": "k"},
        api_base_url="https://example.test/",
    )
    assert settings.sdk_key == "sdk"  # nosec B101
    assert settings.api_base_url == "https://example.test"  # nosec B101
    with pytest.raises(ValidationError):
        ProbeSettings(**settings.model_dump(), unexpected=True)


def test_dotenv_fills_missing_values(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "\n".join(
            [
                "# probe settings",
                "export LD_SDK_KEY=sdk-dotenv",
                'LD_API_TOKEN="api-dotenv"',
                "LD_PROJECT=default",
                "LD_ENVIRONMENT=test",
                "LD_FLAG_KEY=from-dotenv",
                "LD_CONTEXT={\"key\": \"dotenv-user\"}",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("DOTENV_FILE", str(env_file))
    monkeypatch.setenv("LD_FLAG_KEY", "from-env")

    settings = resolve_settings()

    assert settings.sdk_key == "sdk-dotenv"  # nosec B101
    assert settings.api_token == "api-dotenv"  # nosec B101
    assert settings.flag_key == "from-env"  # nosec B101
    assert settings.context == {"key": "dotenv-user"}  # nosec B101
    assert load_dotenv_once() is False  # nosec B101


def test_yaml_config_file_is_lowest_precedence(monkeypatch, tmp_path):
    config = tmp_path / "probe.yaml"
    config.write_text(
        "\n".join(
            [
                "sdkKey: sdk-file",
                "apiToken: api-file",
                "projectKey: file-project",
                "environmentKey: staging",
                "flagKey: file-flag",
                "logLevel: debug",
                "context:",
                "  kind: user",
                "  key: file-user",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv(CONFIG_FILE_ENV, str(config))
    monkeypatch.setenv("LD_ENVIRONMENT", "production")

    settings = resolve_settings(use_dotenv=False)

    assert settings.environment_key == "production"  # nosec B101
    assert settings.project_key == "file-project"  # nosec B101
    assert settings.log_level == "debug"  # nosec B101
    assert settings.context == {"kind": "user", "key": "file-user"}  # nosec B101


def test_json_config_file(tmp_path):
    path = tmp_path / "probe.json"
    path.write_text(json.dumps({"flagKey": "json-flag", "sdk_key": "s"}), encoding="utf-8")

    assert load_config_file(str(path)) == {"flag_key": "json-flag", "sdk_key": "s"}  # nosec B101
    assert load_config_file(str(tmp_path / "absent.yaml")) == {}  # nosec B101
    assert load_config_file(None) == {}  # nosec B101


def test_config_file_must_be_a_mapping(tmp_path):
    path = tmp_path / "probe.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config_file(str(path))


def test_environment_is_not_overridden_by_dotenv(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("LD_SDK_KEY=from-file\nLD_API_TOKEN=from-file\n", encoding="utf-8")
    monkeypatch.setenv("LD_SDK_KEY", "real-key")
    monkeypatch.setenv("LD_API_TOKEN", "your-api-token")

    assert load_dotenv_once(str(env_file)) is True  # nosec B101

    assert os.environ["LD_SDK_KEY"] == "real-key"  # nosec B101
    assert os.environ["LD_API_TOKEN"] == "from-file"  # nosec B101
