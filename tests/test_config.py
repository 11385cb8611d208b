from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.config import ConfigurationError, Settings, env_file_for, get_settings, load_settings

from .conftest import VALID_ENV

REQUIRED_KEYS = [
    "ADMIN_USER",
    "ADMIN_PASSWORD",
    "SESSION_SECRET",
    "DB_USERNAME",
    "DB_PASSWORD",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "MINIO_ENDPOINT",
    "MINIO_PORT",
    "MINIO_ACCESS_KEY",
    "MINIO_SECRET_KEY",
    "MINIO_PUBLIC_BUCKET_NAME",
    "MINIO_URL",
]

OPTIONAL_DEFAULTS = {
    "NODE_ENV": "development",
    "PORT": 8989,
    "MINIO_USE_SSL": False,
    "DB_SYNCHRONIZE": True,
}


def _set_env(monkeypatch: pytest.MonkeyPatch, values: dict[str, str]) -> None:
    for key, value in values.items():
        monkeypatch.setenv(key, value)


def _write_env_file(path, values: dict[str, str]) -> None:
    path.write_text("".join(f"{key}={value}\n" for key, value in values.items()), encoding="utf-8")


def test_env_file_selected_by_node_env():
    assert env_file_for("production") == ".env.production"
    assert env_file_for("development") == ".env.development"
    assert env_file_for(None) == ".env.development"
    assert env_file_for("staging") == ".env.development"


def test_valid_environment_loads(monkeypatch):
    _set_env(monkeypatch, VALID_ENV)

    settings = load_settings()

    assert settings.ADMIN_USER == "admin"
    assert settings.DB_PORT == 5432
    assert settings.MINIO_PORT == "9000"
    assert settings.MINIO_USE_SSL is False


@pytest.mark.parametrize("missing", REQUIRED_KEYS)
def test_missing_required_key_fails(monkeypatch, missing):
    _set_env(monkeypatch, {k: v for k, v in VALID_ENV.items() if k != missing})

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert excinfo.value.keys == [missing]


@pytest.mark.parametrize("key,expected", sorted(OPTIONAL_DEFAULTS.items()))
def test_optional_key_defaults(monkeypatch, key, expected):
    _set_env(monkeypatch, {k: v for k, v in VALID_ENV.items() if k != key})

    settings = load_settings()

    assert settings.get(key) == expected


def test_empty_value_counts_as_missing(monkeypatch):
    _set_env(monkeypatch, {**VALID_ENV, "ADMIN_PASSWORD": ""})

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert excinfo.value.keys == ["ADMIN_PASSWORD"]


@pytest.mark.parametrize("key,value", [("PORT", "http"), ("DB_PORT", "fivefour"), ("MINIO_USE_SSL", "maybe")])
def test_type_coercion_failure(monkeypatch, key, value):
    _set_env(monkeypatch, {**VALID_ENV, key: value})

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert excinfo.value.keys == [key]


def test_error_message_does_not_echo_values(monkeypatch):
    _set_env(monkeypatch, {**VALID_ENV, "DB_PORT": "hunter2"})
    monkeypatch.delenv("DB_PASSWORD")

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    message = str(excinfo.value)
    assert "DB_PORT" in message
    assert "DB_PASSWORD" in message
    assert "hunter2" not in message


def test_values_are_coerced(monkeypatch):
    _set_env(monkeypatch, {**VALID_ENV, "PORT": "3000", "MINIO_USE_SSL": "true"})

    settings = load_settings()

    assert settings.PORT == 3000
    assert settings.MINIO_USE_SSL is True


def test_development_env_file_is_read(isolated_env):
    _write_env_file(isolated_env / ".env.development", VALID_ENV)

    settings = load_settings()

    assert settings.DB_HOST == "db.internal"
    assert settings.is_development


def test_production_env_file_is_read(isolated_env, monkeypatch):
    _write_env_file(isolated_env / ".env.development", {**VALID_ENV, "DB_HOST": "dev-db"})
    _write_env_file(
        isolated_env / ".env.production",
        {**VALID_ENV, "NODE_ENV": "production", "DB_HOST": "prod-db"},
    )
    monkeypatch.setenv("NODE_ENV", "production")

    settings = load_settings()

    assert settings.DB_HOST == "prod-db"
    assert settings.is_production


def test_process_environment_overrides_env_file(isolated_env, monkeypatch):
    _write_env_file(isolated_env / ".env.development", VALID_ENV)
    monkeypatch.setenv("PORT", "9100")

    settings = load_settings()

    assert settings.PORT == 9100


def test_missing_env_file_with_no_environment_fails():
    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert set(excinfo.value.keys) == set(REQUIRED_KEYS)


def test_settings_are_immutable(monkeypatch):
    _set_env(monkeypatch, VALID_ENV)
    settings = load_settings()

    with pytest.raises(ValidationError):
        settings.PORT = 1234


def test_lookup_by_key(monkeypatch):
    _set_env(monkeypatch, VALID_ENV)
    settings = load_settings()

    assert settings.get("DB_NAME") == "mypage"
    with pytest.raises(KeyError):
        settings.get("NOT_A_SETTING")


def test_secrets_are_hidden_from_repr(monkeypatch):
    _set_env(monkeypatch, VALID_ENV)

    text = repr(load_settings())

    assert "db-secret-pw" not in text
    assert "admin-pass" not in text
    assert "session-secret-for-tests" not in text


@pytest.mark.parametrize(
    "node_env,log_level,expected",
    [("development", None, "DEBUG"), ("production", None, "INFO"), ("production", "warning", "WARNING")],
)
def test_log_level(node_env, log_level, expected):
    values = {**VALID_ENV, "NODE_ENV": node_env}
    if log_level:
        values["LOG_LEVEL"] = log_level

    assert Settings(_env_file=None, **values).log_level == expected


def test_get_settings_returns_cached_instance(monkeypatch):
    _set_env(monkeypatch, VALID_ENV)

    first = get_settings()
    monkeypatch.setenv("PORT", "9200")
    second = get_settings()

    assert first is second
    assert second.PORT == 8989


def test_get_settings_does_not_cache_failures(monkeypatch):
    with pytest.raises(ConfigurationError):
        get_settings()

    _set_env(monkeypatch, VALID_ENV)

    assert get_settings().ADMIN_USER == "admin"
