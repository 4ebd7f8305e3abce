"""
Configuration loading tests. Config.from_env() takes an explicit mapping
so nothing here touches the process environment.
"""

import pytest

from greenverse.config import DEV_SECRET_KEY, Config, ConfigError


BASE_ENV = {"DATABASE_URL": "sqlite://", "JWT_SECRET": "s3cret"}


def test_defaults():
    config = Config.from_env(BASE_ENV)
    assert config.app_env == "production"
    assert config.port == 5000
    assert config.bcrypt_rounds == 12
    assert config.token_ttl_days == 7
    assert config.database_admin_url is None
    assert config.flask_settings()["DATABASE_ADMIN_URL"] == "sqlite://"


def test_database_url_required():
    with pytest.raises(ConfigError, match="DATABASE_URL"):
        Config.from_env({"JWT_SECRET": "s3cret"})


def test_jwt_secret_required_in_production():
    with pytest.raises(ConfigError, match="JWT_SECRET"):
        Config.from_env({"DATABASE_URL": "sqlite://"})


def test_dev_secret_outside_production():
    config = Config.from_env({"DATABASE_URL": "sqlite://", "APP_ENV": "Development"})
    assert config.app_env == "development"
    assert config.jwt_secret == DEV_SECRET_KEY
    assert config.is_development


def test_unknown_app_env():
    with pytest.raises(ConfigError, match="APP_ENV"):
        Config.from_env({**BASE_ENV, "APP_ENV": "staging"})


@pytest.mark.parametrize("key", ["PORT", "BCRYPT_ROUNDS", "TOKEN_TTL_DAYS"])
def test_integer_options_validated(key):
    with pytest.raises(ConfigError, match=key):
        Config.from_env({**BASE_ENV, key: "ten"})


def test_overrides():
    config = Config.from_env({
        **BASE_ENV,
        "PORT": "8080",
        "LOG_LEVEL": "debug",
        "DATABASE_ADMIN_URL": "postgresql://admin@db/greenverse",
        "FRONTEND_URL": "https://shop.example.com",
    })
    settings = config.flask_settings()
    assert settings["PORT"] == 8080
    assert settings["LOG_LEVEL"] == "DEBUG"
    assert settings["DATABASE_ADMIN_URL"] == "postgresql://admin@db/greenverse"
    assert settings["FRONTEND_URL"] == "https://shop.example.com"
