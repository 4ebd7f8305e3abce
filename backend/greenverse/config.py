# backend/greenverse/config.py
"""
Application configuration.

The process environment is read exactly once, by Config.from_env(), at
startup. The resulting Config is handed to create_app(), which copies it
into app.config; services read app.config, never os.environ.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping


DEV_SECRET_KEY = "dev-secret-key-change-me"

# Share of revenue booked as estimated expense, per category.
DEFAULT_EXPENSE_RATIOS = (
    ("Raw Materials", 0.30),
    ("Labor", 0.25),
    ("Operations", 0.15),
    ("Marketing", 0.10),
)


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


def _int_option(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Config:
    database_url: str
    jwt_secret: str
    database_admin_url: str | None = None
    app_env: str = "production"
    port: int = 5000
    frontend_url: str = "http://localhost:5173"
    log_level: str = "INFO"
    bcrypt_rounds: int = 12
    token_ttl_days: int = 7

    # Business constants
    default_cluster_capacity: int = 1000
    daily_production_target: int = 1500
    co2_kg_per_kg_waste: float = 0.3
    landfill_share: float = 0.8
    farmers_per_cluster: int = 10
    co2_kg_per_tree_year: float = 20.0
    expense_ratios: tuple[tuple[str, float], ...] = field(default=DEFAULT_EXPENSE_RATIOS)
    payable_ratio: float = 0.15

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        """
        Build configuration from environment variables.

        DATABASE_URL is always required. JWT_SECRET is required in
        production; development and testing fall back to a dev key.
        """
        env = os.environ if environ is None else environ

        database_url = (env.get("DATABASE_URL") or "").strip()
        if not database_url:
            raise ConfigError("DATABASE_URL is not set")

        app_env = (env.get("APP_ENV") or "production").strip().lower()
        if app_env not in {"production", "development", "testing"}:
            raise ConfigError(f"APP_ENV must be production, development or testing, got {app_env!r}")

        jwt_secret = (env.get("JWT_SECRET") or "").strip()
        if not jwt_secret:
            if app_env == "production":
                raise ConfigError("JWT_SECRET is not set")
            jwt_secret = DEV_SECRET_KEY

        return cls(
            database_url=database_url,
            database_admin_url=(env.get("DATABASE_ADMIN_URL") or "").strip() or None,
            jwt_secret=jwt_secret,
            app_env=app_env,
            port=_int_option(env, "PORT", 5000),
            frontend_url=(env.get("FRONTEND_URL") or "http://localhost:5173").strip(),
            log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
            bcrypt_rounds=_int_option(env, "BCRYPT_ROUNDS", 12),
            token_ttl_days=_int_option(env, "TOKEN_TTL_DAYS", 7),
        )

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    def flask_settings(self) -> dict:
        """Translate into the upper-case keys Flask and its extensions expect."""
        return {
            "SECRET_KEY": self.jwt_secret,
            "JWT_SECRET": self.jwt_secret,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "DATABASE_ADMIN_URL": self.database_admin_url or self.database_url,
            "APP_ENV": self.app_env,
            "TESTING": self.app_env == "testing",
            "PORT": self.port,
            "FRONTEND_URL": self.frontend_url,
            "LOG_LEVEL": self.log_level,
            "BCRYPT_ROUNDS": self.bcrypt_rounds,
            "TOKEN_TTL_DAYS": self.token_ttl_days,
            "DEFAULT_CLUSTER_CAPACITY": self.default_cluster_capacity,
            "DAILY_PRODUCTION_TARGET": self.daily_production_target,
            "CO2_KG_PER_KG_WASTE": self.co2_kg_per_kg_waste,
            "LANDFILL_SHARE": self.landfill_share,
            "FARMERS_PER_CLUSTER": self.farmers_per_cluster,
            "CO2_KG_PER_TREE_YEAR": self.co2_kg_per_tree_year,
            "EXPENSE_RATIOS": self.expense_ratios,
            "PAYABLE_RATIO": self.payable_ratio,
        }
