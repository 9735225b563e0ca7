from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError


@dataclass
class DatabaseConfig:
    host: str
    user: str
    password: str
    database: str
    port: int = 3306
    charset: str = "utf8mb4"

    def connect_args(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
            "charset": self.charset,
            "autocommit": True,
        }


@dataclass
class PoolConfig:
    max_open: int = 20
    max_idle: int = 20
    acquire_timeout_seconds: float = -1

    @property
    def acquire_timeout(self) -> float | None:
        if self.acquire_timeout_seconds == -1:
            return None
        return self.acquire_timeout_seconds


@dataclass
class LoadingConfig:
    max_depth: int = 8


@dataclass
class ObservabilityConfig:
    log_level: str = "info"
    debug_sql: bool = False


@dataclass
class AppConfig:
    database: DatabaseConfig
    pool: PoolConfig = field(default_factory=PoolConfig)
    loading: LoadingConfig = field(default_factory=LoadingConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)


def _resolve_env(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        expanded = os.path.expandvars(value)
        if expanded.startswith("${") and expanded.endswith("}"):
            key = expanded[2:-1]
            if key not in env:
                raise ConfigError(f"Environment variable {key} is required but not set")
            return env[key]
        return expanded
    if isinstance(value, list):
        return [_resolve_env(v, env) for v in value]
    if isinstance(value, dict):
        return {k: _resolve_env(v, env) for k, v in value.items()}
    return value


def _validate_positive(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc
    if number <= 0:
        raise ConfigError(f"{field_name} must be greater than 0")
    return number


def _validate_timeout(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError("acquire_timeout_seconds must be a number") from exc
    if number == -1:
        return number
    if number < 0:
        raise ConfigError("acquire_timeout_seconds must be >= 0 or -1 to block forever")
    return number


def load_config(path: str | Path, env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env
    raw = yaml.safe_load(Path(path).read_text()) or {}
    resolved = _resolve_env(raw, env)

    try:
        database_raw = resolved["database"] or {}
    except KeyError as exc:
        raise ConfigError(f"Missing config section: {exc.args[0]}") from exc
    pool_raw = resolved.get("pool") or {}
    loading_raw = resolved.get("loading") or {}
    observability_raw = resolved.get("observability") or {}

    try:
        database = DatabaseConfig(
            host=str(database_raw.get("host", "localhost")),
            port=int(database_raw.get("port", 3306)),
            user=database_raw["user"],
            password=str(database_raw.get("password", "")),
            database=database_raw["database"],
            charset=str(database_raw.get("charset", "utf8mb4")),
        )
    except KeyError as exc:
        raise ConfigError(f"Missing database setting: {exc.args[0]}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid database setting: {exc}") from exc

    if not database.user or not database.database:
        raise ConfigError("Database user and database name are required")

    max_open = _validate_positive(pool_raw.get("max_open", 20), "max_open")
    pool = PoolConfig(
        max_open=max_open,
        max_idle=_validate_positive(pool_raw.get("max_idle", min(20, max_open)), "max_idle"),
        acquire_timeout_seconds=_validate_timeout(
            pool_raw.get("acquire_timeout_seconds", -1)
        ),
    )
    if pool.max_idle > pool.max_open:
        raise ConfigError("max_idle cannot exceed max_open")

    loading = LoadingConfig(
        max_depth=_validate_positive(loading_raw.get("max_depth", 8), "max_depth"),
    )

    observability = ObservabilityConfig(
        log_level=str(observability_raw.get("log_level", "info")),
        debug_sql=bool(observability_raw.get("debug_sql", False)),
    )

    return AppConfig(
        database=database,
        pool=pool,
        loading=loading,
        observability=observability,
    )
