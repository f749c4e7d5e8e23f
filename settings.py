from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


_MONGODB_URI_ENV = "MONGODB_URI"
_MONGODB_DATABASE_ENV = "MONGODB_DATABASE"
_MONGODB_COLLECTION_ENV = "MONGODB_COLLECTION"
_BACKEND_ENV = "SENSOR_STORE_BACKEND"
_SCHEMA_ENV = "SENSOR_SCHEMA"
_CAPACITY_ENV = "MEMORY_STORE_CAPACITY"
_COERCION_ENV = "COERCION_POLICY"
_CONNECT_ATTEMPTS_ENV = "STORE_CONNECT_ATTEMPTS"
_CONNECT_BACKOFF_ENV = "STORE_CONNECT_BACKOFF_SECONDS"
_STORE_TIMEOUT_ENV = "STORE_TIMEOUT_MS"
_RETRY_COOLDOWN_ENV = "STORE_RETRY_COOLDOWN_SECONDS"
_HOST_ENV = "HOST"
_PORT_ENV = "PORT"
_WELCOME_ENV = "WELCOME_MESSAGE"
_LOG_LEVEL_ENV = "LOG_LEVEL"

BACKENDS = ("mongo", "memory")
COERCION_POLICIES = ("zero", "reject")
DEFAULT_WELCOME = "Welcome to Water Level and Temperature Monitoring System API"


@dataclass(frozen=True)
class Settings:
    mongodb_uri: Optional[str]
    mongodb_database: str
    mongodb_collection: str
    store_backend: str
    sensor_schema: str
    memory_capacity: int
    coercion_policy: str
    connect_attempts: int
    connect_backoff_seconds: float
    store_timeout_ms: int
    retry_cooldown_seconds: float
    host: str
    port: int
    welcome_message: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_non_negative_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    candidate = _read_str_env(name, default).lower()
    return candidate if candidate in choices else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        mongodb_uri=_read_optional_env(_MONGODB_URI_ENV, None),
        mongodb_database=_read_str_env(_MONGODB_DATABASE_ENV, "project1"),
        mongodb_collection=_read_str_env(_MONGODB_COLLECTION_ENV, "sensorData"),
        store_backend=_read_choice(_BACKEND_ENV, BACKENDS, "mongo"),
        sensor_schema=_read_str_env(_SCHEMA_ENV, "full").lower(),
        memory_capacity=_read_positive_int(_CAPACITY_ENV, 100),
        coercion_policy=_read_choice(_COERCION_ENV, COERCION_POLICIES, "zero"),
        connect_attempts=_read_positive_int(_CONNECT_ATTEMPTS_ENV, 3),
        connect_backoff_seconds=_read_non_negative_float(_CONNECT_BACKOFF_ENV, 0.5),
        store_timeout_ms=_read_positive_int(_STORE_TIMEOUT_ENV, 5000),
        retry_cooldown_seconds=_read_non_negative_float(_RETRY_COOLDOWN_ENV, 5.0),
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_positive_int(_PORT_ENV, 3000),
        welcome_message=_read_str_env(_WELCOME_ENV, DEFAULT_WELCOME),
        log_level=_read_log_level("INFO"),
    )
