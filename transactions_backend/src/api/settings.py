from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# Values already present in the environment take precedence over .env
load_dotenv(override=False)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' or 'mongodb'. When unset (or invalid) it is
      'mongodb' if MONGODB_URI is set or STARTUP_POLICY=fatal, else 'memory'
    - MONGODB_URI: connection string, required when PERSISTENCE_BACKEND=mongodb
    - MONGODB_DATABASE: database name. Default 'transactions_db'
    - MONGODB_TIMEOUT_MS: server selection timeout in milliseconds. Default 5000
    - STARTUP_POLICY: 'degraded' (default) keeps serving when the store is
      unreachable at startup; 'fatal' aborts startup
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name. Default 'INFO'
    - LOG_JSON: 'true' to emit JSON log lines (default: false)
    - HOST / PORT: bind address for the bundled server. Default 0.0.0.0:3000
    """

    persistence_backend: str
    mongodb_uri: Optional[str]
    mongodb_database: str
    mongodb_timeout_ms: int
    startup_policy: str
    cors_allow_origins: List[str]
    log_level: str
    log_json: bool
    host: str
    port: int

    @property
    def fail_fast(self) -> bool:
        """True when an unreachable store must abort startup."""
        return self.startup_policy == "fatal"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    policy = _get_env("STARTUP_POLICY", "degraded").strip().lower()
    if policy not in {"degraded", "fatal"}:
        policy = "degraded"

    uri = os.getenv("MONGODB_URI")
    uri = uri.strip() if uri and uri.strip() else None

    # An explicit backend wins. Otherwise a URI or the fatal policy selects mongodb,
    # so fatal startup never silently serves from memory
    backend = _get_env("PERSISTENCE_BACKEND", "").strip().lower()
    if backend not in {"memory", "mongodb"}:
        backend = "mongodb" if (uri or policy == "fatal") else "memory"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        log_level = "INFO"

    return Settings(
        persistence_backend=backend,
        mongodb_uri=uri,
        mongodb_database=_get_env("MONGODB_DATABASE", "transactions_db").strip(),
        mongodb_timeout_ms=_parse_int(_get_env("MONGODB_TIMEOUT_MS", "5000"), 5000),
        startup_policy=policy,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
        log_json=_parse_bool(_get_env("LOG_JSON", "false"), False),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000),
    )
