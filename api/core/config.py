"""
Process settings, read once from the environment at startup.

A `.env` file in the working directory is loaded first (python-dotenv) so
local runs behave like the container. Values already present in the real
environment win over the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from dotenv import load_dotenv


class ConfigError(RuntimeError):
    pass


_DB_PARTS = ("DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME")


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _sanitize_database_url(url: str) -> str:
    # asyncpg rejects libpq's sslmode parameter.
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _compose_database_url(host: str, port: str, user: str, password: str, name: str) -> str:
    credentials = f"{quote(user, safe='')}:{quote(password, safe='')}"
    return f"postgresql://{credentials}@{host}:{port}/{quote(name, safe='')}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    song_info_url: str
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    song_info_timeout_s: float = 10.0
    db_command_timeout_s: float = 30.0
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Either `DATABASE_URL` or the full set of `DB_HOST`, `DB_PORT`,
        `DB_USER`, `DB_PASSWORD`, `DB_NAME` must be present, as well as
        `SONG_INFO_API_URL`. All missing names are reported together.
        """
        if dotenv:
            load_dotenv(override=False)

        missing: list[str] = []

        database_url = _env_str("DATABASE_URL")
        if not database_url:
            parts = {name: _env_str(name) for name in _DB_PARTS}
            missing.extend(name for name, value in parts.items() if not value)
            if not missing:
                database_url = _compose_database_url(
                    parts["DB_HOST"],
                    parts["DB_PORT"],
                    parts["DB_USER"],
                    parts["DB_PASSWORD"],
                    parts["DB_NAME"],
                )

        song_info_url = _env_str("SONG_INFO_API_URL")
        if not song_info_url:
            missing.append("SONG_INFO_API_URL")

        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        return cls(
            database_url=_sanitize_database_url(database_url),
            song_info_url=song_info_url.rstrip("/"),
            api_host=_env_str("API_HOST", "0.0.0.0"),
            api_port=_env_int("API_PORT", 8080),
            song_info_timeout_s=_env_float("SONG_INFO_TIMEOUT_S", 10.0),
            db_command_timeout_s=_env_float("DB_COMMAND_TIMEOUT_S", 30.0),
            db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
            db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            log_file=_env_str("LOG_FILE") or None,
        )
