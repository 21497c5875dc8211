from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

REQUIRED_VARS = ("DB_HOST", "DB_USER", "DB_PASSWORD", "DB_NAME", "NETWORK_ID", "LAT", "LNG")
DEFAULT_DB_PORT = 5432


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class Settings:
    db_host: str
    db_user: str
    db_password: str
    db_name: str
    network_id: str
    lat: float
    lng: float
    db_port: int = DEFAULT_DB_PORT


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "")
    if not value.strip():
        raise ConfigError(f"{name} not set")
    return value


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"Invalid {name} value: {raw!r}") from None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Read job settings from the environment.

    A ``.env`` file in the working directory is loaded first when reading the
    real process environment; variables already set are not overridden.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    values = {name: _require(environ, name) for name in REQUIRED_VARS}

    raw_port = environ.get("DB_PORT", "").strip()
    try:
        db_port = int(raw_port) if raw_port else DEFAULT_DB_PORT
    except ValueError:
        raise ConfigError(f"Invalid DB_PORT value: {raw_port!r}") from None

    return Settings(
        db_host=values["DB_HOST"],
        db_user=values["DB_USER"],
        db_password=values["DB_PASSWORD"],
        db_name=values["DB_NAME"],
        network_id=values["NETWORK_ID"],
        lat=_parse_float("LAT", values["LAT"]),
        lng=_parse_float("LNG", values["LNG"]),
        db_port=db_port,
    )
