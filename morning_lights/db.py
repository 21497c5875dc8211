from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum

import asyncpg

from morning_lights.config import Settings

logger = logging.getLogger(__name__)

WIZ_PORT = 38899
EVENT_TYPE = "Morning"
ALL_MACHINES = "All"

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class DatabaseError(RuntimeError):
    pass


class Severity(str, Enum):
    INFO = "Info"
    ERROR = "Error"


@dataclass(frozen=True)
class Device:
    host_id: str
    name: str
    address: str


def device_address(network_id: str, host_id: str) -> str:
    return f"{network_id}.{host_id}:{WIZ_PORT}"


def _on_connection_lost(conn: asyncpg.Connection) -> None:
    logger.error("connection error: database connection closed by server")


async def connect(settings: Settings) -> asyncpg.Connection:
    try:
        conn = await asyncpg.connect(
            host=settings.db_host,
            port=settings.db_port,
            user=settings.db_user,
            password=settings.db_password,
            database=settings.db_name,
        )
    except _DB_ERRORS as exc:
        raise DatabaseError(f"Could not connect to database {settings.db_name!r} at {settings.db_host}: {exc}") from exc
    conn.add_termination_listener(_on_connection_lost)
    return conn


@asynccontextmanager
async def open_database(settings: Settings) -> AsyncIterator[asyncpg.Connection]:
    conn = await connect(settings)
    try:
        yield conn
    finally:
        conn.remove_termination_listener(_on_connection_lost)
        await conn.close()


async def init_schema(conn: asyncpg.Connection) -> None:
    try:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS machine (
                host_id TEXT PRIMARY KEY,
                name TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS log (
                id SERIAL PRIMARY KEY,
                severity TEXT NOT NULL,
                message TEXT NOT NULL,
                machine TEXT NOT NULL,
                event_type TEXT NOT NULL,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            );
            """
        )
    except _DB_ERRORS as exc:
        raise DatabaseError(f"Could not create schema: {exc}") from exc


async def list_devices(conn: asyncpg.Connection, network_id: str) -> list[Device]:
    try:
        rows = await conn.fetch("SELECT host_id, name FROM machine")
    except _DB_ERRORS as exc:
        raise DatabaseError(f"Could not read devices: {exc}") from exc
    return [
        Device(host_id=row["host_id"], name=row["name"], address=device_address(network_id, row["host_id"]))
        for row in rows
    ]


async def log_event(
    conn: asyncpg.Connection,
    severity: Severity,
    message: str,
    machine: str = ALL_MACHINES,
) -> None:
    logger.log(logging.ERROR if severity is Severity.ERROR else logging.INFO, "[%s] %s", machine, message)
    try:
        await conn.execute(
            "INSERT INTO log (severity, message, machine, event_type) VALUES ($1, $2, $3, $4)",
            severity.value,
            message,
            machine,
            EVENT_TYPE,
        )
    except _DB_ERRORS as exc:
        raise DatabaseError(f"Could not write log event: {exc}") from exc
