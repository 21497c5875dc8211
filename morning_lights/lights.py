from __future__ import annotations

import ipaddress
import logging
import socket
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import asyncpg

from morning_lights.db import Device, Severity, log_event

logger = logging.getLogger(__name__)

OFF_PAYLOAD = '{"method":"setPilot","params":{"state":false}}'


@dataclass
class LightsOffResult:
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def parse_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise ValueError(f"invalid socket address syntax: {address!r}")
    try:
        ip = ipaddress.ip_address(host.strip("[]"))
        port_num = int(port)
    except ValueError:
        raise ValueError(f"invalid socket address syntax: {address!r}") from None
    if not 0 <= port_num <= 65535:
        raise ValueError(f"invalid socket address syntax: {address!r}")
    return str(ip), port_num


def send_udp_packet(address: str, payload: str) -> None:
    """Fire a single datagram at ``address``; nothing is awaited back."""
    host, port = parse_address(address)
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    with socket.socket(family, socket.SOCK_DGRAM) as sock:
        sock.bind(("::" if family == socket.AF_INET6 else "0.0.0.0", 0))
        sock.sendto(payload.encode("utf-8"), (host, port))


async def turn_off_lights(
    conn: asyncpg.Connection,
    devices: Iterable[Device],
    send: Callable[[str, str], None] | None = None,
) -> LightsOffResult:
    send = send or send_udp_packet
    result = LightsOffResult()
    for light in devices:
        try:
            send(light.address, OFF_PAYLOAD)
        except (ValueError, OSError) as exc:
            result.failed.append(light.name)
            await log_event(
                conn,
                Severity.ERROR,
                f"Failed to turn off light {light.name} at {light.address}: {exc}",
                light.name,
            )
            continue
        result.succeeded.append(light.name)
        await log_event(conn, Severity.INFO, f"Light {light.name} at {light.address} turned off!", light.name)

    logger.info("Lights off: %d succeeded, %d failed", len(result.succeeded), len(result.failed))
    return result
