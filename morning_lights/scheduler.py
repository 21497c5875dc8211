from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import asyncpg

from morning_lights.db import Severity, log_event

LEAD_TIME = timedelta(minutes=30)


@dataclass(frozen=True)
class Wait:
    sunrise_local: datetime
    target_local: datetime
    seconds: int

    @property
    def act_now(self) -> bool:
        return self.seconds <= 0


def compute_wait(sunrise_utc: datetime, now: datetime | None = None) -> Wait:
    """Work out how long to sleep before acting, in whole seconds.

    The target is ``LEAD_TIME`` before sunrise in local time. Sub-second
    remainders are truncated, and anything not strictly positive becomes 0.
    """
    sunrise_local = sunrise_utc.astimezone()
    target_local = sunrise_local - LEAD_TIME
    now = now or datetime.now().astimezone()
    seconds = int((target_local - now).total_seconds())
    return Wait(sunrise_local=sunrise_local, target_local=target_local, seconds=max(seconds, 0))


async def wait_until_target(
    conn: asyncpg.Connection,
    sunrise_utc: datetime,
    now: datetime | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Wait:
    wait = compute_wait(sunrise_utc, now)
    if wait.act_now:
        await log_event(
            conn,
            Severity.INFO,
            "It is already close enough to sunrise. "
            f"Sunrise local today is {wait.sunrise_local:%Y-%m-%d %H:%M:%S}. Turning lights off immediately.",
        )
        return wait

    await log_event(
        conn,
        Severity.INFO,
        f"Sunrise local is {wait.sunrise_local.isoformat()}. Sleeping for {wait.seconds} seconds "
        f"until {wait.target_local.isoformat()} before turning off morning lights.",
    )
    await sleep(wait.seconds)
    return wait
