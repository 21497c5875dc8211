from __future__ import annotations

import argparse
import asyncio
import logging

from morning_lights.config import ConfigError, Settings, load_settings
from morning_lights.db import DatabaseError, init_schema, list_devices, open_database
from morning_lights.lights import LightsOffResult, turn_off_lights
from morning_lights.scheduler import wait_until_target
from morning_lights.sunrise import SunriseError, resolve_sunrise

logger = logging.getLogger(__name__)


async def _no_sleep(seconds: float) -> None:
    logger.info("--no-wait given, skipping %s second sleep", seconds)


async def run(settings: Settings, *, wait: bool = True) -> LightsOffResult:
    async with open_database(settings) as conn:
        devices = await list_devices(conn, settings.network_id)
        sunrise_utc = await asyncio.to_thread(resolve_sunrise, settings.lat, settings.lng)
        await wait_until_target(conn, sunrise_utc, sleep=asyncio.sleep if wait else _no_sleep)
        return await turn_off_lights(conn, devices)


async def setup_schema(settings: Settings) -> None:
    async with open_database(settings) as conn:
        await init_schema(conn)
    logger.info("Schema ready in %s", settings.db_name)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="morning-lights",
        description="Turn WiZ lights off 30 minutes before today's sunrise.",
    )
    parser.add_argument("--no-wait", action="store_true", help="Act immediately instead of sleeping until the target time")
    parser.add_argument("--init-db", action="store_true", help="Create the machine and log tables, then exit")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = load_settings()
        if args.init_db:
            asyncio.run(setup_schema(settings))
        else:
            asyncio.run(run(settings, wait=not args.no_wait))
    except (ConfigError, SunriseError, DatabaseError) as exc:
        logger.error("Morning lights run aborted: %s", exc)
        raise
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
