from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

API_URL = "https://api.sunrise-sunset.org/json"
TIMEOUT_S = 30


class SunriseError(RuntimeError):
    pass


class SunriseFetchError(SunriseError):
    pass


class SunriseParseError(SunriseError):
    pass


def sunrise_url(lat: float, lng: float) -> str:
    return f"{API_URL}?{urllib.parse.urlencode({'lat': lat, 'lng': lng, 'formatted': 0})}"


def parse_sunrise(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp with an explicit offset into a UTC datetime."""
    try:
        parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError) as exc:
        raise SunriseParseError(f"DateTime parse error: {raw!r}") from exc
    if parsed.tzinfo is None:
        raise SunriseParseError(f"DateTime parse error: {raw!r} has no UTC offset")
    return parsed.astimezone(timezone.utc)


def fetch_sunrise_payload(url: str) -> dict:
    req = urllib.request.Request(url, headers={"Accept": "application/json"})
    try:
        with urllib.request.urlopen(req, timeout=TIMEOUT_S) as resp:
            body = resp.read()
    except (urllib.error.URLError, TimeoutError, OSError) as exc:
        raise SunriseFetchError(f"HTTP request error: {exc}") from exc
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise SunriseFetchError(f"HTTP request error: response is not JSON ({exc})") from exc


def resolve_sunrise(lat: float, lng: float) -> datetime:
    url = sunrise_url(lat, lng)
    logger.info("Fetching sunrise from %s", url)
    payload = fetch_sunrise_payload(url)
    try:
        raw = payload["results"]["sunrise"]
    except (KeyError, TypeError) as exc:
        raise SunriseFetchError(f"HTTP request error: unexpected response body {payload!r}") from exc
    if not isinstance(raw, str):
        raise SunriseFetchError(f"HTTP request error: sunrise is not a string ({raw!r})")
    return parse_sunrise(raw)
