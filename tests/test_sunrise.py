from __future__ import annotations

import io
import json
import unittest
import urllib.error
from datetime import datetime, timezone
from unittest.mock import patch

from morning_lights.sunrise import (
    SunriseFetchError,
    SunriseParseError,
    parse_sunrise,
    resolve_sunrise,
    sunrise_url,
)


def _response(body: bytes) -> io.BytesIO:
    return io.BytesIO(body)


class SunriseUrlTests(unittest.TestCase):
    def test_embeds_coordinates_and_iso_flag(self) -> None:
        self.assertEqual(
            sunrise_url(51.5, -0.12),
            "https://api.sunrise-sunset.org/json?lat=51.5&lng=-0.12&formatted=0",
        )


class ParseSunriseTests(unittest.TestCase):
    def test_offset_timestamp_is_normalised_to_utc(self) -> None:
        parsed = parse_sunrise("2024-06-01T07:30:00+02:00")
        self.assertEqual(parsed, datetime(2024, 6, 1, 5, 30, tzinfo=timezone.utc))
        self.assertEqual(parsed.utcoffset().total_seconds(), 0)

    def test_zulu_suffix_is_accepted(self) -> None:
        self.assertEqual(parse_sunrise("2024-06-01T05:30:00Z"), datetime(2024, 6, 1, 5, 30, tzinfo=timezone.utc))

    def test_malformed_or_naive_timestamps_fail(self) -> None:
        for raw in ("not a time", "2024-13-01T05:30:00+00:00", "2024-06-01T05:30:00"):
            with self.subTest(raw=raw):
                with self.assertRaises(SunriseParseError):
                    parse_sunrise(raw)


class ResolveSunriseTests(unittest.TestCase):
    @patch("morning_lights.sunrise.urllib.request.urlopen")
    def test_returns_parsed_sunrise(self, urlopen) -> None:
        body = {"results": {"sunrise": "2024-06-01T05:30:00+00:00", "sunset": "2024-06-01T21:10:00+00:00"}, "status": "OK"}
        urlopen.return_value = _response(json.dumps(body).encode("utf-8"))

        sunrise = resolve_sunrise(51.5, -0.12)

        self.assertEqual(sunrise, datetime(2024, 6, 1, 5, 30, tzinfo=timezone.utc))
        req = urlopen.call_args.args[0]
        self.assertEqual(req.full_url, "https://api.sunrise-sunset.org/json?lat=51.5&lng=-0.12&formatted=0")

    @patch("morning_lights.sunrise.urllib.request.urlopen")
    def test_network_failure_is_a_fetch_error(self, urlopen) -> None:
        urlopen.side_effect = urllib.error.URLError("unreachable")
        with self.assertRaises(SunriseFetchError):
            resolve_sunrise(0.0, 0.0)
        self.assertEqual(urlopen.call_count, 1)

    @patch("morning_lights.sunrise.urllib.request.urlopen")
    def test_non_json_body_is_a_fetch_error(self, urlopen) -> None:
        urlopen.return_value = _response(b"<html>oops</html>")
        with self.assertRaises(SunriseFetchError):
            resolve_sunrise(0.0, 0.0)

    @patch("morning_lights.sunrise.urllib.request.urlopen")
    def test_missing_results_is_a_fetch_error(self, urlopen) -> None:
        urlopen.return_value = _response(b'{"results": "", "status": "INVALID_REQUEST"}')
        with self.assertRaises(SunriseFetchError):
            resolve_sunrise(0.0, 0.0)

    @patch("morning_lights.sunrise.urllib.request.urlopen")
    def test_malformed_timestamp_is_a_parse_error(self, urlopen) -> None:
        urlopen.return_value = _response(b'{"results": {"sunrise": "yesterday-ish"}}')
        with self.assertRaises(SunriseParseError):
            resolve_sunrise(0.0, 0.0)


if __name__ == "__main__":
    unittest.main()
