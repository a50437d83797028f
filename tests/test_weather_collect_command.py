from __future__ import annotations

import json
from io import StringIO

import pytest
import requests_mock as requests_mock_lib
from django.core.cache import caches
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import override_settings

BRAMBLES_PAGE = """
<table>
  <tr><td>Wind Speed</td><td>12.0 Knots</td></tr>
  <tr><td>Wind Direction</td><td>190 Deg</td></tr>
</table>
"""


@pytest.fixture(autouse=True)
def _clear_cache():
    caches["default"].clear()
    with override_settings(WEATHER_RETRY_BASE_DELAY=0, WEATHER_RETRY_MAX_DELAY=0):
        yield
    caches["default"].clear()


PIOUPIOU_URL = "http://api.pioupiou.fr/v1/live-with-meta/{station}"


def live_payload(station_id: int, avg: float = 18.0) -> str:
    return json.dumps(
        {
            "data": {
                "id": station_id,
                "measurements": {"wind_heading": 225, "wind_speed_avg": avg, "wind_speed_max": avg + 9},
                "status": {"state": "on"},
            }
        }
    )


def run_command(*args: str) -> dict:
    out = StringIO()
    call_command("weather_collect", *args, stdout=out)
    return json.loads(out.getvalue())


def test_collect_single_station(requests_mock) -> None:
    requests_mock.get(requests_mock_lib.ANY, text=BRAMBLES_PAGE)

    summary = run_command("--station", "brambles")

    assert summary["message"] == "Collection completed"
    assert summary["results"]["brambles"]["success"] is True
    assert summary["results"]["brambles"]["status"] == "fresh"


def test_collect_region_reports_failures(requests_mock) -> None:
    requests_mock.get(requests_mock_lib.ANY, status_code=500)

    summary = run_command("--region", "chamonix")

    assert set(summary["results"]) == {"planpraz", "prarion", "tetedebalme"}
    assert all(entry["success"] is False for entry in summary["results"].values())
    assert all(entry["status"] == "error" for entry in summary["results"].values())


def test_unknown_station_is_rejected() -> None:
    with pytest.raises(CommandError):
        run_command("--station", "atlantis")


def test_collect_region_keeps_siblings_of_failing_station(requests_mock) -> None:
    requests_mock.get(PIOUPIOU_URL.format(station=1724), text=live_payload(1724))
    requests_mock.get(PIOUPIOU_URL.format(station=521), status_code=500)
    requests_mock.get(PIOUPIOU_URL.format(station=1702), text=live_payload(1702, avg=12.0))

    summary = run_command("--region", "chamonix")

    results = summary["results"]
    assert list(results) == ["planpraz", "prarion", "tetedebalme"]
    assert results["planpraz"]["success"] is True
    assert results["tetedebalme"]["success"] is True
    assert results["prarion"]["success"] is False
    assert results["prarion"]["error"].startswith("fetch failed")


def test_collect_all_aggregates_each_region(requests_mock, monkeypatch) -> None:
    from backend.api.management.commands import weather_collect

    requests_mock.get(requests_mock_lib.ANY, status_code=500)
    seen = []
    original = weather_collect.collect_region

    def recording_collect_region(region_id, cache=None):
        seen.append(region_id)
        return original(region_id, cache)

    monkeypatch.setattr(weather_collect, "collect_region", recording_collect_region)

    summary = run_command()

    assert seen == ["chamonix", "solent"]
    assert set(summary["results"]) == {"planpraz", "prarion", "tetedebalme", "brambles", "lymington", "seaview"}


def test_unknown_region_is_rejected() -> None:
    with pytest.raises(CommandError):
        run_command("--region", "atlantis")
