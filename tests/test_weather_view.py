from __future__ import annotations

import json

import pytest
import requests_mock as requests_mock_lib
from django.core.cache import caches
from django.test import Client, override_settings

from windcore.stations import STATIONS

BRAMBLES_PAGE = """
<table>
  <tr><td>Wind Speed</td><td>15.7 Knots</td></tr>
  <tr><td>Max Gust</td><td>21.4 Knots</td></tr>
  <tr><td>Wind Direction</td><td>238 Deg</td></tr>
  <tr><td>Air Temp</td><td>0.0 C</td></tr>
  <tr><td>Pressure</td><td>1012.5 mBar</td></tr>
</table>
"""


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


@pytest.fixture(autouse=True)
def _clear_cache():
    caches["default"].clear()
    with override_settings(WEATHER_RETRY_BASE_DELAY=0, WEATHER_RETRY_MAX_DELAY=0):
        yield
    caches["default"].clear()


def test_station_endpoint_returns_envelope(requests_mock) -> None:
    requests_mock.get(requests_mock_lib.ANY, text=BRAMBLES_PAGE)
    client = Client()

    response = client.get("/api/v1/weather/brambles")

    assert response.status_code == 200
    payload = response.json()
    assert payload["schema"] == "weather.v1"
    assert payload["stationId"] == "brambles"
    assert payload["data"]["wind"]["unit"] == "mps"
    assert payload["data"]["wind"]["avg"] == pytest.approx(8.08, abs=0.01)
    assert payload["data"]["temperature"] == {"air": 0.0, "unit": "celsius"}
    assert payload["timestamp"].endswith("Z")
    assert response["Cache-Control"] == "public, max-age=300"


def test_station_endpoint_serves_cache_on_second_call(requests_mock) -> None:
    requests_mock.get(requests_mock_lib.ANY, text=BRAMBLES_PAGE)
    client = Client()

    client.get("/api/v1/weather/brambles")
    response = client.get("/api/v1/weather/brambles")

    assert response.status_code == 200
    assert requests_mock.call_count == 1


def test_station_display_format_uses_region_unit(requests_mock) -> None:
    requests_mock.get(requests_mock_lib.ANY, text=BRAMBLES_PAGE)
    client = Client()

    response = client.get("/api/v1/weather/brambles", {"format": "display"})

    assert response.status_code == 200
    assert response["Content-Type"].startswith("text/plain")
    text = response.content.decode("utf-8")
    assert text.startswith("=== BRAMBLES BANK ===")
    assert "Wind: 15.7kts @ 238°" in text
    assert "Gust: 21.4kts" in text
    assert "Temp: 0.0°C" in text


def test_unknown_station_is_404() -> None:
    response = Client().get("/api/v1/weather/atlantis")

    assert response.status_code == 404
    assert "detail" in response.json()


def test_failing_station_is_503(requests_mock) -> None:
    requests_mock.get(requests_mock_lib.ANY, status_code=500)

    response = Client().get("/api/v1/weather/brambles")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "error"
    assert payload["stationId"] == "brambles"


def test_region_endpoint_keeps_failed_stations(requests_mock) -> None:
    requests_mock.get(STATIONS["planpraz"].url, text=live_payload(1724))
    requests_mock.get(STATIONS["prarion"].url, status_code=500)
    requests_mock.get(STATIONS["tetedebalme"].url, text=live_payload(1702, avg=36.0))
    client = Client()

    response = client.get("/api/v1/weather/region/chamonix")

    assert response.status_code == 200
    payload = response.json()
    assert payload["schema"] == "weather.region.v1"
    assert payload["regionId"] == "chamonix"
    assert [station["stationId"] for station in payload["stations"]] == ["planpraz", "prarion", "tetedebalme"]
    assert payload["stations"][1]["status"] == "error"
    assert payload["stations"][0]["data"]["wind"]["avg"] == 5.0
    assert payload["stations"][2]["data"]["wind"]["avg"] == 10.0
    assert payload["ttl"] == 300


def test_region_display_format(requests_mock) -> None:
    requests_mock.get(STATIONS["planpraz"].url, text=live_payload(1724))
    requests_mock.get(STATIONS["prarion"].url, text=live_payload(999))
    requests_mock.get(STATIONS["tetedebalme"].url, text=live_payload(1702))

    response = Client().get("/api/v1/weather/region/chamonix", {"format": "display"})

    text = response.content.decode("utf-8")
    assert "=== PLANPRAZ ===" in text
    assert "Wind: 18.0km/h @ 225°" in text
    assert "=== PRARION ===\n\nUnavailable" in text


def test_unknown_region_is_404() -> None:
    response = Client().get("/api/v1/weather/region/atlantis")

    assert response.status_code == 404


def test_station_list() -> None:
    response = Client().get("/api/v1/stations")

    assert response.status_code == 200
    stations = {station["id"]: station for station in response.json()["stations"]}
    assert set(stations) == set(STATIONS)
    assert stations["seaview"]["region"] == "solent"
    assert stations["planpraz"]["region"] == "chamonix"
