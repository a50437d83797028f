"""Static station and region configuration."""
from __future__ import annotations

from typing import Dict, List, Optional

from .entities import RegionConfig, SpeedUnit, StationConfig

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36"
)
API_USER_AGENT = "Weather-Display-System/1.0"

NAVIS_IMEI = "083af23b9b89_15_1"
NAVIS_BASE = "https://www.navis-livedata.com"
NAVIS_LIVE = f"{NAVIS_BASE}/query.php?imei={NAVIS_IMEI}&type=live"
LIVE_WITH_META = "http://api.pioupiou.fr/v1/live-with-meta/{station}"

STATIONS: Dict[str, StationConfig] = {
    "brambles": StationConfig(
        id="brambles",
        name="Brambles Bank",
        url=(
            "https://www.southamptonvts.co.uk/BackgroundSite/Ajax/LoadXmlFileWithTransform"
            "?xmlFilePath=D%3A%5Cftp%5Csouthampton%5CBramble.xml"
            "&xslFilePath=D%3A%5Cwwwroot%5CCMS_Southampton%5Ccontent%5Cfiles%5Cassets%5CSotonSnapshotmetBramble.xsl"
            "&w=51"
        ),
        parser="html_table",
        headers={
            "User-Agent": "Mozilla/5.0 (compatible; WeatherStation/1.0)",
            "Accept": "text/html,*/*",
            "Referer": "https://www.southamptonvts.co.uk/Live_Information/Tides_and_Weather/",
        },
    ),
    "lymington": StationConfig(
        id="lymington",
        name="Lymington",
        url="https://www.lymingtonharbour.co.uk/weather-data/?format=json",
        parser="json_enhanced",
        headers={"User-Agent": BROWSER_USER_AGENT, "Accept": "application/json"},
    ),
    "seaview": StationConfig(
        id="seaview",
        name="Seaview",
        url=f"{NAVIS_BASE}/query.php?imei={NAVIS_IMEI}&type=data&from={{start}}&to={{end}}",
        fallback_url=NAVIS_LIVE,
        supplement_url=NAVIS_LIVE,
        session_url=f"{NAVIS_BASE}/view.php?u=36371",
        parser="packed_hex",
        headers={
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "*/*",
            "Accept-Language": "en-GB,en;q=0.9",
        },
    ),
    "planpraz": StationConfig(
        id="planpraz",
        name="Planpraz",
        url=LIVE_WITH_META.format(station=1724),
        parser="json_direct",
        headers={"User-Agent": API_USER_AGENT, "Accept": "application/json"},
        options={"expected_id": 1724},
    ),
    "prarion": StationConfig(
        id="prarion",
        name="Prarion",
        url=LIVE_WITH_META.format(station=521),
        parser="json_direct",
        headers={"User-Agent": API_USER_AGENT, "Accept": "application/json"},
        options={"expected_id": 521},
    ),
    "tetedebalme": StationConfig(
        id="tetedebalme",
        name="Tete de Balme",
        url=LIVE_WITH_META.format(station=1702),
        parser="json_direct",
        headers={"User-Agent": API_USER_AGENT, "Accept": "application/json"},
        options={"expected_id": 1702},
    ),
}

REGIONS: Dict[str, RegionConfig] = {
    "chamonix": RegionConfig(
        id="chamonix",
        name="Chamonix Valley, France",
        stations=("planpraz", "prarion", "tetedebalme"),
        default_station="planpraz",
        display_unit=SpeedUnit.KMH,
    ),
    "solent": RegionConfig(
        id="solent",
        name="Solent, UK",
        stations=("brambles", "lymington", "seaview"),
        default_station="brambles",
        display_unit=SpeedUnit.KNOTS,
    ),
}

DEFAULT_REGION = "chamonix"


def get_station(station_id: str) -> Optional[StationConfig]:
    return STATIONS.get(station_id.lower())


def get_region(region_id: str) -> Optional[RegionConfig]:
    return REGIONS.get(region_id.lower())


def region_for_station(station_id: str) -> Optional[RegionConfig]:
    for region in REGIONS.values():
        if station_id in region.stations:
            return region
    return None


def all_stations() -> List[StationConfig]:
    return sorted(STATIONS.values(), key=lambda station: station.id)


__all__ = [
    "DEFAULT_REGION",
    "REGIONS",
    "STATIONS",
    "all_stations",
    "get_region",
    "get_station",
    "region_for_station",
]
