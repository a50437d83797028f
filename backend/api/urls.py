"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api.views import RegionWeatherView, StationListView, StationWeatherView

urlpatterns = [
    path("v1/weather/region/<str:region_id>", RegionWeatherView.as_view(), name="region-weather"),
    path("v1/weather/<str:station_id>", StationWeatherView.as_view(), name="station-weather"),
    path("v1/stations", StationListView.as_view(), name="stations"),
]
