from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..entities import ReadingCandidate, SpeedUnit
from ..errors import ParseError
from .base import SourceParser, first_number


class HtmlTableParser(SourceParser):
    """Label/value table scraped from a marine station snapshot page.

    Rows look like ``<td>Wind Speed</td><td>15.7 Knots</td>``; the first
    numeric token of the cell after a label is the value.
    """

    name = "html_table"

    WIND_SPEED = "Wind Speed"
    WIND_GUST = "Max Gust"
    WIND_DIRECTION = "Wind Direction"
    TEMPERATURE = "Air Temp"
    PRESSURE = "Pressure"
    HUMIDITY = "Humidity"
    VISIBILITY = "Visibility"
    UPDATED = "Updated"

    def __init__(
        self,
        source_id: str,
        *,
        speed_unit: str = SpeedUnit.KNOTS.value,
        time_format: str = "%d/%m/%Y %H:%M:%S",
    ) -> None:
        super().__init__(source_id)
        self.speed_unit = SpeedUnit(speed_unit)
        self.time_format = time_format

    def _parse(self, raw: str) -> ReadingCandidate:
        soup = BeautifulSoup(raw, "html.parser")
        cells = soup.find_all("td")
        if not cells:
            raise ParseError("no table cells in payload")

        speed = first_number(self._cell_text(cells, self.WIND_SPEED))
        if speed is None:
            raise ParseError(f"'{self.WIND_SPEED}' row missing or not numeric")
        direction = first_number(self._cell_text(cells, self.WIND_DIRECTION))
        if direction is None:
            raise ParseError(f"'{self.WIND_DIRECTION}' row missing or not numeric")

        return ReadingCandidate(
            source_id=self.source_id,
            wind_speed=speed,
            wind_direction=direction,
            speed_unit=self.speed_unit,
            wind_gust=first_number(self._cell_text(cells, self.WIND_GUST)),
            temperature=first_number(self._cell_text(cells, self.TEMPERATURE)),
            pressure=first_number(self._cell_text(cells, self.PRESSURE)),
            humidity=first_number(self._cell_text(cells, self.HUMIDITY)),
            visibility=first_number(self._cell_text(cells, self.VISIBILITY)),
            timestamp=self._parse_time(self._cell_text(cells, self.UPDATED)),
        )

    def _cell_text(self, cells: List[Tag], label: str) -> Optional[str]:
        needle = label.lower()
        for cell in cells:
            if needle not in cell.get_text(" ", strip=True).lower():
                continue
            value_cell = cell.find_next_sibling("td")
            if value_cell is None:
                self._log.debug("%s: no value cell after '%s'", self.source_id, label)
                return None
            return value_cell.get_text(" ", strip=True)
        self._log.debug("%s: label '%s' not found", self.source_id, label)
        return None

    def _parse_time(self, value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        cleaned = value.replace("GMT", "").replace("UTC", "").strip()
        try:
            parsed = datetime.strptime(cleaned, self.time_format)
        except ValueError:
            self._log.debug("%s: unrecognised timestamp %r", self.source_id, value)
            return None
        return parsed.replace(tzinfo=timezone.utc)


__all__ = ["HtmlTableParser"]
