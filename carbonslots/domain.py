"""Core data types and the ports that connect the slot finder to the outside world."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol, runtime_checkable


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as an RFC 3339 string, using ``Z`` for UTC."""
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if offset is None or offset == timedelta(0):
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    hours, minutes = divmod(minutes, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


@dataclass(frozen=True)
class Carbon:
    """Carbon intensity figure, in gCO2/kWh."""

    intensity: int


@dataclass(frozen=True)
class Slot:
    """A window of time together with its carbon intensity."""

    valid_from: datetime
    valid_to: datetime
    carbon: Carbon

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation of the slot."""
        return {
            "valid_from": format_timestamp(self.valid_from),
            "valid_to": format_timestamp(self.valid_to),
            "carbon": {"intensity": self.carbon.intensity},
        }


@dataclass(frozen=True)
class CarbonForecastPeriod:
    """A period of time with a carbon intensity forecast."""

    start: datetime
    end: datetime
    forecast: int


@runtime_checkable
class CarbonIntensityPort(Protocol):
    """Source of carbon intensity forecasts."""

    def get_carbon_intensity(
        self, start: datetime, end: datetime
    ) -> list[CarbonForecastPeriod]:
        """Return the forecast periods covering the given time range."""


@runtime_checkable
class SlotController(Protocol):
    """Finds low-carbon slots of a given length."""

    def find_slots(self, duration: timedelta, continuous: bool) -> list[Slot]:
        """Return slots adding up to ``duration``, contiguous if ``continuous``."""