"""Slot search over carbon intensity forecasts."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from .domain import Carbon, CarbonForecastPeriod, CarbonIntensityPort, Slot

logger = logging.getLogger(__name__)

_SEARCH_HORIZON = timedelta(hours=24)
_WINDOW_STEP = timedelta(minutes=15)


class SlotSearchError(Exception):
    """Raised when no slot can be produced from the available forecast."""


def weighted_average(
    periods: Iterable[CarbonForecastPeriod], start: datetime, end: datetime
) -> int:
    """Return the time-weighted average forecast over ``[start, end)``.

    Periods that only partly overlap the window count for the overlapping
    part. Raises SlotSearchError when no period overlaps the window.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for period in periods:
        overlap_start = max(start, period.start)
        overlap_end = min(end, period.end)
        if overlap_start < overlap_end:
            weight = (overlap_end - overlap_start).total_seconds() / 60
            weighted_sum += period.forecast * weight
            total_weight += weight

    if total_weight == 0:
        raise SlotSearchError("no overlap between periods and slot window")
    return int(weighted_sum / total_weight)


class SlotService:
    """Finds low-carbon slots using forecasts from a carbon intensity port."""

    def __init__(self, carbon_api: CarbonIntensityPort) -> None:
        self.carbon_api = carbon_api

    def find_slots(self, duration: timedelta, continuous: bool) -> list[Slot]:
        """Find slots within the next 24 hours that add up to ``duration``.

        With ``continuous`` the first window of that length that has forecast
        data is returned as a single slot; otherwise the lowest-intensity
        periods are pieced together until the duration is covered.
        """
        start_time = datetime.now(timezone.utc)
        end_time = start_time + _SEARCH_HORIZON

        try:
            periods = list(self.carbon_api.get_carbon_intensity(start_time, end_time))
        except Exception as exc:
            logger.error("Error fetching carbon intensity data: %s", exc)
            raise

        if not periods:
            logger.info("No carbon intensity data available for the requested period")
            raise SlotSearchError(
                "no carbon intensity data available for the requested period"
            )

        if continuous:
            return self._first_continuous_slot(periods, duration, end_time)
        return self._cheapest_slots(periods, duration)

    @staticmethod
    def _first_continuous_slot(
        periods: list[CarbonForecastPeriod], duration: timedelta, end_time: datetime
    ) -> list[Slot]:
        start = periods[0].start.astimezone(timezone.utc)
        while start + duration <= end_time:
            end = start + duration
            try:
                average = weighted_average(periods, start, end)
            except SlotSearchError:
                start += _WINDOW_STEP
                continue
            return [Slot(valid_from=start, valid_to=end, carbon=Carbon(average))]

        logger.info("No continuous slot found for the requested duration")
        raise SlotSearchError("no continuous slot found")

    @staticmethod
    def _cheapest_slots(
        periods: list[CarbonForecastPeriod], duration: timedelta
    ) -> list[Slot]:
        slots: list[Slot] = []
        accumulated = timedelta(0)
        remaining = duration

        for period in sorted(periods, key=lambda p: p.forecast):
            period_length = period.end - period.start
            used = min(remaining, period_length)
            valid_to = period.start + used if used < period_length else period.end
            slots.append(
                Slot(
                    valid_from=period.start,
                    valid_to=valid_to,
                    carbon=Carbon(period.forecast),
                )
            )
            accumulated += used
            remaining -= used
            if accumulated >= duration:
                break

        if accumulated < duration:
            logger.info("Not enough periods to cover the requested duration")
            raise SlotSearchError("not enough periods to cover requested duration")
        return slots