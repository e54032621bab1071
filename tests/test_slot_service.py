from datetime import datetime, timedelta, timezone

import pytest

from carbonslots.domain import Carbon, CarbonForecastPeriod, Slot
from carbonslots.slot_service import SlotSearchError, SlotService, weighted_average

UTC = timezone.utc


class FakeCarbonAPI:
    def __init__(self, periods=None, error=None):
        self.periods = periods
        self.error = error
        self.calls = []

    def get_carbon_intensity(self, start, end):
        self.calls.append((start, end))
        if self.error is not None:
            raise self.error
        return list(self.periods or [])


@pytest.fixture
def now():
    return datetime.now(UTC) + timedelta(minutes=30)


@pytest.fixture
def periods(now):
    return [
        CarbonForecastPeriod(now, now + timedelta(minutes=30), 100),
        CarbonForecastPeriod(now + timedelta(minutes=30), now + timedelta(minutes=60), 200),
        CarbonForecastPeriod(now + timedelta(minutes=60), now + timedelta(minutes=90), 50),
    ]


def test_continuous_slot_found(now, periods):
    service = SlotService(FakeCarbonAPI(periods))
    slots = service.find_slots(timedelta(minutes=30), True)
    assert slots == [Slot(now, now + timedelta(minutes=30), Carbon(100))]


def test_continuous_slot_not_found():
    service = SlotService(FakeCarbonAPI([]))
    with pytest.raises(SlotSearchError):
        service.find_slots(timedelta(minutes=30), True)


def test_non_continuous_exact_periods(now, periods):
    service = SlotService(FakeCarbonAPI(periods))
    slots = service.find_slots(timedelta(minutes=60), False)
    assert slots == [
        Slot(now + timedelta(minutes=60), now + timedelta(minutes=90), Carbon(50)),
        Slot(now, now + timedelta(minutes=30), Carbon(100)),
    ]


def test_non_continuous_partial_period(now, periods):
    service = SlotService(FakeCarbonAPI(periods))
    slots = service.find_slots(timedelta(minutes=45), False)
    assert slots == [
        Slot(now + timedelta(minutes=60), now + timedelta(minutes=90), Carbon(50)),
        Slot(now, now + timedelta(minutes=15), Carbon(100)),
    ]


def test_api_error_propagates():
    service = SlotService(FakeCarbonAPI(error=RuntimeError("api error")))
    with pytest.raises(RuntimeError, match="api error"):
        service.find_slots(timedelta(minutes=30), False)


def test_not_enough_periods(periods):
    service = SlotService(FakeCarbonAPI(periods[:1]))
    with pytest.raises(SlotSearchError):
        service.find_slots(timedelta(minutes=60), False)


def test_requests_next_24_hours(periods):
    api = FakeCarbonAPI(periods)
    SlotService(api).find_slots(timedelta(minutes=30), False)
    start, end = api.calls[0]
    assert end - start == timedelta(hours=24)


def test_continuous_window_beyond_horizon_fails(now):
    periods = [CarbonForecastPeriod(now, now + timedelta(minutes=30), 100)]
    service = SlotService(FakeCarbonAPI(periods))
    with pytest.raises(SlotSearchError):
        service.find_slots(timedelta(hours=24), True)


def test_non_continuous_slots_cover_duration(periods):
    service = SlotService(FakeCarbonAPI(periods))
    duration = timedelta(minutes=75)
    slots = service.find_slots(duration, False)
    total = sum((s.valid_to - s.valid_from for s in slots), timedelta(0))
    assert total == duration
    intensities = [s.carbon.intensity for s in slots]
    assert intensities == sorted(intensities)


@pytest.fixture
def fixed_periods():
    base = datetime(2025, 1, 9, 1, 0, tzinfo=UTC)
    return base, [
        CarbonForecastPeriod(base, base + timedelta(minutes=30), 100),
        CarbonForecastPeriod(base + timedelta(minutes=30), base + timedelta(minutes=60), 200),
    ]


def test_weighted_average_full_overlap_first_period(fixed_periods):
    base, periods = fixed_periods
    assert weighted_average(periods, base, base + timedelta(minutes=30)) == 100


def test_weighted_average_partial_overlap_both_periods(fixed_periods):
    base, periods = fixed_periods
    result = weighted_average(
        periods, base + timedelta(minutes=15), base + timedelta(minutes=45)
    )
    assert result == 150


def test_weighted_average_no_overlap(fixed_periods):
    base, periods = fixed_periods
    with pytest.raises(SlotSearchError):
        weighted_average(periods, base + timedelta(hours=2), base + timedelta(hours=3))