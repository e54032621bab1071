"""Client for the carbon intensity forecast API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import backoff
import requests

from .domain import CarbonForecastPeriod

logger = logging.getLogger(__name__)

_TIME_FORMAT = "%Y-%m-%dT%H:%MZ"


class CarbonAPIError(Exception):
    """Raised when forecast data cannot be obtained from the API."""


class _TransientError(CarbonAPIError):
    """A failure that is worth retrying."""


def _parse_time(text: Any, label: str) -> datetime:
    try:
        return datetime.strptime(text, _TIME_FORMAT).replace(tzinfo=timezone.utc)
    except (TypeError, ValueError) as exc:
        logger.error("invalid %s time format: %s", label, exc)
        raise CarbonAPIError(f"invalid {label} time format: {exc}") from exc


class CarbonIntensityAdapter:
    """Fetches 24-hour carbon intensity forecasts over HTTP.

    Server errors, connection failures and undecodable bodies are retried
    with exponential backoff; any other non-200 status fails at once.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        max_tries: int = 3,
        base_delay: float = 0.5,
    ) -> None:
        self.base_url = base_url
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.max_tries = max_tries
        self.base_delay = base_delay

    def get_carbon_intensity(
        self, start: datetime, end: datetime
    ) -> list[CarbonForecastPeriod]:
        """Return the forecast periods from ``start`` onwards, ordered by start."""
        if start.tzinfo is not None:
            start = start.astimezone(timezone.utc)
        url = f"{self.base_url}/intensity/{start.strftime(_TIME_FORMAT)}/fw24h"

        fetch = backoff.on_exception(
            backoff.expo,
            _TransientError,
            max_tries=self.max_tries,
            factor=self.base_delay,
            logger=None,
        )(self._fetch)

        try:
            payload = fetch(url)
        except CarbonAPIError as exc:
            logger.error("failed to get carbon intensity data: %s", exc)
            raise CarbonAPIError(f"failed to get carbon intensity data: {exc}") from exc

        entries = payload.get("data") or []
        if not entries:
            logger.info("no data in carbon intensity response")
            raise CarbonAPIError("no data in carbon intensity response")

        periods = []
        for entry in entries:
            intensity = entry.get("intensity") or {}
            periods.append(
                CarbonForecastPeriod(
                    start=_parse_time(entry.get("from", ""), "from"),
                    end=_parse_time(entry.get("to", ""), "to"),
                    forecast=int(intensity.get("forecast") or 0),
                )
            )
        periods.sort(key=lambda period: period.start)
        return periods

    def _fetch(self, url: str) -> dict[str, Any]:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("carbon intensity get request error: %s", exc)
            raise _TransientError(f"carbon intensity get request: {exc}") from exc

        with response:
            if response.status_code == 500:
                logger.warning(
                    "carbon intensity API returned internal server error: %s",
                    response.status_code,
                )
                raise _TransientError(
                    f"carbon intensity api error: {response.status_code} {response.reason}"
                )
            if response.status_code != 200:
                logger.error(
                    "carbon intensity API returned unexpected status code: %d",
                    response.status_code,
                )
                raise CarbonAPIError(f"unexpected status code: {response.status_code}")

            try:
                payload = response.json()
            except ValueError as exc:
                logger.warning("error decoding carbon intensity response: %s", exc)
                raise _TransientError(str(exc)) from exc

        if not isinstance(payload, dict) or not isinstance(
            payload.get("data") or [], list
        ):
            logger.warning("unexpected carbon intensity response shape")
            raise _TransientError("unexpected carbon intensity response shape")
        return payload