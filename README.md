# carbonslots

A small HTTP service that tells you when to run energy-hungry work. It asks a
carbon intensity forecast API for the next 24 hours of forecasts and answers
with the time slots whose electricity is cleanest.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
carbon-slots [--addr HOST:PORT] [--carbon-api BASE_URL]
```

- `--addr` – the address to listen on, `:3000` by default (all interfaces,
  port 3000).
- `--carbon-api` – the base URL of the carbon intensity API; by default the
  public carbon intensity API is used.

The server handles requests in threads and runs until interrupted. An
unusable listen address or a failure to bind makes the command log the error
and exit with status 1.

Forecasts are requested from `<base URL>/intensity/<start>/fw24h`, where
`<start>` is the current UTC time as `YYYY-MM-DDTHH:MMZ`. A request is tried
up to three times with exponential backoff when the API answers with status
500, when the connection fails, or when the body is not the expected JSON.
Any other status other than 200 fails at once. Each request to the API has a
10-second timeout.

## The API

```
GET /api/v1/slots?duration=<minutes>&contineous=<true|false>
```

- `duration` – length of the slot in minutes, from 0 to 1440. If it is missing
  or not a whole number it defaults to 30. A value outside the range gets a
  `400` response.
- `contineous` – when `true` (case and surrounding spaces are ignored) the
  service returns a single window of the requested length. Starting at the
  first forecast period, it steps forward in 15-minute increments and returns
  the first window that overlaps forecast data and ends no later than 24
  hours from now; its intensity is the time-weighted average of the
  overlapping periods, rounded down. Otherwise it takes the forecast periods
  in order of increasing intensity and patches them together until they add
  up to the requested duration, trimming the last one if only part of it is
  needed.

A successful response is a JSON list of slots, with times in RFC 3339 form:

```json
[
  {
    "valid_from": "2025-01-09T01:00:00Z",
    "valid_to": "2025-01-09T01:30:00Z",
    "carbon": {"intensity": 50}
  }
]
```

Failures are answered with a JSON body of the form `{"error": "..."}`: status
`400` for a bad duration, and `500` with `"failed to find slots"` when no
slots could be found, the forecast could not be fetched, or the search took
longer than 10 seconds. Any other path gets a plain-text `404`.

## Using it as a library

- `carbonslots.domain` holds the data types `Carbon`, `Slot` (with
  `to_dict()` giving its JSON form) and `CarbonForecastPeriod`, and the
  protocols `CarbonIntensityPort` (`get_carbon_intensity(start, end)`) and
  `SlotController` (`find_slots(duration, continuous)`).
- `carbonslots.carbon_api.CarbonIntensityAdapter(base_url, session=None,
  timeout=10.0, max_tries=3, base_delay=0.5)` fetches forecasts and returns
  them as `CarbonForecastPeriod` values sorted by start time; it raises
  `CarbonAPIError` when the API cannot be used or returns no data.
- `carbonslots.slot_service.SlotService(carbon_api)` takes any object
  implementing `CarbonIntensityPort` and offers `find_slots(duration,
  continuous)`, with `duration` a `timedelta`; it returns a list of `Slot`
  values or raises `SlotSearchError`. Errors from the port are passed on.
- `carbonslots.slot_service.weighted_average(periods, start, end)` gives the
  time-weighted average forecast of the periods over a window, rounded down,
  and raises `SlotSearchError` when no period overlaps it.
- `carbonslots.server.SlotsHandler(controller, request_timeout)` is the WSGI
  application for the slots endpoint alone;
  `carbonslots.server.create_app(carbon_api_base_url)` builds the full WSGI
  application, and `carbonslots.server.serve(addr, carbon_api_base_url)` runs
  it.

## What it does not do

The service keeps no storage or cache: every slot request fetches a fresh
forecast from the API. It has no authentication and no configuration beyond
the two command-line options.