"""HTTP front end serving low-carbon slot searches."""

from __future__ import annotations

import argparse
import json
import logging
import re
import socketserver
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from http import HTTPStatus
from typing import Any, Callable, Iterable
from urllib.parse import parse_qs
from wsgiref.simple_server import WSGIServer, make_server

from .carbon_api import CarbonIntensityAdapter
from .domain import SlotController
from .slot_service import SlotService

logger = logging.getLogger(__name__)

SLOTS_PATH = "/api/v1/slots"
DEFAULT_ADDR = ":3000"
DEFAULT_CARBON_API = "https://api.carbonintensity.org.uk"

_DEFAULT_DURATION_MINUTES = 30
_MAX_DURATION_MINUTES = 1440
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")

StartResponse = Callable[..., Any]


def _status_line(status: HTTPStatus) -> str:
    return f"{status.value} {status.phrase}"


def _json_response(
    start_response: StartResponse, status: HTTPStatus, body: Any
) -> list[bytes]:
    payload = (json.dumps(body) + "\n").encode("utf-8")
    start_response(
        _status_line(status),
        [
            ("Content-Type", "application/json"),
            ("Content-Length", str(len(payload))),
        ],
    )
    return [payload]


def _json_error(
    start_response: StartResponse, status: HTTPStatus, message: str
) -> list[bytes]:
    return _json_response(start_response, status, {"error": message})


def _parse_duration(text: str) -> int:
    if _INTEGER.fullmatch(text):
        value = int(text)
        if -_INT64_MAX - 1 <= value <= _INT64_MAX:
            return value
    return _DEFAULT_DURATION_MINUTES


class SlotsHandler:
    """WSGI application answering slot queries with a JSON list of slots."""

    def __init__(
        self, controller: SlotController, request_timeout: timedelta = timedelta(seconds=10)
    ) -> None:
        self.controller = controller
        self.request_timeout = request_timeout

    def __call__(
        self, environ: dict[str, Any], start_response: StartResponse
    ) -> Iterable[bytes]:
        logger.info("Received request for %s", environ.get("PATH_INFO", ""))
        query = parse_qs(environ.get("QUERY_STRING", ""), keep_blank_values=True)

        minutes = _parse_duration(query.get("duration", [""])[0])
        if minutes > _MAX_DURATION_MINUTES or minutes < 0:
            logger.info("Invalid duration: %d minutes", minutes)
            return _json_error(
                start_response,
                HTTPStatus.BAD_REQUEST,
                "invalid duration, must be between 0 and 1440 minutes",
            )

        continuous = query.get("contineous", [""])[0].strip().lower() == "true"

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(
                self.controller.find_slots, timedelta(minutes=minutes), continuous
            )
            slots = future.result(timeout=self.request_timeout.total_seconds())
        except FutureTimeoutError:
            logger.error("Error finding slots: request timed out")
            return _json_error(
                start_response, HTTPStatus.INTERNAL_SERVER_ERROR, "failed to find slots"
            )
        except Exception as exc:
            logger.error("Error finding slots: %s", exc)
            return _json_error(
                start_response, HTTPStatus.INTERNAL_SERVER_ERROR, "failed to find slots"
            )
        finally:
            executor.shutdown(wait=False)

        return _json_response(
            start_response, HTTPStatus.OK, [slot.to_dict() for slot in slots]
        )


def _not_found(start_response: StartResponse) -> list[bytes]:
    payload = b"404 page not found\n"
    start_response(
        _status_line(HTTPStatus.NOT_FOUND),
        [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("Content-Length", str(len(payload))),
        ],
    )
    return [payload]


def create_app(carbon_api_base_url: str) -> Callable[..., Iterable[bytes]]:
    """Build the WSGI application wired to the given carbon intensity API."""
    adapter = CarbonIntensityAdapter(carbon_api_base_url)
    service = SlotService(adapter)
    slots_handler = SlotsHandler(service, timedelta(seconds=10))

    def app(environ: dict[str, Any], start_response: StartResponse) -> Iterable[bytes]:
        if environ.get("PATH_INFO", "") == SLOTS_PATH:
            return slots_handler(environ, start_response)
        return _not_found(start_response)

    return app


class _ThreadingWSGIServer(socketserver.ThreadingMixIn, WSGIServer):
    daemon_threads = True


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    return host.strip("[]"), int(port)


def serve(addr: str, carbon_api_base_url: str) -> None:
    """Listen on ``addr`` (``host:port``) and serve requests until interrupted."""
    host, port = _split_addr(addr)
    app = create_app(carbon_api_base_url)
    logger.info("Starting server on %s", addr)
    with make_server(host, port, app, server_class=_ThreadingWSGIServer) as server:
        server.serve_forever()


def main(argv: list[str] | None = None) -> int:
    """Run the slot server from the command line."""
    parser = argparse.ArgumentParser(description="Serve low-carbon time slots.")
    parser.add_argument("--addr", default=DEFAULT_ADDR, help="listen address")
    parser.add_argument(
        "--carbon-api", default=DEFAULT_CARBON_API, help="carbon intensity API base URL"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        serve(args.addr, args.carbon_api)
    except (OSError, ValueError) as exc:
        logger.critical("server failed: %s", exc)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())