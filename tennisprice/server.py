"""HTTP service that prices tennis betting markets by simulation."""

from __future__ import annotations

import argparse
import json
import logging
import os
import re
import signal
import threading
import time
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from tennisprice.markets import (
    Probability,
    game_handicaps,
    game_totals,
    moneyline,
    set_handicaps,
    set_totals,
)
from tennisprice.sim import DEFAULT_SIMULATIONS, InvalidBestOfError, SimulatedMatch, simulate_match

MAX_STATS = 1000
DEFAULT_PORT = "8000"
READ_TIMEOUT_SECONDS = 5
JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

logger = logging.getLogger(__name__)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class InvalidRequestError(ValueError):
    """Raised when request parameters are missing or out of range."""


@dataclass
class SimulationResult:
    """All market probabilities derived from one batch of simulations."""

    moneyline: Probability | None = None
    set_handicaps: list[Probability] = field(default_factory=list)
    game_handicaps: list[Probability] = field(default_factory=list)
    set_ou: list[Probability] = field(default_factory=list)
    game_ou: list[Probability] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of this result."""
        return {
            "Moneyline": self.moneyline.to_dict() if self.moneyline is not None else None,
            "SetHandicaps": [p.to_dict() for p in self.set_handicaps],
            "GameHandicaps": [p.to_dict() for p in self.game_handicaps],
            "SetOU": [p.to_dict() for p in self.set_ou],
            "GameOU": [p.to_dict() for p in self.game_ou],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationResult:
        """Build a result from its JSON-ready form."""

        def many(key: str) -> list[Probability]:
            return [Probability.from_dict(item) for item in data.get(key) or []]

        line = data.get("Moneyline")
        return cls(
            moneyline=Probability.from_dict(line) if line else None,
            set_handicaps=many("SetHandicaps"),
            game_handicaps=many("GameHandicaps"),
            set_ou=many("SetOU"),
            game_ou=many("GameOU"),
        )


@dataclass
class Simulation:
    """Input serve probabilities together with the derived markets."""

    p1: float
    p2: float
    simulation_result: SimulationResult = field(default_factory=SimulationResult)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of this simulation."""
        return {
            "p1": self.p1,
            "p2": self.p2,
            "simulationResult": self.simulation_result.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Simulation:
        """Build a simulation from its JSON-ready form."""
        return cls(
            p1=float(data.get("p1", 0.0)),
            p2=float(data.get("p2", 0.0)),
            simulation_result=SimulationResult.from_dict(data.get("simulationResult") or {}),
        )


@dataclass(frozen=True)
class RequestStat:
    """Timing and outcome of one simulation request."""

    timestamp: int
    simulations: int
    simulation_time_ms: int
    response_time_ms: int
    success: bool


@dataclass(frozen=True)
class StatsSummary:
    """Aggregate figures over the recorded requests."""

    total_requests: int = 0
    success_count: int = 0
    error_count: int = 0
    avg_simulations: float = 0.0
    avg_simulation_time_ms: float = 0.0
    avg_response_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of this summary."""
        return {
            "total_requests": self.total_requests,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "avg_simulations": self.avg_simulations,
            "avg_simulation_time_ms": self.avg_simulation_time_ms,
            "avg_response_time_ms": self.avg_response_time_ms,
        }


class RequestStats:
    """Thread-safe record of the most recent requests."""

    def __init__(self, limit: int = MAX_STATS) -> None:
        self._stats: deque[RequestStat] = deque(maxlen=limit)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._stats)

    def add(self, stat: RequestStat) -> None:
        """Record a request, dropping the oldest when full."""
        with self._lock:
            self._stats.append(stat)

    def summary(self) -> StatsSummary:
        """Summarise the recorded requests."""
        with self._lock:
            stats = list(self._stats)
        total = len(stats)
        if not total:
            return StatsSummary()
        successes = sum(1 for s in stats if s.success)
        return StatsSummary(
            total_requests=total,
            success_count=successes,
            error_count=total - successes,
            avg_simulations=sum(s.simulations for s in stats) / total,
            avg_simulation_time_ms=sum(s.simulation_time_ms for s in stats) / total,
            avg_response_time_ms=sum(s.response_time_ms for s in stats) / total,
        )


@dataclass(frozen=True)
class Response:
    """An HTTP response ready to be written."""

    status: int
    body: str
    content_type: str = TEXT_CONTENT_TYPE

    @classmethod
    def error(cls, status: int, message: str) -> Response:
        return cls(status=status, body=message + "\n", content_type=TEXT_CONTENT_TYPE)

    @classmethod
    def json(cls, payload: dict[str, Any]) -> Response:
        return cls(status=200, body=json.dumps(payload) + "\n", content_type=JSON_CONTENT_TYPE)


_DEFAULT_STATS = RequestStats()


def derive_probabilities(matches: Sequence[SimulatedMatch], best_of: int) -> SimulationResult:
    """Compute every market from simulated matches."""
    return SimulationResult(
        moneyline=moneyline(matches),
        set_handicaps=set_handicaps(matches, best_of),
        game_handicaps=game_handicaps(matches, best_of),
        set_ou=set_totals(matches, best_of),
        game_ou=game_totals(matches, best_of),
    )


def validate_inputs(p1: float, p2: float, best_of: int) -> None:
    """Raise InvalidRequestError unless best_of is 3 or 5 and both probabilities lie in [0, 1]."""
    if best_of not in (3, 5):
        raise InvalidRequestError("Invalid bestof value: must be 3 or 5")
    if p1 < 0 or p1 > 1 or p2 < 0 or p2 > 1:
        raise InvalidRequestError("Probabilities must be between 0 and 1")


def _parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(text)
    return float(text)


def _parse_int(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(text)
    return int(text)


def parse_query(query: str) -> tuple[float, float, int, int]:
    """Parse and validate a query string into (p1, p2, best_of, simulations)."""
    params = parse_qs(query, keep_blank_values=True)

    def first(name: str) -> str:
        values = params.get(name)
        return values[0] if values else ""

    try:
        p1 = _parse_float(first("p1"))
        p2 = _parse_float(first("p2"))
        best_of = _parse_int(first("bestof"))
    except ValueError:
        raise InvalidRequestError("Invalid query parameters: parse error") from None

    simulations = DEFAULT_SIMULATIONS
    raw = first("simulations")
    if raw:
        try:
            requested = _parse_int(raw)
        except ValueError:
            requested = 0
        if requested > 0:
            simulations = requested

    validate_inputs(p1, p2, best_of)
    return p1, p2, best_of, simulations


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def handle_simulation(
    query: str, stats: RequestStats | None = None, remote_addr: str = ""
) -> Response:
    """Answer a pricing request given its query string."""
    records = stats if stats is not None else _DEFAULT_STATS
    try:
        p1, p2, best_of, simulations = parse_query(query)
    except InvalidRequestError as err:
        return Response.error(400, str(err))

    start_total = time.perf_counter()
    logger.info(
        "Received request from %s: p1=%f, p2=%f, bestof=%d, simulations=%d",
        remote_addr, p1, p2, best_of, simulations,
    )
    start = time.perf_counter()
    failure: Exception | None = None
    matches: list[SimulatedMatch] = []
    try:
        matches = simulate_match(p1, p2, best_of, simulations)
    except InvalidBestOfError as err:
        failure = err
    sim_time = _elapsed_ms(start)
    response_time = _elapsed_ms(start_total)

    def record(success: bool) -> None:
        records.add(
            RequestStat(
                timestamp=int(time.time()),
                simulations=simulations,
                simulation_time_ms=sim_time,
                response_time_ms=response_time,
                success=success,
            )
        )

    if failure is not None:
        record(False)
        return Response.error(500, f"Internal Server Error: {failure}")

    result = derive_probabilities(matches, best_of)
    assert result.moneyline is not None
    logger.info(
        "With p1=%f, p2=%f, bestof=%d - ML probs: %f, %f",
        p1, p2, best_of, result.moneyline.prob_a, result.moneyline.prob_b,
    )
    response = Response.json(result.to_dict())
    record(True)
    return response


def handle_stats(stats: RequestStats | None = None) -> Response:
    """Answer a request for the request statistics."""
    records = stats if stats is not None else _DEFAULT_STATS
    return Response.json(records.summary().to_dict())


class _Server(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], stats: RequestStats) -> None:
        self.stats = stats
        super().__init__(address, _RequestHandler)


class _RequestHandler(BaseHTTPRequestHandler):
    timeout = READ_TIMEOUT_SECONDS
    server: _Server

    def _dispatch(self) -> None:
        url = urlsplit(self.path)
        if url.path == "/stats":
            response = handle_stats(self.server.stats)
        else:
            host, port = self.client_address[:2]
            response = handle_simulation(url.query, self.server.stats, f"{host}:{port}")
        body = response.body.encode("utf-8")
        self.send_response(response.status)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    do_GET = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch
    do_PATCH = _dispatch
    do_HEAD = _dispatch
    do_OPTIONS = _dispatch

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(host: str = "", port: int = 8000, stats: RequestStats | None = None) -> ThreadingHTTPServer:
    """Create (but do not start) the HTTP server bound to host and port."""
    return _Server((host, port), stats if stats is not None else _DEFAULT_STATS)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pricing server on the port named by GOTENNIS_PORT (default 8000)."""
    parser = argparse.ArgumentParser(description="Serve tennis market probabilities over HTTP.")
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    port_text = os.environ.get("GOTENNIS_PORT") or DEFAULT_PORT
    try:
        port = int(port_text)
        server = make_server("", port)
    except (ValueError, OSError) as err:
        raise SystemExit(f"Server failed to start: {err}") from None

    def stop(signum: int, frame: Any) -> None:
        raise KeyboardInterrupt

    previous = signal.signal(signal.SIGTERM, stop)
    logger.info("Starting server on :%s", port_text)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down server...")
    finally:
        server.server_close()
        signal.signal(signal.SIGTERM, previous)
    return 0