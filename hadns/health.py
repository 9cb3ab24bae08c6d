"""Health checks of candidate servers and choice of the freshest one."""

from __future__ import annotations

import http.client
import json
import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from hadns.config import ResolutionError

logger = logging.getLogger(__name__)

HEALTH_PATH = "/get-dns-time"
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class ServerCandidate:
    """A server that answered its health check, with the timestamp it reported."""

    ip: str
    timestamp: int


def parse_health_response(body: bytes | str) -> int:
    """Return the ``timestamp`` of a health-check JSON body; missing means 0."""
    data = json.loads(body)
    if data is None:
        return 0
    if not isinstance(data, dict):
        raise ValueError("health response is not a JSON object")
    timestamp = data.get("timestamp")
    if timestamp is None:
        return 0
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise ValueError("health response timestamp is not an integer")
    if not _INT64_MIN <= timestamp <= _INT64_MAX:
        raise ValueError("health response timestamp is out of range")
    return timestamp


def check_health(ip: str, port: int, timeout: float | None) -> int:
    """Fetch the health endpoint of ``ip`` and return its timestamp."""
    connection = http.client.HTTPConnection(ip, port, timeout=timeout)
    try:
        connection.request("GET", HEALTH_PATH)
        response = connection.getresponse()
        if response.status != 200:
            raise ResolutionError(f"HTTP {response.status}")
        body = response.read()
    finally:
        connection.close()
    return parse_health_response(body)


def choose_latest(candidates: list[ServerCandidate], rng: random.Random | None = None) -> str:
    """Return the IP with the newest timestamp, picking at random among ties."""
    if not candidates:
        raise ResolutionError("no healthy servers found")
    latest = max(candidate.timestamp for candidate in candidates)
    latest_ips = [candidate.ip for candidate in candidates if candidate.timestamp == latest]
    logger.info("  Found %d server(s) with latest timestamp %d", len(latest_ips), latest)
    if len(latest_ips) > 1:
        logger.info("  Multiple servers with same timestamp, selecting randomly...")
        selected = (rng or random).choice(latest_ips)
    else:
        selected = latest_ips[0]
    logger.info("  Selected: %s", selected)
    return selected


def _probe(ip: str, port: int, timeout: float | None) -> ServerCandidate | None:
    try:
        timestamp = check_health(ip, port, timeout)
    except (OSError, ValueError, http.client.HTTPException, ResolutionError) as exc:
        logger.info("    ✗ %s health check failed: %s", ip, exc)
        return None
    logger.info("    ✓ %s health check passed, timestamp: %d", ip, timestamp)
    return ServerCandidate(ip=ip, timestamp=timestamp)


def select_best_server(ips: list[str], port: int, timeout: float | None) -> str:
    """Check all ``ips`` concurrently and return the freshest healthy one."""
    if not ips:
        raise ResolutionError("no IPs to check")
    logger.info("  Checking health for %d servers...", len(ips))
    with ThreadPoolExecutor(max_workers=len(ips)) as pool:
        outcomes = list(pool.map(lambda ip: _probe(ip, port, timeout), ips))
    return choose_latest([candidate for candidate in outcomes if candidate is not None])