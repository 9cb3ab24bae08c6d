"""Minimal HTTP server that answers health checks with a fixed timestamp."""

from __future__ import annotations

import argparse
import json
import sys
import time
from collections.abc import Sequence
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from hadns.health import HEALTH_PATH


def make_handler(timestamp: int) -> type[BaseHTTPRequestHandler]:
    """Return a request handler class that reports ``timestamp`` on the health path."""

    class HealthHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            if self.path.split("?", 1)[0] == HEALTH_PATH:
                body = json.dumps({"timestamp": self.timestamp}, separators=(",", ":")).encode()
                self._send(200, "application/json; charset=utf-8", body)
            else:
                self._send(404, "text/plain", b"404 page not found")

        def _send(self, status: int, content_type: str, body: bytes) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

    HealthHandler.timestamp = timestamp
    return HealthHandler


def create_server(port: int, timestamp: int) -> ThreadingHTTPServer:
    """Bind a health server on all interfaces; a zero timestamp means the start time."""
    if timestamp == 0:
        timestamp = int(time.time())
    return ThreadingHTTPServer(("", port), make_handler(timestamp))


def main(argv: Sequence[str] | None = None) -> int:
    """Serve health checks until interrupted; returns the exit status."""
    parser = argparse.ArgumentParser(description="Health check server")
    parser.add_argument("-port", "--port", type=int, default=2025, help="Port to listen on")
    parser.add_argument(
        "-timestamp",
        "--timestamp",
        type=int,
        default=0,
        help="Custom timestamp (0 means use server start time)",
    )
    args = parser.parse_args(argv)

    try:
        server = create_server(args.port, args.timestamp)
    except (OSError, OverflowError) as exc:
        print(f"Health check server failed: {exc}", file=sys.stderr)
        return 1

    print(f"Health check server starting on port {args.port}")
    print(f"Using timestamp: {server.RequestHandlerClass.timestamp}")
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())