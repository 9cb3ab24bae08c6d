import http.client
import json
import threading
import time

import pytest

from hadns.health import check_health
from hadns.health_server import create_server, main, make_handler


def _serve(server):
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread


@pytest.fixture
def running_server():
    server = create_server(0, 42)
    _serve(server)
    yield server
    server.shutdown()
    server.server_close()


def _get(server, path):
    connection = http.client.HTTPConnection("127.0.0.1", server.server_address[1], timeout=5)
    try:
        connection.request("GET", path)
        response = connection.getresponse()
        return response.status, response.getheader("Content-Type"), response.read()
    finally:
        connection.close()


def test_make_handler_carries_timestamp():
    assert make_handler(99).timestamp == 99


def test_health_endpoint_returns_timestamp(running_server):
    status, content_type, body = _get(running_server, "/get-dns-time")
    assert status == 200
    assert content_type.startswith("application/json")
    assert body == b'{"timestamp":42}'
    assert json.loads(body) == {"timestamp": 42}


def test_unknown_path_is_not_found(running_server):
    status, _, _ = _get(running_server, "/other")
    assert status == 404


def test_health_client_reads_server(running_server):
    assert check_health("127.0.0.1", running_server.server_address[1], 5.0) == 42


def test_zero_timestamp_uses_start_time():
    before = int(time.time())
    server = create_server(0, 0)
    after = int(time.time())
    try:
        assert before <= server.RequestHandlerClass.timestamp <= after
    finally:
        server.server_close()


def test_main_rejects_invalid_port(capsys):
    assert main(["--port", "70000"]) == 1
    assert "Health check server failed" in capsys.readouterr().err