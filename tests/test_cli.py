import json
import socket
import threading
from unittest.mock import patch

import pytest

from hadns.cli import Result, build_parser, create_config_from_args, format_result, main
from hadns.config import default_config
from hadns.health_server import create_server

_real_getaddrinfo = socket.getaddrinfo


def _fake_getaddrinfo(host, port, family=0, type=0, proto=0, flags=0):
    if host == "svc.test":
        return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", 0))]
    if host in ("127.0.0.1", "localhost"):
        return _real_getaddrinfo(host, port, family, type, proto, flags)
    raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")


@pytest.fixture
def health_server():
    server = create_server(0, 1700000000)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def _write_config(tmp_path, port, primary):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "primary_domain": primary,
                "backup_domains": [],
                "doh_servers": {},
                "udp_dns_servers": [],
                "timeout": 2_000_000_000,
                "health_check_port": port,
            }
        ),
        encoding="utf-8",
    )
    return path


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.primary == "ssh.example.com"
    assert args.backup == "backup1.example.com,backup2.example.com"
    assert args.timeout == 5
    assert args.health_port == 2025
    assert args.config == ""
    assert args.verbose is True
    assert args.output == "text"


def test_parser_accepts_single_dash_and_boolean_values():
    args = build_parser().parse_args(["-primary", "a.example.com", "-verbose=false", "-timeout", "10"])
    assert args.primary == "a.example.com"
    assert args.verbose is False
    assert args.timeout == 10


def test_parser_rejects_bad_boolean():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--verbose=maybe"])


def test_config_from_args_cleans_backups():
    args = build_parser().parse_args(["--backup", " a.example.com , ,b.example.com ", "--health-port", "8080"])
    config = create_config_from_args(args)
    assert config.backup_domains == ["a.example.com", "b.example.com"]
    assert config.health_check_port == 8080
    assert config.timeout == 5.0
    assert config.doh_servers == default_config().doh_servers
    assert config.udp_dns_servers == default_config().udp_dns_servers


def test_config_from_args_zero_timeout_means_none():
    config = create_config_from_args(build_parser().parse_args(["--timeout", "0"]))
    assert config.timeout is None


def test_format_result_text():
    assert format_result(Result(success=True, ip="10.0.0.1"), "text") == "✅ Success: 10.0.0.1"
    assert format_result(Result(success=False, error="boom"), "xml") == "❌ Failed: boom"


def test_format_result_json_omits_empty_fields():
    data = json.loads(format_result(Result(success=False, error="boom", timestamp=7), "json"))
    assert data == {"success": False, "error": "boom", "timestamp": 7}


def test_format_result_json_success_round_trip():
    text = format_result(Result(success=True, ip="10.0.0.1", timestamp=9), "json")
    assert json.loads(text) == {"success": True, "ip": "10.0.0.1", "timestamp": 9}
    assert text.startswith('{\n  "success": true')


def test_main_missing_config_file(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "absent.json")]) == 1
    assert "Error loading config file" in capsys.readouterr().err


def test_main_success_text(tmp_path, capsys, health_server):
    path = _write_config(tmp_path, health_server.server_address[1], "svc.test")
    with patch("socket.getaddrinfo", side_effect=_fake_getaddrinfo):
        status = main(["--config", str(path)])
    out = capsys.readouterr().out
    assert status == 0
    assert f"📄 Loaded configuration from: {path}" in out
    assert "✅ Success: 127.0.0.1" in out
    assert "🔗 Server ready at: 127.0.0.1" in out


def test_main_success_json(tmp_path, capsys, health_server):
    path = _write_config(tmp_path, health_server.server_address[1], "svc.test")
    with patch("socket.getaddrinfo", side_effect=_fake_getaddrinfo):
        status = main(["--config", str(path), "--verbose=false", "--output", "json"])
    lines = capsys.readouterr().out.splitlines()
    assert status == 0
    data = json.loads("\n".join(lines[1:]))
    assert data["success"] is True
    assert data["ip"] == "127.0.0.1"
    assert "error" not in data


def test_main_failure(tmp_path, capsys, health_server):
    path = _write_config(tmp_path, health_server.server_address[1], "missing.test")
    with patch("socket.getaddrinfo", side_effect=_fake_getaddrinfo):
        status = main(["--config", str(path), "--verbose=false"])
    out = capsys.readouterr().out
    assert status == 1
    assert "❌ Failed: all domains (primary + backup) resolution failed" in out