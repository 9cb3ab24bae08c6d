"""Client configuration: defaults, validation and loading from JSON files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_NANOS_PER_SECOND = 1_000_000_000
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

DEFAULT_PRIMARY_DOMAIN = "ssh.example.com"
DEFAULT_BACKUP_DOMAINS = ("backup1.example.com", "backup2.example.com")
DEFAULT_DOH_SERVERS = {
    "dns.alidns.com": ("223.5.5.5", "223.6.6.6"),
    "doh.360.cn": ("101.198.198.198", "123.125.81.6", "112.65.69.15", "101.198.199.200"),
    "doh.pub": ("1.12.12.12", "120.53.53.53"),
}
DEFAULT_UDP_DNS_SERVERS = (
    "223.5.5.5", "223.6.6.6", "119.29.29.29", "182.254.116.116",
    "114.114.114.114", "114.114.115.115", "180.76.76.76", "1.2.4.8",
    "210.2.4.8", "101.6.6.6", "117.50.10.10", "52.80.52.52",
    "211.138.24.66", "123.123.123.123", "123.123.123.124", "218.85.152.99",
)
DEFAULT_TIMEOUT = 5.0
DEFAULT_HEALTH_CHECK_PORT = 2025


class ResolutionError(Exception):
    """Raised when a name cannot be resolved to a healthy server."""


@dataclass
class Config:
    """Settings of the high-availability DNS client.

    ``timeout`` is in seconds; ``None`` means no timeout.
    """

    primary_domain: str = DEFAULT_PRIMARY_DOMAIN
    backup_domains: list[str] = field(default_factory=lambda: list(DEFAULT_BACKUP_DOMAINS))
    doh_servers: dict[str, list[str]] = field(
        default_factory=lambda: {name: list(ips) for name, ips in DEFAULT_DOH_SERVERS.items()}
    )
    udp_dns_servers: list[str] = field(default_factory=lambda: list(DEFAULT_UDP_DNS_SERVERS))
    timeout: float | None = DEFAULT_TIMEOUT
    health_check_port: int = DEFAULT_HEALTH_CHECK_PORT


def default_config() -> Config:
    """Return the built-in configuration."""
    return Config()


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key!r} must be a string")
    return value


def _string_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{key!r} must be a list of strings")
    return list(value)


def _integer(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key!r} must be an integer")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"{key!r} is out of range")
    return value


def _server_map(data: Mapping[str, Any], key: str) -> dict[str, list[str]]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{key!r} must be an object")
    servers: dict[str, list[str]] = {}
    for name, ips in value.items():
        if ips is None:
            servers[name] = []
        elif isinstance(ips, list) and all(isinstance(ip, str) for ip in ips):
            servers[name] = list(ips)
        else:
            raise ValueError(f"{key!r} entry {name!r} must be a list of strings")
    return servers


def config_from_dict(data: Mapping[str, Any] | None) -> Config:
    """Build a Config from decoded JSON.

    Missing keys take empty values. ``timeout`` is given in nanoseconds;
    zero means no timeout.
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValueError("configuration must be a JSON object")
    timeout_ns = _integer(data, "timeout")
    if timeout_ns < 0:
        raise ValueError("'timeout' must not be negative")
    return Config(
        primary_domain=_string(data, "primary_domain"),
        backup_domains=_string_list(data, "backup_domains"),
        doh_servers=_server_map(data, "doh_servers"),
        udp_dns_servers=_string_list(data, "udp_dns_servers"),
        timeout=timeout_ns / _NANOS_PER_SECOND if timeout_ns else None,
        health_check_port=_integer(data, "health_check_port"),
    )


def load_config(path: str | Path) -> Config:
    """Read a Config from a JSON file."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    return config_from_dict(data)