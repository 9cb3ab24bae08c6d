"""High-availability resolution: DoH first, then plain UDP DNS, then the system resolver."""

from __future__ import annotations

import logging
import socket
from collections.abc import Iterable

import dns.exception
import dns.message
import dns.query
import dns.rdatatype

from hadns.config import Config, ResolutionError, default_config
from hadns.doh import probe_doh_domain
from hadns.health import select_best_server

logger = logging.getLogger(__name__)

_DEFAULT_UDP_TIMEOUT = 2.0


def unique(items: Iterable[str]) -> list[str]:
    """Return ``items`` without duplicates, keeping the first occurrence of each."""
    return list(dict.fromkeys(items))


def query_udp_dns(domain: str, dns_server: str, timeout: float | None) -> list[str]:
    """Ask ``dns_server`` on port 53 for the A records of ``domain``.

    Failures are logged and give an empty list.
    """
    try:
        query = dns.message.make_query(domain, dns.rdatatype.A)
        response = dns.query.udp(
            query,
            dns_server,
            timeout=timeout if timeout is not None else _DEFAULT_UDP_TIMEOUT,
            port=53,
        )
    except (dns.exception.DNSException, OSError, ValueError) as exc:
        logger.info("    UDP DNS query to %s failed: %s", dns_server, exc)
        return []
    return [
        rdata.address
        for rrset in response.answer
        if rrset.rdtype == dns.rdatatype.A
        for rdata in rrset
    ]


def query_system_dns(domain: str) -> list[str]:
    """Resolve ``domain`` with the system resolver; IPv4 addresses only."""
    try:
        infos = socket.getaddrinfo(domain, None, socket.AF_INET)
    except (OSError, UnicodeError) as exc:
        logger.info("    System DNS query failed: %s", exc)
        return []
    return unique(info[4][0] for info in infos)


class DNSClient:
    """Resolves names to the healthiest, most recently updated server."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config if config is not None else default_config()

    def _select(self, ips: list[str]) -> str:
        return select_best_server(ips, self.config.health_check_port, self.config.timeout)

    def resolve_with_doh(self, domain: str) -> str:
        """Resolve through every configured DoH server and pick the best answer."""
        logger.info("🔍 Trying DoH resolution for %s...", domain)
        results = []
        for doh_domain, fallback_ips in self.config.doh_servers.items():
            logger.info("\n🔍 Testing %s...", doh_domain)
            results.extend(probe_doh_domain(doh_domain, fallback_ips, domain, self.config.timeout))

        valid_ips = [
            record.answer
            for result in results
            if result.status == "valid" and result.result
            for record in result.result
        ]
        if not valid_ips:
            raise ResolutionError("no valid DoH results")

        unique_ips = unique(valid_ips)
        logger.info("DoH resolved %d unique IP(s): %s", len(unique_ips), unique_ips)
        return self._select(unique_ips)

    def resolve_with_udp(self, domain: str) -> str:
        """Resolve through every configured UDP DNS server and pick the best answer."""
        logger.info("🔍 Trying UDP DNS resolution for %s...", domain)
        all_ips: list[str] = []
        for dns_server in self.config.udp_dns_servers:
            logger.info("  Querying %s...", dns_server)
            ips = query_udp_dns(domain, dns_server, self.config.timeout)
            if ips:
                logger.info("    ✓ Got %d IP(s): %s", len(ips), ips)
                all_ips.extend(ips)
            else:
                logger.info("    ✗ No results")

        if not all_ips:
            raise ResolutionError("no valid UDP DNS results")

        unique_ips = unique(all_ips)
        logger.info("UDP DNS resolved %d unique IP(s): %s", len(unique_ips), unique_ips)
        return self._select(unique_ips)

    def resolve_with_system(self, domain: str) -> str:
        """Resolve with the system resolver and pick the best answer."""
        logger.info("🔍 Trying system DNS resolution for %s...", domain)
        ips = query_system_dns(domain)
        if not ips:
            raise ResolutionError("no valid system DNS results")
        logger.info("System DNS resolved %d IP(s): %s", len(ips), ips)
        return self._select(ips)

    def resolve_domain(self, domain: str) -> str:
        """Resolve one name, trying DoH, UDP DNS and the system resolver in turn."""
        logger.info("🚀 Starting DNS resolution for: %s", domain)
        methods = (
            ("DoH", self.resolve_with_doh),
            ("UDP DNS", self.resolve_with_udp),
            ("System DNS", self.resolve_with_system),
        )
        for label, method in methods:
            try:
                ip = method(domain)
            except ResolutionError as exc:
                logger.info("❌ %s resolution failed: %s", label, exc)
                continue
            logger.info("✅ %s resolution succeeded: %s -> %s", label, domain, ip)
            return ip
        raise ResolutionError(f"all DNS resolution methods failed for domain: {domain}")

    def resolve_high_availability(self) -> str:
        """Resolve the primary domain, falling back to each backup domain in order."""
        logger.info("🎯 Starting high-availability resolution...")

        logger.info("📍 Trying primary domain: %s", self.config.primary_domain)
        try:
            ip = self.resolve_domain(self.config.primary_domain)
        except ResolutionError as exc:
            logger.info("⚠️  Primary domain failed: %s", exc)
        else:
            logger.info("🎉 Primary domain resolved successfully: %s", ip)
            return ip

        backups = self.config.backup_domains
        for number, backup in enumerate(backups, start=1):
            logger.info("📍 Trying backup domain %d/%d: %s", number, len(backups), backup)
            try:
                ip = self.resolve_domain(backup)
            except ResolutionError as exc:
                logger.info("⚠️  Backup domain failed: %s", exc)
                continue
            logger.info("🎉 Backup domain resolved successfully: %s", ip)
            return ip

        raise ResolutionError("all domains (primary + backup) resolution failed")