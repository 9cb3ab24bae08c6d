"""DNS-over-HTTPS probing of servers reached through fixed IP addresses."""

from __future__ import annotations

import base64
import http.client
import logging
import socket
import ssl
from dataclasses import dataclass

import dns.exception
import dns.message
import dns.rdatatype

logger = logging.getLogger(__name__)

_HEADERS = {
    "Content-Type": "application/dns-message",
    "Accept": "application/dns-message",
    "User-Agent": "DoH-Tester/1.0",
}


@dataclass
class DNSResult:
    """One A record from a DNS answer."""

    query: str
    ttl: int
    rr: str
    answer: str


@dataclass
class DOHTestResult:
    """Outcome of querying one DoH server through one IP address."""

    domain: str
    ip: str
    status: str
    result: list[DNSResult] | None = None


class _PinnedHTTPSConnection(http.client.HTTPSConnection):
    """HTTPS connection that dials a fixed IP but verifies the given host name."""

    def __init__(self, host: str, ip: str, timeout: float | None) -> None:
        self._ssl_context = ssl.create_default_context()
        super().__init__(host, timeout=timeout, context=self._ssl_context)
        self._ip = ip

    def connect(self) -> None:
        logger.info("    DNS Override: %s -> %s", self.host, self._ip)
        raw = socket.create_connection((self._ip, self.port), self.timeout)
        try:
            self.sock = self._ssl_context.wrap_socket(raw, server_hostname=self.host)
        except BaseException:
            raw.close()
            raise


def build_query(domain: str) -> bytes:
    """Return the wire form of a recursive A query for ``domain``."""
    return dns.message.make_query(domain, dns.rdatatype.A).to_wire()


def encode_doh_request(wire: bytes) -> str:
    """Encode a DNS message for the ``dns`` URL parameter (base64url, unpadded)."""
    return base64.urlsafe_b64encode(wire).decode("ascii").rstrip("=")


def _a_records(message: dns.message.Message) -> list[DNSResult]:
    return [
        DNSResult(query=rrset.name.to_text(), ttl=rrset.ttl, rr="A", answer=rdata.address)
        for rrset in message.answer
        if rrset.rdtype == dns.rdatatype.A
        for rdata in rrset
    ]


def parse_a_records(wire: bytes) -> list[DNSResult]:
    """Return the A records in the answer section of a wire-format response."""
    return _a_records(dns.message.from_wire(wire))


def probe_doh_server(doh_domain: str, ip: str, query_domain: str, timeout: float | None) -> DOHTestResult:
    """Ask ``doh_domain``, reached at ``ip``, for the A records of ``query_domain``."""

    def failed(status: str) -> DOHTestResult:
        return DOHTestResult(domain=doh_domain, ip=ip, status=status, result=None)

    try:
        wire = build_query(query_domain)
    except (dns.exception.DNSException, ValueError) as exc:
        return failed(f"dns_pack_error_{exc}")

    path = f"/dns-query?dns={encode_doh_request(wire)}"
    connection = _PinnedHTTPSConnection(doh_domain, ip, timeout)
    try:
        try:
            connection.request("GET", path, headers=_HEADERS)
            response = connection.getresponse()
        except (OSError, ValueError, http.client.HTTPException) as exc:
            return failed(f"request_error_{exc}")
        if response.status != 200:
            return failed(f"http_error_{response.status}")
        try:
            body = response.read()
        except (OSError, http.client.HTTPException) as exc:
            return failed(f"read_error_{exc}")
    finally:
        connection.close()

    try:
        message = dns.message.from_wire(body)
    except (dns.exception.DNSException, ValueError) as exc:
        return failed(f"dns_parse_error_{exc}")

    if not message.answer:
        return failed("no_answer")

    return DOHTestResult(domain=doh_domain, ip=ip, status="valid", result=_a_records(message))


def resolve_doh_domain(doh_domain: str) -> list[str]:
    """Resolve a DoH server name with the system resolver; IPv4 only, no duplicates."""
    try:
        infos = socket.getaddrinfo(doh_domain, None, socket.AF_INET)
    except (OSError, UnicodeError) as exc:
        logger.info("  Failed to resolve %s: %s", doh_domain, exc)
        return []
    return list(dict.fromkeys(info[4][0] for info in infos))


def probe_doh_domain(
    doh_domain: str, fallback_ips: list[str], query_domain: str, timeout: float | None
) -> list[DOHTestResult]:
    """Probe a DoH server through its configured IPs, then any newly resolved ones."""
    test_ips = list(fallback_ips)
    if test_ips:
        logger.info("  Using pre-configured IPs for %s: %s", doh_domain, fallback_ips)

    resolved = resolve_doh_domain(doh_domain)
    if resolved:
        test_ips.extend(ip for ip in resolved if ip not in test_ips)
        logger.info("  Additional resolved IPs for %s: %s", doh_domain, resolved)

    if not test_ips:
        return [DOHTestResult(domain=doh_domain, ip="", status="no_ips_available", result=None)]

    logger.info("  Testing %d IP(s) for %s", len(test_ips), doh_domain)
    results = []
    for number, ip in enumerate(test_ips, start=1):
        logger.info("    [%d/%d] Testing %s via IP %s...", number, len(test_ips), doh_domain, ip)
        result = probe_doh_server(doh_domain, ip, query_domain, timeout)
        results.append(result)
        icon = "✓" if result.status == "valid" else "✗"
        logger.info("    %s Result: %s", icon, result.status)
        if result.status == "valid":
            logger.info("    🎉 %s via %s is working!", doh_domain, ip)
    return results