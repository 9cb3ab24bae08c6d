# hadns

A high-availability DNS client. It resolves a primary domain, falling back to
backup domains in order, and for each domain tries three methods in turn:

1. **DNS over HTTPS** against every configured DoH server. Each server is
   reached through its configured IP addresses, plus any further IPv4
   addresses the system resolver gives for it, while TLS is still verified
   against the server's name.
2. **Plain UDP DNS** against every configured resolver on port 53.
3. **System DNS** through the operating system's resolver (IPv4 only).

The addresses a method finds are de-duplicated and each is checked
concurrently through an HTTP health endpoint (`GET /get-dns-time` on the
health-check port, default 2025), which answers with a JSON object such as
`{"timestamp": 1700000000}`. The server reporting the newest timestamp wins;
when several share it, one of them is picked at random. A method fails when it
finds no addresses or none of them passes its health check, and the next
method is then tried.

## Installation

```
pip install .
```

## Resolving

```
hadns --primary ssh.example.com --backup "backup1.example.com,backup2.example.com"
hadns --config config.json --output json
hadns --backup "backup1.example.com,backup2.example.com" --timeout 10
```

Options (each also accepted with a single dash, e.g. `-primary`):

- `--primary`: primary domain (default `ssh.example.com`)
- `--backup`: comma-separated backup domains (default
  `backup1.example.com,backup2.example.com`); blanks are dropped
- `--timeout`: timeout in seconds (default 5; 0 means no timeout)
- `--health-port`: health check port (default 2025)
- `--config`: JSON config file; when given, it replaces all the options above
- `--verbose [BOOL]`: print the settings banner and the total time (on by
  default; `--verbose false` turns it off)
- `--output`: `text` (default) or `json`

Progress is always logged to standard error. The result goes to standard
output, either as `✅ Success: <ip>` / `❌ Failed: <error>` or, with
`--output json`, as an object with `success`, `ip` or `error`, and
`timestamp` (the Unix time of the run). The exit status is 0 when an address
was found and 1 when it was not or the config file could not be loaded.

When no config file is given, the built-in DoH servers and UDP resolvers are
used. A config file looks like this:

```json
{
  "primary_domain": "ssh.example.com",
  "backup_domains": ["backup1.example.com"],
  "doh_servers": {"dns.alidns.com": ["223.5.5.5", "223.6.6.6"]},
  "udp_dns_servers": ["223.5.5.5", "119.29.29.29"],
  "timeout": 5000000000,
  "health_check_port": 2025
}
```

The `timeout` value is given in nanoseconds; 0 means no timeout. Keys left out
take empty values (no domains, no servers, port 0), not the built-in defaults.

## Health server

Run this on each target host so the client can rank servers:

```
hadns-health-server --port 2025
hadns-health-server --port 2025 --timestamp 1700000000
```

It listens on all interfaces and answers `GET /get-dns-time` with
`{"timestamp": N}`; other paths get a 404. When no timestamp (or 0) is given,
the server reports the time it started.

## Library use

```python
from hadns.client import DNSClient
from hadns.config import default_config, ResolutionError

client = DNSClient(default_config())
try:
    ip = client.resolve_high_availability()
except ResolutionError as exc:
    print("failed:", exc)
else:
    print("best server:", ip)
```

- `hadns.client.DNSClient` (config defaults to the built-in one):
  `resolve_high_availability()`, `resolve_domain(domain)` and the single
  methods `resolve_with_doh`, `resolve_with_udp` and `resolve_with_system`.
  All raise `ResolutionError` on failure. The module also has
  `query_udp_dns`, `query_system_dns` and `unique`.
- `hadns.config`: `Config`, `default_config()`, `config_from_dict(data)` and
  `load_config(path)` (the JSON form above; `ValueError` on bad values).
- `hadns.doh`: `build_query`, `encode_doh_request`, `parse_a_records`,
  `probe_doh_server`, `resolve_doh_domain` and `probe_doh_domain`, returning
  `DOHTestResult` records whose `status` is `"valid"` or names the failure.
- `hadns.health`: `check_health`, `parse_health_response`, `choose_latest`
  and `select_best_server`.
- `hadns.health_server`: `make_handler(timestamp)` and
  `create_server(port, timestamp)`.

Only IPv4 A records are looked up.