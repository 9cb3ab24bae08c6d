"""High-availability DNS resolution (DoH, UDP and system DNS) with health-checked server selection, plus a health server."""

__version__ = "0.1.0"