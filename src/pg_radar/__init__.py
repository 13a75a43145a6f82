"""PostgreSQL and system diagnostics collector."""

__version__ = "0.1.0"
