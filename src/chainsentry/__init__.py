"""chainsentry - blockchain API integrations with retry and Prometheus metrics."""

__version__ = "0.1.0"
