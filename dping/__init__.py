"""High-frequency ICMP ping tool with batch round-trip-time statistics."""

__version__ = "0.1.0"