"""Chat-style wallet assistant for Ethereum addresses."""

__version__ = "0.1.0"
