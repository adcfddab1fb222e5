"""Exception types shared by providers, services and routes."""

from __future__ import annotations

from typing import Any, Optional


class WalletAssistantError(Exception):
    """Base class for errors raised by the wallet assistant."""


class ConfigurationError(WalletAssistantError):
    """Required upstream configuration is missing."""


class UpstreamError(WalletAssistantError):
    """An upstream API failed or returned an unusable body."""

    def __init__(self, source: str, detail: Any, status: Optional[int] = None):
        self.source = source
        self.status = status
        self.detail = detail
        prefix = f"{source} failed"
        if status is not None:
            prefix = f"{prefix} ({status})"
        super().__init__(f"{prefix}: {detail}")


class UpstreamTimeout(UpstreamError):
    """The upstream call did not complete before its deadline."""

    def __init__(self, source: str, timeout: float):
        self.timeout = timeout
        super().__init__(source, f"timed out after {timeout:g}s")


class TransferDecodeError(WalletAssistantError):
    """A transfer payload did not match any known response shape."""

    def __init__(self, raw: Any):
        self.raw = raw
        super().__init__(f"Unrecognized transfer payload: {type(raw).__name__}")


__all__ = [
    "WalletAssistantError",
    "ConfigurationError",
    "UpstreamError",
    "UpstreamTimeout",
    "TransferDecodeError",
]
