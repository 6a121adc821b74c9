# recon/errors.py
"""Exception types shared by the key loader, the fetch loops and the CLI."""


class SubOTXError(Exception):
    """Base class for every error raised by Sub-O-TX."""


class ConfigError(SubOTXError):
    """Fatal setup problem (bad flags, empty key set, unreadable input file)."""


class ValidationError(SubOTXError):
    """A single input item (domain) failed validation."""


class APIError(SubOTXError):
    """Non-200 answer from OTX, with the body's error/detail strings when present.

    status 0 means the request never completed.
    """

    def __init__(self, status, error=None, detail=None):
        super().__init__(f"HTTP {status:03d}")
        self.status = status
        self.error = error
        self.detail = detail

    def messages(self):
        return [m for m in (self.error, self.detail) if m]


class TransientAPIError(APIError):
    """Upstream asked us to slow down; the request may be retried."""


class RateLimitedError(TransientAPIError):
    def __init__(self, error=None, detail=None):
        super().__init__(429, error, detail)


class TerminalAPIError(APIError):
    """Non-retryable upstream failure."""
