"""Error taxonomy shared by the fetcher and the HTTP layer."""
from __future__ import annotations


class RelayError(Exception):
    """Base class for relay errors."""


class ConfigError(RelayError):
    """Configuration value missing or malformed."""


class InvalidInput(RelayError):
    """Request carried no usable image."""


class ProviderError(RelayError):
    """A single model invocation failed after the client's own retries."""


class MalformedReply(RelayError):
    """Model replied, but the text is not a JSON array."""


class ProviderUnavailable(RelayError):
    """Every fetch attempt failed."""
