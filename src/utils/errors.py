"""
Exception types shared by the webhook handlers.

Authentication failures are not exceptions: the guard reports them as an
Outcome with a 401 status. These classes cover the remaining failure modes.
"""


class ConfigurationError(RuntimeError):
    """Required configuration (table name, webhook secret) is absent. Fatal, 500."""


class StoreUnavailable(RuntimeError):
    """The document store could not be reached. The sender is expected to retry."""


class MalformedEvent(ValueError):
    """An authenticated body that is not a JSON event envelope."""
