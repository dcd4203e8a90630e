import typing

import botocore.exceptions
import requests

from spotswap import _configs


class SpotswapError(Exception):
    """Base class for errors raised by spotswap."""


class ConfigError(SpotswapError, ValueError):
    """Required settings are missing or contradict each other."""


class PolicyMisconfigured(SpotswapError):
    """The on-demand scale down policy is not a simple scaling policy."""


class InventoryCallFailed(SpotswapError):
    """
    A call to AWS or the instance metadata service failed.

    The original exception is chained as the ``__cause__`` so that the full
    call stack remains available when the error is printed.
    """

    def __init__(self, operation: str, code: str, message: str):
        super().__init__(f"{operation} failed ({code}): {message}")
        self.operation = operation
        self.code = code
        self.message = message

    @property
    def is_rate_limited(self) -> bool:
        """Whether the provider rejected the call for exceeding its rate limit."""
        return self.code in _configs.RATE_LIMIT_CODES


def from_error(
    operation: str,
    error: typing.Union[
        botocore.exceptions.ClientError,
        botocore.exceptions.BotoCoreError,
        requests.RequestException,
    ],
) -> "InventoryCallFailed":
    """Convert an AWS or HTTP client error into an InventoryCallFailed error."""
    if isinstance(error, botocore.exceptions.ClientError):
        details = error.response.get("Error") or {}
        return InventoryCallFailed(
            operation,
            details.get("Code") or "Unknown",
            details.get("Message") or str(error),
        )
    return InventoryCallFailed(operation, type(error).__name__, str(error))
