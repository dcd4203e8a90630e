import contextlib
import typing

import botocore.exceptions
import requests

from spotswap import _errors


@contextlib.contextmanager
def calling(operation: str) -> typing.Iterator[None]:
    """
    Convert client errors raised within the context into InventoryCallFailed.

    The original error stays attached as the cause of the raised error.
    """
    try:
        yield
    except (
        botocore.exceptions.ClientError,
        botocore.exceptions.BotoCoreError,
        requests.RequestException,
    ) as error:
        raise _errors.from_error(operation, error) from error
