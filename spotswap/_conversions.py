import re
import typing

from spotswap import _errors

DURATION_REGEX = re.compile(r"^(?P<value>[0-9.]+)\s*(?P<units>[a-z]*)$")

DURATION_SCALES = {
    "": 1,
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
}


def to_seconds(duration: typing.Union[str, int, float, None]) -> float:
    """
    Convert a duration value into a number of seconds.

    Bare numbers are seconds. Strings may carry one of the "ms", "s", "m" or "h"
    unit suffixes, e.g. "90", "90s", "1.5m" or "1500ms".
    """
    if duration is None or duration == "":
        return 0.0

    if not isinstance(duration, str):
        try:
            seconds = float(duration)
        except (TypeError, ValueError):
            raise _errors.ConfigError(f'Unknown duration "{duration}".')
        if seconds < 0:
            raise _errors.ConfigError(f'Duration "{duration}" must not be negative.')
        return seconds

    match = DURATION_REGEX.match(duration.strip().lower())
    if not match or match.group("units") not in DURATION_SCALES:
        raise _errors.ConfigError(f'Unknown duration "{duration}".')

    return float(match.group("value")) * DURATION_SCALES[match.group("units")]


def to_list(value: typing.Union[str, typing.Iterable[typing.Any], None]) -> list:
    """
    Convert a whitespace or comma delimited string into a list of strings.

    Values that are already sequences are returned as lists with each element
    converted to a string. Any other single value becomes a one element list.
    """
    if value is None:
        return []

    if isinstance(value, str):
        return [v for v in re.split(r"[\s,]+", value.strip()) if v]

    if not isinstance(value, (list, tuple)):
        return [str(value)]

    return [str(v) for v in value]


def to_weight(value: typing.Union[str, int, float]) -> int:
    """Convert a configured weight into a positive integer."""
    try:
        weight = float(value)
    except (TypeError, ValueError):
        raise _errors.ConfigError(f'Weight "{value}" is not a number.')

    if weight <= 0 or not weight.is_integer():
        raise _errors.ConfigError(f'Weight "{value}" must be a positive integer.')

    return int(weight)
