import pathlib
import traceback
import typing

from spotswap import _contractor
from spotswap import _errors
from spotswap import _expander
from spotswap import _poller
from spotswap import _scanner
from spotswap import _types


def run_pass(configs: "_types.SwapConfigs") -> typing.Dict[str, typing.Any]:
    """
    Execute a single reconciliation pass.

    Spot instances marked for termination are replaced by growing the on-demand
    group. When none are marked, the on-demand group is shrunk instead if the
    spot pool has recovered.

    :param configs:
        Current execution configuration for spotswap.
    """
    instances = _scanner.scan(configs)
    if instances:
        return {"action": "scale_up", **_expander.scale_up(configs, instances)}
    return {"action": "scale_down", **_contractor.scale_down(configs)}


def _load(
    args: typing.Dict[str, typing.Any],
    config_path_override: typing.Union[str, pathlib.Path, None],
    purpose: str,
) -> typing.Optional["_types.SwapConfigs"]:
    """Load and validate configs, printing the error when they are not usable."""
    try:
        configs = _types.SwapConfigs().load(args, config_path_override)
        if purpose == "poll":
            return configs.validate_poll()
        return configs.validate_reconcile()
    except _errors.ConfigError as error:
        print(f"[ERROR]: {error}")
        return None


def reconcile(
    args: typing.Dict[str, typing.Any],
    config_path_override: typing.Union[str, pathlib.Path] = None,
) -> int:
    """
    Run one reconciliation pass and report how it went as an exit status.

    :param args:
        Arguments parsed from the command line. These arguments will take precedence
        over arguments specified by other means during execution.
    :param config_path_override:
        An override for the config path that is only used during non-normal execution
        calls. Most commonly this will be for testing purposes.
    """
    configs = _load(args, config_path_override, "reconcile")
    if configs is None:
        return 1

    configs.log("starting", configs.to_dict())
    try:
        result = run_pass(configs)
    except Exception as error:
        # The next scheduled pass retries naturally, the scheduler only needs
        # to see that this one failed.
        traceback.print_exc()
        print(f"{type(error)}: {error}")
        return 1

    configs.log("Reconciled", result)
    return 0


def poll(
    args: typing.Dict[str, typing.Any],
    config_path_override: typing.Union[str, pathlib.Path] = None,
) -> int:
    """Run one self-termination poll and report how it went as an exit status."""
    configs = _load(args, config_path_override, "poll")
    if configs is None:
        return 1

    try:
        cycle = _poller.poll(configs)
    except Exception as error:
        traceback.print_exc()
        print(f"{type(error)}: {error}")
        return 1

    configs.log("Polled", cycle.to_dict())
    return 0


def lambda_handler(event: typing.Any, context: typing.Any) -> typing.Dict[str, typing.Any]:
    """
    Run one reconciliation pass as a scheduled AWS Lambda function.

    Configuration comes from the function's environment variables. Errors are
    raised so that Lambda records the invocation as failed.
    """
    configs = _types.SwapConfigs().load({}).validate_reconcile()
    result = run_pass(configs)
    configs.log("Reconciled", result)
    return result
