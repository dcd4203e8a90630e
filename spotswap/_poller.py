"""
Self-termination of spot instances that received a termination notice.

A single poll moves through the states of ``_types.PollState`` exactly once:

    IDLE -> NOTICE_RECEIVED -> TAGGED -> <exit> -> DONE

where the exit is one of LAMBDA_HANDOFF, DELAYED_GROUP_TERMINATE,
IMMEDIATE_FLEET_TERMINATE or UNCONFIGURED. Without a notice the poll goes
straight from IDLE to DONE. The semaphore file is only written after the tag
has been confirmed and the exit action has completed; any error raised on the
way propagates and leaves it unwritten.
"""
import concurrent.futures
import time
import typing

from spotswap import _configs
from spotswap import _controller
from spotswap import _types

PollState = _types.PollState


def _check_notice(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollState":
    token = _controller.get_token(configs)
    status_code, body = _controller.get_termination_notice(configs, token)
    if status_code == 404:
        return PollState.DONE

    configs.log("Received termination notice", {"body": body})
    termination_time = _types.parse_notice(status_code, body)
    if not termination_time:
        configs.log("Termination notice is not a timestamp, ignoring", {"body": body})
        return PollState.DONE

    cycle.token = token
    cycle.termination_time = termination_time
    return PollState.NOTICE_RECEIVED


def _tag_self(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollState":
    instance_id = _controller.get_instance_id(configs, cycle.token)
    configs.log("Tagging self with termination notice", {"instance_id": instance_id})
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        tagging = executor.submit(
            _controller.create_termination_tag, configs, instance_id
        )
        metadata = executor.submit(
            _controller.get_instance_metadata, configs, instance_id, cycle.token
        )
        tagging.result()
        cycle.metadata = metadata.result()
    return PollState.TAGGED


def choose_exit(configs: "_types.SwapConfigs") -> "_types.PollState":
    """
    Select how a tagged instance leaves its spot pool.

    An override function takes precedence. Group members wait before they
    terminate through the group so connections can drain, while fleets offer
    no draining and terminate immediately.
    """
    if configs.termination_override:
        return PollState.LAMBDA_HANDOFF
    if configs.spot_group:
        return PollState.DELAYED_GROUP_TERMINATE
    if configs.spot_fleet:
        return PollState.IMMEDIATE_FLEET_TERMINATE
    return PollState.UNCONFIGURED


def _choose_exit(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollState":
    return choose_exit(configs)


def _write_semaphore(configs: "_types.SwapConfigs", cycle: "_types.PollCycle"):
    configs.semaphore_path.write_text(_configs.SEMAPHORE_CONTENTS)
    cycle.semaphore_written = True


def _hand_off(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollState":
    metadata = typing.cast(_types.InstanceMetadata, cycle.metadata)
    function_arn = typing.cast(str, configs.termination_override)
    configs.log("Invoking termination override", {"function": function_arn})
    response = _controller.invoke_function(
        configs,
        function_arn,
        {
            "instanceId": metadata.instance_id,
            "availabilityZone": metadata.availability_zone,
            "instanceType": metadata.instance_type,
            "caller": _configs.POLL_CALLER,
            "noTermination": True,
        },
    )
    if response["function_error"]:
        configs.log("Termination override reported an error", response)

    _write_semaphore(configs, cycle)
    return PollState.DONE


def _terminate_in_group(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollState":
    metadata = typing.cast(_types.InstanceMetadata, cycle.metadata)
    configs.log(
        "Pausing before terminating self",
        {"seconds": configs.termination_delay},
    )
    time.sleep(configs.termination_delay)

    configs.log(
        "Terminating self via TerminateInstanceInAutoScalingGroup",
        {"instance_id": metadata.instance_id},
    )
    _controller.terminate_group_instance(configs, metadata.instance_id)
    _write_semaphore(configs, cycle)
    return PollState.DONE


def _terminate_in_fleet(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollState":
    metadata = typing.cast(_types.InstanceMetadata, cycle.metadata)
    configs.log(
        "Terminating self via TerminateInstances",
        {"instance_id": metadata.instance_id},
    )
    _controller.terminate_instance(configs, metadata.instance_id)
    _write_semaphore(configs, cycle)
    return PollState.DONE


def _unconfigured(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollState":
    # Tagged but no way to exit. The instance is left running and no semaphore
    # is written.
    configs.log(
        "No termination override, spot group or spot fleet configured",
        {"termination_time": cycle.termination_time},
    )
    return PollState.DONE


_HANDLERS: typing.Dict[
    "_types.PollState",
    typing.Callable[["_types.SwapConfigs", "_types.PollCycle"], "_types.PollState"],
] = {
    PollState.IDLE: _check_notice,
    PollState.NOTICE_RECEIVED: _tag_self,
    PollState.TAGGED: _choose_exit,
    PollState.LAMBDA_HANDOFF: _hand_off,
    PollState.DELAYED_GROUP_TERMINATE: _terminate_in_group,
    PollState.IMMEDIATE_FLEET_TERMINATE: _terminate_in_fleet,
    PollState.UNCONFIGURED: _unconfigured,
}


def transition(
    configs: "_types.SwapConfigs",
    cycle: "_types.PollCycle",
) -> "_types.PollCycle":
    """Carry out the work of the current state and advance to the next one."""
    if cycle.state == PollState.DONE:
        return cycle

    next_state = _HANDLERS[cycle.state](configs, cycle)
    configs.log(
        "Poll state changed",
        {"from": cycle.state.value, "to": next_state.value},
    )
    return cycle.advance(next_state)


def poll(configs: "_types.SwapConfigs") -> "_types.PollCycle":
    """
    Poll the termination notice endpoint once and act on any notice found.

    :param configs:
        Current execution configuration for spotswap.
    :return:
        The completed poll cycle, which records the states visited and whether
        the semaphore file was written.
    """
    cycle = _types.PollCycle()
    while cycle.state != PollState.DONE:
        transition(configs, cycle)
    return cycle
