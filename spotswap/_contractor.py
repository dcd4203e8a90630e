import typing

from spotswap import _configs
from spotswap import _controller
from spotswap import _errors
from spotswap import _types


def _assess_group(configs: "_types.SwapConfigs") -> bool:
    """
    Whether the spot group has all of the instances it wants.

    A group with fewer members than its desired capacity still has launches
    pending and the on-demand group should not shrink yet.
    """
    group = _controller.describe_group(configs, configs.spot_group)
    configs.log(
        "Checking spot group for scale down",
        {
            "spot_group": group.name,
            "members": len(group.members),
            "desired": group.desired_capacity,
        },
    )
    return group.is_fulfilled


def _assess_fleet(configs: "_types.SwapConfigs") -> bool:
    """
    Whether the spot fleet request has been fulfilled.

    Rate limited requests are not fulfilled as far as this pass is concerned.
    """
    try:
        status = _controller.get_fleet_activity_status(configs, configs.spot_fleet)
    except _errors.InventoryCallFailed as error:
        if not error.is_rate_limited:
            raise
        configs.log("Fleet status check rate limited", {"fleet": configs.spot_fleet})
        return False

    configs.log(
        "Checking spot fleet for scale down",
        {"spot_fleet": configs.spot_fleet, "activity_status": status},
    )
    return status == _configs.FULFILLED_STATUS


def should_scale_down(configs: "_types.SwapConfigs") -> bool:
    """Whether the spot pool is back to full strength."""
    if configs.spot_group:
        return _assess_group(configs)
    return _assess_fleet(configs)


def execute_scale_down(configs: "_types.SwapConfigs") -> bool:
    """
    Execute the on-demand scale down policy, honoring its cooldown.

    :return:
        Whether the policy was executed. An active cooldown is not an error, the
        pass simply does nothing.
    """
    policy = configs.scale_down_policy
    group = configs.on_demand_group
    configs.log("Scaling down", {"on_demand_group": group, "policy": policy})
    try:
        _controller.execute_policy(configs, policy, group)
    except _errors.InventoryCallFailed as error:
        if error.code == "ValidationError" and "StepScaling" in error.message:
            raise _errors.PolicyMisconfigured(
                f"You must use a SimpleScaling policy with spotswap: {error.message}"
            ) from error

        if error.code == _configs.COOLDOWN_CODE:
            configs.log("Scale down prevented by cooldown period", {"policy": policy})
            return False

        raise
    return True


def scale_down(configs: "_types.SwapConfigs") -> typing.Dict[str, typing.Any]:
    """
    Shrink the on-demand group once the spot pool has been fulfilled.

    :param configs:
        Current execution configuration for spotswap.
    """
    if not should_scale_down(configs):
        return {"scale_down": False, "executed": False}
    return {"scale_down": True, "executed": execute_scale_down(configs)}
