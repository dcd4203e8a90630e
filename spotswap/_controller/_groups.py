import typing

from spotswap import _controller
from spotswap import _errors
from spotswap import _types


def _to_pool_state(group_data: dict) -> "_types.PoolState":
    """Convert a boto3 describe auto scaling group object into a PoolState."""
    return _types.PoolState(
        name=group_data["AutoScalingGroupName"],
        desired_capacity=group_data["DesiredCapacity"],
        min_size=group_data["MinSize"],
        max_size=group_data["MaxSize"],
        members=frozenset(
            i["InstanceId"] for i in (group_data.get("Instances") or [])
        ),
    )


def describe_group(
    configs: "_types.SwapConfigs",
    group_name: str,
) -> "_types.PoolState":
    """
    Fetch the current state of the named auto scaling group.

    :param configs:
        Current execution configuration for spotswap.
    :param group_name:
        Name of the auto scaling group to describe.
    """
    client = configs.client("autoscaling")
    with _controller.calling("describe_auto_scaling_groups"):
        response = client.describe_auto_scaling_groups(
            AutoScalingGroupNames=[group_name]
        )

    groups = response.get("AutoScalingGroups") or []
    if not groups:
        raise _errors.InventoryCallFailed(
            "describe_auto_scaling_groups",
            "GroupNotFound",
            f"Unable to describe auto scaling group {group_name}.",
        )
    return _to_pool_state(groups[0])


def set_desired_capacity(
    configs: "_types.SwapConfigs",
    group_name: str,
    desired_capacity: int,
):
    """Assign a new desired capacity to the named auto scaling group."""
    client = configs.client("autoscaling")
    with _controller.calling("set_desired_capacity"):
        client.set_desired_capacity(
            AutoScalingGroupName=group_name,
            DesiredCapacity=desired_capacity,
        )


def execute_policy(
    configs: "_types.SwapConfigs",
    policy: str,
    group_name: str,
):
    """
    Execute a scaling policy on the group while honoring its cooldown.

    Policies identified by ARN already name their group, so the group name is
    only included for policies identified by name.
    """
    params: typing.Dict[str, typing.Any] = {"PolicyName": policy, "HonorCooldown": True}
    if not policy.startswith("arn:"):
        params["AutoScalingGroupName"] = group_name

    client = configs.client("autoscaling")
    with _controller.calling("execute_policy"):
        client.execute_policy(**params)
