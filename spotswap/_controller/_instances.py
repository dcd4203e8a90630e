import typing

from spotswap import _configs
from spotswap import _controller
from spotswap import _types


def get_fleet_instance_ids(
    configs: "_types.SwapConfigs",
    fleet_id: str,
) -> typing.List[str]:
    """List the instance IDs of the active instances in a spot fleet request."""
    client = configs.client("ec2")
    paginator = client.get_paginator("describe_spot_fleet_instances")
    with _controller.calling("describe_spot_fleet_instances"):
        return [
            i["InstanceId"]
            for page in paginator.paginate(SpotFleetRequestId=fleet_id)
            for i in (page.get("ActiveInstances") or [])
        ]


def find_tagged_instances(
    configs: "_types.SwapConfigs",
    instance_ids: typing.List[str],
) -> typing.List["_types.MarkedInstance"]:
    """
    Find the running instances among those given that carry the termination tag.

    An empty list of instance IDs is never sent to EC2 because that would
    describe every instance in the account instead of none.
    """
    if not instance_ids:
        return []

    client = configs.client("ec2")
    paginator = client.get_paginator("describe_instances")
    pages = paginator.paginate(
        InstanceIds=instance_ids,
        Filters=[
            {"Name": "instance-state-name", "Values": ["running"]},
            {"Name": f"tag:{_configs.TAG_KEY}", "Values": [_configs.TAG_VALUE]},
        ],
    )
    with _controller.calling("describe_instances"):
        return [
            _types.MarkedInstance(id=i["InstanceId"], instance_type=i["InstanceType"])
            for page in pages
            for reserve in (page.get("Reservations") or [])
            for i in (reserve.get("Instances") or [])
        ]


def create_termination_tag(configs: "_types.SwapConfigs", instance_id: str):
    """Mark the instance as having received a termination notice."""
    client = configs.client("ec2")
    with _controller.calling("create_tags"):
        client.create_tags(
            Resources=[instance_id],
            Tags=[{"Key": _configs.TAG_KEY, "Value": _configs.TAG_VALUE}],
        )


def delete_termination_tags(
    configs: "_types.SwapConfigs",
    instance_ids: typing.List[str],
):
    """Remove the termination tag from all of the instances in one call."""
    client = configs.client("ec2")
    with _controller.calling("delete_tags"):
        client.delete_tags(
            Resources=instance_ids,
            Tags=[{"Key": _configs.TAG_KEY, "Value": _configs.TAG_VALUE}],
        )


def terminate_group_instance(configs: "_types.SwapConfigs", instance_id: str):
    """
    Terminate an auto scaling group member without shrinking the group.

    Terminating through the group lets load balancer connections drain.
    """
    client = configs.client("autoscaling")
    with _controller.calling("terminate_instance_in_auto_scaling_group"):
        client.terminate_instance_in_auto_scaling_group(
            InstanceId=instance_id,
            ShouldDecrementDesiredCapacity=False,
        )


def terminate_instance(configs: "_types.SwapConfigs", instance_id: str):
    """Terminate the instance immediately."""
    client = configs.client("ec2")
    with _controller.calling("terminate_instances"):
        client.terminate_instances(InstanceIds=[instance_id])
