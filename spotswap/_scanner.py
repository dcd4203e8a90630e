import typing

from spotswap import _controller
from spotswap import _errors
from spotswap import _types


def get_spot_instance_ids(configs: "_types.SwapConfigs") -> typing.List[str]:
    """
    List the IDs of the instances currently in the spot group or fleet.

    Exactly one of the spot group or spot fleet must be configured.
    """
    if not configs.spot_group and not configs.spot_fleet:
        raise _errors.ConfigError("A spot_group or a spot_fleet must be specified.")
    if configs.spot_group and configs.spot_fleet:
        raise _errors.ConfigError("Only one of spot_group or spot_fleet may be specified.")

    if configs.spot_group:
        group = _controller.describe_group(configs, configs.spot_group)
        return sorted(group.members)
    return _controller.get_fleet_instance_ids(configs, configs.spot_fleet)


def scan(configs: "_types.SwapConfigs") -> typing.List["_types.MarkedInstance"]:
    """
    Find all running instances in the spot pool marked for termination.

    :param configs:
        Current execution configuration for spotswap.
    :return:
        The marked instances, which is an empty list when none are found.
    """
    instance_ids = get_spot_instance_ids(configs)
    marked = _controller.find_tagged_instances(configs, instance_ids)
    configs.log(
        "Scanned spot pool",
        {
            "spot_pool": configs.spot_name,
            "kind": configs.spot_kind,
            "instances": len(instance_ids),
            "marked": [{"id": m.id, "type": m.instance_type} for m in marked],
        },
    )
    return marked
