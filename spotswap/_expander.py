import concurrent.futures
import typing

from spotswap import _configs
from spotswap import _controller
from spotswap import _errors
from spotswap import _types


def is_updating(configs: "_types.SwapConfigs") -> bool:
    """
    Whether the owning stack is in the middle of a CloudFormation operation.

    Changing the on-demand desired capacity out-of-band during one of these
    breaks the in-progress operation.
    """
    status = _controller.get_stack_status(configs, configs.stack_name)
    return status in _configs.IN_FLUX_STACK_STATUSES


def has_sufficient_pools(configs: "_types.SwapConfigs") -> bool:
    """
    Whether the spot fleet has more than two pools in which it can place instances.

    Every per-minute minimum over the trailing window must exceed the threshold.
    When the metrics cannot be read, the fleet is treated as not having
    sufficient pools.
    """
    try:
        minimums = _controller.get_eligible_pool_minimums(configs, configs.spot_fleet)
    except _errors.InventoryCallFailed as error:
        configs.log(
            "Unable to read fleet pool metrics",
            {"fleet": configs.spot_fleet, "code": error.code, "error": str(error)},
        )
        return False
    return all(m > _configs.POOL_THRESHOLD for m in minimums)


def get_noop_reasons(configs: "_types.SwapConfigs") -> typing.List["_types.NoopReason"]:
    """
    Evaluate all scale up guards concurrently and list the ones that block.

    An empty list means that scaling up may proceed.
    """
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        updating = executor.submit(is_updating, configs)
        sufficient = (
            executor.submit(has_sufficient_pools, configs)
            if configs.spot_fleet
            else None
        )
        checks = [
            (_types.NoopReason.IS_UPDATING, updating),
            (_types.NoopReason.SUFFICIENT_FLEET_POOLS, sufficient),
        ]
        return [reason for reason, check in checks if check and check.result()]


def compute_desired_capacity(
    configs: "_types.SwapConfigs",
    pool: "_types.PoolState",
    instances: typing.List["_types.MarkedInstance"],
) -> typing.Dict[str, typing.Any]:
    """
    Compute the on-demand desired capacity that replaces the lost spot capacity.

    Without weighting each lost spot instance is replaced by one on-demand
    instance. With weighting, the summed weights of the lost instances are
    converted into whole on-demand units. The result never exceeds the
    group's max size.
    """
    lost_capacity = len(instances)
    replacements = len(instances)
    if configs.weights:
        lost_capacity = configs.weights.lost_capacity(instances)
        replacements = configs.weights.replacements_needed(lost_capacity)

    return {
        "lost_capacity": lost_capacity,
        "replacements": replacements,
        "current_desired": pool.desired_capacity,
        "max_size": pool.max_size,
        "desired": min(pool.max_size, pool.desired_capacity + replacements),
    }


def scale_up(
    configs: "_types.SwapConfigs",
    instances: typing.List["_types.MarkedInstance"],
) -> typing.Dict[str, typing.Any]:
    """
    Grow the on-demand group to replace spot instances marked for termination.

    Once the new desired capacity has been applied, the termination tags are
    removed from the replaced instances. Nothing is changed while a guard
    blocks, which is reported through the "noop" reasons of the result.

    :param configs:
        Current execution configuration for spotswap.
    :param instances:
        Marked spot instances that must be accounted for.
    """
    reasons = get_noop_reasons(configs)
    if reasons:
        result = {"noop": [r.value for r in reasons]}
        configs.log("Skipping scale up", result)
        return result

    pool = _controller.describe_group(configs, configs.on_demand_group)
    result = compute_desired_capacity(configs, pool, instances)
    configs.log(
        f"Lost {result['lost_capacity']} capacity. "
        f"Replacing with {result['replacements']} new instances",
        {"on_demand_group": pool.name, **result},
    )
    _controller.set_desired_capacity(configs, pool.name, result["desired"])

    cleared = [i.id for i in instances]
    if cleared:
        _controller.delete_termination_tags(configs, cleared)
    return {"noop": [], **result, "cleared": cleared}
