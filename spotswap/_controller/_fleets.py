import datetime
import typing

from spotswap import _configs
from spotswap import _controller
from spotswap import _errors
from spotswap import _types


def get_fleet_activity_status(
    configs: "_types.SwapConfigs",
    fleet_id: str,
) -> typing.Optional[str]:
    """
    Fetch the activity status of the spot fleet request.

    The status is "fulfilled" once the size of the fleet is equal to or greater
    than its target capacity. Other values include "pending_fulfillment",
    "pending_termination" and "error".
    """
    client = configs.client("ec2")
    with _controller.calling("describe_spot_fleet_requests"):
        response = client.describe_spot_fleet_requests(SpotFleetRequestIds=[fleet_id])

    fleet_requests = response.get("SpotFleetRequestConfigs") or []
    if not fleet_requests:
        raise _errors.InventoryCallFailed(
            "describe_spot_fleet_requests",
            "FleetNotFound",
            f"Unable to describe spot fleet {fleet_id}.",
        )
    return fleet_requests[0].get("ActivityStatus")


def get_eligible_pool_minimums(
    configs: "_types.SwapConfigs",
    fleet_id: str,
    now: datetime.datetime = None,
) -> typing.List[float]:
    """
    List per-minute minimums of the fleet's eligible instance pool count.

    :param configs:
        Current execution configuration for spotswap.
    :param fleet_id:
        Spot fleet request identifier.
    :param now:
        End of the trailing window. Defaults to the current UTC time.
    """
    end = now or datetime.datetime.now(datetime.timezone.utc)
    start = end - datetime.timedelta(seconds=_configs.POOL_WINDOW_SECONDS)
    client = configs.client("cloudwatch")
    with _controller.calling("get_metric_statistics"):
        response = client.get_metric_statistics(
            Namespace=_configs.POOL_METRIC_NAMESPACE,
            MetricName=_configs.POOL_METRIC_NAME,
            Dimensions=[{"Name": "FleetRequestId", "Value": fleet_id}],
            Statistics=["Minimum"],
            StartTime=start,
            EndTime=end,
            Period=_configs.POOL_PERIOD_SECONDS,
        )
    return [float(d["Minimum"]) for d in (response.get("Datapoints") or [])]
