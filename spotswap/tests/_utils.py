import typing
from unittest.mock import MagicMock

import botocore.exceptions

from spotswap import _types


def make_configs(**kwargs: typing.Any) -> "_types.SwapConfigs":
    """Create a reconciliation config for a spot group with mocked AWS clients."""
    values = {
        "spot_group": "spot-group",
        "on_demand_group": "on-demand-group",
        "scale_down_policy": "scale-down",
        "stack_name": "my-stack",
        "session": MagicMock(),
        **kwargs,
    }
    return _types.SwapConfigs(**values)


def make_session(**clients: MagicMock) -> MagicMock:
    """Create a mock boto3 session returning the given clients by service name."""
    session = MagicMock()
    session.client.side_effect = lambda service_name, **kwargs: clients[service_name]
    return session


def client_error(
    code: str,
    message: str = "Something went wrong",
    operation: str = "Operation",
) -> botocore.exceptions.ClientError:
    """Create a boto3 client error with the given error code and message."""
    return botocore.exceptions.ClientError(
        {"Error": {"Code": code, "Message": message}}, operation
    )


def make_group(
    name: str,
    desired: int,
    max_size: int = 10,
    members: typing.List[str] = None,
) -> dict:
    """Create a describe auto scaling groups response entry."""
    return {
        "AutoScalingGroupName": name,
        "DesiredCapacity": desired,
        "MinSize": 0,
        "MaxSize": max_size,
        "Instances": [
            {
                "InstanceId": member,
                "AvailabilityZone": "us-east-1a",
                "LifecycleState": "InService",
                "HealthStatus": "Healthy",
                "ProtectedFromScaleIn": False,
            }
            for member in (members or [])
        ],
    }


def make_reservations(*instances: typing.Tuple[str, str]) -> dict:
    """Create a describe instances response page for (id, type) pairs."""
    return {
        "Reservations": [
            {
                "Instances": [
                    {"InstanceId": instance_id, "InstanceType": instance_type}
                    for instance_id, instance_type in instances
                ]
            }
        ]
    }


def make_paginators(client: MagicMock, **responses: typing.List[dict]) -> dict:
    """
    Give the mock client a paginator per operation yielding the given pages.

    :return:
        The mock paginators keyed by operation name, so that the paginate
        arguments can be inspected.
    """
    paginators = {name: MagicMock() for name in responses}
    for name, pages in responses.items():
        paginators[name].paginate.return_value = pages
    client.get_paginator.side_effect = lambda name: paginators[name]
    return paginators
