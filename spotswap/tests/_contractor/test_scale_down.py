import typing
from unittest.mock import MagicMock

import lobotomy
import pytest
from pytest import mark

from spotswap import _contractor
from spotswap import _errors
from spotswap import _types
from spotswap.tests import _utils


def _make_fleet_configs(
    activity_status: typing.Optional[str] = "fulfilled",
) -> typing.Tuple["_types.SwapConfigs", MagicMock, MagicMock]:
    ec2 = MagicMock()
    ec2.describe_spot_fleet_requests.return_value = {
        "SpotFleetRequestConfigs": [
            {"SpotFleetRequestId": "sfr-123", "ActivityStatus": activity_status}
        ]
    }
    autoscaling = MagicMock()
    configs = _utils.make_configs(
        spot_group=None,
        spot_fleet="sfr-123",
        session=_utils.make_session(ec2=ec2, autoscaling=autoscaling),
    )
    return configs, ec2, autoscaling


GROUP_SCENARIOS = (
    {"members": 2, "desired": 2, "expected": True},
    {"members": 3, "desired": 2, "expected": True},
    {"members": 2, "desired": 3, "expected": False},
    {"members": 0, "desired": 0, "expected": True},
)


@mark.parametrize("scenario", GROUP_SCENARIOS)
@lobotomy.patch()
def test_scale_down_group(lobotomized: lobotomy.Lobotomy, scenario: dict):
    """Should scale down only once the spot group has its desired members."""
    members = [f"i-{i}" for i in range(scenario["members"])]
    lobotomized.add_call(
        "autoscaling",
        "describe_auto_scaling_groups",
        {
            "AutoScalingGroups": [
                _utils.make_group("spot-group", scenario["desired"], members=members)
            ]
        },
    )
    lobotomized.add_call("autoscaling", "execute_policy", {})
    configs = _types.SwapConfigs(
        spot_group="spot-group",
        on_demand_group="on-demand-group",
        scale_down_policy="scale-down",
        stack_name="my-stack",
    )

    result = _contractor.scale_down(configs)
    assert result["scale_down"] == scenario["expected"]

    calls = lobotomized.get_service_calls("autoscaling", "execute_policy")
    assert len(calls) == (1 if scenario["expected"] else 0)
    if calls:
        assert calls[0].request["PolicyName"] == "scale-down"
        assert calls[0].request["AutoScalingGroupName"] == "on-demand-group"
        assert calls[0].request["HonorCooldown"] is True


FLEET_SCENARIOS = (
    ("fulfilled", True),
    ("pending_fulfillment", False),
    ("pending_termination", False),
    ("error", False),
    ("Fulfilled", False),
    (None, False),
)


@mark.parametrize("activity_status, expected", FLEET_SCENARIOS)
def test_scale_down_fleet(activity_status, expected: bool):
    """Should scale down only when the fleet is exactly fulfilled."""
    configs, ec2, autoscaling = _make_fleet_configs(activity_status)

    result = _contractor.scale_down(configs)
    assert result["scale_down"] == expected
    assert autoscaling.execute_policy.called == expected
    ec2.describe_spot_fleet_requests.assert_called_once_with(
        SpotFleetRequestIds=["sfr-123"]
    )


def test_scale_down_fleet_rate_limited():
    """Should treat a rate limited fleet check as not fulfilled."""
    configs, ec2, autoscaling = _make_fleet_configs()
    ec2.describe_spot_fleet_requests.side_effect = _utils.client_error(
        "RequestLimitExceeded", "Request limit exceeded."
    )

    assert _contractor.scale_down(configs) == {"scale_down": False, "executed": False}
    assert not autoscaling.execute_policy.called


def test_scale_down_fleet_error():
    """Should propagate fleet check errors that are not rate limits."""
    configs, ec2, autoscaling = _make_fleet_configs()
    ec2.describe_spot_fleet_requests.side_effect = _utils.client_error("AccessDenied")

    with pytest.raises(_errors.InventoryCallFailed):
        _contractor.scale_down(configs)


def test_scale_down_fleet_missing():
    """Should fail when the fleet cannot be described."""
    configs, ec2, autoscaling = _make_fleet_configs()
    ec2.describe_spot_fleet_requests.return_value = {"SpotFleetRequestConfigs": []}

    with pytest.raises(_errors.InventoryCallFailed) as error:
        _contractor.scale_down(configs)
    assert "sfr-123" in str(error.value)


def test_scale_down_cooldown():
    """Should quietly accomplish nothing while the cooldown is active."""
    configs, ec2, autoscaling = _make_fleet_configs()
    autoscaling.execute_policy.side_effect = _utils.client_error(
        "ScalingActivityInProgress", "Scaling activity is in progress"
    )

    assert _contractor.scale_down(configs) == {"scale_down": True, "executed": False}
    assert autoscaling.execute_policy.call_count == 1


def test_scale_down_step_scaling():
    """Should explain that only simple scaling policies are supported."""
    configs, ec2, autoscaling = _make_fleet_configs()
    message = "Policy scale-down is not of type SimpleScaling; it is StepScaling"
    autoscaling.execute_policy.side_effect = _utils.client_error(
        "ValidationError", message
    )

    with pytest.raises(_errors.PolicyMisconfigured) as error:
        _contractor.scale_down(configs)
    assert "SimpleScaling policy" in str(error.value)
    assert message in str(error.value)
    assert isinstance(error.value.__cause__, _errors.InventoryCallFailed)


def test_scale_down_policy_error():
    """Should propagate any other policy execution failure."""
    configs, ec2, autoscaling = _make_fleet_configs()
    autoscaling.execute_policy.side_effect = _utils.client_error(
        "ValidationError", "Policy does not exist"
    )

    with pytest.raises(_errors.InventoryCallFailed) as error:
        _contractor.scale_down(configs)
    assert error.value.code == "ValidationError"
