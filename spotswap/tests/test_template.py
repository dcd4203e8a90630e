import json

import pytest
import yaml
from pytest import mark

from spotswap import _errors
from spotswap import _template

OPTIONS = {
    "name": "my-app",
    "spot_group": "SpotGroup",
    "on_demand_group": "OnDemandGroup",
    "scale_down_policy": "ScaleDown",
    "alarm_topic": "AlarmTopic",
    "code_bucket": "my-bucket",
    "code_key": "spotswap.zip",
}


def test_template():
    """Should create the resources to run the reconciliation function."""
    resources = _template.template(OPTIONS)["Resources"]
    assert set(resources) == {
        "SpotswapLambdaRole",
        "SpotswapFunction",
        "SpotswapSchedule",
        "SpotswapSchedulePermission",
        "SpotswapFunctionErrorAlarm",
    }

    function = resources["SpotswapFunction"]["Properties"]
    assert function["Handler"] == "spotswap.lambda_handler"
    assert function["Environment"]["Variables"] == {
        "ON_DEMAND_GROUP": {"Ref": "OnDemandGroup"},
        "ON_DEMAND_SCALE_DOWN_POLICY": {"Ref": "ScaleDown"},
        "STACK_NAME": {"Ref": "AWS::StackName"},
        "SPOT_GROUP": {"Ref": "SpotGroup"},
    }
    alarm = resources["SpotswapFunctionErrorAlarm"]["Properties"]
    assert alarm["AlarmActions"] == [{"Ref": "AlarmTopic"}]


def test_template_fleet_weights():
    """Should configure a weighted spot fleet."""
    options = {
        **OPTIONS,
        "spot_group": None,
        "spot_fleet": "SpotFleet",
        "spot_instance_types": "TypeOne,TypeTwo",
        "spot_instance_weights": "Weights",
        "on_demand_weight": "OnDemandWeight",
        "alarm_topic": {"Fn::ImportValue": "alarms"},
    }
    resources = _template.template(options)["Resources"]
    env = resources["SpotswapFunction"]["Properties"]["Environment"]["Variables"]

    assert "SPOT_GROUP" not in env
    assert env["SPOT_FLEET"] == {"Ref": "SpotFleet"}
    assert env["SPOT_INSTANCE_TYPES"] == {
        "Fn::Join": [" ", [{"Ref": "TypeOne"}, {"Ref": "TypeTwo"}]]
    }
    assert env["SPOT_INSTANCE_WEIGHTS"] == {"Fn::Join": [" ", {"Ref": "Weights"}]}
    assert env["ON_DEMAND_WEIGHT"] == {"Ref": "OnDemandWeight"}

    alarm = resources["SpotswapFunctionErrorAlarm"]["Properties"]
    assert alarm["AlarmActions"] == [{"Fn::ImportValue": "alarms"}]


VALIDATION_SCENARIOS = (
    (None, "You must provide configuration options"),
    ({**OPTIONS, "name": None}, "application's name"),
    ({**OPTIONS, "spot_group": None}, "spot_fleet or a spot_group"),
    ({**OPTIONS, "spot_fleet": "SpotFleet"}, "Only one of"),
    ({**OPTIONS, "on_demand_group": None}, "on-demand auto scaling group"),
    ({**OPTIONS, "scale_down_policy": None}, "scaling policy"),
    ({**OPTIONS, "alarm_topic": None}, "SNS topic"),
    ({**OPTIONS, "code_bucket": None}, "S3 bucket"),
    ({**OPTIONS, "code_key": None}, "S3 key"),
    ({**OPTIONS, "on_demand_weight": "Weight"}, "they all must be specified"),
)


@mark.parametrize("options, message", VALIDATION_SCENARIOS)
def test_template_invalid(options, message: str):
    """Should refuse incomplete template options."""
    with pytest.raises(_errors.ConfigError) as error:
        _template.template(options)
    assert message in str(error.value)


@mark.parametrize("output_format, loader", [("json", json.loads), ("yaml", yaml.safe_load)])
def test_render(output_format: str, loader):
    """Should serialize the template in the requested format."""
    resources = _template.template(OPTIONS)
    assert loader(_template.render(resources, output_format)) == resources
