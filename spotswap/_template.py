import json
import typing

import yaml

from spotswap import _errors

DEFAULT_HANDLER = "spotswap.lambda_handler"
DEFAULT_RUNTIME = "python3.12"

#: Options that must always be given along with the message explaining them.
REQUIRED_OPTIONS = (
    ("name", "You must specify the application's name"),
    (
        "on_demand_group",
        "You must specify the logical name of an on-demand auto scaling group",
    ),
    (
        "scale_down_policy",
        "You must specify the logical name of a scaling policy to reduce the "
        "size of the on-demand auto scaling group",
    ),
    (
        "alarm_topic",
        "You must specify the logical name of an SNS topic to receive error alarms",
    ),
    (
        "code_bucket",
        "You must specify the S3 bucket containing the spotswap function code",
    ),
    ("code_key", "You must specify the S3 key for the spotswap function code"),
)

WEIGHT_OPTIONS = ("spot_instance_types", "spot_instance_weights", "on_demand_weight")

FUNCTION_ACTIONS = [
    "cloudformation:DescribeStacks",
    "cloudwatch:GetMetricStatistics",
    "autoscaling:DescribeAutoScalingGroups",
    "autoscaling:SetDesiredCapacity",
    "autoscaling:ExecutePolicy",
    "ec2:DescribeSpotFleetInstances",
    "ec2:DescribeSpotFleetRequests",
    "ec2:DescribeInstances",
    "ec2:DeleteTags",
]


def _ref(name: str) -> dict:
    return {"Ref": name}


def _join(delimiter: str, values: typing.Any) -> dict:
    return {"Fn::Join": [delimiter, values]}


def _get_att(name: str, attribute: str) -> dict:
    return {"Fn::GetAtt": [name, attribute]}


def validate(options: typing.Optional[typing.Dict[str, typing.Any]]) -> dict:
    """
    Make sure the template options are complete and consistent.

    :raises ConfigError:
        With a message naming the first missing or contradictory option.
    """
    if not options:
        raise _errors.ConfigError("You must provide configuration options")
    if not isinstance(options, dict):
        raise _errors.ConfigError("Configuration options must be a mapping")

    if not options.get("spot_fleet") and not options.get("spot_group"):
        raise _errors.ConfigError(
            "You must specify the logical name of a spot_fleet or a spot_group"
        )
    if options.get("spot_fleet") and options.get("spot_group"):
        raise _errors.ConfigError("Only one of spot_fleet or spot_group may be specified")

    for key, message in REQUIRED_OPTIONS:
        if not options.get(key):
            raise _errors.ConfigError(message)

    given = [bool(options.get(k)) for k in WEIGHT_OPTIONS]
    if any(given) and not all(given):
        raise _errors.ConfigError(
            "If any of spot_instance_types, spot_instance_weights or "
            "on_demand_weight are specified, then they all must be specified"
        )
    return options


def _environment(options: typing.Dict[str, typing.Any]) -> dict:
    """Environment variables that configure the reconciliation function."""
    env = {
        "ON_DEMAND_GROUP": _ref(options["on_demand_group"]),
        "ON_DEMAND_SCALE_DOWN_POLICY": _ref(options["scale_down_policy"]),
        "STACK_NAME": _ref("AWS::StackName"),
    }
    if options.get("spot_fleet"):
        env["SPOT_FLEET"] = _ref(options["spot_fleet"])
    else:
        env["SPOT_GROUP"] = _ref(options["spot_group"])

    if options.get("spot_instance_types"):
        # Either a single parameter holding the types or a comma delimited
        # list of parameters that each hold one type.
        types = options["spot_instance_types"]
        env["SPOT_INSTANCE_TYPES"] = (
            _join(" ", [_ref(t.strip()) for t in types.split(",")])
            if "," in types
            else _ref(types)
        )
        env["SPOT_INSTANCE_WEIGHTS"] = _join(" ", _ref(options["spot_instance_weights"]))
        env["ON_DEMAND_WEIGHT"] = _ref(options["on_demand_weight"])
    return env


def template(options: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:
    """
    Create the CloudFormation resources that run the reconciliation pass.

    The snippet includes the function's IAM role, the function itself, a rule
    that invokes it every minute and an alarm on its errors. The option values
    are logical names of resources and parameters defined elsewhere in the
    template.

    :param options:
        Template options. Requires "name", one of "spot_fleet" or "spot_group",
        "on_demand_group", "scale_down_policy", "alarm_topic", "code_bucket"
        and "code_key". Optionally "spot_instance_types",
        "spot_instance_weights" and "on_demand_weight" (all or none),
        "handler" and "runtime".
    """
    validate(options)
    alarm_topic = options["alarm_topic"]
    alarm_ref = alarm_topic if isinstance(alarm_topic, dict) else _ref(alarm_topic)

    role = {
        "Type": "AWS::IAM::Role",
        "Properties": {
            "AssumeRolePolicyDocument": {
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": "lambda.amazonaws.com"},
                        "Action": ["sts:AssumeRole"],
                    }
                ]
            },
            "Policies": [
                {
                    "PolicyName": "run-spotswap",
                    "PolicyDocument": {
                        "Statement": [
                            {"Effect": "Allow", "Action": ["logs:*"], "Resource": "*"},
                            {
                                "Effect": "Allow",
                                "Action": list(FUNCTION_ACTIONS),
                                "Resource": "*",
                            },
                        ]
                    },
                }
            ],
        },
    }

    function = {
        "Type": "AWS::Lambda::Function",
        "Properties": {
            "Code": {"S3Bucket": options["code_bucket"], "S3Key": options["code_key"]},
            "Environment": {"Variables": _environment(options)},
            "Role": _get_att("SpotswapLambdaRole", "Arn"),
            "Description": "Launch on-demand instances in response to spot price-out",
            "Handler": options.get("handler") or DEFAULT_HANDLER,
            "MemorySize": 128,
            "Runtime": options.get("runtime") or DEFAULT_RUNTIME,
            "Timeout": 300,
        },
    }

    schedule = {
        "Type": "AWS::Events::Rule",
        "Properties": {
            "Description": "Run spotswap function every minute",
            "Name": _join("", ["spotswap-", _ref("AWS::StackName")]),
            "ScheduleExpression": "cron(0/1 * * * ? *)",
            "Targets": [
                {"Arn": _get_att("SpotswapFunction", "Arn"), "Id": "SpotswapFunction"}
            ],
        },
    }

    permission = {
        "Type": "AWS::Lambda::Permission",
        "Properties": {
            "Action": "lambda:InvokeFunction",
            "FunctionName": _get_att("SpotswapFunction", "Arn"),
            "Principal": "events.amazonaws.com",
            "SourceArn": _get_att("SpotswapSchedule", "Arn"),
        },
    }

    alarm = {
        "Type": "AWS::CloudWatch::Alarm",
        "Properties": {
            "AlarmDescription": f"Errors from the {options['name']} spotswap function",
            "Period": 60,
            "EvaluationPeriods": 1,
            "Statistic": "Sum",
            "Threshold": 2,
            "ComparisonOperator": "GreaterThanThreshold",
            "Namespace": "AWS/Lambda",
            "Dimensions": [{"Name": "FunctionName", "Value": _ref("SpotswapFunction")}],
            "MetricName": "Errors",
            "AlarmActions": [alarm_ref],
            "InsufficientDataActions": [alarm_ref],
        },
    }

    return {
        "Resources": {
            "SpotswapLambdaRole": role,
            "SpotswapFunction": function,
            "SpotswapSchedule": schedule,
            "SpotswapSchedulePermission": permission,
            "SpotswapFunctionErrorAlarm": alarm,
        }
    }


def render(resources: typing.Dict[str, typing.Any], output_format: str = "json") -> str:
    """Serialize the template as JSON or YAML."""
    if output_format == "yaml":
        return yaml.safe_dump(resources, sort_keys=False)
    return json.dumps(resources, indent=2)
