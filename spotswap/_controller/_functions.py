import json
import typing

from spotswap import _controller
from spotswap import _types


def get_function_region(function_arn: str) -> str:
    """Get the region segment of a Lambda function ARN."""
    return function_arn.split(":")[3]


def invoke_function(
    configs: "_types.SwapConfigs",
    function_arn: str,
    payload: typing.Dict[str, typing.Any],
) -> typing.Dict[str, typing.Any]:
    """
    Synchronously invoke the Lambda function with a JSON payload.

    The client is created in the function's own region, which may differ from
    the region the caller runs in.

    :return:
        Status code and any function error reported by Lambda.
    """
    client = configs.client("lambda", region_name=get_function_region(function_arn))
    with _controller.calling("invoke"):
        response = client.invoke(
            FunctionName=function_arn,
            InvocationType="RequestResponse",
            Payload=json.dumps(payload).encode("utf-8"),
        )
    return {
        "status_code": response.get("StatusCode"),
        "function_error": response.get("FunctionError"),
    }
