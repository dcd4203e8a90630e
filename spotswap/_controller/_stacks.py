from spotswap import _controller
from spotswap import _errors
from spotswap import _types


def get_stack_status(configs: "_types.SwapConfigs", stack_name: str) -> str:
    """Fetch the current CloudFormation status of the named stack."""
    client = configs.client("cloudformation")
    with _controller.calling("describe_stacks"):
        response = client.describe_stacks(StackName=stack_name)

    stacks = response.get("Stacks") or []
    if not stacks:
        raise _errors.InventoryCallFailed(
            "describe_stacks", "StackNotFound", f"Stack not found: {stack_name}"
        )
    return stacks[0]["StackStatus"]
