import pathlib
from unittest.mock import MagicMock
from unittest.mock import patch

from spotswap import _expander
from spotswap import _poller
from spotswap import _scanner
from spotswap import _types
from spotswap.tests import _utils


@patch("spotswap._controller.get_token", return_value=None)
@patch("spotswap._controller.get_termination_notice")
@patch("spotswap._controller.get_instance_metadata")
def test_termination_tag_matches(
    get_instance_metadata: MagicMock,
    get_termination_notice: MagicMock,
    get_token: MagicMock,
    tmp_path: pathlib.Path,
):
    """
    Should find and clear exactly the tag that the poller writes.

    The poller tags i-123, the scanner must filter on that same key/value pair
    and the expander must remove that same key/value pair again.
    """
    get_termination_notice.return_value = (200, "2015-01-05T18:02:00Z")
    get_instance_metadata.return_value = _types.InstanceMetadata(
        "i-123", "m3.large", "us-east-1a"
    )
    ec2 = MagicMock()
    autoscaling = MagicMock()
    autoscaling.describe_auto_scaling_groups.return_value = {
        "AutoScalingGroups": [_utils.make_group("spot-group", 1, members=["i-123"])]
    }
    paginators = _utils.make_paginators(
        ec2, describe_instances=[_utils.make_reservations(("i-123", "m3.large"))]
    )
    lambda_client = MagicMock()
    lambda_client.invoke.return_value = {"StatusCode": 200}
    cloudformation = MagicMock()
    cloudformation.describe_stacks.return_value = {
        "Stacks": [{"StackName": "my-stack", "StackStatus": "UPDATE_COMPLETE"}]
    }
    configs = _utils.make_configs(
        instance_id="i-123",
        termination_override="arn:aws:lambda:us-east-1:123456789012:function:f",
        semaphore_path=tmp_path.joinpath("give-up"),
        session=_utils.make_session(
            ec2=ec2,
            autoscaling=autoscaling,
            cloudformation=cloudformation,
            **{"lambda": lambda_client},
        ),
    )

    _poller.poll(configs)
    written = ec2.create_tags.call_args.kwargs["Tags"][0]

    marked = _scanner.scan(configs)
    filters = paginators["describe_instances"].paginate.call_args.kwargs["Filters"]
    tag_filter = next(f for f in filters if f["Name"].startswith("tag:"))
    assert tag_filter == {"Name": f"tag:{written['Key']}", "Values": [written["Value"]]}

    autoscaling.describe_auto_scaling_groups.return_value = {
        "AutoScalingGroups": [_utils.make_group("on-demand-group", 1)]
    }
    _expander.scale_up(configs, marked)
    deleted = ec2.delete_tags.call_args.kwargs
    assert deleted["Resources"] == ["i-123"]
    assert deleted["Tags"] == [written]
