import typing

import requests

from spotswap import _configs
from spotswap import _controller
from spotswap import _errors
from spotswap import _types


def get_token(configs: "_types.SwapConfigs") -> typing.Optional[str]:
    """
    Fetch an IMDSv2 session token.

    Hosts that only offer IMDSv1 have no token endpoint, in which case None is
    returned and metadata requests are sent without a token.
    """
    try:
        response = requests.put(
            configs.token_endpoint,
            headers={
                "X-aws-ec2-metadata-token-ttl-seconds": str(_configs.TOKEN_TTL_SECONDS)
            },
            timeout=_configs.METADATA_TIMEOUT,
        )
        response.raise_for_status()
    except requests.RequestException as error:
        configs.log("IMDSv2 token unavailable", {"error": str(error)})
        return None
    return response.text


def _headers(token: typing.Optional[str]) -> typing.Dict[str, str]:
    return {"X-aws-ec2-metadata-token": token} if token else {}


def get_termination_notice(
    configs: "_types.SwapConfigs",
    token: str = None,
) -> typing.Tuple[int, str]:
    """
    Request the spot termination notice for this instance.

    :return:
        The response status code and body. A 404 status means that no notice
        has been issued.
    """
    with _controller.calling("get_termination_notice"):
        response = requests.get(
            configs.notice_endpoint,
            headers=_headers(token),
            timeout=_configs.METADATA_TIMEOUT,
        )
    return response.status_code, response.text


def _get_value(
    configs: "_types.SwapConfigs",
    path: str,
    token: typing.Optional[str],
) -> str:
    with _controller.calling(f"get_metadata:{path}"):
        response = requests.get(
            f"{configs.metadata_endpoint}/{path}",
            headers=_headers(token),
            timeout=_configs.METADATA_TIMEOUT,
        )
        response.raise_for_status()

    if not response.text:
        raise _errors.InventoryCallFailed(
            f"get_metadata:{path}",
            "EmptyResponse",
            "Could not reach instance metadata endpoint.",
        )
    return response.text


def get_instance_id(configs: "_types.SwapConfigs", token: str = None) -> str:
    """Get the configured instance ID or read it from the metadata service."""
    return configs.instance_id or _get_value(configs, "instance-id", token)


def get_instance_metadata(
    configs: "_types.SwapConfigs",
    instance_id: str,
    token: str = None,
) -> "_types.InstanceMetadata":
    """Read the type and placement of this instance from the metadata service."""
    return _types.InstanceMetadata(
        instance_id=instance_id,
        instance_type=_get_value(configs, "instance-type", token),
        availability_zone=_get_value(configs, "placement/availability-zone", token),
    )
