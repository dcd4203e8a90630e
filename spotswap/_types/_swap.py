import dataclasses
import datetime
import json
import os
import pathlib
import threading
import typing

import boto3
import yaml

from spotswap import _configs
from spotswap import _conversions
from spotswap import _errors
from spotswap import _types


def _or(*args: typing.Any, default: typing.Any = None) -> typing.Any:
    """
    Find the first non-None element in the args.

    If none of the values are not None, the default value will be returned instead.
    """
    return next((x for x in args if x is not None), default)


def _or_truthy(*args: typing.Any, default: typing.Any = None) -> typing.Any:
    """
    Find the first truthy element in the args.

    If none of the values are truthy, the default value will be returned instead.
    """
    return next((x for x in args if x), default)


def _load_configs(
    args: typing.Dict[str, typing.Any],
    config_path: typing.Union[str, pathlib.Path] = None,
) -> typing.Dict[str, typing.Any]:
    """
    Load configuration data from the config path.

    Config path lookup is prioritized in the following way:
    - config_path argument specified in this function signature.
    - `--config-path` command line argument.
    - CONFIG_PATH environmental variable.
    - Default value of "/etc/spotswap/config.yaml"

    If the config file fails to load because the file is not found, a blank
    configuration will be used instead.
    """
    p = pathlib.Path(
        config_path
        or args.get("config_path")
        or os.environ.get("CONFIG_PATH")
        or _configs.DEFAULT_CONFIG_PATH
    )
    try:
        return yaml.safe_load(p.resolve().read_text()) or {}
    except FileNotFoundError:
        return {}


@dataclasses.dataclass()
class SwapConfigs:
    """Configuration data structure for spotswap operation."""

    spot_group: typing.Optional[str] = None
    spot_fleet: typing.Optional[str] = None
    on_demand_group: typing.Optional[str] = None
    scale_down_policy: typing.Optional[str] = None
    stack_name: typing.Optional[str] = None
    weights: typing.Optional["_types.WeightTable"] = None
    #: Seconds a spot group instance waits after tagging itself before it
    #: terminates, giving the reconciliation pass a chance to replace it first.
    termination_delay: float = 0
    #: ARN of a Lambda function to hand off to instead of terminating.
    termination_override: typing.Optional[str] = None
    instance_id: typing.Optional[str] = None
    region: typing.Optional[str] = None
    aws_profile: typing.Optional[str] = None
    pretty_print: bool = False
    notice_endpoint: str = _configs.NOTICE_ENDPOINT
    metadata_endpoint: str = _configs.METADATA_ENDPOINT
    token_endpoint: str = _configs.TOKEN_ENDPOINT
    semaphore_path: pathlib.Path = _configs.SEMAPHORE_PATH
    session: boto3.Session = dataclasses.field(
        hash=False, default_factory=lambda: boto3.Session()
    )
    last_loaded_at: datetime.datetime = dataclasses.field(
        default_factory=lambda: datetime.datetime.utcnow()
    )
    _clients: typing.Dict[typing.Tuple[str, typing.Optional[str]], typing.Any] = (
        dataclasses.field(default_factory=dict, init=False, repr=False, compare=False)
    )
    _lock: threading.Lock = dataclasses.field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )
    #: Raw weighting and delay values from the last load. Each is converted by
    #: the validation of the command that uses it.
    _raw_options: typing.Dict[str, typing.Any] = dataclasses.field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    @property
    def spot_kind(self) -> typing.Optional[str]:
        """Whether the spot side is a "group" or a "fleet", if configured."""
        if self.spot_group:
            return "group"
        if self.spot_fleet:
            return "fleet"
        return None

    @property
    def spot_name(self) -> typing.Optional[str]:
        """Name of the spot group or identifier of the spot fleet request."""
        return self.spot_group or self.spot_fleet

    def client(self, service_name: str, region_name: str = None) -> typing.Any:
        """
        Fetch a boto3 client for the service from the configured session.

        Sessions are not thread safe while clients are, so clients are created
        once under a lock and then shared by any concurrent calls.
        """
        key = (service_name, region_name or self.region)
        with self._lock:
            if key not in self._clients:
                kwargs = {"region_name": key[1]} if key[1] else {}
                self._clients[key] = self.session.client(service_name, **kwargs)
            return self._clients[key]

    def load(
        self,
        args: typing.Dict[str, typing.Any],
        config_path: typing.Union[str, pathlib.Path] = None,
    ) -> "SwapConfigs":
        """
        Populate spotswap config with data from arguments, environment and file.

        Each value is taken from the command line arguments first, then from
        environment variables and finally from the config file. If none of
        these exist, the default values are kept instead.
        """
        self.last_loaded_at = datetime.datetime.utcnow()
        raw = _load_configs(args, config_path)
        env = os.environ

        def lookup(key: str, env_key: str) -> typing.Any:
            return _or_truthy(args.get(key), env.get(env_key), raw.get(key))

        self.spot_group = lookup("spot_group", "SPOT_GROUP")
        self.spot_fleet = lookup("spot_fleet", "SPOT_FLEET")
        self.on_demand_group = lookup("on_demand_group", "ON_DEMAND_GROUP")
        self.scale_down_policy = lookup(
            "scale_down_policy", "ON_DEMAND_SCALE_DOWN_POLICY"
        )
        self.stack_name = lookup("stack_name", "STACK_NAME")
        self._raw_options = {
            "spot_instance_types": lookup("spot_instance_types", "SPOT_INSTANCE_TYPES"),
            "spot_instance_weights": lookup(
                "spot_instance_weights", "SPOT_INSTANCE_WEIGHTS"
            ),
            "on_demand_weight": lookup("on_demand_weight", "ON_DEMAND_WEIGHT"),
            "termination_delay": lookup("termination_delay", "TERMINATION_DELAY"),
        }
        self.termination_override = lookup(
            "termination_override", "TERMINATION_OVERRIDE_FUNCTION"
        )
        self.instance_id = lookup("instance_id", "INSTANCE_ID")
        self.region = lookup("region", "AWS_REGION")
        self.aws_profile = _or(args.get("aws_profile"), self.aws_profile)
        self.pretty_print = _or_truthy(
            self.pretty_print, args.get("pretty_print"), raw.get("pretty_print"), False
        )
        self.notice_endpoint = _or_truthy(
            args.get("notice_endpoint"), raw.get("notice_endpoint"), self.notice_endpoint
        )

        self.session = boto3.Session(
            profile_name=self.aws_profile, region_name=self.region
        )
        self._clients = {}
        return self

    def validate_reconcile(self) -> "SwapConfigs":
        """
        Make sure everything a reconciliation pass needs has been configured.

        Weighting is only converted here, so a weighting mistake never stops
        the poller, which has no use for it.
        """
        if not self.spot_group and not self.spot_fleet:
            raise _errors.ConfigError("A spot_group or a spot_fleet must be specified.")
        if self.spot_group and self.spot_fleet:
            raise _errors.ConfigError(
                "Only one of spot_group or spot_fleet may be specified."
            )

        required = {
            "on_demand_group": self.on_demand_group,
            "scale_down_policy": self.scale_down_policy,
            "stack_name": self.stack_name,
        }
        missing = [key for key, value in required.items() if not value]
        if missing:
            raise _errors.ConfigError(f"Missing required settings: {', '.join(missing)}.")

        if self._raw_options:
            self.weights = _types.WeightTable.from_config(
                self._raw_options["spot_instance_types"],
                self._raw_options["spot_instance_weights"],
                self._raw_options["on_demand_weight"],
            )
        return self

    def validate_poll(self) -> "SwapConfigs":
        """
        Make sure the self-termination poller is not contradictorily configured.

        Leaving both the spot group and fleet unset is allowed here. Without an
        override function the poller then tags itself but never exits.
        """
        if self.spot_group and self.spot_fleet:
            raise _errors.ConfigError(
                "Only one of spot_group or spot_fleet may be specified."
            )
        if self.termination_override and len(self.termination_override.split(":")) < 4:
            raise _errors.ConfigError(
                f'Termination override "{self.termination_override}" is not a '
                "function ARN that includes a region."
            )

        if self._raw_options:
            self.termination_delay = _conversions.to_seconds(
                self._raw_options["termination_delay"]
            )
        return self

    def log(self, message: str, data: dict = None):
        """Log the message and data for structured output."""
        print(
            json.dumps(
                {"message": message, "data": data or {}},
                indent=2 if self.pretty_print else None,
                default=str,
            )
        )

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Convert to a dictionary representation that is JSON serializable for logs."""
        return {
            "spot_group": self.spot_group,
            "spot_fleet": self.spot_fleet,
            "on_demand_group": self.on_demand_group,
            "scale_down_policy": self.scale_down_policy,
            "stack_name": self.stack_name,
            "weights": self.weights.to_dict() if self.weights else None,
            "termination_delay": self.termination_delay,
            "termination_override": self.termination_override,
            "instance_id": self.instance_id,
            "region": self.region,
            "aws_profile": self.aws_profile,
            "last_loaded_at": str(self.last_loaded_at),
        }
