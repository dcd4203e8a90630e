import dataclasses
import enum
import math
import typing

from spotswap import _conversions
from spotswap import _errors


class NoopReason(enum.Enum):
    """Reasons a scale up is skipped without it being an error."""

    #: The owning stack is in the middle of a CloudFormation operation.
    IS_UPDATING = "IS_UPDATING"
    #: The spot fleet still has enough pools to replace capacity on its own.
    SUFFICIENT_FLEET_POOLS = "SUFFICIENT_FLEET_POOLS"


@dataclasses.dataclass(frozen=True)
class MarkedInstance:
    """A running spot instance carrying the termination tag."""

    id: str
    instance_type: str


@dataclasses.dataclass(frozen=True)
class PoolState:
    """
    Data structure that describes an auto scaling group.

    These are read fresh from AWS immediately before any decision is made on
    them and are never held across passes.
    """

    name: str
    desired_capacity: int
    min_size: int
    max_size: int
    members: typing.FrozenSet[str] = frozenset()

    @property
    def is_fulfilled(self) -> bool:
        """Whether the group has at least as many members as it wants."""
        return len(self.members) >= self.desired_capacity


@dataclasses.dataclass(frozen=True)
class InstanceMetadata:
    """Identity of the instance the poller is running on."""

    instance_id: str
    instance_type: str
    availability_zone: str


@dataclasses.dataclass(frozen=True)
class WeightTable:
    """
    Converts lost spot capacity of mixed instance types into on-demand units.

    The instance types and weights are order aligned, so the weight at index i
    belongs to the type at index i.
    """

    instance_types: typing.Tuple[str, ...]
    weights: typing.Tuple[int, ...]
    on_demand_weight: int

    @classmethod
    def from_config(
        cls,
        instance_types: typing.Any,
        weights: typing.Any,
        on_demand_weight: typing.Any,
    ) -> typing.Optional["WeightTable"]:
        """
        Create a weight table from raw configuration values.

        Weighting is all-or-nothing. If none of the three values are set, no
        table is returned. Setting only some of them, or listing a different
        number of types and weights, is a configuration error.
        """
        given = [v not in (None, "", []) for v in (instance_types, weights, on_demand_weight)]
        if not any(given):
            return None

        if not all(given):
            raise _errors.ConfigError(
                "If any of spot_instance_types, spot_instance_weights or "
                "on_demand_weight are specified, then they all must be specified."
            )

        types = tuple(_conversions.to_list(instance_types))
        values = tuple(_conversions.to_weight(w) for w in _conversions.to_list(weights))
        if len(types) != len(values):
            raise _errors.ConfigError(
                f"Found {len(types)} spot instance types but {len(values)} "
                "spot instance weights. Each type needs exactly one weight."
            )

        return cls(
            instance_types=types,
            weights=values,
            on_demand_weight=_conversions.to_weight(on_demand_weight),
        )

    @property
    def by_type(self) -> typing.Dict[str, int]:
        """Weights keyed by instance type."""
        return dict(zip(self.instance_types, self.weights))

    def lost_capacity(self, instances: typing.Iterable["MarkedInstance"]) -> int:
        """Sum the weights of the given instances."""
        weights = self.by_type
        missing = sorted({i.instance_type for i in instances} - set(weights))
        if missing:
            raise _errors.ConfigError(
                f"No spot instance weight is configured for {', '.join(missing)}."
            )
        return sum(weights[i.instance_type] for i in instances)

    def replacements_needed(self, lost_capacity: int) -> int:
        """Number of on-demand instances that cover the lost capacity."""
        return int(math.ceil(lost_capacity / self.on_demand_weight))

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Convert to a dictionary representation that is JSON serializable for logs."""
        return {"spot": self.by_type, "on_demand": self.on_demand_weight}
