from spotswap._types._instances import InstanceMetadata  # noqa: F401
from spotswap._types._instances import MarkedInstance  # noqa: F401
from spotswap._types._instances import NoopReason  # noqa: F401
from spotswap._types._instances import PoolState  # noqa: F401
from spotswap._types._instances import WeightTable  # noqa: F401
from spotswap._types._polling import EXIT_STATES  # noqa: F401
from spotswap._types._polling import PollCycle  # noqa: F401
from spotswap._types._polling import PollState  # noqa: F401
from spotswap._types._polling import parse_notice  # noqa: F401
from spotswap._types._swap import SwapConfigs  # noqa: F401
