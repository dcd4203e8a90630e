import pathlib
import tempfile

#: Spot instances that receive a termination notice tag themselves with this
#: key/value pair. The reconciliation pass scans the spot pool for it, replaces
#: the lost capacity in the on-demand group and then removes it again, so the
#: poller, scanner and expander must all agree on it exactly.
TAG_KEY = "SpotTermination"
TAG_VALUE = "true"

#: Stack statuses during which out-of-band desired capacity changes would
#: break an in-progress CloudFormation operation.
IN_FLUX_STACK_STATUSES = frozenset(
    [
        "CREATE_IN_PROGRESS",
        "ROLLBACK_IN_PROGRESS",
        "DELETE_IN_PROGRESS",
        "UPDATE_IN_PROGRESS",
        "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS",
        "UPDATE_ROLLBACK_IN_PROGRESS",
        "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS",
    ]
)

#: Spot fleets report how many instance pools they are currently able to
#: place requests in. While the trailing minimum stays above this threshold
#: the fleet is expected to heal itself without on-demand help.
POOL_METRIC_NAMESPACE = "AWS/EC2Spot"
POOL_METRIC_NAME = "EligibleInstancePoolCount"
POOL_THRESHOLD = 2
POOL_WINDOW_SECONDS = 600
POOL_PERIOD_SECONDS = 60

FULFILLED_STATUS = "fulfilled"

RATE_LIMIT_CODES = frozenset(
    ["RequestLimitExceeded", "Throttling", "ThrottlingException"]
)
COOLDOWN_CODE = "ScalingActivityInProgress"

METADATA_ROOT = "http://169.254.169.254/latest"
METADATA_ENDPOINT = f"{METADATA_ROOT}/meta-data"
TOKEN_ENDPOINT = f"{METADATA_ROOT}/api/token"
NOTICE_ENDPOINT = f"{METADATA_ENDPOINT}/spot/termination-time"
METADATA_TIMEOUT = 2
TOKEN_TTL_SECONDS = 21600

#: Written once the termination tag is confirmed and the exit action has been
#: carried out. Process supervisors wait for this file before they take any
#: further lifecycle action on the host.
SEMAPHORE_PATH = pathlib.Path(tempfile.gettempdir()).joinpath("give-up")
SEMAPHORE_CONTENTS = "bye"

#: Identifies this process as the invoker when handing off to an override
#: function.
POLL_CALLER = "self-poll"

DEFAULT_CONFIG_PATH = "/etc/spotswap/config.yaml"
