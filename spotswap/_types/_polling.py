import dataclasses
import enum
import re
import typing

from spotswap import _types

#: The termination endpoint has been known to respond successfully with bodies
#: that are not termination times. Only a timestamp counts as a notice.
NOTICE_REGEX = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z")


class PollState(enum.Enum):
    """States a single self-termination poll moves through."""

    IDLE = "idle"
    NOTICE_RECEIVED = "notice_received"
    TAGGED = "tagged"
    LAMBDA_HANDOFF = "lambda_handoff"
    DELAYED_GROUP_TERMINATE = "delayed_group_terminate"
    IMMEDIATE_FLEET_TERMINATE = "immediate_fleet_terminate"
    UNCONFIGURED = "unconfigured"
    DONE = "done"


#: The states that carry out the exit once the instance is tagged.
EXIT_STATES = (
    PollState.LAMBDA_HANDOFF,
    PollState.DELAYED_GROUP_TERMINATE,
    PollState.IMMEDIATE_FLEET_TERMINATE,
    PollState.UNCONFIGURED,
)


def parse_notice(status_code: int, body: typing.Optional[str]) -> typing.Optional[str]:
    """
    Find the termination time within a notice endpoint response.

    A 404 response means no notice has been issued. Any other response must
    contain an ISO-8601 timestamp to count as a notice.
    """
    if status_code == 404:
        return None

    match = NOTICE_REGEX.search(body or "")
    return match.group(0) if match else None


@dataclasses.dataclass()
class PollCycle:
    """Data structure that tracks one pass through the poll state machine."""

    state: PollState = PollState.IDLE
    termination_time: typing.Optional[str] = None
    metadata: typing.Optional["_types.InstanceMetadata"] = None
    exit_state: typing.Optional[PollState] = None
    semaphore_written: bool = False
    token: typing.Optional[str] = dataclasses.field(default=None, repr=False)
    history: typing.List[PollState] = dataclasses.field(
        default_factory=lambda: [PollState.IDLE]
    )

    @property
    def noticed(self) -> bool:
        """Whether a termination notice was received during this cycle."""
        return self.termination_time is not None

    def advance(self, state: PollState) -> "PollCycle":
        """Move the cycle into the given state."""
        self.state = state
        self.history.append(state)
        if state in EXIT_STATES:
            self.exit_state = state
        return self

    def to_dict(self) -> typing.Dict[str, typing.Any]:
        """Convert to a dictionary representation that is JSON serializable for logs."""
        return {
            "state": self.state.value,
            "termination_time": self.termination_time,
            "exit": self.exit_state.value if self.exit_state else None,
            "semaphore_written": self.semaphore_written,
            "history": [s.value for s in self.history],
        }
