"""Tagged results returned by every library action."""

from dataclasses import dataclass, field
from enum import Enum

from shelfwise.domain.state import BookState


class Outcome(str, Enum):
    # single-step actions
    SUCCEEDED = "succeeded"
    ALREADY_PRESENT = "already_present"
    FAILED = "failed"
    # compound actions: ensure membership, then mutate an attribute
    BOTH_SUCCEEDED = "both_succeeded"
    FIRST_ONLY_SUCCEEDED = "first_only_succeeded"
    FIRST_FAILED = "first_failed"
    # nothing was sent to the store
    AUTH_REQUIRED = "auth_required"
    IN_FLIGHT = "in_flight"
    NOT_APPLICABLE = "not_applicable"


class NoticeKind(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    kind: NoticeKind
    message: str


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one user action, the state it left behind, and the notices it raised."""

    outcome: Outcome
    state: BookState
    notices: tuple[Notice, ...] = field(default=())

    @property
    def redirect_to_login(self) -> bool:
        return self.outcome is Outcome.AUTH_REQUIRED

    @property
    def succeeded(self) -> bool:
        return self.outcome in (
            Outcome.SUCCEEDED,
            Outcome.ALREADY_PRESENT,
            Outcome.BOTH_SUCCEEDED,
        )

    def messages(self, kind: NoticeKind) -> list[str]:
        return [n.message for n in self.notices if n.kind is kind]
