# Execution result classes
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any

from vsaudit.util import STATUS_FAIL
from vsaudit.util import STATUS_PASS
from vsaudit.util import STATUS_UNKNOWN


class Outcome(str, Enum):
    """The classification of one object, or of a whole control."""

    PASS = "Pass"
    FAIL = "Failed"
    UNKNOWN = "Unknown"


class ControlStatus(str, Enum):
    """The single status a control reduces to. FAIL dominates UNKNOWN dominates PASS."""

    PASS = "Pass"
    FAIL = "Fail"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class TargetObject:
    """
    One inventory entity (host, virtual machine, vSwitch, port group) with the
    attributes a control asked for, already resolved to plain values.
    """

    name: str
    kind: str
    attributes: dict[str, Any] = field(default_factory=dict)
    # Set when the object configuration could not be read; attributes are then empty.
    unavailable: str | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)


@dataclass(frozen=True)
class Evaluation:
    """What a classify function returns: an outcome plus optional detail lines."""

    outcome: Outcome
    details: tuple[str, ...] = ()

    @classmethod
    def passed(cls, *details: str) -> "Evaluation":
        return cls(Outcome.PASS, details)

    @classmethod
    def failed(cls, *details: str) -> "Evaluation":
        return cls(Outcome.FAIL, details)

    @classmethod
    def unknown(cls, *details: str) -> "Evaluation":
        return cls(Outcome.UNKNOWN, details)


@dataclass(frozen=True)
class OutcomeRecord:
    """
    One recorded outcome. `target` is None for synthetic outcomes (manual
    controls, or controls whose fetch found nothing).
    """

    target: str | None
    outcome: Outcome
    details: tuple[str, ...] = ()


@dataclass
class ControlReport:
    """
    Results for a single Control. Tallies are derived from `outcomes` and are
    never stored separately.
    """

    control_id: str
    control_name: str
    level: str
    section: str
    outcomes: list[OutcomeRecord] = field(default_factory=list)

    def record(
        self,
        target: str | None,
        evaluation: Evaluation,
    ) -> OutcomeRecord:
        outcome_record = OutcomeRecord(target, evaluation.outcome, evaluation.details)
        self.outcomes.append(outcome_record)
        return outcome_record

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.outcomes if r.outcome == outcome)

    @property
    def passed(self) -> int:
        return self._count(Outcome.PASS)

    @property
    def failed(self) -> int:
        return self._count(Outcome.FAIL)

    @property
    def unknown(self) -> int:
        return self._count(Outcome.UNKNOWN)

    @property
    def status(self) -> ControlStatus:
        if not self.outcomes:
            raise ValueError(
                f"Control {self.control_id} recorded no outcomes; status is undefined"
            )
        if self.failed > 0:
            return ControlStatus.FAIL
        if self.unknown > 0:
            return ControlStatus.UNKNOWN
        return ControlStatus.PASS


@dataclass
class RunResult:
    """
    Results for a whole run, in execution order. This is also the object
    printed by `--output json`.
    """

    reports: list[ControlReport] = field(default_factory=list)

    def count(self, status: ControlStatus) -> int:
        return sum(1 for report in self.reports if report.status == status)

    @property
    def status(self) -> ControlStatus:
        """Same priority rule as a single control, applied across controls."""
        statuses = {report.status for report in self.reports}
        if ControlStatus.FAIL in statuses:
            return ControlStatus.FAIL
        if ControlStatus.UNKNOWN in statuses:
            return ControlStatus.UNKNOWN
        return ControlStatus.PASS

    @property
    def exit_code(self) -> int:
        return {
            ControlStatus.PASS: STATUS_PASS,
            ControlStatus.FAIL: STATUS_FAIL,
            ControlStatus.UNKNOWN: STATUS_UNKNOWN,
        }[self.status]
