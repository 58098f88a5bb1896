"""
Unit tests for vsaudit.rules.spec.result

Tallies are derived from recorded outcomes and the status follows
FAIL > UNKNOWN > PASS.
"""

import pytest

from vsaudit.rules.spec.result import ControlReport
from vsaudit.rules.spec.result import ControlStatus
from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import RunResult
from vsaudit.util import STATUS_FAIL
from vsaudit.util import STATUS_PASS
from vsaudit.util import STATUS_UNKNOWN


def _report(*outcomes: Outcome, control_id: str = "2.1") -> ControlReport:
    report = ControlReport(control_id, "Test control", "L1", "Communication")
    for index, outcome in enumerate(outcomes):
        report.record(f"object-{index}", Evaluation(outcome))
    return report


@pytest.mark.parametrize(
    "outcomes, expected",
    [
        ((Outcome.PASS,), ControlStatus.PASS),
        ((Outcome.PASS, Outcome.PASS, Outcome.PASS), ControlStatus.PASS),
        ((Outcome.PASS, Outcome.UNKNOWN), ControlStatus.UNKNOWN),
        ((Outcome.UNKNOWN, Outcome.FAIL, Outcome.PASS), ControlStatus.FAIL),
        ((Outcome.FAIL,), ControlStatus.FAIL),
    ],
)
def test_status_priority(outcomes, expected):
    assert _report(*outcomes).status == expected


def test_tallies_always_match_recorded_outcomes():
    report = _report(Outcome.PASS, Outcome.FAIL, Outcome.FAIL, Outcome.UNKNOWN)

    assert (report.passed, report.failed, report.unknown) == (1, 2, 1)
    assert report.passed + report.failed + report.unknown == len(report.outcomes)


def test_empty_report_has_no_status():
    with pytest.raises(ValueError):
        _ = _report().status


def test_record_keeps_insertion_order_and_details():
    report = ControlReport("5.3", "SSH", "L1", "Console")

    report.record("esxi-02", Evaluation.failed("TSM-SSH running: True"))
    report.record("esxi-01", Evaluation.passed())
    report.record(None, Evaluation.unknown("Manual verification required"))

    assert [r.target for r in report.outcomes] == ["esxi-02", "esxi-01", None]
    assert report.outcomes[0].details == ("TSM-SSH running: True",)
    assert report.outcomes[0].outcome == Outcome.FAIL


@pytest.mark.parametrize(
    "outcomes, expected_status, expected_exit_code",
    [
        ((Outcome.PASS, Outcome.PASS), ControlStatus.PASS, STATUS_PASS),
        ((Outcome.PASS, Outcome.UNKNOWN), ControlStatus.UNKNOWN, STATUS_UNKNOWN),
        ((Outcome.UNKNOWN, Outcome.FAIL), ControlStatus.FAIL, STATUS_FAIL),
    ],
)
def test_run_result_status(outcomes, expected_status, expected_exit_code):
    result = RunResult([_report(outcome, control_id=str(i)) for i, outcome in enumerate(outcomes)])

    assert result.status == expected_status
    assert result.exit_code == expected_exit_code
    assert result.count(expected_status) >= 1


def test_outcome_tags():
    assert [o.value for o in Outcome] == ["Pass", "Failed", "Unknown"]
