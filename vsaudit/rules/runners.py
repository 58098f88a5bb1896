"""
Control execution logic for vsaudit rules.
"""

import logging
from functools import partial
from typing import TYPE_CHECKING
from typing import Callable
from typing import Iterable

from vsaudit.rules.data.controls import CONTROLS
from vsaudit.rules.formatters import output_json
from vsaudit.rules.formatters import print_control_banner
from vsaudit.rules.formatters import print_outcome
from vsaudit.rules.formatters import print_section_banner
from vsaudit.rules.formatters import print_summary
from vsaudit.rules.formatters import print_tallies
from vsaudit.rules.spec.model import Classify
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.result import ControlReport
from vsaudit.rules.spec.result import ControlStatus
from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import RunResult
from vsaudit.rules.spec.result import TargetObject
from vsaudit.stats import get_stats_client

if TYPE_CHECKING:
    from vsaudit.intel.vsphere.client import VSphereSession

logger = logging.getLogger(__name__)
stat_handler = get_stats_client(__name__)

MANUAL_VERIFICATION = "Manual verification required"
NOTHING_FOUND = {
    Outcome.PASS: "No offending objects found",
    Outcome.UNKNOWN: "No applicable objects found",
    Outcome.FAIL: "No objects found",
}


def evaluate(
    control: Control,
    fetch: Callable[[], list[TargetObject]] | None,
    classify: Classify | None,
    output_format: str = "text",
) -> tuple[ControlReport, ControlStatus]:
    """
    Evaluate one control and return its report and status.

    :param control: The control being evaluated; supplies the banner, the
        manual tag and the outcome recorded when `fetch` finds nothing.
    :param fetch: Called exactly once; returns the objects to classify. Not
        called for manual controls.
    :param classify: Maps one object to an Evaluation. Objects whose
        configuration is unavailable are recorded as Unknown without it.
    :param output_format: "text" prints each outcome as it is recorded, then
        the tallies. "json" prints nothing.
    :raises TransportError: propagated from `fetch`; no report is produced.
    """
    text = output_format == "text"
    report = ControlReport(
        control_id=control.id,
        control_name=control.name,
        level=control.level.value,
        section=control.section.value,
    )
    if text:
        print_control_banner(control)

    def _record(target: str | None, evaluation: Evaluation) -> None:
        outcome_record = report.record(target, evaluation)
        if text:
            print_outcome(outcome_record)

    if control.is_manual:
        _record(None, Evaluation.unknown(MANUAL_VERIFICATION, control.description))
    else:
        targets = fetch()
        logger.debug("Control %s fetched %d object(s)", control.id, len(targets))
        if not targets:
            _record(
                None,
                Evaluation(control.empty_outcome, (NOTHING_FOUND[control.empty_outcome],)),
            )
        for target in targets:
            if target.unavailable is not None:
                _record(target.name, Evaluation.unknown(target.unavailable))
            else:
                _record(target.name, classify(target))

    status = report.status
    if text:
        print_tallies(report)
    stat_handler.incr(f"control.{status.value.lower()}")
    return report, status


def _run_control(
    control: Control,
    session: "VSphereSession | None",
    output_format: str,
) -> ControlReport:
    fetch = partial(control.fetch, session) if control.fetch is not None else None
    report, _ = evaluate(control, fetch, control.classify, output_format)
    return report


def select_controls(
    control_ids: Iterable[str] | None = None,
    section: Section | None = None,
    level: Level | None = None,
    include_manual: bool = True,
) -> list[Control]:
    """
    Pick controls from the catalogue, always in catalogue order.

    :param control_ids: Explicit control ids; all controls when empty.
    :param section: Keep only controls of this section.
    :param level: CIS profile. L1 keeps Level 1 controls; L2 keeps everything.
    :param include_manual: Whether manual controls are reported.
    :raises KeyError: if a control id is not in the catalogue
    """
    wanted = set(control_ids or ())
    unknown_ids = sorted(wanted - set(CONTROLS))
    if unknown_ids:
        raise KeyError(f"Unknown control(s): {', '.join(unknown_ids)}")

    selected = []
    for control in CONTROLS.values():
        if wanted and control.id not in wanted:
            continue
        if section is not None and control.section != section:
            continue
        if level == Level.L1 and control.level != Level.L1:
            continue
        if not include_manual and control.is_manual:
            continue
        selected.append(control)
    return selected


def run_controls(
    controls: list[Control],
    session: "VSphereSession | None",
    output_format: str = "text",
) -> RunResult:
    """
    Evaluate controls one after the other and present the results.

    :param controls: Controls to run, in the order they are to be reported.
    :param session: Inventory session; may be None when every control is manual.
    :param output_format: Either "text" or "json". Defaults to "text".
    :return: The RunResult; its `exit_code` is the process exit status.
    """
    result = RunResult()
    current_section = None
    for control in controls:
        if output_format == "text" and control.section != current_section:
            print_section_banner(control.section)
        current_section = control.section
        result.reports.append(_run_control(control, session, output_format))

    logger.info(
        "Evaluated %d control(s): %d passed, %d failed, %d unknown",
        len(result.reports),
        result.count(ControlStatus.PASS),
        result.count(ControlStatus.FAIL),
        result.count(ControlStatus.UNKNOWN),
    )
    if output_format == "json":
        output_json(result)
    else:
        print_summary(result)
    return result
