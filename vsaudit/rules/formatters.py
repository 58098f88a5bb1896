"""
Output formatting utilities for vsaudit rules.
"""

import json
from dataclasses import asdict
from dataclasses import is_dataclass
from enum import Enum

import typer
from pydantic import BaseModel

from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.result import ControlReport
from vsaudit.rules.spec.result import ControlStatus
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import OutcomeRecord
from vsaudit.rules.spec.result import RunResult

OUTCOME_COLORS = {
    Outcome.PASS: typer.colors.GREEN,
    Outcome.FAIL: typer.colors.RED,
    Outcome.UNKNOWN: typer.colors.YELLOW,
}

STATUS_COLORS = {
    ControlStatus.PASS: typer.colors.GREEN,
    ControlStatus.FAIL: typer.colors.RED,
    ControlStatus.UNKNOWN: typer.colors.YELLOW,
}


def to_serializable(obj):
    # Pydantic model (v2)
    if isinstance(obj, BaseModel):
        return to_serializable(obj.model_dump())

    # Dataclass
    if is_dataclass(obj):
        return to_serializable(asdict(obj))

    # Enum, before str since our enums subclass str
    if isinstance(obj, Enum):
        return obj.value

    # Dict
    if isinstance(obj, dict):
        return {k: to_serializable(v) for k, v in obj.items()}

    # List / Tuple / Set
    if isinstance(obj, (list, tuple, set)):
        return [to_serializable(v) for v in obj]

    # Primitive
    return obj


def report_to_dict(report: ControlReport) -> dict:
    """A ControlReport with its derived tallies and status, ready for JSON."""
    data = to_serializable(report)
    data["passed"] = report.passed
    data["failed"] = report.failed
    data["unknown"] = report.unknown
    data["status"] = report.status.value
    return data


def print_section_banner(section: Section) -> None:
    typer.echo("\n" + "=" * 60)
    typer.secho(f"{section.number}. {section.value}", bold=True)
    typer.echo("=" * 60)


def print_control_banner(control: Control) -> None:
    typer.secho(f"\n{control.title}", bold=True)


def print_outcome(record: OutcomeRecord) -> None:
    """`- <name>: <tag>` followed by indented details. Synthetic outcomes have no name."""
    prefix = f"- {record.target}: " if record.target is not None else "- "
    typer.echo(prefix, nl=False)
    typer.secho(record.outcome.value, fg=OUTCOME_COLORS[record.outcome])
    for detail in record.details:
        typer.echo(f"    {detail}")


def print_tallies(report: ControlReport) -> None:
    typer.echo(f"Passed: {report.passed}")
    typer.echo(f"Failed: {report.failed}")
    typer.echo(f"Unknown: {report.unknown}")


def print_summary(result: RunResult) -> None:
    """Overall summary of a text run."""
    typer.echo("\n" + "=" * 60)
    typer.secho("OVERALL SUMMARY", bold=True)
    typer.echo("=" * 60)
    typer.echo(f"Controls executed: {len(result.reports)}")
    for status in ControlStatus:
        typer.secho(
            f"{status.value + ':':<9}{result.count(status)}", fg=STATUS_COLORS[status],
        )
    typer.secho(
        f"\nOverall status: {result.status.value}",
        fg=STATUS_COLORS[result.status],
        bold=True,
    )


def output_json(result: RunResult) -> None:
    payload = {
        "status": result.status.value,
        "controls": [report_to_dict(report) for report in result.reports],
    }
    typer.echo(json.dumps(payload, indent=2))
