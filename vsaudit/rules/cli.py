"""
vsaudit CLI

Audit a VMware vSphere estate against the CIS VMware ESXi benchmark.
"""

import logging
from enum import Enum
from typing import Generator

import typer
from statsd import StatsClient
from typing_extensions import Annotated

from vsaudit.intel.vsphere import get_vsphere_session
from vsaudit.intel.vsphere.client import AuthError
from vsaudit.intel.vsphere.client import TransportError
from vsaudit.rules.data.controls import CONTROLS
from vsaudit.rules.runners import run_controls
from vsaudit.rules.runners import select_controls
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.settings import get_setting
from vsaudit.settings import populate_settings_from_options
from vsaudit.stats import set_stats_client
from vsaudit.util import STATUS_FATAL
from vsaudit.util import STATUS_INTERRUPTED
from vsaudit.util import STATUS_USAGE
from vsaudit.version import get_version_string

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Audit VMware ESXi hosts and virtual machines against the CIS benchmark",
    no_args_is_help=True,
)


class OutputFormat(str, Enum):
    """Output format options."""

    text = "text"
    json = "json"


# ----------------------------
# Autocompletion functions
# ----------------------------


def complete_controls(incomplete: str) -> Generator[tuple[str, str], None, None]:
    """Autocomplete control IDs with their titles."""
    for control in CONTROLS.values():
        if control.id.startswith(incomplete):
            yield (control.id, control.name)


def complete_sections(incomplete: str) -> Generator[str, None, None]:
    for section in Section:
        for candidate in (str(section.number), section.value):
            if candidate.lower().startswith(incomplete.lower()):
                yield candidate


def parse_section(value: str | None) -> Section | None:
    """Accept a section number ("5") or name ("console", "virtual machine")."""
    if value is None:
        return None
    for section in Section:
        if value == str(section.number) or value.lower() == section.value.lower():
            return section
    raise typer.BadParameter(
        f"Unknown section '{value}'. Use 1-{len(Section)} or one of: "
        + ", ".join(s.value for s in Section)
    )


def _error(message: str) -> None:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)


def _configure_stats() -> None:
    if not get_setting("statsd", "enabled", False):
        return
    host = get_setting("statsd", "host", "127.0.0.1")
    port = int(get_setting("statsd", "port", 8125))
    prefix = get_setting("statsd", "prefix", "vsaudit")
    logger.debug("statsd enabled. Sending metrics to %s:%d with prefix %s", host, port, prefix)
    set_stats_client(StatsClient(host=host, port=port, prefix=prefix))


# ----------------------------
# CLI Commands
# ----------------------------


@app.command(name="list")  # type: ignore[misc]
def list_cmd(
    section: Annotated[
        str | None,
        typer.Option(
            help="Only list one section (number or name)",
            autocompletion=complete_sections,
        ),
    ] = None,
) -> None:
    """
    List the benchmark controls.

    \b
    Examples:
        vsaudit list
        vsaudit list --section 7
        vsaudit list --section console
    """
    selected_section = parse_section(section)
    current_section = None
    for control in CONTROLS.values():
        if selected_section is not None and control.section != selected_section:
            continue
        if control.section != current_section:
            current_section = control.section
            typer.secho(f"\n{current_section.number}. {current_section.value}\n", bold=True)
        typer.secho(f"{control.id}", fg=typer.colors.CYAN, nl=False)
        typer.echo(f"  ({control.level.value}, {control.automation.value.lower()}) {control.name}")


@app.command(name="run")  # type: ignore[misc]
def run_cmd(
    control_ids: Annotated[
        list[str] | None,
        typer.Argument(
            help="Control IDs to run (e.g. 2.1 5.3). Runs every control when omitted.",
            autocompletion=complete_controls,
            show_default=False,
        ),
    ] = None,
    section: Annotated[
        str | None,
        typer.Option(
            help="Only run one section (number or name)",
            autocompletion=complete_sections,
        ),
    ] = None,
    level: Annotated[
        Level | None,
        typer.Option(help="CIS profile: L1 runs Level 1 controls only, L2 runs all"),
    ] = None,
    manual: Annotated[
        bool,
        typer.Option("--manual/--no-manual", help="Report manual controls as Unknown"),
    ] = True,
    output: Annotated[
        OutputFormat,
        typer.Option(help="Output format"),
    ] = OutputFormat.text,
    host: Annotated[
        str | None,
        typer.Option(help="vCenter Server or ESXi host", envvar="VSPHERE_HOST"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option(help="HTTPS port of the vSphere API"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option(help="vSphere username", envvar="VSPHERE_USER"),
    ] = None,
    password_env_var: Annotated[
        str | None,
        typer.Option(help="Environment variable containing the vSphere password"),
    ] = None,
    password_prompt: Annotated[
        bool,
        typer.Option(help="Prompt for the vSphere password interactively"),
    ] = False,
    verify_ssl: Annotated[
        bool | None,
        typer.Option(
            "--verify-ssl/--no-verify-ssl",
            help="Verify the server certificate",
            show_default=False,
        ),
    ] = None,
    patch_manifest: Annotated[
        str | None,
        typer.Option(help="YAML file listing the expected version of each component"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """
    Run benchmark controls against a vSphere endpoint.

    Exit status: 0 all passed, 1 a control failed, 3 no failure but some
    controls are unknown, 2 invalid usage, 4 authentication or connection error.

    \b
    Examples:
        vsaudit run --host vcenter.example.com --user auditor@vsphere.local
        vsaudit run 2.1 5.2 5.3 --output json
        vsaudit run --section network --level L1 --no-manual
    """
    if verbose:
        logging.getLogger("vsaudit").setLevel(logging.DEBUG)

    try:
        controls = select_controls(control_ids, parse_section(section), level, manual)
    except KeyError as e:
        _error(e.args[0])
        typer.echo("Run 'vsaudit list' to see the available controls.", err=True)
        raise typer.Exit(STATUS_USAGE)
    if not controls:
        _error("No controls match the selection")
        raise typer.Exit(STATUS_USAGE)

    populate_settings_from_options(
        "vsphere",
        host=host,
        port=port,
        user=user,
        password_env_var=password_env_var,
        verify_ssl=verify_ssl,
    )
    populate_settings_from_options("audit", patch_manifest=patch_manifest)
    _configure_stats()

    session = None
    try:
        if any(not control.is_manual for control in controls):
            if not get_setting("vsphere", "host"):
                populate_settings_from_options("vsphere", host=typer.prompt("vSphere host"))
            password = None
            if password_prompt or not (
                get_setting("vsphere", "password_env_var") or get_setting("vsphere", "password")
            ):
                password = typer.prompt("vSphere password", hide_input=True)
            try:
                session = get_vsphere_session(password)
            except FileNotFoundError as e:
                _error(f"Patch manifest not found: {e.filename}")
                raise typer.Exit(STATUS_USAGE)
            except ValueError as e:  # includes ManifestError
                _error(str(e))
                raise typer.Exit(STATUS_USAGE)

        result = run_controls(controls, session, output.value)
        raise typer.Exit(result.exit_code)
    except (AuthError, TransportError) as e:
        _error(str(e))
        raise typer.Exit(STATUS_FATAL)
    except KeyboardInterrupt:
        raise typer.Exit(STATUS_INTERRUPTED)
    finally:
        if session is not None:
            session.disconnect()


@app.command(name="version")  # type: ignore[misc]
def version_cmd() -> None:
    """Show the vsaudit version."""
    typer.echo(get_version_string())


def main():
    """Entrypoint for vsaudit CLI."""
    logging.basicConfig(level=logging.INFO)
    logging.getLogger("pyVmomi").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    app()


if __name__ == "__main__":
    main()
