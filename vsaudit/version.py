import logging
import subprocess
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version
from pathlib import Path

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent


def get_version(distribution: str = "vsaudit") -> str:
    """
    Installed version of `distribution`, or 'dev' when it has no metadata
    (a source checkout that was never installed).
    """
    try:
        return version(distribution)
    except PackageNotFoundError:
        logger.debug("No package metadata for %s, reporting 'dev'.", distribution)
        return "dev"


def get_commit_hash() -> str | None:
    """
    Short commit of the checkout vsaudit is imported from. Resolved relative to
    the package directory, not the caller's working directory.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=PACKAGE_DIR,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("git is not usable here: %s", e)
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def get_version_string() -> str:
    """
    Version line printed by `vsaudit version`. The pyVmomi release bounds the
    vSphere API versions the audit can negotiate.

        vsaudit, version 0.1.0 (commit: abc1234), pyvmomi 8.0.3.0.1
    """
    line = f"vsaudit, version {get_version()}"
    commit = get_commit_hash()
    if commit:
        line += f" (commit: {commit})"
    return f"{line}, pyvmomi {get_version('pyvmomi')}"
