"""
CIS VMware ESXi Benchmark Section 5: Console

DCUI, ESXi Shell, SSH and lockdown mode of ESXi hosts.
"""
from vsaudit.rules.data.fetchers import hosts
from vsaudit.rules.data.predicates import all_of
from vsaudit.rules.data.predicates import at_most
from vsaudit.rules.data.predicates import check
from vsaudit.rules.data.predicates import equals
from vsaudit.rules.data.predicates import is_false
from vsaudit.rules.data.predicates import is_set
from vsaudit.rules.data.predicates import one_of
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control

ESXI_SHELL_SERVICE = "TSM"
SSH_SERVICE = "TSM-SSH"

LOCKDOWN_NORMAL = "lockdownNormal"
LOCKDOWN_STRICT = "lockdownStrict"


def service_disabled(service_key: str):
    """A service passes when it is stopped and its startup policy is off."""
    return all_of(
        check(f"service_running:{service_key}", is_false(), label=f"{service_key} running"),
        check(f"service_policy:{service_key}", equals("off"), label=f"{service_key} policy"),
    )


# -----------------------------------------------------------------------------
# CIS 5.1: Ensure the DCUI timeout is set to 600 seconds or less
# -----------------------------------------------------------------------------
cis_5_1_dcui_timeout = Control(
    id="5.1",
    name="Ensure the DCUI timeout is set to 600 seconds or less",
    level=Level.L1,
    section=Section.CONSOLE,
    description="UserVars.DcuiTimeOut must be between 1 and 600 seconds.",
    fetch=hosts("advanced:UserVars.DcuiTimeOut"),
    classify=check("advanced:UserVars.DcuiTimeOut", at_most(600, allow_zero=False)),
)


# -----------------------------------------------------------------------------
# CIS 5.2: Ensure the ESXi shell is disabled
# -----------------------------------------------------------------------------
cis_5_2_esxi_shell_disabled = Control(
    id="5.2",
    name="Ensure the ESXi shell is disabled",
    level=Level.L1,
    section=Section.CONSOLE,
    description="The ESXi Shell service must be stopped with startup policy 'off'.",
    fetch=hosts(
        f"service_running:{ESXI_SHELL_SERVICE}", f"service_policy:{ESXI_SHELL_SERVICE}",
    ),
    classify=service_disabled(ESXI_SHELL_SERVICE),
)


# -----------------------------------------------------------------------------
# CIS 5.3: Ensure SSH is disabled
# -----------------------------------------------------------------------------
cis_5_3_ssh_disabled = Control(
    id="5.3",
    name="Ensure SSH is disabled",
    level=Level.L1,
    section=Section.CONSOLE,
    description="The SSH service must be stopped with startup policy 'off'.",
    fetch=hosts(f"service_running:{SSH_SERVICE}", f"service_policy:{SSH_SERVICE}"),
    classify=service_disabled(SSH_SERVICE),
)


# -----------------------------------------------------------------------------
# CIS 5.4: Ensure CIM access is limited
# -----------------------------------------------------------------------------
cis_5_4_cim_access = manual_control(
    id="5.4",
    name="Ensure CIM access is limited",
    level=Level.L1,
    section=Section.CONSOLE,
    description=(
        "Confirm that CIM monitoring uses a dedicated limited-privilege local "
        "account instead of root or an administrator."
    ),
)


# -----------------------------------------------------------------------------
# CIS 5.5: Ensure Normal Lockdown mode is enabled
# -----------------------------------------------------------------------------
cis_5_5_lockdown_normal = Control(
    id="5.5",
    name="Ensure Normal Lockdown mode is enabled",
    level=Level.L1,
    section=Section.CONSOLE,
    description="Lockdown mode must be normal or strict.",
    fetch=hosts("lockdown_mode"),
    classify=check(
        "lockdown_mode", one_of((LOCKDOWN_NORMAL, LOCKDOWN_STRICT)), label="Lockdown mode",
    ),
)


# -----------------------------------------------------------------------------
# CIS 5.6: Ensure Strict Lockdown mode is enabled
# -----------------------------------------------------------------------------
cis_5_6_lockdown_strict = Control(
    id="5.6",
    name="Ensure Strict Lockdown mode is enabled",
    level=Level.L2,
    section=Section.CONSOLE,
    description="Lockdown mode must be strict, which also disables the DCUI service.",
    fetch=hosts("lockdown_mode"),
    classify=check("lockdown_mode", equals(LOCKDOWN_STRICT), label="Lockdown mode"),
)


# -----------------------------------------------------------------------------
# CIS 5.7: Ensure the SSH authorized_keys file is empty
# -----------------------------------------------------------------------------
cis_5_7_ssh_authorized_keys = manual_control(
    id="5.7",
    name="Ensure the SSH authorized_keys file is empty",
    level=Level.L2,
    section=Section.CONSOLE,
    description="Inspect /etc/ssh/keys-root/authorized_keys on each host; it must be empty.",
)


# -----------------------------------------------------------------------------
# CIS 5.8: Ensure idle ESXi shell and SSH sessions time out after 300 seconds or less
# -----------------------------------------------------------------------------
cis_5_8_shell_interactive_timeout = Control(
    id="5.8",
    name="Ensure idle ESXi shell and SSH sessions time out after 300 seconds or less",
    level=Level.L1,
    section=Section.CONSOLE,
    description="UserVars.ESXiShellInteractiveTimeOut must be between 1 and 300 seconds.",
    fetch=hosts("advanced:UserVars.ESXiShellInteractiveTimeOut"),
    classify=check(
        "advanced:UserVars.ESXiShellInteractiveTimeOut", at_most(300, allow_zero=False),
    ),
)


# -----------------------------------------------------------------------------
# CIS 5.9: Ensure the shell services timeout is set to 1 hour or less
# -----------------------------------------------------------------------------
cis_5_9_shell_timeout = Control(
    id="5.9",
    name="Ensure the shell services timeout is set to 1 hour or less",
    level=Level.L1,
    section=Section.CONSOLE,
    description="UserVars.ESXiShellTimeOut must be between 1 and 3600 seconds.",
    fetch=hosts("advanced:UserVars.ESXiShellTimeOut"),
    classify=check("advanced:UserVars.ESXiShellTimeOut", at_most(3600, allow_zero=False)),
)


# -----------------------------------------------------------------------------
# CIS 5.10: Ensure DCUI has a trusted users list for lockdown mode
# -----------------------------------------------------------------------------
cis_5_10_dcui_access = Control(
    id="5.10",
    name="Ensure DCUI has a trusted users list for lockdown mode",
    level=Level.L1,
    section=Section.CONSOLE,
    description="DCUI.Access must list the users allowed to use the DCUI in lockdown mode.",
    fetch=hosts("advanced:DCUI.Access"),
    classify=check("advanced:DCUI.Access", is_set()),
)


# -----------------------------------------------------------------------------
# CIS 5.11: Ensure contents of exposed configuration files have not been modified
# -----------------------------------------------------------------------------
cis_5_11_exposed_configuration_files = manual_control(
    id="5.11",
    name="Ensure contents of exposed configuration files have not been modified",
    level=Level.L1,
    section=Section.CONSOLE,
    description=(
        "Review the files exposed under https://<host>/host and compare them "
        "against a known-good baseline."
    ),
)


CONSOLE_CONTROLS = (
    cis_5_1_dcui_timeout,
    cis_5_2_esxi_shell_disabled,
    cis_5_3_ssh_disabled,
    cis_5_4_cim_access,
    cis_5_5_lockdown_normal,
    cis_5_6_lockdown_strict,
    cis_5_7_ssh_authorized_keys,
    cis_5_8_shell_interactive_timeout,
    cis_5_9_shell_timeout,
    cis_5_10_dcui_access,
    cis_5_11_exposed_configuration_files,
)
