"""
CIS VMware ESXi Benchmark Section 1: Install

Patch level, software acceptance level and kernel module integrity of ESXi
hosts.
"""
from vsaudit.rules.data.fetchers import hosts
from vsaudit.rules.data.predicates import check
from vsaudit.rules.data.predicates import equals
from vsaudit.rules.data.predicates import one_of
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control
from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import TargetObject

TRUSTED_ACCEPTANCE_LEVELS = ("vmware_certified", "vmware_accepted", "partner")


def classify_patch_level(target: TargetObject) -> Evaluation:
    """
    Compare the VIBs installed on a host with the patch manifest. Components
    the host does not have installed are not applicable and are skipped.
    """
    manifest = target.get("patch_manifest")
    installed = target.get("installed_vibs")
    if manifest is None:
        return Evaluation.unknown("No patch manifest supplied (--patch-manifest)")
    if installed is None:
        return Evaluation.unknown("Installed software could not be read")

    outdated = []
    checked = 0
    for component, expected_version in manifest:
        if component not in installed:
            continue
        checked += 1
        if installed[component] != expected_version:
            outdated.append(
                f"{component}: installed {installed[component]}, expected {expected_version}"
            )
    if outdated:
        return Evaluation.failed(*outdated)
    if checked == 0:
        return Evaluation.unknown("No manifest component is installed on this host")
    return Evaluation.passed(f"{checked} component(s) at expected version")


# -----------------------------------------------------------------------------
# CIS 1.1: Ensure ESXi is properly patched
# -----------------------------------------------------------------------------
cis_1_1_esxi_patched = Control(
    id="1.1",
    name="Ensure ESXi is properly patched",
    level=Level.L1,
    section=Section.INSTALL,
    description=(
        "Compares the installed VIB versions of every host with the versions "
        "listed in the supplied patch manifest."
    ),
    fetch=hosts("installed_vibs", "patch_manifest"),
    classify=classify_patch_level,
    references=("https://esxi-patches.v-front.de/",),
)


# -----------------------------------------------------------------------------
# CIS 1.2: Ensure the Image Profile VIB acceptance level is configured properly
# -----------------------------------------------------------------------------
cis_1_2_vib_acceptance_level = Control(
    id="1.2",
    name="Ensure the Image Profile VIB acceptance level is configured properly",
    level=Level.L1,
    section=Section.INSTALL,
    description=(
        "The host acceptance level must not allow CommunitySupported VIBs, "
        "which are neither tested nor signed by VMware or a partner."
    ),
    fetch=hosts("acceptance_level"),
    classify=check("acceptance_level", one_of(TRUSTED_ACCEPTANCE_LEVELS)),
)


# -----------------------------------------------------------------------------
# CIS 1.3: Ensure no unauthorized kernel modules are loaded on the host
# -----------------------------------------------------------------------------
cis_1_3_kernel_modules = manual_control(
    id="1.3",
    name="Ensure no unauthorized kernel modules are loaded on the host",
    level=Level.L1,
    section=Section.INSTALL,
    description=(
        "Run `esxcli system module list` and `esxcli system module get -m <module>` "
        "on each host and confirm every loaded module is signed and expected."
    ),
)


# -----------------------------------------------------------------------------
# CIS 1.4: Ensure the default value of individual salt per vm is configured
# -----------------------------------------------------------------------------
cis_1_4_share_force_salting = Control(
    id="1.4",
    name="Ensure the default value of individual salt per vm is configured",
    level=Level.L2,
    section=Section.INSTALL,
    description=(
        "Mem.ShareForceSalting must be 2 so that transparent page sharing only "
        "happens between VMs with the same salt."
    ),
    fetch=hosts("advanced:Mem.ShareForceSalting"),
    classify=check("advanced:Mem.ShareForceSalting", equals(2)),
)


INSTALL_CONTROLS = (
    cis_1_1_esxi_patched,
    cis_1_2_vib_acceptance_level,
    cis_1_3_kernel_modules,
    cis_1_4_share_force_salting,
)
