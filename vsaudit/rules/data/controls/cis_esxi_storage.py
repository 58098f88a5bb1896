"""
CIS VMware ESXi Benchmark Section 6: Storage

iSCSI authentication and SAN segregation.
"""
from vsaudit.rules.data.fetchers import hosts
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control
from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import TargetObject

CHAP_REQUIRED = "chapRequired"


def classify_bidirectional_chap(target: TargetObject) -> Evaluation:
    """Every iSCSI adapter must require CHAP in both directions. Hosts without iSCSI pass."""
    adapters = target.get("iscsi_hbas")
    if adapters is None:
        return Evaluation.unknown("Storage adapters could not be read")
    if not adapters:
        return Evaluation.passed("No iSCSI adapters")

    details = []
    failed = False
    for adapter in adapters:
        chap = adapter.get("chap_type")
        mutual = adapter.get("mutual_chap_type")
        if chap == CHAP_REQUIRED and mutual == CHAP_REQUIRED:
            details.append(f"{adapter['device']}: bidirectional CHAP required")
        else:
            failed = True
            details.append(f"{adapter['device']}: CHAP {chap}, mutual CHAP {mutual}")
    if failed:
        return Evaluation.failed(*details)
    return Evaluation.passed(*details)


# -----------------------------------------------------------------------------
# CIS 6.1: Ensure bidirectional CHAP authentication for iSCSI traffic is enabled
# -----------------------------------------------------------------------------
cis_6_1_bidirectional_chap = Control(
    id="6.1",
    name="Ensure bidirectional CHAP authentication for iSCSI traffic is enabled",
    level=Level.L1,
    section=Section.STORAGE,
    description="Every iSCSI adapter must require both CHAP and mutual CHAP.",
    fetch=hosts("iscsi_hbas"),
    classify=classify_bidirectional_chap,
)


# -----------------------------------------------------------------------------
# CIS 6.2: Ensure the uniqueness of CHAP authentication secrets for iSCSI traffic
# -----------------------------------------------------------------------------
cis_6_2_unique_chap_secrets = manual_control(
    id="6.2",
    name="Ensure the uniqueness of CHAP authentication secrets for iSCSI traffic",
    level=Level.L1,
    section=Section.STORAGE,
    description=(
        "CHAP secrets are not readable through the API. Confirm with the storage "
        "team that each host uses a distinct CHAP and mutual CHAP secret."
    ),
)


# -----------------------------------------------------------------------------
# CIS 6.3: Ensure storage area network (SAN) resources are segregated properly
# -----------------------------------------------------------------------------
cis_6_3_san_segregation = manual_control(
    id="6.3",
    name="Ensure storage area network (SAN) resources are segregated properly",
    level=Level.L1,
    section=Section.STORAGE,
    description="Review zoning and LUN masking on the SAN fabric for each host.",
)


STORAGE_CONTROLS = (
    cis_6_1_bidirectional_chap,
    cis_6_2_unique_chap_secrets,
    cis_6_3_san_segregation,
)
