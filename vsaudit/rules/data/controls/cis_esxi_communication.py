"""
CIS VMware ESXi Benchmark Section 2: Communication

Time synchronization, firewall, management interfaces and other network
services exposed by ESXi hosts.
"""
from vsaudit.rules.data.fetchers import distributed_switches
from vsaudit.rules.data.fetchers import hosts
from vsaudit.rules.data.predicates import check
from vsaudit.rules.data.predicates import equals
from vsaudit.rules.data.predicates import is_empty
from vsaudit.rules.data.predicates import is_set
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control
from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import TargetObject


def classify_snmp(target: TargetObject) -> Evaluation:
    """
    SNMP that is switched off passes. SNMP with v1/v2c communities fails since
    community strings travel in clear text. SNMP v3 only is left to review.
    """
    snmp = target.get("snmp")
    if snmp is None:
        return Evaluation.unknown("SNMP configuration not available")
    if not snmp["enabled"]:
        return Evaluation.passed("SNMP: disabled")
    if snmp["read_only_communities"]:
        return Evaluation.failed(
            f"SNMP: enabled with communities {', '.join(snmp['read_only_communities'])}"
        )
    return Evaluation.unknown("SNMP: enabled, verify v3 users and targets manually")


# -----------------------------------------------------------------------------
# CIS 2.1: Ensure NTP time synchronization is configured properly
# -----------------------------------------------------------------------------
cis_2_1_ntp = Control(
    id="2.1",
    name="Ensure NTP time synchronization is configured properly",
    level=Level.L1,
    section=Section.COMMUNICATION,
    description="Every host must have at least one NTP server configured.",
    fetch=hosts("ntp_servers"),
    classify=check("ntp_servers", is_set(), label="NTP servers"),
)


# -----------------------------------------------------------------------------
# CIS 2.2: Ensure the ESXi host firewall is configured to restrict access to
# services running on the host
# -----------------------------------------------------------------------------
cis_2_2_firewall_restricted = Control(
    id="2.2",
    name=(
        "Ensure the ESXi host firewall is configured to restrict access to "
        "services running on the host"
    ),
    level=Level.L1,
    section=Section.COMMUNICATION,
    description=(
        "Detects enabled firewall rulesets that accept connections from all IP "
        "addresses instead of an allowed-IP list."
    ),
    fetch=hosts("firewall_open_rulesets"),
    classify=check(
        "firewall_open_rulesets", is_empty(), label="Rulesets open to all IPs",
    ),
)


# -----------------------------------------------------------------------------
# CIS 2.3: Ensure Managed Object Browser (MOB) is disabled
# -----------------------------------------------------------------------------
cis_2_3_mob_disabled = Control(
    id="2.3",
    name="Ensure Managed Object Browser (MOB) is disabled",
    level=Level.L1,
    section=Section.COMMUNICATION,
    description="Config.HostAgent.plugins.solo.enableMob must be false.",
    fetch=hosts("advanced:Config.HostAgent.plugins.solo.enableMob"),
    classify=check("advanced:Config.HostAgent.plugins.solo.enableMob", equals(False)),
)


# -----------------------------------------------------------------------------
# CIS 2.4: Ensure default self-signed certificate for ESXi communication is not used
# -----------------------------------------------------------------------------
cis_2_4_self_signed_certificate = manual_control(
    id="2.4",
    name="Ensure default self-signed certificate for ESXi communication is not used",
    level=Level.L1,
    section=Section.COMMUNICATION,
    description=(
        "Open https://<host>/ui and inspect the certificate: its issuer must be "
        "VMCA or the organization's CA, not the default self-signed issuer."
    ),
)


# -----------------------------------------------------------------------------
# CIS 2.5: Ensure SNMP is configured properly
# -----------------------------------------------------------------------------
cis_2_5_snmp = Control(
    id="2.5",
    name="Ensure SNMP is configured properly",
    level=Level.L1,
    section=Section.COMMUNICATION,
    description=(
        "SNMP must be disabled when unused. When used, only SNMP v3 with "
        "authentication and privacy may be configured."
    ),
    fetch=hosts("snmp"),
    classify=classify_snmp,
)


# -----------------------------------------------------------------------------
# CIS 2.6: Ensure dvfilter API is not configured if not used
# -----------------------------------------------------------------------------
cis_2_6_dvfilter_bind_address = Control(
    id="2.6",
    name="Ensure dvfilter API is not configured if not used",
    level=Level.L1,
    section=Section.COMMUNICATION,
    description=(
        "Net.DVFilterBindIpAddress must be empty unless a dvfilter-based "
        "network security appliance is in use."
    ),
    fetch=hosts("advanced:Net.DVFilterBindIpAddress"),
    classify=check("advanced:Net.DVFilterBindIpAddress", is_empty()),
)


# -----------------------------------------------------------------------------
# CIS 2.7: Ensure expired and revoked SSL certificates are removed from the ESXi server
# -----------------------------------------------------------------------------
cis_2_7_expired_certificates = manual_control(
    id="2.7",
    name="Ensure expired and revoked SSL certificates are removed from the ESXi server",
    level=Level.L1,
    section=Section.COMMUNICATION,
    description=(
        "Inspect /etc/vmware/ssl/castore.pem on each host and remove expired or "
        "revoked CA certificates."
    ),
)


# -----------------------------------------------------------------------------
# CIS 2.8: Ensure vSphere Authentication Proxy is used when adding hosts to Active Directory
# -----------------------------------------------------------------------------
cis_2_8_authentication_proxy = manual_control(
    id="2.8",
    name="Ensure vSphere Authentication Proxy is used when adding hosts to Active Directory",
    level=Level.L1,
    section=Section.COMMUNICATION,
    description=(
        "Confirm that host profiles joining hosts to Active Directory use the "
        "vSphere Authentication Proxy instead of stored AD credentials."
    ),
)


# -----------------------------------------------------------------------------
# CIS 2.9: Ensure VDS health check is disabled
# -----------------------------------------------------------------------------
cis_2_9_vds_health_check = Control(
    id="2.9",
    name="Ensure VDS health check is disabled",
    level=Level.L2,
    section=Section.COMMUNICATION,
    description=(
        "VLAN/MTU and teaming health checks of distributed switches must be "
        "disabled outside of troubleshooting."
    ),
    fetch=distributed_switches("health_checks_enabled"),
    classify=check("health_checks_enabled", is_empty(), label="Enabled health checks"),
    empty_outcome=Outcome.PASS,
)


COMMUNICATION_CONTROLS = (
    cis_2_1_ntp,
    cis_2_2_firewall_restricted,
    cis_2_3_mob_disabled,
    cis_2_4_self_signed_certificate,
    cis_2_5_snmp,
    cis_2_6_dvfilter_bind_address,
    cis_2_7_expired_certificates,
    cis_2_8_authentication_proxy,
    cis_2_9_vds_health_check,
)
