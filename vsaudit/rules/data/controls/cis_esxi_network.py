"""
CIS VMware ESXi Benchmark Section 7: Network

Security policy of standard vSwitches and VLAN usage of port groups. A site
without standard switches or port groups has nothing to violate, so those
controls pass when nothing is found.
"""
from vsaudit.rules.data.fetchers import port_groups
from vsaudit.rules.data.fetchers import virtual_switches
from vsaudit.rules.data.predicates import check
from vsaudit.rules.data.predicates import is_false
from vsaudit.rules.data.predicates import not_in_ranges
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control
from vsaudit.rules.spec.result import Outcome

NATIVE_VLAN = ((1, 1),)
# Reserved by physical switch vendors (Cisco, Nexus) for internal use
RESERVED_VLANS = ((1001, 1024), (3968, 4047), (4094, 4094))
VIRTUAL_GUEST_TAGGING = ((4095, 4095),)


# -----------------------------------------------------------------------------
# CIS 7.1: Ensure the vSwitch Forged Transmits policy is set to reject
# -----------------------------------------------------------------------------
cis_7_1_forged_transmits = Control(
    id="7.1",
    name="Ensure the vSwitch Forged Transmits policy is set to reject",
    level=Level.L1,
    section=Section.NETWORK,
    description="The security policy of every standard vSwitch must reject forged transmits.",
    fetch=virtual_switches("forged_transmits"),
    classify=check("forged_transmits", is_false(), label="Forged transmits allowed"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 7.2: Ensure the vSwitch MAC Address Change policy is set to reject
# -----------------------------------------------------------------------------
cis_7_2_mac_changes = Control(
    id="7.2",
    name="Ensure the vSwitch MAC Address Change policy is set to reject",
    level=Level.L1,
    section=Section.NETWORK,
    description="The security policy of every standard vSwitch must reject MAC address changes.",
    fetch=virtual_switches("mac_changes"),
    classify=check("mac_changes", is_false(), label="MAC changes allowed"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 7.3: Ensure the vSwitch Promiscuous Mode policy is set to reject
# -----------------------------------------------------------------------------
cis_7_3_promiscuous_mode = Control(
    id="7.3",
    name="Ensure the vSwitch Promiscuous Mode policy is set to reject",
    level=Level.L1,
    section=Section.NETWORK,
    description="The security policy of every standard vSwitch must reject promiscuous mode.",
    fetch=virtual_switches("allow_promiscuous"),
    classify=check("allow_promiscuous", is_false(), label="Promiscuous mode allowed"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 7.4: Ensure port groups are not configured to the value of the native VLAN
# -----------------------------------------------------------------------------
cis_7_4_native_vlan = Control(
    id="7.4",
    name="Ensure port groups are not configured to the value of the native VLAN",
    level=Level.L1,
    section=Section.NETWORK,
    description="No standard port group may use VLAN 1, the default native VLAN.",
    fetch=port_groups("vlan_id"),
    classify=check("vlan_id", not_in_ranges(NATIVE_VLAN), label="VLAN"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 7.5: Ensure port groups are not configured to VLAN values reserved by upstream physical switches
# -----------------------------------------------------------------------------
cis_7_5_reserved_vlans = Control(
    id="7.5",
    name=(
        "Ensure port groups are not configured to VLAN values reserved by "
        "upstream physical switches"
    ),
    level=Level.L1,
    section=Section.NETWORK,
    description="No standard port group may use VLANs 1001-1024, 3968-4047 or 4094.",
    fetch=port_groups("vlan_id"),
    classify=check("vlan_id", not_in_ranges(RESERVED_VLANS), label="VLAN"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 7.6: Ensure port groups are not configured to VLAN 4095 except for Virtual Guest Tagging
# -----------------------------------------------------------------------------
cis_7_6_virtual_guest_tagging = Control(
    id="7.6",
    name="Ensure port groups are not configured to VLAN 4095 except for Virtual Guest Tagging",
    level=Level.L1,
    section=Section.NETWORK,
    description=(
        "No standard port group may use VLAN 4095 unless the guests tag their "
        "own traffic; any port group on 4095 fails and must be justified."
    ),
    fetch=port_groups("vlan_id"),
    classify=check("vlan_id", not_in_ranges(VIRTUAL_GUEST_TAGGING), label="VLAN"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 7.7: Ensure Virtual Distributed Switch Netflow traffic is sent to an authorized collector
# -----------------------------------------------------------------------------
cis_7_7_netflow_collector = manual_control(
    id="7.7",
    name="Ensure Virtual Distributed Switch Netflow traffic is sent to an authorized collector",
    level=Level.L2,
    section=Section.NETWORK,
    description="Check the IPFIX collector address of each distributed switch against the approved list.",
)


# -----------------------------------------------------------------------------
# CIS 7.8: Ensure port-level configuration overrides are disabled
# -----------------------------------------------------------------------------
cis_7_8_port_overrides = manual_control(
    id="7.8",
    name="Ensure port-level configuration overrides are disabled",
    level=Level.L1,
    section=Section.NETWORK,
    description=(
        "In each distributed port group's advanced policies, confirm that every "
        "'override port policies' option is set to disabled."
    ),
)


NETWORK_CONTROLS = (
    cis_7_1_forged_transmits,
    cis_7_2_mac_changes,
    cis_7_3_promiscuous_mode,
    cis_7_4_native_vlan,
    cis_7_5_reserved_vlans,
    cis_7_6_virtual_guest_tagging,
    cis_7_7_netflow_collector,
    cis_7_8_port_overrides,
)
