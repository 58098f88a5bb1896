"""
CIS VMware ESXi Benchmark Section 8: Virtual Machine

Advanced settings (`extraConfig`) and virtual hardware of every virtual
machine. Templates are not audited.
"""
from typing import Any

from vsaudit.intel.vsphere.client import VIRTUAL_MACHINE
from vsaudit.rules.data.fetchers import expand
from vsaudit.rules.data.fetchers import virtual_machines
from vsaudit.rules.data.fetchers import vm_devices
from vsaudit.rules.data.predicates import check
from vsaudit.rules.data.predicates import device_disconnected
from vsaudit.rules.data.predicates import equals
from vsaudit.rules.data.predicates import listed_item
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control
from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import TargetObject


def extra_config_control(
    id: str,
    name: str,
    level: Level,
    option: str,
    expected: Any,
    default: Any = None,
) -> Control:
    """A control requiring one `extraConfig` setting of every VM to equal `expected`."""
    key = f"extra_config:{option}"
    shown = str(expected).upper() if isinstance(expected, bool) else str(expected)
    description = f"{option} must be {shown}"
    if default is not None:
        description += " or absent"
    return Control(
        id=id,
        name=name,
        level=level,
        section=Section.VIRTUAL_MACHINE,
        description=description + ".",
        fetch=virtual_machines(key),
        classify=check(key, equals(expected), default=default),
    )


def classify_dvfilters(target: TargetObject) -> Evaluation:
    """
    A VM without dvfilter attachments passes. Attached filters are legitimate
    only for a known security appliance, so they are listed for review.
    """
    filters = target.get("dvfilters")
    if filters is None:
        return Evaluation.unknown("VM configuration could not be read")
    if not filters:
        return Evaluation.passed("No dvfilter attached")
    return Evaluation.unknown(
        *(
            f"{key} = {value}, verify it belongs to an authorized appliance"
            for key, value in filters.items()
        )
    )


# -----------------------------------------------------------------------------
# CIS 8.1.1: Ensure informational messages from the VM to the VMX file are limited
# -----------------------------------------------------------------------------
cis_8_1_1_setinfo_size_limit = extra_config_control(
    id="8.1.1",
    name="Ensure informational messages from the VM to the VMX file are limited",
    level=Level.L1,
    option="tools.setInfo.sizeLimit",
    expected=1048576,
)


# -----------------------------------------------------------------------------
# CIS 8.1.2: Ensure only one remote console connection is permitted to a VM at any time
# -----------------------------------------------------------------------------
cis_8_1_2_remote_display_connections = extra_config_control(
    id="8.1.2",
    name="Ensure only one remote console connection is permitted to a VM at any time",
    level=Level.L1,
    option="RemoteDisplay.maxConnections",
    expected=1,
)


# -----------------------------------------------------------------------------
# CIS 8.2.1 - 8.2.5: Ensure unnecessary removable devices are disconnected
# -----------------------------------------------------------------------------
cis_8_2_1_floppy = Control(
    id="8.2.1",
    name="Ensure unnecessary floppy devices are disconnected",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="Every floppy drive must be disconnected and not connect at power on.",
    fetch=vm_devices("floppy"),
    classify=device_disconnected,
    empty_outcome=Outcome.PASS,
)

cis_8_2_2_cdrom = Control(
    id="8.2.2",
    name="Ensure unnecessary CD/DVD devices are disconnected",
    level=Level.L2,
    section=Section.VIRTUAL_MACHINE,
    description="Every CD/DVD drive must be disconnected and not connect at power on.",
    fetch=vm_devices("cdrom"),
    classify=device_disconnected,
    empty_outcome=Outcome.PASS,
)

cis_8_2_3_parallel = Control(
    id="8.2.3",
    name="Ensure unnecessary parallel ports are disconnected",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="Every parallel port must be disconnected and not connect at power on.",
    fetch=vm_devices("parallel"),
    classify=device_disconnected,
    empty_outcome=Outcome.PASS,
)

cis_8_2_4_serial = Control(
    id="8.2.4",
    name="Ensure unnecessary serial ports are disconnected",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="Every serial port must be disconnected and not connect at power on.",
    fetch=vm_devices("serial"),
    classify=device_disconnected,
    empty_outcome=Outcome.PASS,
)

cis_8_2_5_usb = Control(
    id="8.2.5",
    name="Ensure unnecessary USB devices are disconnected",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="Every USB controller must be disconnected and not connect at power on.",
    fetch=vm_devices("usb"),
    classify=device_disconnected,
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 8.2.6: Ensure unauthorized modification and disconnection of devices is disabled
# -----------------------------------------------------------------------------
cis_8_2_6_device_edit = extra_config_control(
    id="8.2.6",
    name="Ensure unauthorized modification and disconnection of devices is disabled",
    level=Level.L1,
    option="isolation.device.edit.disable",
    expected=True,
)


# -----------------------------------------------------------------------------
# CIS 8.2.7: Ensure unauthorized connection of devices is disabled
# -----------------------------------------------------------------------------
cis_8_2_7_device_connectable = extra_config_control(
    id="8.2.7",
    name="Ensure unauthorized connection of devices is disabled",
    level=Level.L1,
    option="isolation.device.connectable.disable",
    expected=True,
)


# -----------------------------------------------------------------------------
# CIS 8.2.8: Ensure PCI and PCIe device passthrough is disabled
# -----------------------------------------------------------------------------
cis_8_2_8_pci_passthrough = Control(
    id="8.2.8",
    name="Ensure PCI and PCIe device passthrough is disabled",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="No virtual machine may have a PCI or PCIe passthrough device.",
    fetch=vm_devices("pci_passthrough"),
    classify=listed_item("PCI passthrough device attached"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 8.3.1 - 8.3.4: Guest operating system (manual)
# -----------------------------------------------------------------------------
cis_8_3_1_unnecessary_functions = manual_control(
    id="8.3.1",
    name="Ensure unnecessary or superfluous functions inside VMs are disabled",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="Review each guest for unused services, drivers and applications.",
)

cis_8_3_2_console_use = manual_control(
    id="8.3.2",
    name="Ensure use of the VM console is limited",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description=(
        "Confirm that the Virtual Machine.Interaction.Console interaction "
        "privilege is only granted to roles that need it."
    ),
)

cis_8_3_3_serial_port_protocols = manual_control(
    id="8.3.3",
    name="Ensure secure protocols are used for virtual serial port access",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="Confirm network-backed serial ports use telnets or ssl rather than telnet or tcp.",
)

cis_8_3_4_deployment_process = manual_control(
    id="8.3.4",
    name="Ensure standard processes are used for VM deployment",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="Confirm VMs are deployed from hardened templates through a documented process.",
)


# -----------------------------------------------------------------------------
# CIS 8.4.1: Ensure access to VMs through the dvfilter network APIs is configured correctly
# -----------------------------------------------------------------------------
cis_8_4_1_dvfilters = Control(
    id="8.4.1",
    name="Ensure access to VMs through the dvfilter network APIs is configured correctly",
    level=Level.L1,
    section=Section.VIRTUAL_MACHINE,
    description="ethernetN.filterM.name entries must only reference authorized security appliances.",
    fetch=virtual_machines("dvfilters"),
    classify=classify_dvfilters,
)


# -----------------------------------------------------------------------------
# CIS 8.4.2: Ensure 3D features are disabled when not required
# -----------------------------------------------------------------------------
# mks.enable3d defaults to FALSE when absent
cis_8_4_2_3d_features = extra_config_control(
    id="8.4.2",
    name="Ensure 3D features are disabled when not required",
    level=Level.L2,
    option="mks.enable3d",
    expected=False,
    default=False,
)


# -----------------------------------------------------------------------------
# CIS 8.5.1: Ensure VM limits are configured correctly
# -----------------------------------------------------------------------------
cis_8_5_1_vm_limits = manual_control(
    id="8.5.1",
    name="Ensure VM limits are configured correctly",
    level=Level.L2,
    section=Section.VIRTUAL_MACHINE,
    description=(
        "Review CPU, memory and disk shares, reservations and limits so that no "
        "single VM can starve others on the same host or resource pool."
    ),
)


# -----------------------------------------------------------------------------
# CIS 8.6.1: Ensure nonpersistent disks are limited
# -----------------------------------------------------------------------------
cis_8_6_1_nonpersistent_disks = Control(
    id="8.6.1",
    name="Ensure nonpersistent disks are limited",
    level=Level.L2,
    section=Section.VIRTUAL_MACHINE,
    description="Virtual disks in non-persistent mode discard changes and defeat forensics.",
    fetch=expand(VIRTUAL_MACHINE, "nonpersistent_disks"),
    classify=listed_item("non-persistent disk", "mode"),
    empty_outcome=Outcome.PASS,
)


# -----------------------------------------------------------------------------
# CIS 8.6.2: Ensure virtual disk shrinking is disabled
# -----------------------------------------------------------------------------
cis_8_6_2_disk_shrink = extra_config_control(
    id="8.6.2",
    name="Ensure virtual disk shrinking is disabled",
    level=Level.L1,
    option="isolation.tools.diskShrink.disable",
    expected=True,
)


# -----------------------------------------------------------------------------
# CIS 8.6.3: Ensure virtual disk wiping is disabled
# -----------------------------------------------------------------------------
cis_8_6_3_disk_wiper = extra_config_control(
    id="8.6.3",
    name="Ensure virtual disk wiping is disabled",
    level=Level.L1,
    option="isolation.tools.diskWiper.disable",
    expected=True,
)


# -----------------------------------------------------------------------------
# CIS 8.7.1: Ensure the number of VM log files is configured properly
# -----------------------------------------------------------------------------
cis_8_7_1_log_keep_old = extra_config_control(
    id="8.7.1",
    name="Ensure the number of VM log files is configured properly",
    level=Level.L1,
    option="log.keepOld",
    expected=10,
)


# -----------------------------------------------------------------------------
# CIS 8.7.2: Ensure host information is not sent to guests
# -----------------------------------------------------------------------------
# tools.guestlib.enableHostInfo defaults to FALSE when absent
cis_8_7_2_host_info = extra_config_control(
    id="8.7.2",
    name="Ensure host information is not sent to guests",
    level=Level.L2,
    option="tools.guestlib.enableHostInfo",
    expected=False,
    default=False,
)


# -----------------------------------------------------------------------------
# CIS 8.7.3: Ensure VM log file size is limited
# -----------------------------------------------------------------------------
cis_8_7_3_log_rotate_size = extra_config_control(
    id="8.7.3",
    name="Ensure VM log file size is limited",
    level=Level.L1,
    option="log.rotateSize",
    expected=1024000,
)


VIRTUAL_MACHINE_CONTROLS = (
    cis_8_1_1_setinfo_size_limit,
    cis_8_1_2_remote_display_connections,
    cis_8_2_1_floppy,
    cis_8_2_2_cdrom,
    cis_8_2_3_parallel,
    cis_8_2_4_serial,
    cis_8_2_5_usb,
    cis_8_2_6_device_edit,
    cis_8_2_7_device_connectable,
    cis_8_2_8_pci_passthrough,
    cis_8_3_1_unnecessary_functions,
    cis_8_3_2_console_use,
    cis_8_3_3_serial_port_protocols,
    cis_8_3_4_deployment_process,
    cis_8_4_1_dvfilters,
    cis_8_4_2_3d_features,
    cis_8_5_1_vm_limits,
    cis_8_6_1_nonpersistent_disks,
    cis_8_6_2_disk_shrink,
    cis_8_6_3_disk_wiper,
    cis_8_7_1_log_keep_old,
    cis_8_7_2_host_info,
    cis_8_7_3_log_rotate_size,
)
