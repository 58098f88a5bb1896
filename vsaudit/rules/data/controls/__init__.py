from vsaudit.rules.data.controls.cis_esxi_access import ACCESS_CONTROLS
from vsaudit.rules.data.controls.cis_esxi_communication import COMMUNICATION_CONTROLS
from vsaudit.rules.data.controls.cis_esxi_console import CONSOLE_CONTROLS
from vsaudit.rules.data.controls.cis_esxi_install import INSTALL_CONTROLS
from vsaudit.rules.data.controls.cis_esxi_logging import LOGGING_CONTROLS
from vsaudit.rules.data.controls.cis_esxi_network import NETWORK_CONTROLS
from vsaudit.rules.data.controls.cis_esxi_storage import STORAGE_CONTROLS
from vsaudit.rules.data.controls.cis_esxi_virtual_machine import VIRTUAL_MACHINE_CONTROLS
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Section

# Controls registry, in benchmark order
CONTROLS: dict[str, Control] = {
    control.id: control
    for control in (
        *INSTALL_CONTROLS,
        *COMMUNICATION_CONTROLS,
        *LOGGING_CONTROLS,
        *ACCESS_CONTROLS,
        *CONSOLE_CONTROLS,
        *STORAGE_CONTROLS,
        *NETWORK_CONTROLS,
        *VIRTUAL_MACHINE_CONTROLS,
    )
}


def controls_in_section(section: Section) -> list[Control]:
    return [control for control in CONTROLS.values() if control.section == section]
