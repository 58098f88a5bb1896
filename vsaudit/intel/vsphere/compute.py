"""
Virtual machine attributes: advanced configuration (`extraConfig`) and
virtual hardware.
"""

import logging
import re
from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import List

from pyVmomi import vim

from vsaudit.intel.vsphere.errors import ConfigUnavailable

if TYPE_CHECKING:
    from vsaudit.intel.vsphere.client import InventoryHandle

logger = logging.getLogger(__name__)

DEVICE_TYPES = {
    "floppy": vim.vm.device.VirtualFloppy,
    "cdrom": vim.vm.device.VirtualCdrom,
    "serial": vim.vm.device.VirtualSerialPort,
    "parallel": vim.vm.device.VirtualParallelPort,
    "usb": vim.vm.device.VirtualUSB,
    "pci_passthrough": vim.vm.device.VirtualPCIPassthrough,
}

NONPERSISTENT_DISK_MODES = ("nonpersistent", "independent_nonpersistent")

_DVFILTER_KEY = re.compile(r"^ethernet\d+\.filter\d+\.name$", re.IGNORECASE)


# ============================================================================
# GET functions
# ============================================================================


def get_config(vm: Any) -> Any:
    """
    The VM configuration. Orphaned or inaccessible VMs have none; their
    settings are unknown, which is not the same as unset.
    """
    if vm.config is None:
        raise ConfigUnavailable(f"Configuration of VM {vm.name} is not accessible")
    return vm.config


def get_extra_config(vm: Any) -> List[Any]:
    return list(get_config(vm).extraConfig)


def get_devices(vm: Any) -> List[Any]:
    return list(get_config(vm).hardware.device)


# ============================================================================
# TRANSFORM functions
# ============================================================================


def transform_extra_config(entries: List[Any]) -> Dict[str, Any]:
    """Advanced settings keyed case-insensitively (lowercased keys)."""
    return {entry.key.lower(): entry.value for entry in entries}


def transform_devices(devices: List[Any], device_type: type) -> List[Dict[str, Any]]:
    results = []
    for device in devices:
        if not isinstance(device, device_type):
            continue
        connectable = device.connectable
        results.append(
            {
                "label": device.deviceInfo.label if device.deviceInfo else str(device.key),
                "connected": bool(connectable.connected) if connectable else False,
                "start_connected": bool(connectable.startConnected) if connectable else False,
            }
        )
    return results


def transform_nonpersistent_disks(devices: List[Any]) -> List[Dict[str, Any]]:
    """Virtual disks whose changes are discarded on power off or snapshot revert."""
    results = []
    for device in devices:
        if not isinstance(device, vim.vm.device.VirtualDisk):
            continue
        disk_mode = getattr(device.backing, "diskMode", None)
        if disk_mode in NONPERSISTENT_DISK_MODES:
            results.append(
                {
                    "label": device.deviceInfo.label if device.deviceInfo else str(device.key),
                    "mode": disk_mode,
                }
            )
    return results


def transform_dvfilters(extra_config: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value for key, value in extra_config.items() if _DVFILTER_KEY.match(key)
    }


# ============================================================================
# Resolvers, keyed by attribute name
# ============================================================================


def _extra_config(handle: "InventoryHandle", key: str) -> Any:
    option = key.split(":", 1)[1].lower()
    return transform_extra_config(get_extra_config(handle.ref)).get(option)


def _devices(handle: "InventoryHandle", key: str) -> List[Dict[str, Any]]:
    device_kind = key.split(":", 1)[1]
    if device_kind not in DEVICE_TYPES:
        raise KeyError(f"Unknown device kind '{device_kind}'")
    return transform_devices(get_devices(handle.ref), DEVICE_TYPES[device_kind])


def _nonpersistent_disks(handle: "InventoryHandle", key: str) -> List[Dict[str, Any]]:
    return transform_nonpersistent_disks(get_devices(handle.ref))


def _dvfilters(handle: "InventoryHandle", key: str) -> Dict[str, Any]:
    return transform_dvfilters(transform_extra_config(get_extra_config(handle.ref)))


RESOLVERS = {
    "extra_config:": _extra_config,
    "devices:": _devices,
    "nonpersistent_disks": _nonpersistent_disks,
    "dvfilters": _dvfilters,
}
