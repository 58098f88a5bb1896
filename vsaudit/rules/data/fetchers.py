"""
Fetch builders. Each returns a callable taking a VSphereSession and returning
the TargetObjects one control classifies. Nothing is cached between calls.
"""

from typing import TYPE_CHECKING
from typing import Callable

from vsaudit.intel.vsphere.client import DISTRIBUTED_SWITCH
from vsaudit.intel.vsphere.client import HOST
from vsaudit.intel.vsphere.client import PORT_GROUP
from vsaudit.intel.vsphere.client import VIRTUAL_MACHINE
from vsaudit.intel.vsphere.client import VIRTUAL_SWITCH
from vsaudit.rules.spec.result import TargetObject

if TYPE_CHECKING:
    from vsaudit.intel.vsphere.client import VSphereSession

Fetch = Callable[["VSphereSession"], list[TargetObject]]


def _objects(kind: str, keys: tuple[str, ...]) -> Fetch:
    def fetch(session: "VSphereSession") -> list[TargetObject]:
        return session.fetch(kind, keys)

    return fetch


def hosts(*keys: str) -> Fetch:
    return _objects(HOST, keys)


def virtual_machines(*keys: str) -> Fetch:
    return _objects(VIRTUAL_MACHINE, keys)


def virtual_switches(*keys: str) -> Fetch:
    return _objects(VIRTUAL_SWITCH, keys)


def port_groups(*keys: str) -> Fetch:
    return _objects(PORT_GROUP, keys)


def distributed_switches(*keys: str) -> Fetch:
    return _objects(DISTRIBUTED_SWITCH, keys)


def expand(kind: str, key: str, item_name: str = "label") -> Fetch:
    """
    One TargetObject per item of a list attribute, e.g. one per floppy drive
    across all VMs, named `<vm>/<label>`. An object whose configuration is
    unavailable stays a single unavailable item.
    """

    def fetch(session: "VSphereSession") -> list[TargetObject]:
        targets = []
        for parent in session.fetch(kind, (key,)):
            if parent.unavailable is not None:
                targets.append(parent)
                continue
            for item in parent.get(key):
                targets.append(
                    TargetObject(
                        f"{parent.name}/{item.get(item_name)}",
                        kind,
                        dict(item),
                    ),
                )
        return targets

    return fetch


def vm_devices(device_kind: str) -> Fetch:
    return expand(VIRTUAL_MACHINE, f"devices:{device_kind}")
