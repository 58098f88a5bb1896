"""
Standard vSwitch, port group and distributed switch attributes.

Standard switches and port groups live inside each host's network
configuration, so their handles carry the owning host as `parent`.
"""

import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import List
from typing import Optional

from vsaudit.intel.vsphere.errors import ConfigUnavailable

if TYPE_CHECKING:
    from vsaudit.intel.vsphere.client import InventoryHandle

logger = logging.getLogger(__name__)


def _ref(handle: "InventoryHandle") -> Any:
    # Switches of a host whose configuration is unavailable are listed without a ref.
    if handle.ref is None:
        raise ConfigUnavailable(f"Configuration of host {handle.name} is not available")
    return handle.ref


def _security_policy(vswitch: Any) -> Any:
    spec = vswitch.spec
    if spec is None or spec.policy is None:
        return None
    return spec.policy.security


def _security_field(field_name: str):
    def resolve(handle: "InventoryHandle", key: str) -> Optional[bool]:
        security = _security_policy(_ref(handle))
        if security is None:
            return None
        value = getattr(security, field_name)
        return None if value is None else bool(value)

    return resolve


def _vlan_id(handle: "InventoryHandle", key: str) -> Optional[int]:
    return _ref(handle).spec.vlanId


def _portgroup_vswitch(handle: "InventoryHandle", key: str) -> Optional[str]:
    return _ref(handle).spec.vswitchName


def transform_health_checks(health_check_config: List[Any]) -> List[str]:
    """Names of the health checks that are switched on."""
    return [
        getattr(check, "_wsdlName", type(check).__name__)
        for check in health_check_config
        if check.enable
    ]


def _health_checks_enabled(handle: "InventoryHandle", key: str) -> List[str]:
    config = handle.ref.config
    if config is None:
        raise ConfigUnavailable(
            f"Configuration of distributed switch {handle.name} is not available",
        )
    return transform_health_checks(list(config.healthCheckConfig or []))


VSWITCH_RESOLVERS = {
    "allow_promiscuous": _security_field("allowPromiscuous"),
    "forged_transmits": _security_field("forgedTransmits"),
    "mac_changes": _security_field("macChanges"),
}

PORTGROUP_RESOLVERS = {
    "vlan_id": _vlan_id,
    "vswitch": _portgroup_vswitch,
}

DVSWITCH_RESOLVERS = {
    "health_checks_enabled": _health_checks_enabled,
}
