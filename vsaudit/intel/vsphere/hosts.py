"""
ESXi host attributes.

GET functions read from the pyVmomi HostSystem and raise on API failure;
TRANSFORM functions turn the returned data objects into plain values the
rules can compare.
"""

import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from pyVmomi import vim, vmodl

from vsaudit.intel.vsphere.errors import ConfigUnavailable

if TYPE_CHECKING:
    from vsaudit.intel.vsphere.client import InventoryHandle
    from vsaudit.intel.vsphere.client import VSphereSession

logger = logging.getLogger(__name__)


# ============================================================================
# GET functions
# ============================================================================


def get_advanced_option(host: Any, option_key: str) -> Any:
    """
    Read one advanced setting of a host.

    :param host: pyVmomi HostSystem
    :param option_key: Setting name, e.g. `Security.AccountLockFailures`
    :return: The setting value, or None if the host does not know the setting
    """
    try:
        options = host.configManager.advancedOption.QueryOptions(option_key)
    except vim.fault.InvalidName:
        logger.debug("Advanced option %s not present on %s", option_key, host.name)
        return None
    if not options:
        return None
    return options[0].value


def get_services(host: Any) -> List[Any]:
    return list(host.configManager.serviceSystem.serviceInfo.service)


def get_firewall_rulesets(host: Any) -> List[Any]:
    return list(host.configManager.firewallSystem.firewallInfo.ruleset)


def get_software_packages(host: Any) -> List[Any]:
    return list(host.configManager.imageConfigManager.FetchSoftwarePackages())


def get_acceptance_level(host: Any) -> Optional[str]:
    return host.configManager.imageConfigManager.HostImageConfigGetAcceptance()


def get_config(host: Any) -> Any:
    """
    The host configuration. vCenter reports none for a host that is
    disconnected or not responding.
    """
    if host.config is None:
        raise ConfigUnavailable(f"Configuration of host {host.name} is not available")
    return host.config


def get_authentication_stores(host: Any) -> List[Any]:
    return list(get_config(host).authenticationManagerInfo.authConfig)


def get_host_bus_adapters(host: Any) -> List[Any]:
    return list(get_config(host).storageDevice.hostBusAdapter)


def get_snmp_configuration(host: Any) -> Any:
    snmp_system = host.configManager.snmpSystem
    if snmp_system is None:
        return None
    return snmp_system.configuration


# ============================================================================
# TRANSFORM functions
# ============================================================================


def transform_services(services: List[Any]) -> Dict[str, Dict[str, Any]]:
    """Index services by key, e.g. `TSM-SSH` -> {"running": False, "policy": "off"}."""
    return {
        service.key: {
            "label": service.label,
            "running": bool(service.running),
            "policy": service.policy,
        }
        for service in services
    }


def transform_open_rulesets(rulesets: List[Any]) -> List[str]:
    """Keys of enabled firewall rulesets that accept connections from any IP."""
    open_rulesets = []
    for ruleset in rulesets:
        if not ruleset.enabled:
            continue
        allowed_hosts = ruleset.allowedHosts
        if allowed_hosts is None or allowed_hosts.allIp:
            open_rulesets.append(ruleset.key)
    return open_rulesets


def transform_software_packages(packages: List[Any]) -> Dict[str, str]:
    return {package.name: package.version for package in packages}


def transform_ad_domain(auth_stores: List[Any]) -> Optional[str]:
    """The Active Directory domain the host has joined, if any."""
    for store in auth_stores:
        if not isinstance(store, vim.host.ActiveDirectoryInfo):
            continue
        if store.enabled and store.joinedDomain:
            return store.joinedDomain
    return None


def transform_iscsi_adapters(adapters: List[Any]) -> List[Dict[str, Any]]:
    """CHAP settings of every software or hardware iSCSI adapter."""
    results = []
    for adapter in adapters:
        if not isinstance(adapter, vim.host.InternetScsiHba):
            continue
        auth = adapter.authenticationProperties
        results.append(
            {
                "device": adapter.device,
                "chap_type": auth.chapAuthenticationType if auth else None,
                "mutual_chap_type": auth.mutualChapAuthenticationType if auth else None,
            }
        )
    return results


def transform_snmp(configuration: Any) -> Optional[Dict[str, Any]]:
    if configuration is None:
        return None
    return {
        "enabled": bool(configuration.enabled),
        "read_only_communities": list(configuration.readOnlyCommunities or []),
    }


# ============================================================================
# Resolvers, keyed by attribute name
# ============================================================================


def _requires_config(resolve):
    """Resolve only on hosts whose configuration is available."""

    def wrapper(handle: "InventoryHandle", key: str) -> Any:
        get_config(handle.ref)
        try:
            return resolve(handle, key)
        except vmodl.fault.HostNotConnected as e:
            raise ConfigUnavailable(f"Host {handle.name} is not connected") from e

    return wrapper


def _advanced(handle: "InventoryHandle", key: str) -> Any:
    return get_advanced_option(handle.ref, key.split(":", 1)[1])


def _ntp_servers(handle: "InventoryHandle", key: str) -> List[str]:
    ntp_config = get_config(handle.ref).dateTimeInfo.ntpConfig
    if ntp_config is None:
        return []
    return list(ntp_config.server or [])


def _service_field(field_name: str):
    def resolve(handle: "InventoryHandle", key: str) -> Any:
        service_key = key.split(":", 1)[1]
        service = transform_services(get_services(handle.ref)).get(service_key)
        if service is None:
            return None
        return service[field_name]

    return resolve


def _lockdown_mode(handle: "InventoryHandle", key: str) -> Optional[str]:
    return get_config(handle.ref).lockdownMode


def _acceptance_level(handle: "InventoryHandle", key: str) -> Optional[str]:
    return get_acceptance_level(handle.ref)


def _open_rulesets(handle: "InventoryHandle", key: str) -> List[str]:
    return transform_open_rulesets(get_firewall_rulesets(handle.ref))


def _ad_domain(handle: "InventoryHandle", key: str) -> Optional[str]:
    return transform_ad_domain(get_authentication_stores(handle.ref))


def _installed_vibs(handle: "InventoryHandle", key: str) -> Dict[str, str]:
    return transform_software_packages(get_software_packages(handle.ref))


def _iscsi_hbas(handle: "InventoryHandle", key: str) -> List[Dict[str, Any]]:
    return transform_iscsi_adapters(get_host_bus_adapters(handle.ref))


def _snmp(handle: "InventoryHandle", key: str) -> Optional[Dict[str, Any]]:
    return transform_snmp(get_snmp_configuration(handle.ref))


def resolvers(session: "VSphereSession") -> Dict[str, Any]:
    """Host resolvers. `patch_manifest` reads the reference dataset held by the session."""

    def _patch_manifest(handle: "InventoryHandle", key: str) -> Optional[List[Any]]:
        if session.patch_manifest is None:
            return None
        return [list(entry) for entry in session.patch_manifest]

    host_resolvers = {
        "advanced:": _advanced,
        "ntp_servers": _ntp_servers,
        "service_running:": _service_field("running"),
        "service_policy:": _service_field("policy"),
        "lockdown_mode": _lockdown_mode,
        "acceptance_level": _acceptance_level,
        "firewall_open_rulesets": _open_rulesets,
        "ad_domain": _ad_domain,
        "installed_vibs": _installed_vibs,
        "iscsi_hbas": _iscsi_hbas,
        "snmp": _snmp,
    }
    resolved = {key: _requires_config(resolve) for key, resolve in host_resolvers.items()}
    resolved["patch_manifest"] = _patch_manifest
    return resolved
