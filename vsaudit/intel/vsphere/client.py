"""
vSphere session used by every control.

Wraps a pyVmomi ServiceInstance and exposes the small read-only surface the
rules need: list objects of one kind, resolve named attributes on them.
Faults raised by the API are translated to AuthError / TransportError so that
callers never confuse an unreachable vCenter with a compliant one.
"""

import http.client
import logging
from dataclasses import dataclass
from dataclasses import field
from functools import wraps
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Sequence
from typing import Tuple

from pyVim.connect import Disconnect
from pyVim.connect import SmartConnect
from pyVmomi import vim
from pyVmomi import vmodl

from vsaudit.intel.vsphere import compute
from vsaudit.intel.vsphere import hosts
from vsaudit.intel.vsphere import network
from vsaudit.intel.vsphere.errors import ConfigUnavailable
from vsaudit.rules.spec.result import TargetObject
from vsaudit.util import timeit

logger = logging.getLogger(__name__)

HOST = "host"
VIRTUAL_MACHINE = "vm"
VIRTUAL_SWITCH = "vswitch"
PORT_GROUP = "portgroup"
DISTRIBUTED_SWITCH = "dvswitch"

KINDS = (HOST, VIRTUAL_MACHINE, VIRTUAL_SWITCH, PORT_GROUP, DISTRIBUTED_SWITCH)


class AuthError(RuntimeError):
    """The session could not be established with the given credentials."""


class TransportError(RuntimeError):
    """The inventory could not be reached, or a query failed mid-flight."""


def translate_faults(func: Callable) -> Callable:
    """Re-raise API and socket level failures as TransportError."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (AuthError, TransportError):
            raise
        except vim.fault.NotAuthenticated as e:
            raise TransportError(f"vSphere session is no longer authenticated: {e.msg}") from e
        except vmodl.MethodFault as e:
            raise TransportError(f"vSphere API call failed: {e.msg}") from e
        except (OSError, http.client.HTTPException) as e:
            raise TransportError(f"Could not reach vSphere endpoint: {e}") from e

    return wrapper


@dataclass(frozen=True)
class InventoryHandle:
    """
    A reference to one inventory entity. `ref` is the pyVmomi managed object
    the attributes are read from; `parent` is set for entities that live inside
    a host configuration (standard vSwitches and port groups). Those entities
    have no `ref` when the host configuration is unavailable.
    """

    kind: str
    name: str
    ref: Any = field(compare=False)
    parent: Any = field(default=None, compare=False)


Resolver = Callable[[InventoryHandle, str], Any]


def connect(
    host: str,
    user: str,
    password: str,
    port: int = 443,
    verify_ssl: bool = True,
    patch_manifest: Sequence[Tuple[str, str]] | None = None,
) -> "VSphereSession":
    """
    Connect to a vCenter or a standalone ESXi host.

    :param host: vCenter / ESXi hostname or IP
    :param user: Username, e.g. administrator@vsphere.local
    :param password: Password for `user`
    :param port: HTTPS port of the SDK endpoint
    :param verify_ssl: Whether to verify the endpoint certificate
    :param patch_manifest: Expected (component, version) pairs for the patch control
    :return: A connected VSphereSession
    :raises AuthError: if the credentials are rejected
    :raises TransportError: if the endpoint cannot be reached
    """
    logger.info("Connecting to vSphere at %s:%d as %s", host, port, user)
    try:
        service_instance = SmartConnect(
            host=host,
            user=user,
            pwd=password,
            port=port,
            disableSslCertValidation=not verify_ssl,
        )
    except (vim.fault.InvalidLogin, vim.fault.NoPermission) as e:
        raise AuthError(f"Login to {host} as {user} failed: {e.msg}") from e
    except vmodl.MethodFault as e:
        raise TransportError(f"Could not open a session on {host}: {e.msg}") from e
    except (OSError, http.client.HTTPException) as e:
        raise TransportError(f"Could not reach vSphere endpoint {host}:{port}: {e}") from e
    return VSphereSession(service_instance, host, patch_manifest=patch_manifest)


class VSphereSession:
    """
    A connected, read-only view of one vSphere inventory.

    Nothing is cached: every call goes back to the API, so the same session can
    be reused across controls without serving stale configuration.
    """

    def __init__(
        self,
        service_instance: Any,
        endpoint: str,
        patch_manifest: Sequence[Tuple[str, str]] | None = None,
    ):
        self.service_instance = service_instance
        self.endpoint = endpoint
        self.patch_manifest = tuple(patch_manifest) if patch_manifest is not None else None
        self._resolvers: Dict[str, Dict[str, Resolver]] = {
            HOST: hosts.resolvers(self),
            VIRTUAL_MACHINE: compute.RESOLVERS,
            VIRTUAL_SWITCH: network.VSWITCH_RESOLVERS,
            PORT_GROUP: network.PORTGROUP_RESOLVERS,
            DISTRIBUTED_SWITCH: network.DVSWITCH_RESOLVERS,
        }

    def disconnect(self) -> None:
        logger.info("Disconnecting from vSphere at %s", self.endpoint)
        Disconnect(self.service_instance)

    def _container_view(self, vim_type: Any) -> List[Any]:
        content = self.service_instance.RetrieveContent()
        view = content.viewManager.CreateContainerView(
            content.rootFolder, [vim_type], True,
        )
        try:
            return list(view.view)
        finally:
            view.Destroy()

    @timeit
    @translate_faults
    def list_hosts(self) -> List[InventoryHandle]:
        return [
            InventoryHandle(HOST, host.name, host)
            for host in self._container_view(vim.HostSystem)
        ]

    @timeit
    @translate_faults
    def list_virtual_machines(self) -> List[InventoryHandle]:
        return [
            InventoryHandle(VIRTUAL_MACHINE, vm.name, vm)
            for vm in self._container_view(vim.VirtualMachine)
            if not (vm.config and vm.config.template)
        ]

    @timeit
    @translate_faults
    def list_virtual_switches(self) -> List[InventoryHandle]:
        handles = []
        for host in self._container_view(vim.HostSystem):
            if host.config is None:
                handles.append(InventoryHandle(VIRTUAL_SWITCH, host.name, None, host))
                continue
            for vswitch in host.config.network.vswitch:
                handles.append(
                    InventoryHandle(
                        VIRTUAL_SWITCH, f"{host.name}/{vswitch.name}", vswitch, host,
                    ),
                )
        return handles

    @timeit
    @translate_faults
    def list_port_groups(self) -> List[InventoryHandle]:
        handles = []
        for host in self._container_view(vim.HostSystem):
            if host.config is None:
                handles.append(InventoryHandle(PORT_GROUP, host.name, None, host))
                continue
            for portgroup in host.config.network.portgroup:
                handles.append(
                    InventoryHandle(
                        PORT_GROUP, f"{host.name}/{portgroup.spec.name}", portgroup, host,
                    ),
                )
        return handles

    @timeit
    @translate_faults
    def list_distributed_switches(self) -> List[InventoryHandle]:
        return [
            InventoryHandle(DISTRIBUTED_SWITCH, dvs.name, dvs)
            for dvs in self._container_view(vim.DistributedVirtualSwitch)
        ]

    def list_objects(self, kind: str) -> List[InventoryHandle]:
        listers = {
            HOST: self.list_hosts,
            VIRTUAL_MACHINE: self.list_virtual_machines,
            VIRTUAL_SWITCH: self.list_virtual_switches,
            PORT_GROUP: self.list_port_groups,
            DISTRIBUTED_SWITCH: self.list_distributed_switches,
        }
        if kind not in listers:
            raise ValueError(f"Unknown inventory kind '{kind}', expected one of {KINDS}")
        return listers[kind]()

    def _resolver_for(self, kind: str, key: str) -> Resolver:
        resolvers = self._resolvers[kind]
        if key in resolvers:
            return resolvers[key]
        # Parameterized keys such as `advanced:Syslog.global.logHost`
        prefix = key.split(":", 1)[0] + ":"
        if prefix in resolvers:
            return resolvers[prefix]
        raise KeyError(f"No resolver for attribute '{key}' on {kind} objects")

    @translate_faults
    def get_attribute(self, handle: InventoryHandle, key: str) -> Any:
        """
        Resolve one attribute of one object. Returns None when the platform
        reports the value as unset.
        """
        resolver = self._resolver_for(handle.kind, key)
        value = resolver(handle, key)
        logger.debug("%s %s: %s = %r", handle.kind, handle.name, key, value)
        return value

    def fetch(self, kind: str, keys: Sequence[str]) -> List[TargetObject]:
        """
        List every object of `kind` and resolve `keys` on each of them. An object
        whose configuration cannot be read is returned with `unavailable` set.
        """
        # Unknown keys are a programming error; fail before touching the API.
        for key in keys:
            self._resolver_for(kind, key)
        targets = []
        for handle in self.list_objects(kind):
            try:
                attributes = {key: self.get_attribute(handle, key) for key in keys}
            except ConfigUnavailable as e:
                logger.warning("%s %s reported as unknown: %s", kind, handle.name, e)
                targets.append(TargetObject(handle.name, kind, unavailable=str(e)))
                continue
            targets.append(TargetObject(handle.name, kind, attributes))
        return targets
