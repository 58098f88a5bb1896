"""
VMware vSphere inventory layer for vsaudit.

Connects to a vCenter Server or a standalone ESXi host with pyVmomi and
resolves the configuration values the benchmark controls evaluate.
"""

import logging
import os
from typing import Optional

from vsaudit.intel.manifest import load_patch_manifest
from vsaudit.intel.vsphere.client import AuthError
from vsaudit.intel.vsphere.client import TransportError
from vsaudit.intel.vsphere.client import VSphereSession
from vsaudit.intel.vsphere.client import connect
from vsaudit.settings import check_module_settings
from vsaudit.settings import get_setting

logger = logging.getLogger(__name__)

__all__ = [
    "AuthError",
    "TransportError",
    "VSphereSession",
    "connect",
    "get_vsphere_session",
]


def get_vsphere_session(password: Optional[str] = None) -> VSphereSession:
    """
    Create a VSphereSession from the `vsphere` and `audit` settings.

    :param password: Password to use; falls back to the environment variable
        named by `vsphere.password_env_var`, then to `vsphere.password`
    :return: Connected VSphereSession
    :raises ValueError: if host, user or password is not configured
    :raises AuthError: if the credentials are rejected
    :raises TransportError: if the endpoint cannot be reached
    """
    if not check_module_settings("vsphere", ["host", "user"]):
        raise ValueError("vSphere host and user must be configured")

    host = get_setting("vsphere", "host")
    user = get_setting("vsphere", "user")
    port = int(get_setting("vsphere", "port", 443))
    verify_ssl = bool(get_setting("vsphere", "verify_ssl", True))

    if password is None:
        password_env_var = get_setting("vsphere", "password_env_var")
        if password_env_var:
            password = os.environ.get(password_env_var)
            if not password:
                raise ValueError(
                    f"Environment variable {password_env_var} not found or is empty"
                )
        else:
            password = get_setting("vsphere", "password")
    if not password:
        raise ValueError("No vSphere password configured")

    if not verify_ssl:
        logger.warning("Certificate verification is disabled for %s", host)

    manifest_path = get_setting("audit", "patch_manifest")
    patch_manifest = load_patch_manifest(manifest_path) if manifest_path else None

    return connect(
        host,
        user,
        password,
        port=port,
        verify_ssl=verify_ssl,
        patch_manifest=patch_manifest,
    )
