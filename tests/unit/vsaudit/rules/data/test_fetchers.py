from unittest.mock import MagicMock

from vsaudit.intel.vsphere.client import HOST
from vsaudit.intel.vsphere.client import VIRTUAL_MACHINE
from vsaudit.rules.data.fetchers import expand
from vsaudit.rules.data.fetchers import hosts
from vsaudit.rules.data.fetchers import vm_devices
from vsaudit.rules.spec.result import TargetObject


def test_hosts_fetch_delegates_to_session():
    session = MagicMock()
    fetch = hosts("ntp_servers", "lockdown_mode")

    result = fetch(session)

    session.fetch.assert_called_once_with(HOST, ("ntp_servers", "lockdown_mode"))
    assert result is session.fetch.return_value


def test_vm_devices_yields_one_target_per_device():
    session = MagicMock()
    session.fetch.return_value = [
        TargetObject(
            "app-01",
            VIRTUAL_MACHINE,
            {
                "devices:floppy": [
                    {"label": "Floppy drive 1", "connected": False, "start_connected": False},
                    {"label": "Floppy drive 2", "connected": True, "start_connected": False},
                ],
            },
        ),
        TargetObject("db-01", VIRTUAL_MACHINE, {"devices:floppy": []}),
        TargetObject(
            "orphan",
            VIRTUAL_MACHINE,
            unavailable="Configuration of VM orphan is not accessible",
        ),
    ]

    targets = vm_devices("floppy")(session)

    session.fetch.assert_called_once_with(VIRTUAL_MACHINE, ("devices:floppy",))
    assert [t.name for t in targets] == [
        "app-01/Floppy drive 1",
        "app-01/Floppy drive 2",
        "orphan",
    ]
    assert targets[1].get("connected") is True
    assert targets[2].unavailable == "Configuration of VM orphan is not accessible"


def test_expand_without_objects():
    session = MagicMock()
    session.fetch.return_value = []

    assert expand(VIRTUAL_MACHINE, "nonpersistent_disks")(session) == []
