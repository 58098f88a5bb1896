"""
Unit tests for the CIS VMware ESXi control catalogue.

Tests validate that controls are properly structured and that the
classify functions follow the benchmark's stated intent.
"""

from unittest.mock import MagicMock

import pytest

from vsaudit.rules.data.controls import CONTROLS
from vsaudit.rules.data.controls import controls_in_section
from vsaudit.rules.data.controls.cis_esxi_communication import cis_2_1_ntp
from vsaudit.rules.data.controls.cis_esxi_communication import cis_2_5_snmp
from vsaudit.rules.data.controls.cis_esxi_console import cis_5_1_dcui_timeout
from vsaudit.rules.data.controls.cis_esxi_console import cis_5_3_ssh_disabled
from vsaudit.rules.data.controls.cis_esxi_console import cis_5_5_lockdown_normal
from vsaudit.rules.data.controls.cis_esxi_console import cis_5_6_lockdown_strict
from vsaudit.rules.data.controls.cis_esxi_install import cis_1_1_esxi_patched
from vsaudit.rules.data.controls.cis_esxi_install import cis_1_2_vib_acceptance_level
from vsaudit.rules.data.controls.cis_esxi_network import cis_7_4_native_vlan
from vsaudit.rules.data.controls.cis_esxi_network import cis_7_6_virtual_guest_tagging
from vsaudit.rules.data.controls.cis_esxi_storage import cis_6_1_bidirectional_chap
from vsaudit.rules.data.controls.cis_esxi_virtual_machine import cis_8_2_1_floppy
from vsaudit.rules.data.controls.cis_esxi_virtual_machine import cis_8_4_1_dvfilters
from vsaudit.rules.data.controls.cis_esxi_virtual_machine import cis_8_4_2_3d_features
from vsaudit.rules.data.controls.cis_esxi_virtual_machine import cis_8_7_1_log_keep_old
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import TargetObject

ALL_CONTROLS = list(CONTROLS.values())


def _id_key(control_id: str) -> tuple[int, ...]:
    return tuple(int(part) for part in control_id.split("."))


class TestCatalogueStructure:
    def test_control_ids_are_unique(self):
        ids = [c.id for c in ALL_CONTROLS]
        assert len(ids) == len(set(ids))

    def test_controls_are_in_benchmark_order(self):
        ids = [c.id for c in ALL_CONTROLS]
        assert ids == sorted(ids, key=_id_key)

    def test_control_id_matches_section(self):
        for control in ALL_CONTROLS:
            assert _id_key(control.id)[0] == control.section.number, control.id

    def test_every_section_has_controls(self):
        for section in Section:
            assert controls_in_section(section), section

    @pytest.mark.parametrize("control", ALL_CONTROLS, ids=lambda c: c.id)
    def test_control_is_well_formed(self, control):
        assert control.name.startswith("Ensure")
        assert control.description
        assert control.level in (Level.L1, Level.L2)
        if control.is_manual:
            assert control.fetch is None
            assert control.classify is None
        else:
            assert callable(control.fetch)
            assert callable(control.classify)

    def test_catalogue_size(self):
        assert len(controls_in_section(Section.INSTALL)) == 4
        assert len(controls_in_section(Section.COMMUNICATION)) == 9
        assert len(controls_in_section(Section.CONSOLE)) == 11
        assert len(controls_in_section(Section.VIRTUAL_MACHINE)) == 23

    @pytest.mark.parametrize(
        "control_id",
        ["2.9", "7.1", "7.4", "7.6", "8.2.1", "8.2.2", "8.2.3", "8.2.4", "8.2.5", "8.2.8", "8.6.1"],
    )
    def test_nothing_found_is_compliant(self, control_id):
        assert CONTROLS[control_id].empty_outcome == Outcome.PASS

    @pytest.mark.parametrize("control_id", ["1.1", "2.1", "5.1", "8.1.1"])
    def test_nothing_found_is_inconclusive(self, control_id):
        assert CONTROLS[control_id].empty_outcome == Outcome.UNKNOWN


def _host(**attributes) -> TargetObject:
    return TargetObject("esxi-01", "host", attributes)


def _vm(**attributes) -> TargetObject:
    return TargetObject("app-01", "vm", attributes)


class TestClassify:
    def test_ntp(self):
        assert cis_2_1_ntp.classify(_host(ntp_servers=["pool.ntp.org"])).outcome == Outcome.PASS
        assert cis_2_1_ntp.classify(_host(ntp_servers=[])).outcome == Outcome.FAIL

    def test_patch_level(self):
        manifest = [["esx-base", "8.0.2-0.40"], ["vsan", "8.0.2-0.40"], ["nsx-lcp", "4.1"]]

        current = _host(
            installed_vibs={"esx-base": "8.0.2-0.40", "vsan": "8.0.2-0.40"},
            patch_manifest=manifest,
        )
        outdated = _host(
            installed_vibs={"esx-base": "8.0.1-0.20", "vsan": "8.0.2-0.40"},
            patch_manifest=manifest,
        )
        unrelated = _host(installed_vibs={"tools-light": "12.1"}, patch_manifest=manifest)
        no_manifest = _host(installed_vibs={"esx-base": "8.0.2-0.40"}, patch_manifest=None)

        assert cis_1_1_esxi_patched.classify(current).outcome == Outcome.PASS
        assert cis_1_1_esxi_patched.classify(outdated).outcome == Outcome.FAIL
        assert cis_1_1_esxi_patched.classify(outdated).details == (
            "esx-base: installed 8.0.1-0.20, expected 8.0.2-0.40",
        )
        assert cis_1_1_esxi_patched.classify(unrelated).outcome == Outcome.UNKNOWN
        assert cis_1_1_esxi_patched.classify(no_manifest).outcome == Outcome.UNKNOWN

    def test_acceptance_level(self):
        classify = cis_1_2_vib_acceptance_level.classify
        assert classify(_host(acceptance_level="partner")).outcome == Outcome.PASS
        assert classify(_host(acceptance_level="community")).outcome == Outcome.FAIL

    @pytest.mark.parametrize(
        "snmp, outcome",
        [
            ({"enabled": False, "read_only_communities": ["public"]}, Outcome.PASS),
            ({"enabled": True, "read_only_communities": ["public"]}, Outcome.FAIL),
            ({"enabled": True, "read_only_communities": []}, Outcome.UNKNOWN),
            (None, Outcome.UNKNOWN),
        ],
    )
    def test_snmp(self, snmp, outcome):
        assert cis_2_5_snmp.classify(_host(snmp=snmp)).outcome == outcome

    def test_dcui_timeout(self):
        key = "advanced:UserVars.DcuiTimeOut"
        assert cis_5_1_dcui_timeout.classify(_host(**{key: 600})).outcome == Outcome.PASS
        assert cis_5_1_dcui_timeout.classify(_host(**{key: 0})).outcome == Outcome.FAIL

    def test_ssh_disabled_polarity(self):
        stopped = _host(**{"service_running:TSM-SSH": False, "service_policy:TSM-SSH": "off"})
        running = _host(**{"service_running:TSM-SSH": True, "service_policy:TSM-SSH": "on"})

        assert cis_5_3_ssh_disabled.classify(stopped).outcome == Outcome.PASS
        assert cis_5_3_ssh_disabled.classify(running).outcome == Outcome.FAIL

    def test_lockdown_levels(self):
        normal = _host(lockdown_mode="lockdownNormal")
        strict = _host(lockdown_mode="lockdownStrict")
        disabled = _host(lockdown_mode="lockdownDisabled")

        assert cis_5_5_lockdown_normal.classify(normal).outcome == Outcome.PASS
        assert cis_5_5_lockdown_normal.classify(strict).outcome == Outcome.PASS
        assert cis_5_5_lockdown_normal.classify(disabled).outcome == Outcome.FAIL
        assert cis_5_6_lockdown_strict.classify(normal).outcome == Outcome.FAIL
        assert cis_5_6_lockdown_strict.classify(strict).outcome == Outcome.PASS

    def test_bidirectional_chap(self):
        required = {"device": "vmhba64", "chap_type": "chapRequired", "mutual_chap_type": "chapRequired"}
        one_way = {"device": "vmhba65", "chap_type": "chapRequired", "mutual_chap_type": "chapProhibited"}
        classify = cis_6_1_bidirectional_chap.classify

        assert classify(_host(iscsi_hbas=[])).outcome == Outcome.PASS
        assert classify(_host(iscsi_hbas=[required])).outcome == Outcome.PASS
        assert classify(_host(iscsi_hbas=[required, one_way])).outcome == Outcome.FAIL
        assert classify(_host(iscsi_hbas=None)).outcome == Outcome.UNKNOWN

    def test_vlans(self):
        assert cis_7_4_native_vlan.classify(_host(vlan_id=1)).outcome == Outcome.FAIL
        assert cis_7_4_native_vlan.classify(_host(vlan_id=0)).outcome == Outcome.PASS
        assert cis_7_6_virtual_guest_tagging.classify(_host(vlan_id=4095)).outcome == Outcome.FAIL
        assert cis_7_6_virtual_guest_tagging.classify(_host(vlan_id=0)).outcome == Outcome.PASS

    def test_dvfilters(self):
        classify = cis_8_4_1_dvfilters.classify
        assert classify(_vm(dvfilters={})).outcome == Outcome.PASS
        assert classify(_vm(dvfilters={"ethernet0.filter0.name": "x"})).outcome == Outcome.UNKNOWN

    def test_3d_defaults_to_disabled(self):
        key = "extra_config:mks.enable3d"
        assert cis_8_4_2_3d_features.classify(_vm(**{key: None})).outcome == Outcome.PASS
        assert cis_8_4_2_3d_features.classify(_vm(**{key: "TRUE"})).outcome == Outcome.FAIL

    def test_absent_vm_setting_fails(self):
        key = "extra_config:log.keepOld"
        assert cis_8_7_1_log_keep_old.classify(_vm(**{key: None})).outcome == Outcome.FAIL
        assert cis_8_7_1_log_keep_old.classify(_vm(**{key: "10"})).outcome == Outcome.PASS


def test_floppy_fetch_expands_devices():
    session = MagicMock()
    session.fetch.return_value = [
        TargetObject(
            "app-01",
            "vm",
            {"devices:floppy": [{"label": "Floppy drive 1", "connected": True, "start_connected": False}]},
        ),
    ]

    targets = cis_8_2_1_floppy.fetch(session)

    assert [t.name for t in targets] == ["app-01/Floppy drive 1"]
    assert cis_8_2_1_floppy.classify(targets[0]).outcome == Outcome.FAIL
