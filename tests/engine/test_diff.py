"""Tests for the diff engine."""

import pytest
from plangate.engine.diff import attributes_match, diff, entry_prerequisites, rediff_entry
from plangate.engine.models import ChangeAction
from plangate.graph.dependency_graph import build_graph
from plangate.ingest.models import ResourceConfig, ResourceDeclaration
from plangate.state.models import StateRecord, StateSnapshot


def _graph(*declarations):
    return build_graph(ResourceConfig(resources=[ResourceDeclaration(**d) for d in declarations]))


def _record(address, attributes=None, dependencies=None, version=1):
    return StateRecord(
        address=address,
        type=address.split(".")[0],
        attributes=attributes or {},
        external_id=f"id-{address}",
        dependencies=dependencies or [],
        version=version,
    )


def _snapshot(*records, serial=1):
    return StateSnapshot(namespace="default", serial=serial, records={r.address: r for r in records})


NETWORK = {"type": "network", "name": "main", "attributes": {"cidr": "10.0.0.0/16"}}
VM = {"type": "vm", "name": "web", "attributes": {"size": "small", "network_id": "${network.main.id}"}}


class TestDiff:
    """Test change-set computation."""
    
    def test_empty_state_creates_in_dependency_order(self):
        change_set = diff(_graph(VM, NETWORK), _snapshot())
        
        assert [(e.address, e.action) for e in change_set.entries] == [
            ("network.main", ChangeAction.CREATE),
            ("vm.web", ChangeAction.CREATE),
        ]
        assert change_set.entries[1].dependencies == ["network.main"]
        assert change_set.entries[0].before is None
    
    def test_applied_state_is_all_no_op(self):
        """Placeholders match whatever was resolved at apply time."""
        snapshot = _snapshot(
            _record("network.main", {"cidr": "10.0.0.0/16"}),
            _record("vm.web", {"size": "small", "network_id": "net-1"}, ["network.main"]),
        )
        change_set = diff(_graph(NETWORK, VM), snapshot)
        
        assert [e.action for e in change_set.entries] == [ChangeAction.NO_OP, ChangeAction.NO_OP]
        assert not change_set.has_changes
        assert change_set.actionable() == []
    
    def test_attribute_change_is_update(self):
        snapshot = _snapshot(_record("network.main", {"cidr": "10.1.0.0/16"}, version=3))
        change_set = diff(_graph(NETWORK), snapshot)
        
        entry = change_set.get("network.main")
        assert entry.action == ChangeAction.UPDATE
        assert entry.before == {"cidr": "10.1.0.0/16"}
        assert entry.after == {"cidr": "10.0.0.0/16"}
        assert entry.prior_version == 3
    
    def test_removed_resource_is_deleted_alone(self):
        snapshot = _snapshot(
            _record("network.main", {"cidr": "10.0.0.0/16"}),
            _record("vm.web", {"size": "small", "network_id": "net-1"}, ["network.main"]),
        )
        change_set = diff(_graph(NETWORK), snapshot)
        
        assert [e.address for e in change_set.actionable()] == ["vm.web"]
        assert change_set.get("vm.web").action == ChangeAction.DELETE
        assert change_set.get("network.main").action == ChangeAction.NO_OP
    
    def test_deletes_run_dependents_first(self):
        snapshot = _snapshot(
            _record("network.main"),
            _record("subnet.a", dependencies=["network.main"]),
            _record("vm.web", dependencies=["subnet.a"]),
        )
        change_set = diff(_graph(), snapshot)
        
        assert [e.address for e in change_set.entries] == ["vm.web", "subnet.a", "network.main"]
        assert all(e.action == ChangeAction.DELETE for e in change_set.entries)
    
    def test_deletes_come_after_upserts(self):
        snapshot = _snapshot(_record("bucket.old"))
        change_set = diff(_graph(NETWORK), snapshot)
        
        assert [e.action for e in change_set.entries] == [ChangeAction.CREATE, ChangeAction.DELETE]
    
    def test_summary_counts(self):
        snapshot = _snapshot(_record("network.main", {"cidr": "10.0.0.0/16"}), _record("bucket.old"))
        summary = diff(_graph(NETWORK, VM), snapshot).summary()
        
        assert summary == {"create": 1, "update": 0, "delete": 1, "no-op": 1}


class TestAttributesMatch:
    
    @pytest.mark.parametrize("desired, applied, expected", [
        ({"a": 1}, {"a": 1}, True),
        ({"a": 1}, {"a": 2}, False),
        ({"a": 1}, {"a": 1, "b": 2}, False),
        ({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]}, True),
        ({"a": [1, 2]}, {"a": [2, 1]}, False),
        ({"a": True}, {"a": 1}, False),
        ({"a": "${x.y.id}"}, {"a": "anything"}, True),
    ])
    def test_cases(self, desired, applied, expected):
        assert attributes_match(desired, applied) is expected


class TestEntryPrerequisites:
    
    def test_create_waits_for_dependency_create(self):
        change_set = diff(_graph(NETWORK, VM), _snapshot())
        assert entry_prerequisites(change_set) == {"network.main": set(), "vm.web": {"network.main"}}
    
    def test_create_does_not_wait_for_no_op(self):
        snapshot = _snapshot(_record("network.main", {"cidr": "10.0.0.0/16"}))
        change_set = diff(_graph(NETWORK, VM), snapshot)
        
        assert entry_prerequisites(change_set) == {"vm.web": set()}
    
    def test_delete_waits_for_former_dependent(self):
        """A dependency is removed only after whatever used it was updated."""
        snapshot = _snapshot(
            _record("network.old"),
            _record("vm.web", {"size": "small", "network_id": "n"}, ["network.old"]),
        )
        change_set = diff(_graph(NETWORK, VM), snapshot)
        prerequisites = entry_prerequisites(change_set)
        
        assert change_set.get("vm.web").action == ChangeAction.UPDATE
        assert prerequisites["vm.web"] == {"network.main"}
        assert prerequisites["network.old"] == {"vm.web"}


class TestRediffEntry:
    """Test re-evaluating a single entry against a fresh record."""
    
    def _create_entry(self):
        return diff(_graph(NETWORK), _snapshot()).get("network.main")
    
    def test_create_becomes_no_op_when_matching_record_appeared(self):
        entry = rediff_entry(self._create_entry(), _record("network.main", {"cidr": "10.0.0.0/16"}, version=1))
        
        assert entry.action == ChangeAction.NO_OP
        assert entry.prior_version == 1
    
    def test_create_becomes_update_when_record_differs(self):
        entry = rediff_entry(self._create_entry(), _record("network.main", {"cidr": "10.9.0.0/16"}, version=3))
        
        assert entry.action == ChangeAction.UPDATE
        assert entry.before == {"cidr": "10.9.0.0/16"}
        assert entry.after == {"cidr": "10.0.0.0/16"}
        assert entry.prior_version == 3
    
    def test_update_becomes_create_when_record_vanished(self):
        entry = diff(_graph(NETWORK), _snapshot(_record("network.main", {"cidr": "10.1.0.0/16"}))).get("network.main")
        assert entry.action == ChangeAction.UPDATE
        
        entry = rediff_entry(entry, None)
        
        assert entry.action == ChangeAction.CREATE
        assert entry.prior_version == 0
    
    def test_delete_of_absent_record_is_no_op(self):
        entry = diff(_graph(), _snapshot(_record("bucket.old"))).get("bucket.old")
        assert entry.action == ChangeAction.DELETE
        
        assert rediff_entry(entry, None).action == ChangeAction.NO_OP
        assert rediff_entry(entry, _record("bucket.old", version=4)).prior_version == 4
