"""Tests for the SQLite state store."""

import threading
import time
import pytest
from plangate.state.sqlite import SqliteStateStore
from plangate.utils.errors import ConflictError, LockBusyError


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "state" / "state.db")


@pytest.fixture
def store(db_path):
    store = SqliteStateStore(db_path, lock_poll_interval=0.01)
    yield store
    store.close()


class TestCommits:
    """Test compare-and-swap commits."""
    
    def test_create_then_load(self, store):
        version = store.commit_create_or_update("vm.web", "vm", {"size": "small"}, "i-1", ["network.main"], 0)
        record = store.load("vm.web")
        
        assert version == 1
        assert record.external_id == "i-1"
        assert record.attributes == {"size": "small"}
        assert record.dependencies == ["network.main"]
        assert record.version == 1
        assert record.updated_at is not None
    
    def test_load_missing(self, store):
        assert store.load("vm.ghost") is None
    
    def test_update_bumps_version(self, store):
        store.commit_create_or_update("vm.web", "vm", {"size": "small"}, "i-1", [], 0)
        version = store.commit_create_or_update("vm.web", "vm", {"size": "large"}, "i-1", [], 1)
        
        assert version == 2
        assert store.load("vm.web").attributes == {"size": "large"}
    
    def test_stale_version_conflicts(self, store):
        store.commit_create_or_update("vm.web", "vm", {}, "i-1", [], 0)
        store.commit_create_or_update("vm.web", "vm", {"size": "large"}, "i-1", [], 1)
        
        with pytest.raises(ConflictError) as exc_info:
            store.commit_create_or_update("vm.web", "vm", {"size": "small"}, "i-1", [], 1)
        
        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert store.load("vm.web").attributes == {"size": "large"}
    
    def test_create_over_existing_conflicts(self, store):
        store.commit_create_or_update("vm.web", "vm", {}, "i-1", [], 0)
        with pytest.raises(ConflictError):
            store.commit_create_or_update("vm.web", "vm", {}, "i-2", [], 0)
    
    def test_delete(self, store):
        store.commit_create_or_update("vm.web", "vm", {}, "i-1", [], 0)
        store.commit_delete("vm.web", 1)
        
        assert store.load("vm.web") is None
    
    def test_delete_conflict(self, store):
        store.commit_create_or_update("vm.web", "vm", {}, "i-1", [], 0)
        with pytest.raises(ConflictError):
            store.commit_delete("vm.web", 5)
        assert store.load("vm.web") is not None


class TestSnapshots:
    
    def test_serial_bumps_per_commit(self, store):
        assert store.serial() == 0
        store.commit_create_or_update("a.x", "a", {}, "1", [], 0)
        store.commit_create_or_update("b.y", "b", {}, "2", [], 0)
        store.commit_delete("a.x", 1)
        
        assert store.serial() == 3
    
    def test_failed_commit_keeps_serial(self, store):
        store.commit_create_or_update("a.x", "a", {}, "1", [], 0)
        with pytest.raises(ConflictError):
            store.commit_create_or_update("a.x", "a", {}, "1", [], 0)
        assert store.serial() == 1
    
    def test_snapshot_contents(self, store):
        store.commit_create_or_update("b.y", "b", {"k": 1}, "2", [], 0)
        store.commit_create_or_update("a.x", "a", {}, "1", [], 0)
        snapshot = store.snapshot()
        
        assert snapshot.namespace == "default"
        assert snapshot.serial == 2
        assert list(snapshot.records) == ["a.x", "b.y"]
        assert snapshot.version_of("b.y") == 1
        assert snapshot.version_of("c.z") == 0
    
    def test_namespaces_are_isolated(self, db_path, store):
        other = SqliteStateStore(db_path, namespace="staging")
        try:
            other.commit_create_or_update("vm.web", "vm", {}, "i-9", [], 0)
            
            assert store.load("vm.web") is None
            assert store.serial() == 0
            assert other.snapshot().records["vm.web"].external_id == "i-9"
        finally:
            other.close()
    
    def test_state_survives_reopen(self, db_path):
        first = SqliteStateStore(db_path)
        first.commit_create_or_update("vm.web", "vm", {"size": "small"}, "i-1", [], 0)
        first.close()
        
        second = SqliteStateStore(db_path)
        try:
            assert second.load("vm.web").attributes == {"size": "small"}
            assert second.serial() == 1
        finally:
            second.close()


class TestLocking:
    """Test the namespace advisory lock."""
    
    def test_second_owner_is_refused(self, db_path, store):
        other = SqliteStateStore(db_path, lock_poll_interval=0.01)
        try:
            store.acquire_lock("apply-1")
            
            with pytest.raises(LockBusyError) as exc_info:
                other.acquire_lock("apply-2", timeout=0.05)
            
            assert exc_info.value.holder == "apply-1"
        finally:
            other.close()
    
    def test_lock_is_reentrant_for_owner(self, store):
        store.acquire_lock("apply-1")
        store.acquire_lock("apply-1")
        assert store.lock_info().owner == "apply-1"
    
    def test_context_manager_releases(self, store):
        with store.lock("apply-1"):
            assert store.lock_info().owner == "apply-1"
        assert store.lock_info() is None
    
    def test_release_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.lock("apply-1"):
                raise RuntimeError("boom")
        assert store.lock_info() is None
    
    def test_waits_for_release(self, db_path, store):
        other = SqliteStateStore(db_path, lock_poll_interval=0.01)
        try:
            store.acquire_lock("apply-1")
            releaser = threading.Timer(0.1, lambda: store.release_lock("apply-1"))
            releaser.start()
            
            other.acquire_lock("apply-2", timeout=5)
            releaser.join()
            
            assert other.lock_info().owner == "apply-2"
        finally:
            other.close()
    
    def test_expired_lock_is_ignored(self, db_path):
        short = SqliteStateStore(db_path, lock_ttl=0.05)
        other = SqliteStateStore(db_path)
        try:
            short.acquire_lock("dead-apply")
            time.sleep(0.1)
            
            assert other.lock_info() is None
            other.acquire_lock("apply-2")
            assert other.lock_info().owner == "apply-2"
        finally:
            short.close()
            other.close()
    
    def test_force_unlock(self, store):
        store.acquire_lock("dead-apply")
        
        assert store.force_unlock() is True
        assert store.lock_info() is None
        assert store.force_unlock() is False
    
    def test_release_by_non_owner(self, store):
        store.acquire_lock("apply-1")
        assert store.release_lock("apply-2") is False
        assert store.lock_info().owner == "apply-1"
    
    def test_renew_extends_expiry(self, db_path):
        short = SqliteStateStore(db_path, lock_ttl=0.2)
        try:
            short.acquire_lock("apply-1")
            first_expiry = short.lock_info().expires_at
            time.sleep(0.1)
            
            assert short.renew_lock("apply-1") is True
            assert short.lock_info().expires_at > first_expiry
            time.sleep(0.15)
            assert short.lock_info().owner == "apply-1"
        finally:
            short.close()
    
    def test_renew_fails_for_other_owner(self, store):
        store.acquire_lock("apply-1")
        assert store.renew_lock("apply-2") is False
    
    def test_renew_fails_after_expiry(self, db_path):
        short = SqliteStateStore(db_path, lock_ttl=0.05)
        try:
            short.acquire_lock("apply-1")
            time.sleep(0.1)
            assert short.renew_lock("apply-1") is False
        finally:
            short.close()
