"""Abstract state store interface."""

import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
from .models import StateRecord, StateSnapshot, LockInfo
from ..utils.errors import LockBusyError
from ..utils.logging import get_logger

logger = get_logger("state.base")


class StateStore(ABC):
    """
    Versioned, namespaced store of applied resources.
    
    Mutations are compare-and-swap on a per-resource version token and are
    atomic per resource. Whole-graph operations additionally hold the
    namespace advisory lock, which every writer must honor voluntarily.
    """
    
    namespace: str
    lock_poll_interval: float = 0.2
    
    @abstractmethod
    def load(self, address: str) -> Optional[StateRecord]:
        """Return the record for *address*, or None when not found."""
        pass
    
    @abstractmethod
    def commit_create_or_update(
        self,
        address: str,
        resource_type: str,
        attributes: Dict[str, Any],
        external_id: str,
        dependencies: List[str],
        expected_version: int
    ) -> int:
        """
        Write a record if its current version equals *expected_version*.
        
        Args:
            expected_version: Version read before the change, 0 if absent
            
        Returns:
            The new version
            
        Raises:
            ConflictError: If another writer committed in between
        """
        pass
    
    @abstractmethod
    def commit_delete(self, address: str, expected_version: int) -> None:
        """Remove a record if its version equals *expected_version* (raises ConflictError)."""
        pass
    
    @abstractmethod
    def snapshot(self) -> StateSnapshot:
        """Consistent copy of every record in the namespace."""
        pass
    
    @abstractmethod
    def serial(self) -> int:
        """Namespace serial, bumped by each commit."""
        pass
    
    @abstractmethod
    def try_acquire_lock(self, owner: str) -> Optional[LockInfo]:
        """
        Take the namespace lock once without waiting.
        
        Returns:
            None on success, otherwise the current holder
        """
        pass
    
    @abstractmethod
    def release_lock(self, owner: str) -> bool:
        """Release the lock if *owner* holds it. Returns True if released."""
        pass
    
    @abstractmethod
    def renew_lock(self, owner: str) -> bool:
        """Push the lock expiry out by a full TTL if *owner* still holds it. Returns False if lost."""
        pass
    
    @abstractmethod
    def lock_info(self) -> Optional[LockInfo]:
        """Current live lock holder, if any."""
        pass
    
    @abstractmethod
    def force_unlock(self) -> bool:
        """Drop the lock regardless of owner. Returns True if a lock existed."""
        pass
    
    def acquire_lock(self, owner: str, timeout: float = 0.0) -> None:
        """
        Acquire the namespace lock, polling until *timeout* seconds pass.
        
        Raises:
            LockBusyError: If the lock is still held when the timeout elapses
        """
        deadline = time.monotonic() + max(timeout, 0.0)
        while True:
            holder = self.try_acquire_lock(owner)
            if holder is None:
                logger.info(f"Acquired state lock for namespace '{self.namespace}' ({owner})")
                return
            if time.monotonic() >= deadline:
                raise LockBusyError(self.namespace, holder.owner)
            logger.debug(f"Waiting for state lock held by {holder.owner}")
            time.sleep(self.lock_poll_interval)
    
    @contextmanager
    def lock(self, owner: str, timeout: float = 0.0) -> Iterator[None]:
        """Hold the namespace lock for the duration of the block."""
        self.acquire_lock(owner, timeout)
        try:
            yield
        finally:
            if self.release_lock(owner):
                logger.info(f"Released state lock for namespace '{self.namespace}'")
            else:
                logger.warning(f"State lock for '{self.namespace}' was no longer held by {owner}")
