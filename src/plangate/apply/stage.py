"""Apply stage: lock the namespace, re-validate the plan, execute and commit per resource."""

import os
import socket
import threading
import uuid
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set
from .models import ApplyResult, EntryResult, EntryStatus
from ..approval.gate import ApprovalGate
from ..approval.models import ApprovalOutcome
from ..config.models import StalePlanPolicy
from ..engine.diff import diff, entry_prerequisites, rediff_entry
from ..engine.models import ChangeAction, ChangeEntry, ChangeSet
from ..graph.dependency_graph import graph_from_nodes
from ..ingest.references import resolve_references
from ..plan.models import PlanHandle
from ..plan.store import PlanStore
from ..providers.registry import ProviderRegistry
from ..state.base import StateStore
from ..state.models import StateRecord
from ..utils.errors import (
    ApprovalNotGrantedError,
    ConflictError,
    PlanGateError,
    ProviderError,
    StalePlanError,
)
from ..utils.logging import get_logger

logger = get_logger("apply.stage")


class ApplyStage:
    """
    Executes approved plans.

    Entries run on a bounded worker pool; an entry starts only after every
    prerequisite entry committed. The first failure stops scheduling, already
    dispatched provider calls finish, and nothing is rolled back.
    """

    def __init__(
        self,
        state: StateStore,
        plans: PlanStore,
        gate: ApprovalGate,
        registry: ProviderRegistry,
        workers: int = 4,
        lock_timeout: float = 10.0,
        stale_plan_policy: StalePlanPolicy = StalePlanPolicy.REDIFF,
        max_conflict_retries: int = 3
    ):
        self.state = state
        self.plans = plans
        self.gate = gate
        self.registry = registry
        self.workers = max(1, workers)
        self.lock_timeout = lock_timeout
        self.stale_plan_policy = StalePlanPolicy(stale_plan_policy)
        self.max_conflict_retries = max_conflict_retries
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        """Stop starting new entries; in-flight provider calls run to completion."""
        logger.warning("Cancellation requested, no further entries will start")
        self._cancel_event.set()

    def apply(self, plan_id: str) -> ApplyResult:
        """
        Apply an approved plan.

        Raises:
            ApprovalNotGrantedError: Not approved, plan expired, or already applied
            LockBusyError: Another apply holds the namespace lock
            StalePlanError: State changed and the policy is ``fail``
        """
        handle = self.plans.load(plan_id)
        self._check_preconditions(handle)
        self._cancel_event.clear()

        owner = f"{socket.gethostname()}:{os.getpid()}:{plan_id}:{uuid.uuid4().hex[:8]}"
        with self.state.lock(owner, timeout=self.lock_timeout):
            # another apply of this plan may have finished while we waited
            self._check_preconditions(handle)
            change_set, rediffed = self._current_change_set(handle)
            result = ApplyResult(plan_id=handle.id, namespace=handle.namespace, rediffed=rediffed)
            self._execute(change_set, result, owner)
            result.finished_at = datetime.now(timezone.utc)
            self.plans.save_apply_result(result)

        logger.info(
            f"Apply of plan {plan_id} finished: {len(result.succeeded)} succeeded, "
            f"{len(result.failed)} failed, {len(result.not_attempted)} not attempted"
        )
        return result

    def _check_preconditions(self, handle: PlanHandle) -> None:
        if self.plans.load_apply_result(handle.id) is not None:
            raise ApprovalNotGrantedError(f"Plan {handle.id} was already applied; run plan again")
        if handle.is_expired():
            raise ApprovalNotGrantedError(f"Plan {handle.id} expired at {handle.expires_at.isoformat()}; run plan again")
        record = self.gate.status(handle.id)
        if record.outcome != ApprovalOutcome.APPROVED:
            raise ApprovalNotGrantedError(f"Plan {handle.id} is not approved (approval {record.outcome.value})")

    def _current_change_set(self, handle: PlanHandle):
        """Planned change-set, or a fresh diff when state moved since planning."""
        snapshot = self.state.snapshot()
        if snapshot.serial == handle.state_serial:
            return handle.change_set, False

        if self.stale_plan_policy == StalePlanPolicy.FAIL:
            raise StalePlanError(
                f"State serial changed from {handle.state_serial} to {snapshot.serial} since plan {handle.id}"
            )

        logger.warning(
            f"State serial changed from {handle.state_serial} to {snapshot.serial}; re-diffing plan {handle.id}"
        )
        return diff(graph_from_nodes(handle.nodes), snapshot), True

    def _execute(self, change_set: ChangeSet, result: ApplyResult, owner: str) -> None:
        entries = change_set.actionable()
        prerequisites = entry_prerequisites(change_set)
        results: Dict[str, EntryResult] = {}
        for entry in entries:
            results[entry.address] = EntryResult(address=entry.address, action=entry.action)
            result.entries.append(results[entry.address])

        pending: List[ChangeEntry] = list(entries)
        running: Dict[Future, ChangeEntry] = {}
        committed: Set[str] = set()
        failed = False

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="plangate-apply") as executor:
            while pending or running:
                if pending and not failed and not self._cancel_event.is_set():
                    if not self.state.renew_lock(owner):
                        logger.error(f"State lock for '{self.state.namespace}' was lost, no further entries will start")
                        result.lock_lost = True
                        failed = True

                if not failed and not self._cancel_event.is_set():
                    for entry in list(pending):
                        if len(running) >= self.workers:
                            break
                        if prerequisites[entry.address] <= committed:
                            pending.remove(entry)
                            running[executor.submit(self._execute_entry, entry)] = entry

                if not running:
                    break

                done, _ = wait(list(running), return_when=FIRST_COMPLETED)
                for future in done:
                    entry = running.pop(future)
                    entry_result = results[entry.address]
                    try:
                        entry_result.external_id = future.result()
                        entry_result.status = EntryStatus.SUCCEEDED
                        committed.add(entry.address)
                    except PlanGateError as e:
                        self._record_failure(entry_result, e)
                        failed = True
                    except Exception as e:
                        logger.error(f"Unexpected error applying {entry.address}: {e}", exc_info=True)
                        self._record_failure(entry_result, e)
                        failed = True

        result.cancelled = self._cancel_event.is_set() and bool(result.not_attempted)

    def _record_failure(self, entry_result: EntryResult, error: Exception) -> None:
        entry_result.status = EntryStatus.FAILED
        entry_result.error = str(error)
        entry_result.error_type = type(error).__name__
        logger.error(f"Entry failed, stopping apply: {error}")

    def _execute_entry(self, entry: ChangeEntry) -> Optional[str]:
        """
        Run one entry and commit it against the version it was diffed at.

        When the record moved since the diff, or the commit hits a version
        conflict, the entry is re-diffed against the fresh record and retried
        up to ``max_conflict_retries`` times. Returns the external ID for
        creates and updates.
        """
        record = self.state.load(entry.address)
        attempts = 0
        while True:
            version = record.version if record else 0
            if version != entry.prior_version:
                entry = rediff_entry(entry, record)
                logger.warning(
                    f"{entry.address} is at version {version} in state; re-diffed as {ChangeAction(entry.action).value}"
                )

            if entry.action == ChangeAction.NO_OP:
                logger.info(f"{entry.address} already matches state")
                return record.external_id if record else None

            try:
                return self._run_entry(entry, record)
            except ConflictError as e:
                attempts += 1
                if attempts > self.max_conflict_retries:
                    raise
                logger.warning(f"{e}; re-diffing {entry.address} (retry {attempts} of {self.max_conflict_retries})")
                record = self.state.load(entry.address)

    def _run_entry(self, entry: ChangeEntry, record: Optional[StateRecord]) -> Optional[str]:
        """One provider call plus its CAS commit at ``entry.prior_version``."""
        action = ChangeAction(entry.action)
        adapter = self.registry.get(entry.type)

        if action == ChangeAction.DELETE:
            self._call_provider(entry, "delete", lambda: adapter.destroy(record.external_id))
            self.state.commit_delete(entry.address, entry.prior_version)
            logger.info(f"Deleted {entry.address} ({record.external_id})")
            return None

        verb = action.value
        try:
            attributes = resolve_references(entry.after or {}, self._lookup_reference)
        except ProviderError as e:
            raise ProviderError(e.detail, address=entry.address, action=verb) from e
        external_id = self._call_provider(
            entry,
            verb,
            lambda: adapter.apply(attributes, record.external_id if record else None)
        )
        try:
            self.state.commit_create_or_update(
                entry.address, entry.type, attributes, external_id, entry.dependencies, entry.prior_version
            )
        except ConflictError:
            if action == ChangeAction.CREATE:
                logger.warning(f"{entry.address} was created concurrently; provider resource {external_id} is not tracked")
            raise
        logger.info(f"{verb.capitalize()}d {entry.address} ({external_id})")
        return external_id

    def _call_provider(self, entry: ChangeEntry, verb: str, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except ProviderError as e:
            raise ProviderError(e.detail, address=entry.address, action=verb) from e
        except Exception as e:
            raise ProviderError(str(e), address=entry.address, action=verb) from e

    def _lookup_reference(self, address: str, attribute: str) -> Any:
        """Resolve ``${address.attribute}`` from committed state."""
        record = self.state.load(address)
        if record is None:
            raise ProviderError(f"Reference ${{{address}.{attribute}}} cannot be resolved: {address} is not applied")
        if attribute == "id":
            return record.external_id
        value: Any = record.attributes
        for part in attribute.split("."):
            if not isinstance(value, dict) or part not in value:
                raise ProviderError(f"Reference ${{{address}.{attribute}}} cannot be resolved: no such attribute")
            value = value[part]
        return value
