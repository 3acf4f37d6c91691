"""Compare the desired graph against applied state and produce an ordered change-set."""

import networkx as nx
from typing import Any, Dict, List, Optional, Set
from .models import ChangeAction, ChangeEntry, ChangeSet
from ..graph.dependency_graph import ResourceGraph
from ..ingest.references import is_placeholder
from ..state.models import StateRecord, StateSnapshot
from ..utils.logging import get_logger

logger = get_logger("engine.diff")


def diff(desired: ResourceGraph, snapshot: StateSnapshot) -> ChangeSet:
    """
    Compute the change-set turning *snapshot* into *desired*.
    
    Create, update and no-op entries come first in dependency order over the
    union of desired and applied dependency edges. Deletes follow in reverse
    of that order, so dependents are always removed before what they use.
    A resource whose dependencies changed is updated even when its attributes
    match, since re-pointed references only resolve at apply time.
    
    Args:
        desired: Graph built from configuration
        snapshot: State snapshot to compare against
        
    Returns:
        ChangeSet with one entry per desired or applied resource
    """
    order = _union_order(desired, snapshot)
    upserts: List[ChangeEntry] = []
    deletes: List[ChangeEntry] = []
    
    for address in order:
        node = desired.get_node(address)
        record = snapshot.records.get(address)
        if node is None:
            continue
        if record is None:
            action = ChangeAction.CREATE
        elif attributes_match(node.attributes, record.attributes) and sorted(node.depends_on) == sorted(record.dependencies):
            action = ChangeAction.NO_OP
        else:
            action = ChangeAction.UPDATE
        upserts.append(ChangeEntry(
            address=address,
            type=node.type,
            action=action,
            before=record.attributes if record else None,
            after=node.attributes,
            dependencies=list(node.depends_on),
            prior_dependencies=list(record.dependencies) if record else [],
            prior_version=record.version if record else 0,
        ))
    
    for address in reversed(order):
        record = snapshot.records.get(address)
        if record is None or address in desired:
            continue
        deletes.append(ChangeEntry(
            address=address,
            type=record.type,
            action=ChangeAction.DELETE,
            before=record.attributes,
            after=None,
            dependencies=list(record.dependencies),
            prior_dependencies=list(record.dependencies),
            prior_version=record.version,
        ))
    
    change_set = ChangeSet(entries=upserts + deletes)
    logger.info(f"Diff complete: {change_set.summary()}")
    return change_set


def attributes_match(desired: Any, applied: Any) -> bool:
    """Deep structural equality where unknown-until-apply placeholders match anything."""
    if is_placeholder(desired):
        return True
    if isinstance(desired, dict):
        if not isinstance(applied, dict) or set(desired) != set(applied):
            return False
        return all(attributes_match(desired[key], applied[key]) for key in desired)
    if isinstance(desired, (list, tuple)):
        if not isinstance(applied, (list, tuple)) or len(desired) != len(applied):
            return False
        return all(attributes_match(d, a) for d, a in zip(desired, applied))
    if isinstance(desired, bool) or isinstance(applied, bool):
        return type(desired) is type(applied) and desired == applied
    return desired == applied


def rediff_entry(entry: ChangeEntry, record: Optional[StateRecord]) -> ChangeEntry:
    """
    Re-evaluate one planned entry against the current record for its address.
    
    The desired side (attributes and dependencies, or absence for a delete)
    is kept; the action and prior version follow the record as it is now.
    """
    if entry.after is None:
        action = ChangeAction.NO_OP if record is None else ChangeAction.DELETE
    elif record is None:
        action = ChangeAction.CREATE
    elif attributes_match(entry.after, record.attributes) and sorted(entry.dependencies) == sorted(record.dependencies):
        action = ChangeAction.NO_OP
    else:
        action = ChangeAction.UPDATE
    return entry.model_copy(update={
        "action": action,
        "before": record.attributes if record else None,
        "prior_dependencies": list(record.dependencies) if record else [],
        "prior_version": record.version if record else 0,
    })


def entry_prerequisites(change_set: ChangeSet) -> Dict[str, Set[str]]:
    """
    Map each actionable entry to the actionable entries that must commit first.
    
    Create/update waits for its dependencies' creates/updates. Delete waits
    for every entry whose desired or applied dependencies include it.
    """
    actionable = change_set.actionable()
    prerequisites: Dict[str, Set[str]] = {}
    seen: Dict[str, ChangeEntry] = {}
    
    for entry in actionable:
        if entry.action == ChangeAction.DELETE:
            required = {
                earlier.address for earlier in seen.values()
                if entry.address in earlier.dependencies or entry.address in earlier.prior_dependencies
            }
        else:
            required = {
                dep for dep in entry.dependencies
                if dep in seen and seen[dep].action != ChangeAction.DELETE
            }
        prerequisites[entry.address] = required
        seen[entry.address] = entry
    
    return prerequisites


def _union_order(desired: ResourceGraph, snapshot: StateSnapshot) -> List[str]:
    """Dependencies-first order over desired edges plus applied edges that keep it acyclic."""
    union = nx.DiGraph()
    union.add_nodes_from(desired.graph.nodes)
    union.add_edges_from(desired.graph.edges)
    union.add_nodes_from(snapshot.records)
    
    for address in sorted(snapshot.records):
        for dep in snapshot.records[address].dependencies:
            if dep not in union or union.has_edge(address, dep):
                continue
            if nx.has_path(union, dep, address):
                logger.debug(f"Skipping applied edge {address} -> {dep}: conflicts with desired order")
                continue
            union.add_edge(address, dep)
    
    return list(nx.lexicographical_topological_sort(union.reverse(copy=False)))
