"""Human-friendly output formatter - converts plans and results to readable text."""

import json
import os
from typing import Any, Dict, List, Optional
from ..apply.models import ApplyResult, EntryStatus
from ..approval.models import ApprovalRecord
from ..engine.models import ChangeAction, ChangeEntry
from ..plan.models import PlanHandle
from ..state.models import StateSnapshot


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("PLANGATE_ASCII", "").lower() in ("1", "true", "yes")


def _box(title: str, width: int = 65, ascii_mode: bool = False) -> List[str]:
    """Return box-drawing header lines."""
    b = {"tl": "+", "tr": "+", "h": "-", "v": "|"} if ascii_mode else {"tl": "┌", "tr": "┐", "h": "─", "v": "│"}
    h = b["h"] * (width - 2)
    return [
        b["tl"] + h + b["tr"],
        f"{b['v']} {title:<{width - 4}} {b['v']}",
        ("+" if ascii_mode else "└") + h + ("+" if ascii_mode else "┘"),
        "",
    ]


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


ACTION_SYMBOLS = {
    ChangeAction.CREATE: "+",
    ChangeAction.UPDATE: "~",
    ChangeAction.DELETE: "-",
    ChangeAction.NO_OP: " ",
}

STATUS_LABELS = {
    EntryStatus.SUCCEEDED: "[OK]",
    EntryStatus.FAILED: "[FAILED]",
    EntryStatus.NOT_ATTEMPTED: "[SKIPPED]",
}


def _render_value(value: Any) -> str:
    if value is None:
        return "(absent)"
    return json.dumps(value, sort_keys=True)


def _attribute_lines(entry: ChangeEntry) -> List[str]:
    """Per-attribute before/after lines for one entry."""
    before: Dict[str, Any] = entry.before or {}
    after: Dict[str, Any] = entry.after or {}
    lines = []
    for key in sorted(set(before) | set(after)):
        old = before.get(key)
        new = after.get(key)
        if entry.action == ChangeAction.CREATE:
            lines.append(f"      {key} = {_render_value(new)}")
        elif entry.action == ChangeAction.DELETE:
            lines.append(f"      {key} = {_render_value(old)}")
        elif old != new:
            lines.append(f"      {key}: {_render_value(old)} -> {_render_value(new)}")
    return lines


def format_change_summary(counts: Dict[str, int]) -> str:
    """One-line summary, e.g. ``Plan: 2 to create, 0 to update, 1 to delete, 3 unchanged.``"""
    return (
        f"Plan: {counts.get('create', 0)} to create, {counts.get('update', 0)} to update, "
        f"{counts.get('delete', 0)} to delete, {counts.get('no-op', 0)} unchanged."
    )


def format_plan(handle: PlanHandle, approval: Optional[ApprovalRecord] = None, ascii_mode: Optional[bool] = None) -> str:
    """Render a plan: header, per-resource before/after, counts, approval state."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box(f"plangate plan {handle.id}", ascii_mode=ascii_mode)
    lines.append(f"Namespace:   {handle.namespace}")
    lines.append(f"Environment: {handle.environment}")
    lines.append(f"State serial: {handle.state_serial}")
    lines.append(f"Expires:     {handle.expires_at.isoformat()}")
    lines.append("")

    actionable = handle.change_set.actionable()
    if actionable:
        lines.extend(_section("CHANGES"))
        for entry in actionable:
            action = ChangeAction(entry.action)
            lines.append(f"  {ACTION_SYMBOLS[action]} {entry.address} ({action.value})")
            lines.extend(_attribute_lines(entry))
        lines.append("")
    else:
        lines.append("No changes. Infrastructure matches the configuration.")
        lines.append("")

    lines.append(format_change_summary(handle.change_set.summary()))

    if approval is not None:
        lines.append("")
        lines.extend(format_approval(approval))
    return "\n".join(lines)


def format_approval(approval: ApprovalRecord) -> List[str]:
    """Approval state lines."""
    lines = [f"Approval: {approval.outcome.value} ({approval.policy.value}, quorum {approval.quorum})"]
    if approval.required_approvers:
        lines.append(f"  Required approvers: {', '.join(approval.required_approvers)}")
    for decision in approval.decisions:
        line = f"  {decision.actor}: {decision.decision.value} at {decision.decided_at.isoformat()}"
        if decision.comment:
            line += f" ({decision.comment})"
        lines.append(line)
    if not approval.is_terminal:
        lines.append(f"  Expires: {approval.expires_at.isoformat()}")
    return lines


def format_apply_result(result: ApplyResult, ascii_mode: Optional[bool] = None) -> str:
    """Render an apply result entry by entry."""
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box(f"plangate apply {result.plan_id}", ascii_mode=ascii_mode)
    if result.rediffed:
        lines.append("State changed since planning; changes were recomputed before applying.")
        lines.append("")

    if not result.entries:
        lines.append("No changes to apply.")
    for entry in result.entries:
        line = f"  {STATUS_LABELS[EntryStatus(entry.status)]:<10} {ChangeAction(entry.action).value:<7} {entry.address}"
        if entry.external_id:
            line += f" ({entry.external_id})"
        lines.append(line)
        if entry.error:
            lines.append(f"             {entry.error}")

    lines.append("")
    if result.success:
        lines.append(f"Apply complete: {len(result.succeeded)} change(s) committed.")
    else:
        status = "cancelled" if result.cancelled else "failed"
        if result.lock_lost:
            lines.append("The state lock expired during the run; raise lock_ttl for long applies.")
        lines.append(
            f"Apply {status}: {len(result.succeeded)} succeeded, {len(result.failed)} failed, "
            f"{len(result.not_attempted)} not attempted. Committed changes were kept."
        )
    return "\n".join(lines)


def format_status(handle: PlanHandle, approval: ApprovalRecord, apply_result: Optional[ApplyResult] = None) -> str:
    """Plan, approval and apply state together."""
    lines = [f"Plan {handle.id} ({handle.namespace}, created {handle.created_at.isoformat()})"]
    lines.append(f"  {format_change_summary(handle.change_set.summary())}")
    lines.extend(format_approval(approval))
    if apply_result is None:
        lines.append("Apply: not started")
    elif apply_result.success:
        lines.append(f"Apply: succeeded ({len(apply_result.succeeded)} committed)")
    else:
        lines.append(
            f"Apply: partial ({len(apply_result.succeeded)} succeeded, {len(apply_result.failed)} failed, "
            f"{len(apply_result.not_attempted)} not attempted)"
        )
    return "\n".join(lines)


def format_state(snapshot: StateSnapshot) -> str:
    """List applied resources."""
    if not snapshot.records:
        return f"No resources in namespace '{snapshot.namespace}'."
    lines = [f"Namespace '{snapshot.namespace}' (serial {snapshot.serial}):"]
    for address, record in snapshot.records.items():
        lines.append(f"  {address}  id={record.external_id}  v{record.version}")
    return "\n".join(lines)
