"""Markdown report generation from a plan handle and its approval record."""

from pathlib import Path
from typing import List, Optional
from ..approval.models import ApprovalRecord
from ..engine.models import ChangeAction
from ..plan.models import PlanHandle
from ..presentation.human_formatter import format_change_summary
from ..utils.errors import PlanGateError
from ..utils.logging import get_logger

logger = get_logger("report.markdown")


def _changes_table(handle: PlanHandle) -> List[str]:
    actionable = handle.change_set.actionable()
    if not actionable:
        return ["No changes.", ""]
    rows = ["| Action | Resource | Depends on |", "|---|---|---|"]
    for entry in actionable:
        deps = ", ".join(f"`{d}`" for d in entry.dependencies) or "-"
        rows.append(f"| {ChangeAction(entry.action).value} | `{entry.address}` | {deps} |")
    rows.append("")
    return rows


def format_markdown(handle: PlanHandle, approval: Optional[ApprovalRecord] = None) -> str:
    """Render the plan as a markdown document."""
    sections = [f"# Plan `{handle.id}`", ""]

    sections.append("## Summary")
    sections.append("")
    sections.append(f"- **Namespace:** {handle.namespace}")
    sections.append(f"- **Environment:** {handle.environment}")
    sections.append(f"- **State serial:** {handle.state_serial}")
    sections.append(f"- **Config digest:** `{handle.config_digest}`")
    sections.append(f"- **Expires:** {handle.expires_at.isoformat()}")
    sections.append("")
    sections.append(format_change_summary(handle.change_set.summary()))
    sections.append("")

    sections.append("## Changes")
    sections.append("")
    sections.extend(_changes_table(handle))

    if approval is not None:
        sections.append("## Approval")
        sections.append("")
        sections.append(f"- **Outcome:** {approval.outcome.value}")
        sections.append(f"- **Policy:** {approval.policy.value} (quorum {approval.quorum})")
        if approval.required_approvers:
            sections.append(f"- **Approvers:** {', '.join(approval.required_approvers)}")
        for decision in approval.decisions:
            line = f"- `{decision.actor}` {decision.decision.value}"
            if decision.comment:
                line += f": {decision.comment}"
            sections.append(line)
        sections.append("")

    return "\n".join(sections)


def generate_markdown(handle: PlanHandle, approval: Optional[ApprovalRecord], output_path: Path) -> None:
    """
    Write the markdown report for a plan.

    Raises:
        PlanGateError: If file write fails
    """
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(format_markdown(handle, approval))
        logger.info(f"Generated markdown report: {output_path}")

    except OSError as e:
        raise PlanGateError(f"Failed to write markdown report: {e}")
