"""Approve and reject commands - record an approver's decision on a plan."""

import getpass
import json
import sys
import click
from ...approval.models import ApprovalOutcome, Decision
from ...utils.errors import PlanGateError
from ...utils.logging import get_logger
from ..utils import build_orchestrator, format_error, orchestrator_options

logger = get_logger("cli.approve")


def _decide(decision, plan_id, actor, comment, settings_path, environment_path, namespace, workspace, as_json):
    orchestrator = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)
        record = orchestrator.decide(plan_id, actor or getpass.getuser(), decision, comment)

        if as_json:
            click.echo(json.dumps(record.model_dump(mode="json"), indent=2))
        else:
            click.echo(f"Plan {plan_id}: {record.outcome.value}")
            if record.outcome == ApprovalOutcome.PENDING:
                click.echo(f"{len(record.approvals)} of {record.quorum} approval(s) recorded", err=True)

    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Recording decision failed: {e}"), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()


@click.command()
@click.argument('plan_id')
@click.option('--actor', '-a', help='Approver identity (default: current user)')
@click.option('--comment', '-m', help='Optional comment stored with the decision')
@orchestrator_options
@click.option('--json', 'as_json', is_flag=True, help='Output the approval record as JSON')
def approve(plan_id, actor, comment, settings_path, environment_path, namespace, workspace, as_json):
    """Approve PLAN_ID."""
    _decide(Decision.APPROVE, plan_id, actor, comment, settings_path, environment_path, namespace, workspace, as_json)


@click.command()
@click.argument('plan_id')
@click.option('--actor', '-a', help='Approver identity (default: current user)')
@click.option('--comment', '-m', help='Optional comment stored with the decision')
@orchestrator_options
@click.option('--json', 'as_json', is_flag=True, help='Output the approval record as JSON')
def reject(plan_id, actor, comment, settings_path, environment_path, namespace, workspace, as_json):
    """Reject PLAN_ID."""
    _decide(Decision.REJECT, plan_id, actor, comment, settings_path, environment_path, namespace, workspace, as_json)
