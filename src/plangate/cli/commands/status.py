"""Status command - show a plan with its approval and apply state."""

import json
import sys
import click
from ...presentation.human_formatter import format_status
from ...utils.errors import PlanGateError
from ...utils.logging import get_logger
from ..utils import build_orchestrator, format_error, orchestrator_options

logger = get_logger("cli.status")


@click.command()
@click.argument('plan_id', required=False)
@orchestrator_options
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
def status(plan_id, settings_path, environment_path, namespace, workspace, as_json):
    """
    Show approval and apply state of PLAN_ID.

    Without PLAN_ID, lists the plans in the workspace.
    """
    orchestrator = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)

        if plan_id is None:
            plan_ids = orchestrator.plans.list_ids()
            if as_json:
                click.echo(json.dumps(plan_ids, indent=2))
            elif not plan_ids:
                click.echo("No plans found.")
            else:
                for listed_id in plan_ids:
                    click.echo(f"{listed_id}  {orchestrator.gate.status(listed_id).outcome.value}")
            return

        plan_status = orchestrator.status(plan_id)
        if as_json:
            click.echo(json.dumps(plan_status.model_dump(mode="json"), indent=2))
        else:
            click.echo(format_status(plan_status.plan, plan_status.approval, plan_status.apply_result))

    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Status failed: {e}"), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()
