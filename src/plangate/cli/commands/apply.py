"""Apply command - execute an approved plan."""

import json
import signal
import sys
import click
from ...approval.models import ApprovalOutcome
from ...presentation.human_formatter import format_apply_result
from ...utils.errors import ApprovalNotGrantedError, LockBusyError, PlanGateError
from ...utils.logging import get_logger
from ..utils import build_orchestrator, format_error, orchestrator_options

logger = get_logger("cli.apply")

EXIT_PARTIAL = 1
EXIT_NOT_APPROVED = 3
EXIT_LOCK_BUSY = 4


@click.command()
@click.argument('plan_id')
@orchestrator_options
@click.option('--wait', 'wait_timeout', type=float, help='Wait up to SECONDS for a pending approval to resolve')
@click.option('--json', 'as_json', is_flag=True, help='Output the apply result as JSON')
def apply(plan_id, settings_path, environment_path, namespace, workspace, wait_timeout, as_json):
    """
    Apply an approved plan.

    Exit codes: 0 all changes committed, 1 partial failure or error,
    3 plan not approved, 4 state namespace locked by another apply.
    Ctrl-C stops scheduling new changes; in-flight changes finish.
    """
    orchestrator = None
    previous_handler = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)

        if wait_timeout:
            record = orchestrator.gate.wait(plan_id, timeout=wait_timeout)
            if record.outcome == ApprovalOutcome.PENDING:
                click.echo(f"Approval still pending after {wait_timeout:g}s", err=True)

        def _on_interrupt(signum, frame):
            click.echo("Interrupted: finishing in-flight changes, no new changes will start", err=True)
            orchestrator.cancel()

        previous_handler = signal.signal(signal.SIGINT, _on_interrupt)
        result = orchestrator.apply(plan_id)

        if as_json:
            click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        else:
            click.echo(format_apply_result(result))

        if not result.success:
            sys.exit(EXIT_PARTIAL)

    except ApprovalNotGrantedError as e:
        click.echo(format_error(str(e), f"Check with: plangate status {plan_id}"), err=True)
        sys.exit(EXIT_NOT_APPROVED)
    except LockBusyError as e:
        click.echo(format_error(str(e), "Wait for the other apply, or run force-unlock if it died."), err=True)
        sys.exit(EXIT_LOCK_BUSY)
    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Apply failed: {e}"), err=True)
        sys.exit(1)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)
        if orchestrator is not None:
            orchestrator.close()
