"""State commands - inspect applied resources and manage the namespace lock."""

import json
import sys
import click
from ...presentation.human_formatter import format_state
from ...utils.errors import PlanGateError
from ...utils.logging import get_logger
from ..utils import build_orchestrator, format_error, orchestrator_options

logger = get_logger("cli.state")


@click.group()
def state():
    """Inspect the state store (read-only)."""
    pass


@state.command(name="list")
@orchestrator_options
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
def list_resources(settings_path, environment_path, namespace, workspace, as_json):
    """List applied resources in the namespace."""
    orchestrator = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)
        snapshot = orchestrator.state.snapshot()
        if as_json:
            click.echo(json.dumps(snapshot.model_dump(mode="json"), indent=2))
        else:
            click.echo(format_state(snapshot))
    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()


@state.command()
@click.argument('address')
@orchestrator_options
def show(address, settings_path, environment_path, namespace, workspace):
    """Show the applied record for ADDRESS as JSON."""
    orchestrator = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)
        record = orchestrator.state.load(address)
        if record is None:
            click.echo(format_error(f"No applied resource at {address}", "List resources with: plangate state list"), err=True)
            sys.exit(1)
        click.echo(json.dumps(record.model_dump(mode="json"), indent=2))
    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()


@click.command(name="force-unlock")
@orchestrator_options
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
def force_unlock(settings_path, environment_path, namespace, workspace, yes):
    """Release the namespace lock left behind by a dead apply."""
    orchestrator = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)
        holder = orchestrator.state.lock_info()
        if holder is None:
            click.echo(f"Namespace '{orchestrator.state.namespace}' is not locked.")
            return
        if not yes:
            click.confirm(f"Remove lock held by {holder.owner} since {holder.acquired_at.isoformat()}?", abort=True)
        orchestrator.state.force_unlock()
        click.echo(f"Lock on namespace '{orchestrator.state.namespace}' removed.")
    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()
