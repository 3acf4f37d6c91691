"""Plan command - diff a resource configuration against state and issue a plan."""

import json
import sys
from pathlib import Path
import click
from ...approval.gate import AUTO_ACTOR
from ...presentation.human_formatter import format_plan
from ...utils.errors import ConfigError, PlanGateError
from ...utils.logging import get_logger
from ..utils import build_orchestrator, format_error, orchestrator_options
from ..utils.file_resolver import resolve_file_path

logger = get_logger("cli.plan")


@click.command()
@click.argument('config_file', type=click.Path(exists=False))
@orchestrator_options
@click.option('--json', 'as_json', is_flag=True, help='Output the plan handle as JSON')
@click.option('--output', '-o', type=click.Path(), help='Save output to file')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def plan(config_file, settings_path, environment_path, namespace, workspace, as_json, output, quiet):
    """
    Compute the change-set for CONFIG_FILE and open an approval.

    Exit codes: 0 plan issued, 2 invalid configuration, 1 other error.
    """
    orchestrator = None
    try:
        try:
            config_path = resolve_file_path(config_file)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(2)

        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)
        if not quiet:
            click.echo(f"Planning {config_path} against namespace '{orchestrator.settings.namespace}'...", err=True)

        handle = orchestrator.plan(str(config_path))
        approval = orchestrator.gate.status(handle.id)

        if as_json:
            output_text = json.dumps(
                {"plan": handle.model_dump(mode="json"), "approval": approval.model_dump(mode="json")},
                indent=2
            )
        else:
            output_text = format_plan(handle, approval)

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(output_text)
            if not quiet:
                click.echo(f"Output saved to: {output_path}", err=True)
        else:
            click.echo(output_text)

        if not quiet:
            click.echo(f"Plan ID: {handle.id}", err=True)
        if any(decision.actor == AUTO_ACTOR for decision in approval.decisions):
            click.echo(
                f"Warning: plan auto-approved by environment '{approval.environment}'. "
                "Set enforcement_mode: manual in .plangate-env.yaml to require approval.",
                err=True
            )

    except ConfigError as e:
        click.echo(format_error(str(e), "Fix the configuration and run plan again."), err=True)
        sys.exit(2)
    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Planning failed: {e}"), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()
