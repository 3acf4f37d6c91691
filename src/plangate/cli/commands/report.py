"""Report command - render a plan as markdown or a GitHub PR comment (read-only)."""

import sys
from pathlib import Path
import click
from ...report.github import format_github_comment, post_pr_comment
from ...report.markdown import generate_markdown
from ...utils.errors import PlanGateError
from ...utils.logging import get_logger
from ..utils import build_orchestrator, format_error, orchestrator_options

logger = get_logger("cli.report")


@click.group()
def report():
    """Generate reports from issued plans (read-only)."""
    pass


@report.command()
@click.argument('plan_id')
@orchestrator_options
@click.option('--repo', required=True, help='GitHub repository (owner/repo)')
@click.option('--pr', required=True, type=int, help='Pull request number')
@click.option('--token', envvar='GITHUB_TOKEN', help='GitHub token (or use GITHUB_TOKEN env var)')
@click.option('--update', is_flag=True, help='Update existing comment if found')
def github(plan_id, settings_path, environment_path, namespace, workspace, repo, pr, token, update):
    """Post PLAN_ID as a GitHub PR comment."""
    if not token:
        click.echo(format_error("GitHub token required. Set GITHUB_TOKEN environment variable or use --token option."), err=True)
        sys.exit(1)

    orchestrator = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)
        plan_status = orchestrator.status(plan_id)
        comment = format_github_comment(plan_status.plan, plan_status.approval)
        post_pr_comment(repo, pr, comment, token, update=update)
        click.echo(f"Posted plangate comment to {repo}#{pr}", err=True)

    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Failed to post GitHub comment: {e}"), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()


@report.command()
@click.argument('plan_id')
@orchestrator_options
@click.option('--output', '-o', required=True, type=click.Path(), help='Output markdown file path')
def markdown(plan_id, settings_path, environment_path, namespace, workspace, output):
    """Write a markdown report for PLAN_ID."""
    orchestrator = None
    try:
        orchestrator = build_orchestrator(settings_path, environment_path, namespace, workspace)
        plan_status = orchestrator.status(plan_id)
        output_path = Path(output)
        generate_markdown(plan_status.plan, plan_status.approval, output_path)
        click.echo(f"Generated markdown report: {output_path}", err=True)

    except PlanGateError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Failed to generate markdown report: {e}"), err=True)
        sys.exit(1)
    finally:
        if orchestrator is not None:
            orchestrator.close()
