"""CLI utilities package."""

from typing import Optional
import click
from ...orchestrator import Orchestrator
from ...utils.logging import get_logger
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.

    Args:
        message: Error message
        suggestion: Optional suggestion or help text

    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


def orchestrator_options(func):
    """Shared options selecting settings, approval environment and namespace."""
    func = click.option('--workspace', '-w', type=click.Path(), help='Workspace directory (default: .plangate)')(func)
    func = click.option('--namespace', '-n', help='State namespace (default: from settings)')(func)
    func = click.option('--environment', '-e', 'environment_path', type=click.Path(), help='Approval environment YAML file')(func)
    func = click.option('--config', '-c', 'settings_path', type=click.Path(), help='Settings YAML file')(func)
    return func


def build_orchestrator(
    settings_path: Optional[str] = None,
    environment_path: Optional[str] = None,
    namespace: Optional[str] = None,
    workspace: Optional[str] = None
) -> Orchestrator:
    """Orchestrator from CLI options (raises ConfigError on bad settings)."""
    return Orchestrator.from_files(
        settings_path,
        environment_path,
        namespace=namespace,
        workspace_dir=workspace,
    )


__all__ = ["resolve_file_path", "format_error", "orchestrator_options", "build_orchestrator"]
