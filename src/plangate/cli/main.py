"""Main CLI entry point for plangate."""

import click
from .commands.apply import apply
from .commands.approve import approve, reject
from .commands.plan import plan
from .commands.report import report
from .commands.state import force_unlock, state
from .commands.status import status
from .commands.version import version as version_command
from .. import __version__
from ..utils.logging import get_logger

logger = get_logger("cli.main")


@click.group()
@click.version_option(version=__version__, prog_name="plangate", message="%(prog)s version %(version)s")
def cli():
    """plangate - plan, approve and apply declarative infrastructure changes."""
    pass


cli.add_command(plan)
cli.add_command(approve)
cli.add_command(reject)
cli.add_command(status)
cli.add_command(apply)
cli.add_command(state)
cli.add_command(force_unlock)
cli.add_command(report)
cli.add_command(version_command)
