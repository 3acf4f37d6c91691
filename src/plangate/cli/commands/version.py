"""Version command - show plangate version."""

import click
from ... import __version__


@click.command()
def version():
    """Show plangate version."""
    click.echo(f"plangate version {__version__}")
