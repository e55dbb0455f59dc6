import click
import importlib.metadata
import sys
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of ffplan."""
    try:
        ver = importlib.metadata.version("ffplan")
        click.echo(f"ffplan {ver}")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of ffplan. Is it installed correctly?")
        sys.exit(1)
