import click
import importlib.metadata
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of the blake3build tool."""
    try:
        ver = importlib.metadata.version("blake3build")
        logger.info(f"blake3build version {ver}")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of blake3build. Is it installed correctly?")
