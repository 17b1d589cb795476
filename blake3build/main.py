import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory.")
@click.pass_context
def cli(ctx, path):
    """blake3build: SIMD strategy and source-set resolver for the BLAKE3 C library."""
    ctx.obj = {"path": path}

cli.add_command(configure)
cli.add_command(detect)
cli.add_command(config)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
