import click
from .. import config as config_module
from ..cli_logger import logger
from ..configurator import gather_signals
from ..decorators import handle_exceptions
from ..platform_key import Overrides, normalize

@click.command()
@click.pass_context
@click.option("--cc", default=None, help="C compiler used to probe the target platform.")
@handle_exceptions
def detect(ctx, cc):
    """Show how the target platform is normalized."""
    conf = config_module.load_config(path=ctx.obj["path"])
    key = normalize(gather_signals(conf, cc), Overrides.from_config(conf))

    click.echo(f"architecture:      {key.architecture_class.value} ({key.target_arch or 'unknown'})")
    click.echo(f"pointer width:     {key.pointer_width}")
    click.echo(f"compiler frontend: {key.compiler_frontend.value}")
    click.echo(f"os family:         {key.os_family.value}")
    if key.explicit_override:
        click.echo(f"forced strategy:   {key.explicit_override.value}")
    if key.neon_requested:
        click.echo("neon requested:    yes")
    logger.success("Platform detection completed.")
