import click
import copy
import os
import json
from .. import config as config_module
from ..cli_logger import logger


def _parse_value(value):
    """Turns command-line text into the TOML type it spells."""
    lowered = value.strip().lower()
    if lowered in ("true", "on", "yes"):
        return True
    if lowered in ("false", "off", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        return value


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the blake3build.toml configuration file."""
    pass

@config.command()
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@click.pass_context
def init(ctx, force):
    """Write a default blake3build.toml."""
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    if os.path.exists(config_file_path) and not force:
        logger.error(f"Error: {config_file_path} already exists. Use --force to overwrite it.")
        return
    if config_module.save_config(copy.deepcopy(config_module.DEFAULT_CONFIG), path=ctx.obj["path"]):
        logger.success(f"Created {config_file_path}")

@config.command()
@click.pass_context
def view(ctx):
    """View the contents of the blake3build.toml file."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error("Error: No blake3build.toml found. Please run 'blake3build config init' first.")
        return
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading blake3build.toml at {config_file_path}: {e}")
        logger.info("Please check file permissions.")

@config.command()
@click.pass_context
def list(ctx):
    """List all configuration keys and values."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error("Error: No blake3build.toml found. Please run 'blake3build config init' first.")
        return
    click.echo(json.dumps(conf, indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a value, e.g. 'cache.simd_type'."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error("Error: No blake3build.toml found. Please run 'blake3build config init' first.")
        return

    keys = key.split('.')
    value = conf
    try:
        for k in keys:
            value = value[k]
        click.echo(value)
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in blake3build.toml")

@config.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set(ctx, key, value):
    """Set a value, e.g. 'options.use_tbb true' or 'cache.cflags.AVX512 -mavx512f'."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error("Error: No blake3build.toml found. Please run 'blake3build config init' first.")
        return

    keys = key.split('.')
    d = conf
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    d[keys[-1]] = _parse_value(value)

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to '{value}'")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a key from the blake3build.toml file."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error("Error: No blake3build.toml found. Please run 'blake3build config init' first.")
        return

    keys = key.split('.')
    d = conf
    try:
        for k in keys[:-1]:
            d = d[k]
        del d[keys[-1]]
        if config_module.save_config(conf, path=ctx.obj["path"]):
            logger.info(f"Unset '{key}'")
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in blake3build.toml")
