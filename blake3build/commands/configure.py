import click
import contextlib
import json
import os
from .. import config as config_module
from ..cli_logger import logger
from ..configurator import configure_project, gather_signals
from ..errors import FatalConfigurationError


@click.command()
@click.pass_context
@click.option("--use-tbb/--no-use-tbb", default=None, help="Enable oneTBB parallelism.")
@click.option("--fetch-tbb/--no-fetch-tbb", default=None, help="Allow fetching oneTBB if it is not found on the system.")
@click.option("--shared/--static", default=None, help="Build a shared library.")
@click.option("--simd-type", default=None, help="Force the SIMD strategy (amd64-asm, x86-intrinsics, neon-intrinsics, none).")
@click.option("--cc", default=None, help="C compiler used to probe the target platform.")
@click.option("--output", "-o", default=None, help="Write the build plan as JSON to this file instead of stdout.")
def configure(ctx, use_tbb, fetch_tbb, shared, simd_type, cc, output):
    """Resolve the SIMD strategy, sources and optional backend for this project."""
    # stdout carries the plan itself when no output file is given
    with contextlib.nullcontext() if output else logger.reserve_stdout():
        plan_json = _configure(ctx, use_tbb, fetch_tbb, shared, simd_type, cc)

        if not output:
            click.echo(plan_json)
            return

        output_path = os.path.join(ctx.obj["path"], output)
        try:
            with open(output_path, "w") as f:
                f.write(plan_json + "\n")
        except IOError as e:
            logger.error(f"Error writing build plan to {output_path}: {e}")
            ctx.exit(1)
        logger.success(f"Build plan written to {output_path}")


def _configure(ctx, use_tbb, fetch_tbb, shared, simd_type, cc):
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.info(f"No {config_module.CONFIG_FILE} found, using defaults.")
        conf = {}

    # command-line values take precedence over the cached ones
    options = conf.setdefault("options", {})
    if use_tbb is not None: options["use_tbb"] = use_tbb
    if fetch_tbb is not None: options["fetch_tbb"] = fetch_tbb
    if shared is not None: options["shared"] = shared
    if simd_type: conf.setdefault("cache", {})["simd_type"] = simd_type

    try:
        result = configure_project(conf, gather_signals(conf, cc))
    except FatalConfigurationError as e:
        logger.error(f"Configuration failed: {e}")
        if e.strategy is not None:
            logger.info("Extend the source/flag tables or choose another strategy with --simd-type.")
        ctx.exit(1)

    return json.dumps(result.to_dict(), indent=4)
