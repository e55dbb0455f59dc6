import click
import os
import json
import toml
from .. import config as config_module
from ..catalog import load_catalog
from ..cli_logger import logger
from ..errors import ResolutionError

MISSING_CONFIG = "Error: No ffplan.toml found. Please run 'ffplan init' first."


def _parse_value(value):
    """Read VALUE as a TOML literal (list, number, boolean, quoted string) when possible, else as a bare string."""
    try:
        return toml.loads(f"value = {value}")["value"]
    except (toml.TomlDecodeError, ValueError):
        return value


def _load(ctx):
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(MISSING_CONFIG)
    return conf


def _lookup(conf, key):
    value = conf
    for k in key.split('.'):
        value = value[k]
    return value


def _save_checked(ctx, conf, message):
    """Save ``conf`` only if the resolution settings in it still parse."""
    try:
        config_module.get_resolution_settings(conf, path=ctx.obj["path"])
    except ResolutionError as e:
        logger.error(f"Error: {e}. ffplan.toml was not changed.")
        return
    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(message)


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the ffplan.toml configuration file."""
    pass


@config.command()
@click.pass_context
def view(ctx):
    """View the contents of the ffplan.toml file."""
    if not _load(ctx):
        return
    config_file_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    try:
        with open(config_file_path, 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading ffplan.toml at {config_file_path}: {e}")


@config.command()
@click.pass_context
def edit(ctx):
    """Edit the ffplan.toml file in your default editor."""
    if not _load(ctx):
        return
    try:
        click.edit(filename=os.path.join(ctx.obj["path"], config_module.CONFIG_FILE))
    except click.ClickException as e:
        logger.error(f"Could not open an editor for ffplan.toml: {e}")
        logger.info("Set $EDITOR or $VISUAL to the editor you want to use.")


@config.command(name="list")
@click.pass_context
def list_config(ctx):
    """List all configuration keys and values as JSON."""
    conf = _load(ctx)
    if conf:
        click.echo(json.dumps(conf, indent=4))


@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a value (dotted KEY, e.g. build.mode) from ffplan.toml."""
    conf = _load(ctx)
    if not conf:
        return
    try:
        value = _lookup(conf, key)
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in ffplan.toml")
        return
    click.echo(json.dumps(value) if isinstance(value, (list, dict)) else value)


@config.command(name="set")
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Set KEY to VALUE. Values that fail validation are not saved."""
    conf = _load(ctx)
    if not conf:
        return

    *parents, last = key.split('.')
    d = conf
    for k in parents:
        d = d.setdefault(k, {})
        if not isinstance(d, dict):
            logger.error(f"Error: '{k}' in '{key}' is not a table")
            return
    d[last] = _parse_value(value)
    _save_checked(ctx, conf, f"Set '{key}' to '{value}'")


@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove KEY from ffplan.toml."""
    conf = _load(ctx)
    if not conf:
        return

    *parents, last = key.split('.')
    try:
        d = _lookup(conf, '.'.join(parents)) if parents else conf
        del d[last]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in ffplan.toml")
        return
    _save_checked(ctx, conf, f"Unset '{key}'")


@config.command()
@click.pass_context
def check(ctx):
    """Validate ffplan.toml against the feature catalog."""
    try:
        conf = config_module.load_config(path=ctx.obj["path"], strict=True)
        if not conf:
            logger.error(MISSING_CONFIG)
            return
        settings = config_module.get_resolution_settings(conf, path=ctx.obj["path"])
        catalog = load_catalog().with_minimum_versions(settings["minimum_versions"])
        catalog.graph.expand(settings["features"])
        for name in sorted(settings["overrides"]):
            catalog.library(name)
    except ResolutionError as e:
        logger.error(f"Error: {e}")
        ctx.exit(1)
    logger.success("ffplan.toml is valid.")
