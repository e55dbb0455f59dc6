import click
import os
from .. import config as config_module
from ..cli_logger import logger
from ..features import LicenseKind
from ..strategy import BuildMode

AUTO_MODE = "auto"


def _get_default_config():
    return {
        "features": {
            "default": True,
            "enabled": [],
        },
        "license": {
            "accept": [],
        },
        "build": {
            "jobs": 1,
            "overrides": {},
        },
        "minimum_versions": {},
    }


def _prompt_for_list_input(prompt, default):
    value_str = click.prompt(prompt, default=default, show_default=bool(default))
    return [v.strip() for v in value_str.split(',') if v.strip()]


@click.command()
@click.option('--non-interactive', is_flag=True, help='Run in non-interactive mode using default values.')
@click.option('--force', is_flag=True, help='Overwrite an existing ffplan.toml.')
@click.pass_context
def init(ctx, non_interactive, force):
    """Create an ffplan.toml for the project."""
    config_path = os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)
    if os.path.exists(config_path) and not force:
        logger.error(f"Error: {config_path} already exists. Use --force to overwrite it.")
        return

    conf = _get_default_config()
    if non_interactive:
        logger.info("Running in non-interactive mode with default values.")
    else:
        try:
            conf["features"]["enabled"] = _prompt_for_list_input("Extra feature flags (comma-separated, e.g. build-lib-x264)", "")
            conf["license"]["accept"] = _prompt_for_list_input(
                f"Accepted licenses (comma-separated: {', '.join(k.value for k in LicenseKind)})", "")
            # "auto" leaves the mode to the enabled features.
            mode = click.prompt(
                "Build mode", default=AUTO_MODE,
                type=click.Choice([AUTO_MODE] + [mode.value for mode in BuildMode]))
            if mode != AUTO_MODE:
                conf["build"]["mode"] = mode
            if mode == BuildMode.FORCE_FROM_SOURCE.value:
                conf["build"]["source_dir"] = click.prompt("Path to the FFmpeg source tree", default="vendor/ffmpeg")
                conf["build"]["prefix"] = click.prompt("Install prefix for the vendored build", default="build/ffmpeg")
        except click.Abort:
            logger.warning("\nInitialization aborted by user.")
            return

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.success(f"Configuration saved to {config_path}")
        logger.info("Next steps: Run 'ffplan doctor' to check your environment, then 'ffplan resolve'.")
