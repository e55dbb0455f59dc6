import click
import shutil
import sys
from .. import config as config_module
from ..catalog import load_catalog
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..locator import PkgConfigLocator
from ..strategy import BuildStrategy, mode_for_features, select
from .resolve import build_request


@click.command()
@click.pass_context
@click.option("--feature", "-f", "features", multiple=True, help="Feature flag to check (repeatable).")
@click.option("--no-default-features", is_flag=True, help="Do not include the catalog's default components.")
@handle_exceptions
def doctor(ctx, features, no_default_features):
    """Check that pkg-config works and that system libraries can be found."""
    logger.info("Running environment check...")
    path = ctx.obj["path"]
    settings = config_module.get_resolution_settings(config_module.load_config(path=path, strict=True), path=path)
    catalog = load_catalog()
    request = build_request(catalog, settings, features, no_default_features)

    locator = PkgConfigLocator()
    if shutil.which(locator.executable) is None:
        logger.error(f"'{locator.executable}' was not found in PATH. Install pkg-config or set PKG_CONFIG.")
        sys.exit(1)
    logger.success(f"Found {locator.executable}")

    expanded = catalog.graph.expand(request.features)
    mode = request.mode or mode_for_features(expanded)
    missing = []
    for name in catalog.graph.required_libraries(expanded):
        library = catalog.library(name)
        if select(library, mode, request.overrides) is BuildStrategy.FROM_SOURCE:
            logger.step_info(f"{name}: built from source", indent=2)
        elif locator.exists(library.pkg_config_name):
            logger.step_info(f"{name}: found ({library.pkg_config_name})", indent=2)
        else:
            logger.warning(f"{name}: '{library.pkg_config_name}' not found")
            missing.append(name)

    if missing:
        logger.error(f"Environment check found {len(missing)} missing libraries: {', '.join(missing)}")
        sys.exit(1)
    logger.success("Environment check completed successfully.")
