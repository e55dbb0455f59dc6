import click
from .. import config as config_module
from ..catalog import load_catalog
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..features import LicenseKind
from ..resolver import ResolutionRequest, Resolver
from ..strategy import BuildMode, parse_mode, parse_overrides
from ..vendored import FFmpegSourceBuilder

LICENSE_CHOICES = [kind.value for kind in LicenseKind]
MODE_CHOICES = [mode.value for mode in BuildMode]


def build_request(catalog, settings, features=(), no_default_features=False, licenses=(), mode=None,
                  overrides=(), target=None, jobs=None):
    """Merge ffplan.toml settings with command-line values (command line wins)."""
    requested = set(settings["features"]) | set(features)
    if settings["default_features"] and not no_default_features:
        requested |= set(catalog.default_features)

    merged_overrides = dict(settings["overrides"])
    merged_overrides.update(parse_overrides(overrides))

    return ResolutionRequest(
        features=frozenset(requested),
        accepted_licenses=frozenset(settings["accepted_licenses"]) | {LicenseKind.parse(kind) for kind in licenses},
        mode=parse_mode(mode) if mode else settings["mode"],
        overrides=merged_overrides,
        target=target or settings["target"],
        jobs=jobs or settings["jobs"],
    )


@click.command()
@click.pass_context
@click.option("--feature", "-f", "features", multiple=True, help="Feature flag to enable (repeatable).")
@click.option("--no-default-features", is_flag=True, help="Do not enable the catalog's default components.")
@click.option("--accept-license", "licenses", multiple=True, type=click.Choice(LICENSE_CHOICES), help="Accept a license kind (repeatable).")
@click.option("--mode", type=click.Choice(MODE_CHOICES), default=None, help="Global build mode.")
@click.option("--override", "overrides", multiple=True, metavar="LIBRARY=STRATEGY", help="Per-library strategy (from-source or system-install).")
@click.option("--target", default=None, help="Target triple for vendored builds.")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Number of libraries discovered or built in parallel.")
@click.option("--catalog", "catalog_path", type=click.Path(exists=True, dir_okay=False), default=None, help="Alternative feature catalog.")
@click.option("--format", "output_format", type=click.Choice(["directives", "json"]), default="directives", help="Plan output format.")
@click.option("--output", "-o", type=click.Path(dir_okay=False, writable=True), default=None, help="Write the plan to a file instead of stdout.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@handle_exceptions
def resolve(ctx, features, no_default_features, licenses, mode, overrides, target, jobs, catalog_path, output_format, output, verbose):
    """Resolve feature flags into a link and binding-generation plan."""
    logger.verbose = verbose
    path = ctx.obj["path"]
    settings = config_module.get_resolution_settings(config_module.load_config(path=path, strict=True), path=path)
    catalog = load_catalog(catalog_path).with_minimum_versions(settings["minimum_versions"])

    request = build_request(catalog, settings, features, no_default_features, licenses, mode, overrides, target, jobs)

    builder = None
    if settings["source_dir"]:
        builder = FFmpegSourceBuilder.from_catalog(
            catalog,
            settings["source_dir"],
            settings["prefix"] or f"{settings['source_dir']}-install",
            target=request.target,
        )

    plan = Resolver(catalog, builder=builder).resolve(request)
    text = plan.to_json() if output_format == "json" else plan.render_directives()

    if output:
        with open(output, "w") as f:
            f.write(text)
        logger.success(f"Plan written to {output}")
    else:
        click.echo(text, nl=False)
    logger.success(f"Resolved {len(plan.library_metadata)} libraries for {len(plan.enabled_features)} features.")
