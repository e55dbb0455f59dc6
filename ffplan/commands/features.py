import click
from ..catalog import load_catalog
from ..cli_logger import logger
from ..decorators import handle_exceptions

CATEGORY_ORDER = ["component", "mode", "codegen", "license", "misc", "ssl", "filter", "codec", "protocol"]


@click.command()
@click.option("--expand", "to_expand", multiple=True, help="Show the closure of these flags instead of the full table.")
@click.option("--catalog", "catalog_path", type=click.Path(exists=True, dir_okay=False), default=None, help="Alternative feature catalog.")
@handle_exceptions
def features(to_expand, catalog_path):
    """List the known feature flags, or expand a set of them."""
    catalog = load_catalog(catalog_path)
    graph = catalog.graph

    if to_expand:
        expanded = graph.expand(to_expand)
        for name in sorted(expanded):
            click.echo(name)
        logger.info(f"Libraries: {', '.join(graph.required_libraries(expanded)) or 'none'}")
        return

    by_category = {}
    for name in graph.names():
        by_category.setdefault(graph[name].category, []).append(graph[name])

    categories = [c for c in CATEGORY_ORDER if c in by_category] + sorted(set(by_category) - set(CATEGORY_ORDER))
    for category in categories:
        click.echo(f"{category}:")
        for flag in by_category[category]:
            details = []
            if flag.name in catalog.default_features:
                details.append("default")
            if flag.implies:
                details.append(f"implies {', '.join(sorted(flag.implies))}")
            if flag.requires_license:
                details.append(f"license {flag.requires_license.value}")
            if flag.accepts_license:
                details.append(f"accepts {flag.accepts_license.value}")
            suffix = f" ({'; '.join(details)})" if details else ""
            click.echo(f"  {flag.name}{suffix}")
