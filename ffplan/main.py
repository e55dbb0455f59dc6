import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory.")
@click.pass_context
def cli(ctx, path):
    """ffplan: resolve FFmpeg feature flags into a build plan."""
    ctx.obj = {"path": path}

cli.add_command(init)
cli.add_command(resolve)
cli.add_command(features)
cli.add_command(doctor)
cli.add_command(config)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
