import click
import os
from ..cli_logger import get_latest_log_file, LOG_DIR
from colorama import Fore, Style

LEVEL_COLORS = {
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "TRACEBACK": Fore.RED,
    "DEBUG": Fore.WHITE + Style.DIM,
    "SUCCESS": Fore.GREEN,
}


def _level(line):
    for level in LEVEL_COLORS:
        if f"[{level}]" in line:
            return level
    return "INFO"


@click.command()
@click.option('--filename', default=None, help='The name of the log file to display.')
@click.option('--list', 'list_files', is_flag=True, help='List all log files.')
@click.option('--level', 'levels', multiple=True, type=click.Choice(["INFO", "SUCCESS", "WARNING", "ERROR", "TRACEBACK", "DEBUG"], case_sensitive=False),
              help='Only show lines of this level (repeatable).')
@click.option('--tail', type=click.IntRange(min=1), default=None, help='Only show the last N lines.')
def log(filename, list_files, levels, tail):
    """Display a specific log file or the latest log file, or list all log files."""
    if list_files:
        log_files = [f for f in os.listdir(LOG_DIR) if f.endswith(".log")] if os.path.isdir(LOG_DIR) else []
        if not log_files:
            click.echo("No log files found.")
            return
        click.echo("Available log files:")
        for f in sorted(log_files):
            click.echo(f"  {f}")
        return

    log_file = os.path.join(LOG_DIR, filename) if filename else get_latest_log_file()
    if not log_file or not os.path.exists(log_file):
        click.echo("No log files found.")
        return

    try:
        with open(log_file, 'r') as f:
            lines = [line.rstrip() for line in f]
    except IOError as e:
        click.echo(f"Error reading log file {log_file}: {e}", err=True)
        return

    if levels:
        wanted = {level.upper() for level in levels}
        lines = [line for line in lines if _level(line) in wanted]
    if tail:
        lines = lines[-tail:]

    click.echo(f"Displaying log file: {log_file}")
    for line in lines:
        click.echo(f"{LEVEL_COLORS.get(_level(line), Fore.CYAN)}{line}{Style.RESET_ALL}")
