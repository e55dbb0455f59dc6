import functools
import click
import sys
from .cli_logger import logger
from .errors import ResolutionError

def handle_exceptions(func):
    """A decorator that turns failures of CLI commands into one error line and exit status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
            sys.exit(1)
        except ResolutionError as e:
            where = f" (after {e.state.value})" if e.state is not None else ""
            logger.error(f"Error{where}: {e}")
            sys.exit(1)
        except click.ClickException:
            raise
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper
