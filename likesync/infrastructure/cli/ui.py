"""UI helpers for CLI interaction.

Reusable presentation pieces for the CLI, keeping console output separate
from the sync logic.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import functools
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.markup import escape
import typer

from likesync.config import get_logger

console = Console()
logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

OK = escape("[Ok]")
FAILED = escape("[Failed]")


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Logs the exception with its traceback, prints a short message and turns
    the failure into exit code 1.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {escape(str(e))}")
                raise typer.Exit(code=1) from e

    return wrapper


@contextmanager
def step(description: str) -> Iterator[None]:
    """Show a spinner while a step runs, then print "<description>... [Ok]".

    Works around awaited code too; the step fails with "[Failed]" and the
    exception propagates.
    """
    label = escape(description)
    with console.status(f"{label}..."):
        try:
            yield
        except BaseException:
            console.print(f"{label}... [bold red]{FAILED}[/bold red]")
            raise
    console.print(f"{label}... [green]{OK}[/green]")
