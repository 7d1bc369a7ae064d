"""
mm-signal CLI, the `mm-signal` command.

Commands:
  mm-signal run -c CONFIG          Run the bridge for every configured server
  mm-signal check -c CONFIG        Show token status per server
  mm-signal dump -c CONFIG [-s N]  Print the raw event stream of one server
  mm-signal parse-log [FILE]       Report JSON frames that fail to decode
"""

import asyncio
import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from mm_signal.config import Config, load_config
from mm_signal.errors import ConfigError

console = Console()
LOG_ENV = "MM_SIGNAL_LOG"


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def _load(path: str) -> Config:
    try:
        return load_config(path)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(2)


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option(
    "--log-level",
    default=lambda: os.environ.get(LOG_ENV, "INFO"),
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help=f"Log level (default: ${LOG_ENV} or INFO)",
)
def main(log_level: str):
    """Mattermost to Signal bridge: mentions from your chat servers on your phone."""
    _setup_logging(log_level)


# Register subcommands from separate modules
from mm_signal.cli.bridge import check_cmd, run_cmd  # noqa: E402
from mm_signal.cli.debug import dump_cmd, parse_log_cmd  # noqa: E402

main.add_command(run_cmd)
main.add_command(check_cmd)
main.add_command(dump_cmd)
main.add_command(parse_log_cmd)


if __name__ == "__main__":
    main()
