"""CLI: mm-signal run|check"""

import click
from rich.console import Console
from rich.table import Table

from mm_signal.client import Bridge
from mm_signal.errors import ConnectionError
from mm_signal.transport.http import TokenStatus

console = Console()

STATUS_STYLE = {
    TokenStatus.VALID: "[green]valid[/green]",
    TokenStatus.INVALID: "[red]expired or revoked[/red]",
    TokenStatus.UNKNOWN: "[yellow]unreachable[/yellow]",
}


def _load(path: str):
    from mm_signal.cli.main import _load
    return _load(path)


def _run(coro):
    from mm_signal.cli.main import _run
    return _run(coro)


@click.command("run")
@click.option("-c", "--config", "config_path", required=True,
              type=click.Path(exists=True, dir_okay=False), help="YAML config file")
def run_cmd(config_path: str):
    """Run the bridge until interrupted."""
    config = _load(config_path)
    console.print(f"[cyan]Bridging {len(config.servers)} server(s) to {config.signal_phone_number}[/cyan]")
    try:
        _run(Bridge(config).run())
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
    except ConnectionError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.command("check")
@click.option("-c", "--config", "config_path", required=True,
              type=click.Path(exists=True, dir_okay=False), help="YAML config file")
def check_cmd(config_path: str):
    """Check the access token of every configured server."""
    config = _load(config_path)
    with console.status("Checking tokens..."):
        results = _run(Bridge(config).check_servers())

    table = Table(title="Servers")
    table.add_column("Name", style="bold")
    table.add_column("URL")
    table.add_column("Token")
    for server, status in results:
        table.add_row(server.servername, server.base_url, STATUS_STYLE[status])
    console.print(table)

    if any(status is not TokenStatus.VALID for _, status in results):
        raise SystemExit(1)
