"""CLI: mm-signal dump|parse-log, tools for looking at the raw event stream."""

from typing import Optional

import click
from aiohttp import WSMsgType
from rich.console import Console
from rich.markup import escape

from mm_signal.config import Config, ServerConfig
from mm_signal.errors import DecodeError
from mm_signal.models.fields import WireFormat
from mm_signal.transport.codec import decode_frame
from mm_signal.transport.websocket import build_auth_challenge, new_http_session, open_websocket, websocket_url

console = Console()
err_console = Console(stderr=True)


def _load(path: str) -> Config:
    from mm_signal.cli.main import _load
    return _load(path)


def _run(coro):
    from mm_signal.cli.main import _run
    return _run(coro)


def select_server(config: Config, index: Optional[int]) -> ServerConfig:
    """Pick a server by its 1-based position; optional when only one is configured."""
    servers = config.servers
    if index is None:
        if len(servers) > 1:
            raise click.UsageError("Multiple servers are configured, select one with --server.")
        return servers[0]
    if index < 1:
        raise click.UsageError("Servers are numbered starting with 1.")
    if index > len(servers):
        raise click.UsageError(f"Server {index} selected but only {len(servers)} configured.")
    return servers[index - 1]


@click.command("dump")
@click.option("-c", "--config", "config_path", required=True,
              type=click.Path(exists=True, dir_okay=False), help="YAML config file")
@click.option("-s", "--server", "server_index", type=int, default=None,
              help="Server to connect to, starting with 1")
def dump_cmd(config_path: str, server_index: Optional[int]):
    """Print every text frame a server sends, one per line."""
    server = select_server(_load(config_path), server_index)

    async def _dump():
        async with new_http_session() as http:
            ws = await open_websocket(http, websocket_url(server.base_url))
            try:
                await ws.send_str(build_auth_challenge(server.token))
                while True:
                    msg = await ws.receive()
                    if msg.type == WSMsgType.TEXT:
                        click.echo(msg.data)
                    elif msg.type == WSMsgType.PING:
                        await ws.pong(msg.data)
                    elif msg.type in (WSMsgType.CLOSE, WSMsgType.CLOSING, WSMsgType.CLOSED, WSMsgType.ERROR):
                        err_console.print(f"[yellow]Connection ended: {escape(str(msg.data))}[/yellow]")
                        break
            finally:
                await ws.close()

    err_console.print(f"[dim]Connecting to {server.servername} ({server.base_url})...[/dim]")
    try:
        _run(_dump())
    except KeyboardInterrupt:
        pass


@click.command("parse-log")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--legacy", is_flag=True, help="Frames use the legacy wire format (second timestamps)")
def parse_log_cmd(source, legacy: bool):
    """Decode JSON frames, one per line, and report the ones that fail."""
    wire = WireFormat.LEGACY if legacy else WireFormat.CURRENT
    total = failed = 0
    for lineno, line in enumerate(source, 1):
        line = line.strip()
        if not line:
            continue
        total += 1
        try:
            decode_frame(line, wire=wire)
        except DecodeError as e:
            failed += 1
            console.print(f"[red]line {lineno}:[/red] {escape(str(e))}")
            console.print(f"[dim]{escape(line)}[/dim]", soft_wrap=True)

    style = "red" if failed else "green"
    console.print(f"[{style}]{failed} of {total} frame(s) failed to decode[/{style}]")
    if failed:
        raise SystemExit(1)
