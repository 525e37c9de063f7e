"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from pathlib import Path

import typer

from buscmd.api import Client
from buscmd.core.addressing import parse_address
from buscmd.core.encoder import format_hex
from buscmd.core.errors import BuscmdError, TransportFailureError
from buscmd.core.model import CommandKind, ResponseRecord, ResponseType
from buscmd.core.settings import load_settings
from buscmd.transports.serial_port import list_serial_ports

app = typer.Typer(help="Send catalog commands to addressable peripherals on a shared serial bus")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _build_client(
    port: str | None = None,
    catalog: Path | None = None,
    default_response_type: ResponseType = ResponseType.NONE,
) -> Client:
    settings = load_settings()
    if port:
        settings = replace(settings, port=port)
    return Client(
        settings=settings,
        catalog_path=catalog,
        on_response=_print_response,
        default_response_type=default_response_type,
    )


def _print_response(record: ResponseRecord) -> None:
    stamp = record.received_at.strftime("%H:%M:%S")
    label = "Binary" if record.rendered.response_type is ResponseType.BINARY else "Text"
    source = record.command or "Response"
    typer.echo(f"[{stamp}] {source}: {label}: {record.rendered.text}")


@app.command("commands")
def list_commands(
    catalog: Path | None = typer.Option(None, "--catalog", help="Catalog YAML/JSON file"),
) -> None:
    """List catalog commands."""
    try:
        client = _build_client(catalog=catalog)
        commands = client.list_commands()
        if not commands:
            typer.echo("No commands loaded")
            raise typer.Exit(code=1)

        for index, command in enumerate(commands):
            value = f" value={command.min_value}-{command.max_value}" if command.extra_value else ""
            typer.echo(
                f"{index}: {command.name} [{command.hex_bytes}] {command.kind.value} "
                f"response={command.response_type.value}{value}"
            )
    except BuscmdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("ports")
def list_ports() -> None:
    """List serial ports."""
    ports = list_serial_ports()
    if not ports:
        typer.echo("No serial ports found")
        return
    for device, description in ports:
        typer.echo(f"{device} {description}".rstrip())


@app.command("send")
def send(
    command: str = typer.Argument(..., help="Command name or catalog index"),
    value: int | None = typer.Argument(None, help="Parameter byte for commands that take one"),
    address: list[str] | None = typer.Option(
        None, "--address", "-a", help="Bus address 0x0-0xF (repeatable)"
    ),
    all_addresses: bool = typer.Option(False, "--all", help="Target all 16 bus addresses"),
    port: str | None = typer.Option(None, "--port", help="Serial port device"),
    catalog: Path | None = typer.Option(None, "--catalog", help="Catalog YAML/JSON file"),
    listen: float = typer.Option(0.0, "--listen", help="Seconds to print replies after sending"),
) -> None:
    """Send COMMAND once, or once per selected address for addressable commands."""
    try:
        client = _build_client(port=port, catalog=catalog)
        definition = client.catalog.resolve(command)
        if all_addresses:
            client.selection.select_all()
        for raw in address or ():
            client.selection.select(parse_address(raw))
        if definition.kind is CommandKind.PLAIN and len(client.selection):
            typer.echo(f"Note: '{definition.name}' is a plain command; addresses are ignored", err=True)

        with client:
            try:
                result = client.send(command, value)
            except TransportFailureError as exc:
                for frame in exc.sent:
                    typer.echo(f"Sent {frame.command} to {frame.target_label}: {format_hex(frame.data)}")
                raise
            for frame in result.frames:
                typer.echo(f"Sent {frame.command} to {frame.target_label}: {format_hex(frame.data)}")
            if listen > 0:
                time.sleep(listen)
    except BuscmdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("monitor")
def monitor(
    port: str | None = typer.Option(None, "--port", help="Serial port device"),
    response_type: ResponseType = typer.Option(ResponseType.BINARY, "--type", help="How to render replies"),
    catalog: Path | None = typer.Option(None, "--catalog", help="Catalog YAML/JSON file"),
) -> None:
    """Print replies from the bus until interrupted."""
    try:
        client = _build_client(port=port, catalog=catalog, default_response_type=response_type)
        with client:
            typer.echo(f"Listening on {client.settings.port} (Ctrl-C to stop)", err=True)
            try:
                while client.monitor_error is None:
                    time.sleep(0.2)
            except KeyboardInterrupt:
                return
            raise client.monitor_error
    except BuscmdError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
