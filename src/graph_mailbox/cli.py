# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for graph-mailbox.

Usage:
    graph-mailbox send --to a@example.com --subject "Hi" --text "Hello"
    graph-mailbox send --to a@example.com --subject "Files" --text "See attached" \\
        --attach-file report.pdf --attach-url https://example.com/logo.png
    graph-mailbox get AAMkAGI2... --attachments
    graph-mailbox get "<abc@mail.example.com>" --select id,subject

Settings come from ``--config`` (INI) and ``GRAPH_MAILBOX_*`` environment
variables; ``--token`` overrides the configured access token.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Any, Optional, Tuple

import aiohttp
import click
from rich.console import Console
from rich.table import Table

from graph_mailbox.client import MailClient
from graph_mailbox.config import MailboxConfig
from graph_mailbox.config_loader import load_mailbox_config
from graph_mailbox.errors import MailboxError

console = Console()
err_console = Console(stderr=True)

COMMAND_ERRORS = (
    MailboxError,
    ValueError,
    FileNotFoundError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


def run_async(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    console.print_json(json.dumps(data, indent=2, default=str))


def build_config(config_path: Optional[str], token: Optional[str]) -> MailboxConfig:
    """Load configuration and apply the ``--token`` override."""
    config = load_mailbox_config(config_path)
    if token:
        config = replace(config, access_token=token)
    return config


def build_client(config: MailboxConfig) -> MailClient:
    """Create the MailClient used by commands."""
    return MailClient(config)


def _fail(message: str) -> None:
    print_error(message)
    sys.exit(1)


@click.group()
@click.version_option(package_name="graph-mailbox")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """graph-mailbox: send and read mail of a shared mailbox."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("send")
@click.option("--config", "config_path", type=click.Path(), default=None, help="INI configuration file.")
@click.option("--token", default=None, envvar="GRAPH_MAILBOX_TOKEN", help="Bearer access token.")
@click.option("--to", "to", required=True, help="Recipients, separated by ';' or ','.")
@click.option("--cc", default=None, help="Carbon-copy recipients.")
@click.option("--bcc", default=None, help="Blind carbon-copy recipients.")
@click.option("--subject", "-s", default="", help="Message subject.")
@click.option("--text", default=None, help="Plain-text body.")
@click.option("--html", default=None, help="HTML body.")
@click.option("--attach-file", "files", multiple=True, type=click.Path(), help="Attach a local file (repeatable).")
@click.option("--attach-url", "urls", multiple=True, help="Attach a remote http(s) document (repeatable).")
def send_command(
    config_path: Optional[str],
    token: Optional[str],
    to: str,
    cc: Optional[str],
    bcc: Optional[str],
    subject: str,
    text: Optional[str],
    html: Optional[str],
    files: Tuple[str, ...],
    urls: Tuple[str, ...],
) -> None:
    """Send a message from the shared mailbox."""
    if text is not None and html is not None:
        _fail("--text and --html are mutually exclusive")

    mail: dict[str, Any] = {"subject": subject, "to": to, "cc": cc, "bcc": bcc}
    if html is not None:
        mail["html"] = html
    else:
        mail["text"] = text
    mail["attachments"] = [{"path": p} for p in files] + [{"href": u} for u in urls]

    try:
        client = build_client(build_config(config_path, token))
        sent = run_async(client.send_mail(mail))
    except COMMAND_ERRORS as exc:
        _fail(str(exc))
        return

    print_success(f"Message sent from {client.mailbox}")
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("id", sent.id)
    table.add_row("internetMessageId", sent.internet_message_id or "-")
    console.print(table)


@main.command("get")
@click.argument("message_id")
@click.option("--config", "config_path", type=click.Path(), default=None, help="INI configuration file.")
@click.option("--token", default=None, envvar="GRAPH_MAILBOX_TOKEN", help="Bearer access token.")
@click.option("--select", default=None, help="Comma-separated fields to return.")
@click.option("--attachments", "include_attachments", is_flag=True, help="Include the attachment list.")
@click.option("--internet-id", is_flag=True, help="Treat MESSAGE_ID as an Internet Message-ID.")
def get_command(
    message_id: str,
    config_path: Optional[str],
    token: Optional[str],
    select: Optional[str],
    include_attachments: bool,
    internet_id: bool,
) -> None:
    """Show a message of the shared mailbox as JSON."""
    fields = [f.strip() for f in select.split(",") if f.strip()] if select else None
    try:
        client = build_client(build_config(config_path, token))
        message = run_async(
            client.get_mail_by_id(
                message_id,
                select=fields,
                include_attachments=include_attachments,
                id_type="internetMessageId" if internet_id else None,
            )
        )
    except COMMAND_ERRORS as exc:
        _fail(str(exc))
        return

    print_json(message)


if __name__ == "__main__":
    main()
