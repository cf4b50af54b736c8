import argparse
import asyncio
import logging
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from tqdm.asyncio import tqdm

from . import __version__, settings
from .access_key import (
    access_key_to_shadowsocks_config,
    access_keys_match,
    is_dynamic_access_key,
    parse_access_key,
    parse_file,
    shadowsocks_config_to_access_key,
)
from .errors import OutlineError
from .net import TcpNetworking
from .qr import generate_qr_ascii
from .repository import OutlineServer, fetch_session_config, static_key_to_session_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="outlinekeys", description="Shadowsocks access key tool")
    parser.add_argument("-v", dest="verbose", action="count", default=0, help="print verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Show the fields of an access key")
    p.add_argument("key")

    p = sub.add_parser("normalize", help="Print the canonical (SIP002) form of an access key")
    p.add_argument("key")

    p = sub.add_parser("match", help="Exit 0 if two access keys proxy through the same server")
    p.add_argument("a")
    p.add_argument("b")

    p = sub.add_parser("fetch", help="Resolve a dynamic (ssconf:// or https://) access key")
    p.add_argument("key")

    p = sub.add_parser("qr", help="Render an access key as a QR code")
    p.add_argument("key")

    p = sub.add_parser("check", help="Check TCP reachability of every server in a key file")
    p.add_argument("--file", type=str, required=True, help="File with one access key per line")
    p.add_argument("--concurrency", type=int, default=settings.CHECK_CONCURRENCY, help="Number of concurrent checks")
    p.add_argument("--timeout", type=float, default=settings.REACHABILITY_TIMEOUT, help="Seconds per connection attempt")
    return parser


def setup_logging(verbose: int):
    if verbose == 0:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    settings.logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in settings.logger.handlers):
        settings.logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def _fields_table(title: str, rows) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in rows:
        table.add_row(field, "" if value is None else escape(str(value)))
    return table


async def _check_file(console: Console, args) -> int:
    keys = parse_file(args.file)
    console.print(f"Loaded {len(keys)} access keys.")
    net = TcpNetworking(timeout=args.timeout)
    sem = asyncio.Semaphore(args.concurrency)

    async def check_one(key):
        async with sem:
            try:
                config = (
                    await fetch_session_config(key)
                    if is_dynamic_access_key(key)
                    else static_key_to_session_config(key)
                )
            except OutlineError as e:
                return key, None, False, 0, str(e)
            if not config.host or config.port is None:
                return key, None, False, 0, "session config has no host or port"
            return (key, config, *await net.check_tcp_connect(config.host, config.port))

    results = await tqdm.gather(*(check_one(k) for k in keys), desc="Checking servers", unit="server")
    results.sort(key=lambda x: (not x[2], x[3]))

    table = Table(title="Reachability")
    table.add_column("Status")
    table.add_column("Latency", justify="right")
    table.add_column("Address")
    table.add_column("Cipher")
    table.add_column("Error")
    up = 0
    for key, config, is_up, latency, err in results:
        up += is_up
        address = f"{config.host}:{config.port}" if config else escape(key[:40])
        cipher = config.method if config else ""
        if config and not OutlineServer.is_server_cipher_supported(cipher):
            cipher += " (unsupported)"
        table.add_row(
            "[green]UP[/green]" if is_up else "[red]DOWN[/red]",
            f"{latency:.0f}ms" if is_up else "-",
            address,
            cipher,
            escape(err),
        )
    console.print(table)
    console.print(f"Total: {len(results)}, UP: {up}, DOWN: {len(results) - up}")
    return 0 if up == len(results) else 1


async def async_main(args, console: Console) -> int:
    if args.command == "parse":
        fields = parse_access_key(args.key)
        console.print(_fields_table("Access key", [
            ("host", fields.host),
            ("port", fields.port),
            ("method", fields.method),
            ("password", fields.password),
            ("tag", fields.tag),
            *((f"extra.{k}", v) for k, v in fields.extra.items()),
            ("AEAD", OutlineServer.is_server_cipher_supported(fields.method)),
        ]))
        return 0

    if args.command == "normalize":
        access_key = shadowsocks_config_to_access_key(access_key_to_shadowsocks_config(args.key))
        console.print(escape(access_key), highlight=False, soft_wrap=True)
        return 0

    if args.command == "match":
        matched = access_keys_match(args.a, args.b)
        console.print("[green]match[/green]" if matched else "[yellow]no match[/yellow]")
        return 0 if matched else 1

    if args.command == "fetch":
        config = await fetch_session_config(args.key)
        console.print(_fields_table("Session config", [
            ("host", config.host),
            ("port", config.port),
            ("method", config.method),
            ("password", config.password),
            ("prefix", config.prefix),
        ]))
        return 0

    if args.command == "qr":
        text, _, mode = generate_qr_ascii(args.key, console_width=console.width)
        if mode is None:
            console.print(f"[red]{text}[/red]")
            return 1
        console.print(text, highlight=False, soft_wrap=True)
        return 0

    if args.command == "check":
        return await _check_file(console, args)

    raise ValueError(f"unknown command {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    console = Console()
    try:
        return asyncio.run(async_main(args, console))
    except OutlineError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 2
    except KeyboardInterrupt:
        console.print("\nAborted.")
        return 130
