"""
Command-line entry point for orbi.

The whole command surface is one argparse schema parsed once here; nothing
below this module sees raw arguments.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Sequence, TextIO

from ._version import __version__
from .core import diagnostics
from .core.broadcast import RelayBroadcaster
from .core.chain import (
    PublishOutcome,
    VersionChain,
    advance_head,
    tracked_status,
)
from .core.chain_store import ChainStore
from .core.errors import BroadcastError, OrbiError
from .core.settings import Settings
from .core.signing import NostrKeySigner, resolve_secret_path
from .metrics.metrics import MetricsCollector
from .plugins.relays import WebsocketRelayClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orbi",
        description="Publish file versions as signed event chains to relays",
    )
    parser.add_argument("--version", action="version", version=f"orbi {__version__}")
    parser.add_argument(
        "--relay",
        dest="relays",
        action="append",
        metavar="URL",
        help="Relay endpoint (repeatable; overrides ORBI_RELAYS__URLS)",
    )
    parser.add_argument(
        "--relay-timeout",
        type=float,
        metavar="SECONDS",
        help="Per-relay publish timeout",
    )
    parser.add_argument(
        "--no-ack",
        action="store_true",
        help="Count a relay as successful once the event is sent, without waiting for OK",
    )
    parser.add_argument(
        "--store-dir",
        type=Path,
        metavar="DIR",
        help="Project directory holding the .orbi store (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show relay diagnostics (-vv for debug)",
    )

    sub = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    p_publish = sub.add_parser("publish", help="Publish the first version of a file")
    p_publish.add_argument("file", type=Path)
    p_publish.add_argument("-m", "--message", default=None)

    p_commit = sub.add_parser("commit", help="Publish a new version of a published file")
    p_commit.add_argument("file", type=Path)
    p_commit.add_argument("positional_message", nargs="?", metavar="MESSAGE")
    p_commit.add_argument("-m", "--message", default=None)

    p_conf = sub.add_parser(
        "confluence", help="Publish an event referencing several events or files"
    )
    p_conf.add_argument(
        "refs",
        nargs="*",
        metavar="REF",
        help="Event ids (64 hex) or file names; defaults to all tracked files",
    )
    p_conf.add_argument("-m", "--message", default="")

    p_head = sub.add_parser("head", help="Show or explicitly set a file's head pointer")
    p_head.add_argument("file", type=Path)
    p_head.add_argument("event_id", nargs="?")

    sub.add_parser("status", help="List tracked files and their chain pointers")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Overlay CLI flags on environment-derived settings."""
    settings = base or Settings()
    relays: dict[str, Any] = {}
    if args.relays:
        relays["urls"] = args.relays
    if args.relay_timeout is not None:
        relays["timeout_seconds"] = args.relay_timeout
    if args.no_ack:
        relays["require_ack"] = False
    store: dict[str, Any] = {}
    if args.store_dir is not None:
        store["base_dir"] = str(args.store_dir)
    if args.verbose:
        level = "DEBUG" if args.verbose > 1 else "INFO"
        settings = settings.model_copy(
            update={"core": settings.core.model_copy(update={"log_level": level})}
        )
    # Re-validate so the empty-list fallback and bounds apply to flags too
    data = settings.model_dump()
    data["relays"].update(relays)
    data["store"].update(store)
    return Settings.model_validate(data)


def open_store(settings: Settings) -> ChainStore:
    base = settings.store.base_dir or Path.cwd()
    return ChainStore(base, settings.store.dir_name)


def build_chain(settings: Settings, store: ChainStore) -> VersionChain:
    signer = NostrKeySigner.from_file(resolve_secret_path(settings.keys.secret_path))
    client = WebsocketRelayClient(
        require_ack=settings.relays.require_ack,
        open_timeout=settings.relays.open_timeout_seconds,
    )
    broadcaster = RelayBroadcaster(
        client,
        relay_timeout=settings.relays.timeout_seconds,
        deadline_slack=settings.relays.deadline_slack_seconds,
        metrics=MetricsCollector(enabled=settings.core.enable_metrics),
    )
    return VersionChain(store, signer, broadcaster, settings.relays.urls)


def _report(outcome: PublishOutcome, out: TextIO) -> None:
    out.write(f"{outcome.event_id}\n")
    for relay in outcome.accepted:
        out.write(f"  accepted by {relay}\n")
    for failed in outcome.broadcast.failed:
        out.write(f"  failed on {failed.relay}: {failed.error}\n")
    for warning in outcome.warnings:
        out.write(f"  warning: {warning}\n")


async def run(
    args: argparse.Namespace,
    settings: Settings,
    *,
    chain: VersionChain | None = None,
    out: TextIO = sys.stdout,
) -> int:
    store = chain.store if chain is not None else open_store(settings)

    if args.command == "status":
        for ptr in await tracked_status(store):
            out.write(f"{ptr.filename}\troot={ptr.root or '-'}\thead={ptr.head or '-'}\n")
        return 0

    if args.command == "head":
        if args.event_id:
            await advance_head(store, args.file, args.event_id)
        head = await store.read_head(args.file)
        out.write(f"{head or '(implicit: latest commit)'}\n")
        return 0

    if chain is None:
        chain = build_chain(settings, store)

    if args.command == "publish":
        outcome = await chain.publish(args.file, message=args.message)
    elif args.command == "commit":
        message = args.message if args.message is not None else args.positional_message
        outcome = await chain.commit(args.file, message=message)
    else:
        outcome = await chain.confluence(args.refs, message=args.message)
    _report(outcome, out)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = settings_from_args(args)
    except ValueError as exc:
        sys.stderr.write(f"Error: invalid configuration: {exc}\n")
        return 1
    diagnostics.configure(settings.core.log_level)
    try:
        return asyncio.run(run(args, settings))
    except BroadcastError as exc:
        sys.stderr.write(f"Error: {exc.message}\n")
        for o in exc.outcomes:
            sys.stderr.write(f"  {o.relay}: {o.error}\n")
        return 1
    except OrbiError as exc:
        sys.stderr.write(f"Error: {exc.message}\n")
        return 1
    except ValueError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
