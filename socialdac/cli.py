"""
SocialDAC CLI — drive the DAC from a shell.

Commands:
- socialdac call      — init, optionally run the login hook, call one method
- socialdac show      — print the skapp's relation document (or the registry)
- socialdac serve     — serve the RPC surface as JSON lines over stdin/stdout

Every command takes ``--config`` (socialdac.yaml) and ``--referrer`` (URL of
the embedding skapp page, which decides the namespace).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional

from socialdac.boundary.adapter import SocialDAC, create_dac
from socialdac.engine.config import SocialDACConfig, apply_url_flags, load_config
from socialdac.engine.errors import SocialDACError
from socialdac.engine.logging import configure_logging, init_logging, shutdown_logging
from socialdac.relations.repository import RelationsRepository

logger = logging.getLogger("socialdac.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="socialdac",
        description="SocialDAC — follow/unfollow relationship store",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="Path to socialdac.yaml (default: auto-discover)")
    common.add_argument("--referrer", required=True, help="URL of the embedding skapp page")
    common.add_argument("--url", default=None, help="DAC URL; ?debug=true / ?dev=true switches are honoured")

    # socialdac call
    call_parser = subparsers.add_parser("call", parents=[common], help="Call one RPC method")
    call_parser.add_argument("method", choices=["follow", "unfollow", "onUserLogin"], help="Method to call")
    call_parser.add_argument("args", nargs="*", help="Method arguments")
    call_parser.add_argument("--login", action="store_true", help="Run onUserLogin after init")

    # socialdac show
    show_parser = subparsers.add_parser("show", parents=[common], help="Print stored documents")
    show_parser.add_argument("--registry", action="store_true", help="Print the skapp registry instead")

    # socialdac serve
    subparsers.add_parser("serve", parents=[common], help="Serve JSON-lines RPC on stdio")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config = _load(args)
    if args.command == "call":
        return asyncio.run(cmd_call(args, config))
    elif args.command == "show":
        return asyncio.run(cmd_show(args, config))
    elif args.command == "serve":
        return asyncio.run(cmd_serve(args, config))
    parser.print_help()
    return 0


def _load(args: argparse.Namespace) -> SocialDACConfig:
    config = apply_url_flags(load_config(args.config), args.url)
    configure_logging(config.logging.level, debug=config.dac.debug)
    if config.logging.file_logging:
        init_logging(config.logging.directory)
    return config


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


async def _ready_dac(args: argparse.Namespace, config: SocialDACConfig) -> Optional[SocialDAC]:
    dac = create_dac(config, args.referrer)
    try:
        await dac.init()
    except SocialDACError as e:
        print(f"init failed: {e.message}", file=sys.stderr)
        return None
    return dac


async def cmd_call(args: argparse.Namespace, config: SocialDACConfig) -> int:
    """init → (onUserLogin) → method. Prints the result as JSON."""
    dac = await _ready_dac(args, config)
    if dac is None:
        return 1
    try:
        if args.login or args.method == "onUserLogin":
            await dac.on_user_login()
            await dac.wait_background()
        if args.method == "onUserLogin":
            _print({"result": None})
            return 0

        response = await dac.connection.handle({
            "id": 1,
            "method": args.method,
            "args": list(args.args),
            "origin": args.referrer,
        })
        _print(response)
        if "error" in response:
            return 1
        return 0 if response["result"].get("success") else 1
    finally:
        await dac.close()
        shutdown_logging()


async def cmd_show(args: argparse.Namespace, config: SocialDACConfig) -> int:
    """Print the current relation document (defaulted if never written)."""
    dac = await _ready_dac(args, config)
    if dac is None:
        return 1
    context = dac.context
    repository = RelationsRepository(context.store, context.session, context.data_domain)
    try:
        if args.registry:
            registry = await repository.load_registry()
            _print(registry.to_json_data())
        else:
            doc = await repository.load_relations(context.skapp)
            _print(doc.to_json_data())
    except SocialDACError as e:
        print(f"show failed: {e.message}", file=sys.stderr)
        return 1
    finally:
        await dac.close()
        shutdown_logging()
    return 0


async def cmd_serve(args: argparse.Namespace, config: SocialDACConfig) -> int:
    """
    Serve the four RPC methods on stdin/stdout. The peer calls ``init``
    itself, exactly as an embedding skapp would.
    """
    dac = create_dac(config, args.referrer)
    loop = asyncio.get_running_loop()

    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
    writer = asyncio.StreamWriter(transport, protocol, reader, loop)

    logger.info("Serving SocialDAC for %s on stdio", args.referrer)
    try:
        await dac.connection.serve(reader, writer)
    finally:
        await dac.close()
        shutdown_logging()
    return 0


if __name__ == "__main__":
    sys.exit(main())
