"""CLI entrypoint for the candy machine allowlist engine.

Usage:
    candy-allowlist root FILE [--array]          # Print each group's Merkle root
    candy-allowlist proof FILE WALLET [--group]  # Print a wallet's proof
    candy-allowlist verify FILE WALLET ROOT      # Check a wallet against a committed root
    candy-allowlist serve [--host --port]        # Start the HTTP service
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

import uvicorn

from candy_allowlist import __version__
from candy_allowlist.config import settings
from candy_allowlist.loader import AllowListSourceError, load_allowlists
from candy_allowlist.registry import AllowListRegistry


def _load_registry(source: str) -> AllowListRegistry:
    try:
        return AllowListRegistry(load_allowlists(source))
    except (AllowListSourceError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)


def _cmd_root(args: argparse.Namespace) -> int:
    registry = _load_registry(args.source)
    for label in registry.labels:
        group = registry.group_root(label)
        if args.array:
            print(f"{label}\t{json.dumps(group.root_array)}")
        else:
            print(f"{label}\t{group.root_hash}")
    return 0


def _cmd_proof(args: argparse.Namespace) -> int:
    registry = _load_registry(args.source)
    if args.group not in registry.labels:
        print(f"ERROR: unknown guard group {args.group!r}", file=sys.stderr)
        return 1
    index = registry.index_of(args.wallet, args.group)
    if index == -1:
        print(f"{args.wallet} is not on the {args.group} allowlist", file=sys.stderr)
        return 1
    tree = registry.tree(args.group)
    print(
        json.dumps(
            {
                "group_label": args.group,
                "wallet": args.wallet,
                "leaf_index": index,
                "proof": tree.get_hex_proof(index),
                "root_hash": tree.hex_root,
            },
            indent=2,
        )
    )
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    registry = _load_registry(args.source)
    try:
        decision = registry.decision(args.wallet, args.root, args.group)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    print(json.dumps(decision.model_dump(mode="json"), indent=2))
    return 0 if decision.allowed else 1


def _cmd_serve(args: argparse.Namespace) -> int:
    print(f"Candy Allowlist v{__version__}")
    print(f"   Source:    {settings.source or '<none>'}")
    print(f"   Encoding:  {settings.identity_encoding}")
    print(f"   Listening: http://{args.host}:{args.port}")
    print()

    uvicorn.run(
        "candy_allowlist.api:app",
        host=args.host,
        port=args.port,
        log_level="info",
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="candy-allowlist",
        description="Merkle allowlist engine for candy machine guard groups",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_root = sub.add_parser("root", help="Print the Merkle root of each group")
    p_root.add_argument("source", help="Allowlist JSON file or URL")
    p_root.add_argument("--array", action="store_true", help="Print roots as byte arrays")
    p_root.set_defaults(func=_cmd_root)

    p_proof = sub.add_parser("proof", help="Print a wallet's inclusion proof")
    p_proof.add_argument("source", help="Allowlist JSON file or URL")
    p_proof.add_argument("wallet")
    p_proof.add_argument("--group", default=settings.default_group)
    p_proof.set_defaults(func=_cmd_proof)

    p_verify = sub.add_parser("verify", help="Check a wallet against a committed root")
    p_verify.add_argument("source", help="Allowlist JSON file or URL")
    p_verify.add_argument("wallet")
    p_verify.add_argument("root", help="Hex Merkle root committed in the guard settings")
    p_verify.add_argument("--group", default=settings.default_group)
    p_verify.set_defaults(func=_cmd_verify)

    p_serve = sub.add_parser("serve", help="Start the HTTP service")
    p_serve.add_argument(
        "--host",
        default=settings.host,
        help=f"Listener host (default: {settings.host})",
    )
    p_serve.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Listener port (default: {settings.port})",
    )
    p_serve.set_defaults(func=_cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    args = build_parser().parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
