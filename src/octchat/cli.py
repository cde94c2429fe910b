# src/octchat/cli.py
"""Command line entry point for identity management, signing and serving.

Usage:
    octchat identity generate
    octchat identity show
    octchat sign "hello"
    octchat sign "hello" | octchat verify
    octchat serve
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from octchat.core.settings import settings
from octchat.services.crypto import CryptoError
from octchat.services.identity import CorruptIdentityError, Identity, IdentityManager, IdentityStore
from octchat.services.relay import screen_message
from octchat.services.signing import build_outgoing_message

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CORRUPT_IDENTITY = 2


def _manager(args: argparse.Namespace) -> IdentityManager:
    return IdentityManager(IdentityStore(args.identity_dir))


def _describe(identity: Identity) -> dict[str, str]:
    record = identity.to_record()
    record.pop("privateKey")
    return record


def _load_required_identity(args: argparse.Namespace, err: TextIO) -> Identity | None:
    identity = _manager(args).load_identity()
    if identity is None:
        print("No identity stored; run `octchat identity generate` first.", file=err)
    return identity


def cmd_identity_generate(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    try:
        identity = _manager(args).generate_identity()
    except CryptoError as exc:
        print(f"Failed to generate identity: {exc}", file=err)
        return EXIT_FAILURE
    print(json.dumps(_describe(identity), indent=2), file=out)
    return EXIT_OK


def cmd_identity_show(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    identity = _load_required_identity(args, err)
    if identity is None:
        return EXIT_FAILURE
    print(json.dumps(_describe(identity), indent=2), file=out)
    return EXIT_OK


def cmd_sign(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    identity = _load_required_identity(args, err)
    if identity is None:
        return EXIT_FAILURE
    try:
        payload = build_outgoing_message(identity, args.content, timestamp=args.timestamp)
    except CryptoError as exc:
        print(f"Failed to sign message: {exc}", file=err)
        return EXIT_FAILURE
    print(json.dumps(payload), file=out)
    return EXIT_OK


def cmd_verify(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    try:
        source = args.file.read_text(encoding="utf-8") if args.file else sys.stdin.read()
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Cannot read payload: {exc}", file=err)
        return EXIT_FAILURE
    try:
        payload = json.loads(source)
    except ValueError as exc:
        print(f"Payload is not JSON: {exc}", file=err)
        return EXIT_FAILURE

    # Same admission checks the relay applies to sendMessage.
    screening = screen_message(payload)
    if not screening.accepted:
        print(f"invalid: {screening.reason}", file=out)
        return EXIT_FAILURE
    print("valid", file=out)
    return EXIT_OK


def cmd_serve(args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    from octchat.main import run

    run()
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="octchat", description="Octchat identity and relay tools")
    parser.add_argument(
        "--identity-dir",
        type=Path,
        default=settings.identity_dir,
        help="directory holding the local identity record",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    identity = subparsers.add_parser("identity", help="manage the local identity")
    identity_sub = identity.add_subparsers(dest="identity_command", required=True)
    identity_sub.add_parser("generate", help="generate and store a new identity").set_defaults(
        handler=cmd_identity_generate
    )
    identity_sub.add_parser("show", help="print the stored identity").set_defaults(
        handler=cmd_identity_show
    )

    sign = subparsers.add_parser("sign", help="print a signed sendMessage payload")
    sign.add_argument("content", help="message text to sign")
    sign.add_argument("--timestamp", type=int, default=None, help="epoch milliseconds")
    sign.set_defaults(handler=cmd_sign)

    verify = subparsers.add_parser("verify", help="check a sendMessage payload")
    verify.add_argument("file", nargs="?", type=Path, help="payload file (default: stdin)")
    verify.set_defaults(handler=cmd_verify)

    subparsers.add_parser("serve", help="run the relay").set_defaults(handler=cmd_serve)
    return parser


def main(
    argv: Sequence[str] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level_name)
    try:
        return int(args.handler(args, out, err))
    except CorruptIdentityError as exc:
        print(f"{exc}. Generate a new identity to replace it.", file=err)
        return EXIT_CORRUPT_IDENTITY


if __name__ == "__main__":
    sys.exit(main())
