"""Command-line interface for publishing notes to Ghost."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Sequence

from ..core import TransportError
from ..platforms.ghost import GhostApiError, GhostValidationError, PostValidationError
from ..settings import AppConfig, load_config
from ..utils.logging import configure_logging, get_logger
from .pipeline import build_context, locate_note

LOGGER = get_logger(__name__)

_PUBLISH_ERRORS = (PostValidationError, GhostApiError, TransportError, FileNotFoundError, ValueError, RuntimeError)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(structured=not args.log_plain)

    handler: Callable[[argparse.Namespace], int] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    return handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ghostpost", description="Publish vault notes to Ghost")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose logging, including Ghost request and response bodies",
    )

    subparsers = parser.add_subparsers(dest="command")

    publish_parser = subparsers.add_parser("publish", help="Create or update the Ghost post for a note")
    publish_parser.add_argument("note", help="Note path, on disk or relative to the vault")
    publish_parser.add_argument("--vault", help="Vault directory; defaults to [app] vault_path", default=None)
    publish_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the post payload without uploading or publishing",
    )
    publish_parser.set_defaults(handler=_handle_publish)

    upload_parser = subparsers.add_parser(
        "upload-images",
        help="Upload a note's local images and rewrite the note to use their URLs",
    )
    upload_parser.add_argument("note", help="Note path, on disk or relative to the vault")
    upload_parser.add_argument("--vault", help="Vault directory; defaults to [app] vault_path", default=None)
    upload_parser.set_defaults(handler=_handle_upload_images)

    check_parser = subparsers.add_parser("check", help="Test connectivity with configured credentials")
    check_parser.add_argument("target", choices=("ghost", "storage"))
    check_parser.set_defaults(handler=_handle_check)

    return parser


def _load(args: argparse.Namespace) -> AppConfig:
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Error loading configuration: {exc}") from exc
    if args.debug or config.debug:
        configure_logging(level=logging.DEBUG, structured=not args.log_plain)
    return config


def _handle_publish(args: argparse.Namespace) -> int:
    config = _load(args)
    if not args.dry_run and not config.ghost.is_configured():
        raise SystemExit("Please configure the Ghost site URL and Admin API key")

    try:
        context = build_context(config, vault_path=_vault_path(args), with_ghost=not args.dry_run)
        note = locate_note(context.vault, args.note)
        LOGGER.info(
            "Publishing note",
            extra={"event": "cli.command", "command": "publish", "note": note.path, "dry_run": args.dry_run},
        )
        result = context.workflow.publish(note, dry_run=args.dry_run)
    except GhostValidationError as exc:
        LOGGER.error("Ghost validation error", extra={"event": "cli.error", "messages": exc.messages})
        raise SystemExit(f"Ghost validation error: {'; '.join(exc.messages) or exc}") from exc
    except _PUBLISH_ERRORS as exc:
        LOGGER.error("Publish failed", extra={"event": "cli.error", "error_type": type(exc).__name__})
        raise SystemExit(f"Error publishing to Ghost: {exc}") from exc

    if args.dry_run:
        print(json.dumps(result.payload, ensure_ascii=False, indent=2))
    else:
        print(f"{result.action}: {result.url or result.post_id}")
    return 0


def _handle_upload_images(args: argparse.Namespace) -> int:
    config = _load(args)
    try:
        context = build_context(config, vault_path=_vault_path(args), with_ghost=False)
        note = locate_note(context.vault, args.note)
        result = context.workflow.upload_images(note)
    except OSError as exc:
        raise SystemExit(f"Error: {exc}") from exc

    LOGGER.info(
        "Image upload finished",
        extra={
            "event": "cli.command",
            "command": "upload-images",
            "note": note.path,
            "uploaded": result.uploaded_count,
            "failed": result.failed,
        },
    )
    print(f"uploaded: {result.uploaded_count}")
    return 0 if not result.failed else 1


def _handle_check(args: argparse.Namespace) -> int:
    config = _load(args)
    if args.target == "ghost":
        if not config.ghost.is_configured():
            raise SystemExit("Please configure the Ghost site URL and Admin API key")
        try:
            ok = build_context(config).ghost.check_connection()
        except ValueError as exc:
            raise SystemExit(f"Error: {exc}") from exc
    else:
        storage = build_context(config, with_ghost=False).storage
        if not storage.is_configured():
            raise SystemExit("Enable storage and fill in all credentials first")
        ok = storage.check_connection()

    print(f"{args.target}: {'ok' if ok else 'failed'}")
    return 0 if ok else 1


def _vault_path(args: argparse.Namespace) -> Path | None:
    return Path(args.vault) if args.vault else None


__all__ = ["main"]
