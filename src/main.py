# src/main.py - v1
"""CLI entry point: hash, artifacts, prune commands.

Usage:
    nlucore hash <bot_dir>
    nlucore artifacts <bot_dir> --lang en
    nlucore prune <bot_dir> [--lang en]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from nlucore.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="nlucore",
        description=f"nlucore v{__version__} - per-bot NLU model management",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- hash ---
    p_hash = subparsers.add_parser(
        "hash", help="Print the model hash of a bot's intent definitions",
    )
    p_hash.add_argument("bot_dir", type=Path, help="Bot directory (intents/, entities/)")
    p_hash.set_defaults(func=_cmd_hash)

    # --- artifacts ---
    p_artifacts = subparsers.add_parser(
        "artifacts", help="List stored artifacts for the current hash",
    )
    p_artifacts.add_argument("bot_dir", type=Path, help="Bot directory")
    p_artifacts.add_argument(
        "--lang", default=None,
        help="Language (default: every configured language)",
    )
    p_artifacts.set_defaults(func=_cmd_artifacts)

    # --- prune ---
    p_prune = subparsers.add_parser(
        "prune", help="Delete artifacts of every hash but the current one",
    )
    p_prune.add_argument("bot_dir", type=Path, help="Bot directory")
    p_prune.add_argument(
        "--lang", default=None,
        help="Language (default: every configured language)",
    )
    p_prune.set_defaults(func=_cmd_prune)

    return parser


async def _current_hash(bot_dir: Path) -> str:
    from nlucore.definitions.file_source import FileDefinitionSource
    from nlucore.store.model_hash import compute_model_hash

    intents = await FileDefinitionSource(bot_dir).get_intents()
    return compute_model_hash(intents)


def _languages(args: argparse.Namespace, configured: list[str]) -> list[str]:
    return [args.lang.lower()] if args.lang else configured


async def _cmd_hash(args: argparse.Namespace) -> int:
    """Print the hash of the bot's current intent definitions."""
    if not args.bot_dir.is_dir():
        logger.error("Not a directory: %s", args.bot_dir)
        return 1

    print(await _current_hash(args.bot_dir))
    return 0


async def _cmd_artifacts(args: argparse.Namespace) -> int:
    """List artifacts persisted for the current hash."""
    from nlucore.config.settings import load_settings
    from nlucore.store.store_factory import create_model_store

    if not args.bot_dir.is_dir():
        logger.error("Not a directory: %s", args.bot_dir)
        return 1

    settings = load_settings()
    model_hash = await _current_hash(args.bot_dir)
    store = create_model_store(settings)
    try:
        print(f"\nArtifacts for hash {model_hash}:")
        for lang in _languages(args, settings.languages):
            artifacts = await store.get_models_from_hash(model_hash, lang)
            print(f"  [{lang}] {len(artifacts)} artifact(s)")
            for artifact in sorted(artifacts, key=lambda a: (a.meta.type, a.meta.context)):
                meta = artifact.meta
                print(
                    f"    {meta.type:<22} {meta.context:<12} "
                    f"{meta.created_on.isoformat()}  {len(artifact.payload)} bytes"
                )
    finally:
        store.close()
    return 0


async def _cmd_prune(args: argparse.Namespace) -> int:
    """Remove stale artifacts, keeping those of the current hash."""
    from nlucore.config.settings import load_settings
    from nlucore.store.store_factory import create_model_store

    if not args.bot_dir.is_dir():
        logger.error("Not a directory: %s", args.bot_dir)
        return 1

    settings = load_settings()
    model_hash = await _current_hash(args.bot_dir)
    store = create_model_store(settings)
    try:
        total = 0
        for lang in _languages(args, settings.languages):
            removed = await store.prune(model_hash, lang)
            logger.info("Pruned %d artifact(s) for '%s'", removed, lang)
            total += removed
    finally:
        store.close()

    print(f"\nPruned {total} artifact(s), kept hash {model_hash}")
    return 0


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from nlucore.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING", log_format="text")


if __name__ == "__main__":
    sys.exit(main())
