# src/main.py — v2
"""CLI entry point — cache maintenance commands.

Usage:
    taskcache clear-all
    taskcache forget <file>... [--name NAME] [--many-to-many]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from taskcache.version import __version__

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
        prog="taskcache",
        description=f"taskcache v{__version__} — build task result cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- clear-all ---
    p_clear = subparsers.add_parser(
        "clear-all", help="Remove every cached result in every namespace",
    )
    p_clear.set_defaults(func=_cmd_clear_all)

    # --- forget ---
    p_forget = subparsers.add_parser(
        "forget", help="Remove the cached results for the given files",
    )
    p_forget.add_argument("files", type=Path, nargs="+", help="Input files")
    p_forget.add_argument(
        "-n", "--name", default=None,
        help="Cache namespace (default: TASKCACHE_DEFAULT_NAMESPACE)",
    )
    p_forget.add_argument(
        "--many-to-many", action="store_true",
        help="Treat the files as one batch, in the given order",
    )
    p_forget.set_defaults(func=_cmd_forget)

    return parser


async def _cmd_clear_all(args: argparse.Namespace) -> int:
    """Empty the whole cache store."""
    from taskcache.api.facade import clear_all

    await clear_all()
    print("Cache cleared")
    return 0


async def _cmd_forget(args: argparse.Namespace) -> int:
    """Invalidate the cached results for a set of files."""
    from taskcache.api.facade import clear_results
    from taskcache.config.options import resolve_options
    from taskcache.core.models import Artifact

    missing = [p for p in args.files if not p.is_file()]
    if missing:
        for path in missing:
            logger.error("File not found: %s", path)
        return 1

    artifacts = [
        Artifact(
            cwd=str(Path.cwd()),
            base=str(p.resolve().parent),
            path=str(p.resolve()),
            contents=p.read_bytes(),
        )
        for p in args.files
    ]
    name = args.name or resolve_options(None).name
    await clear_results(artifacts, name=name, many_to_many=args.many_to_many)
    print(f"Forgot cached results for {len(artifacts)} file(s) in namespace {name!r}")
    return 0


def _setup_logging(verbose: bool) -> None:
    from taskcache.config.settings import load_settings
    from taskcache.logging.logger import setup_logging_from_settings

    setup_logging_from_settings(load_settings(), verbose=verbose)


if __name__ == "__main__":
    sys.exit(main())
