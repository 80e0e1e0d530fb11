#!/usr/bin/env python3
"""
contentsync - Headless CMS to search index synchronization

Main entry point for contentsync. Fetches the requested content types from
the content source, flattens them per locale and reconciles the destination
index against the result.
"""

import asyncio
import json
import logging
import sys
import argparse
from pathlib import Path
from typing import Callable, Dict, List, Optional

from contentsync import __version__
from contentsync.config import ConfigManager, get_config
from contentsync.models import FlatDocument, compact
from contentsync.sync import SyncOrchestrator, SyncOutcome


def setup_logging(config: ConfigManager):
    """Configure logging for the application."""
    level = getattr(logging, config.get("logging.level", "INFO").upper())
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ]
    )


def make_dump_observer(dump_dir: str) -> Callable[[List[FlatDocument]], None]:
    """
    Build an observer that writes flat documents to JSON.

    Args:
        dump_dir: Directory receiving one ``<contentType>.json`` per content type

    Returns:
        Observer callable
    """
    def observer(documents: List[FlatDocument]) -> None:
        if not documents:
            return
        content_type = documents[0].get("contentType") or "documents"
        path = Path(dump_dir) / f"{content_type}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(compact(documents), f, indent=2, ensure_ascii=False)
        logging.info(f"Wrote {len(documents)} documents to {path}")

    return observer


async def run_sync(config: ConfigManager, content_types: List[str], index_name: str,
                   entry_id: Optional[str] = None, dump_dir: Optional[str] = None,
                   dry_run: bool = False) -> Dict[str, SyncOutcome]:
    """Run one sync of the given content types into an index."""
    orchestrator = SyncOrchestrator.from_config(config, dry_run=dry_run)
    observer = make_dump_observer(dump_dir) if dump_dir else None

    try:
        outcomes = await orchestrator.sync(content_types, index_name, observer, entry_id)
    finally:
        await orchestrator.aclose()

    return outcomes


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="contentsync - Sync headless CMS content into a search index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py post author --index content          # Sync two content types
  python main.py post --index content --entry-id 4xYz # Re-sync a single entry
  python main.py post --index content --dry-run       # Show the diff without writing
  python main.py post --index content --dump-dir out  # Also write flat documents to out/post.json
        """
    )

    parser.add_argument(
        "content_types",
        nargs="*",
        help="Content types to sync (default: sync.content_types from the configuration)"
    )

    parser.add_argument(
        "--index",
        required=True,
        help="Destination index name (the configured prefix is prepended)"
    )

    parser.add_argument(
        "--entry-id",
        type=str,
        help="Only sync this entry; nothing is deleted from the index"
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to the configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--dump-dir",
        type=str,
        help="Write each content type's flat documents to this directory before indexing"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and log the diff without writing to the index"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"contentsync {__version__}"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_arguments(argv)

    config = get_config()
    if args.config != str(config.config_path):
        config = ConfigManager(args.config)
    setup_logging(config)

    content_types = args.content_types or config.content_types
    if not content_types:
        logging.error("No content types given and none configured under sync.content_types")
        sys.exit(2)

    logging.info(f"contentsync {__version__}: syncing {', '.join(content_types)} into '{args.index}'")

    try:
        outcomes = asyncio.run(run_sync(
            config,
            content_types,
            args.index,
            entry_id=args.entry_id,
            dump_dir=args.dump_dir,
            dry_run=args.dry_run,
        ))
    except KeyboardInterrupt:
        logging.info("Sync interrupted by user")
        sys.exit(130)
    except Exception as e:
        logging.error(f"Sync failed: {e}")
        sys.exit(1)

    failed = [outcome for outcome in outcomes.values() if not outcome.ok]
    for outcome in outcomes.values():
        status = "ok" if outcome.ok else f"failed ({outcome.error})"
        print(f"{outcome.content_type}: {outcome.documents} documents, {len(outcome.object_ids)} objects written - {status}")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
