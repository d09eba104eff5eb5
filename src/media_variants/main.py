"""Main module for the media variants CLI."""

import sys
import argparse
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.config import PipelineSettings, StorageSettings
from .core.exceptions import MediaVariantsError
from .core.factories import LoggerFactory, MediaServices, ProcessingPipelineFactory
from .core.image_utils import filename_from_url, strip_extension
from .core.logging_config import get_logger, quiet_third_party_loggers, set_debug_logging
from .core.models import AssetFilter, BatchSummary
from .core.record_store import InMemoryRecordStore, JsonFileRecordStore

VERSION = __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="media-variants",
        description="Media Variants - resized/WebP variant generation and repair for CMS images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate variants for every media row missing metadata
  media-variants regenerate --records media.json

  # Regenerate a single row, even if it already has variants
  media-variants regenerate --records media.json --id 6f1c... --force

  # Repair batch-uploaded rows that have a file but no metadata
  media-variants fix-batch --records media.json

  # Serve the HTTP repair endpoints
  media-variants serve --records media.json --port 3001
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    regenerate_parser = subparsers.add_parser(
        "regenerate", help="Generate variants for media rows missing them"
    )
    regenerate_parser.add_argument("--records", required=True, type=Path, help="JSON file of media rows")
    regenerate_parser.add_argument("--id", dest="media_id", default=None, help="Process only this media id")
    regenerate_parser.add_argument(
        "--force", action="store_true", help="Regenerate even when variants already exist"
    )
    regenerate_parser.add_argument(
        "--workers", type=int, default=None, help="Assets processed concurrently (default: 1)"
    )
    regenerate_parser.add_argument(
        "--reuse-existing",
        action="store_true",
        help="Skip re-encoding variants whose objects already exist in storage",
    )

    fix_parser = subparsers.add_parser(
        "fix-batch", help="Repair rows with a stored file but missing width/height/variants"
    )
    fix_parser.add_argument("--records", required=True, type=Path, help="JSON file of media rows")

    check_parser = subparsers.add_parser(
        "check", help="Check whether variants exist in storage for a file"
    )
    check_parser.add_argument("--filename", required=True, help="Original filename or URL")

    optimize_parser = subparsers.add_parser(
        "optimize", help="Download an image and write an optimized JPEG"
    )
    optimize_parser.add_argument("url", help="Image URL")
    optimize_parser.add_argument("--output", required=True, type=Path, help="Destination file")
    optimize_parser.add_argument("--quality", type=int, default=85, help="JPEG quality (default: 85)")
    optimize_parser.add_argument("--max-width", type=int, default=None)
    optimize_parser.add_argument("--max-height", type=int, default=None)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP repair endpoints")
    serve_parser.add_argument("--records", required=True, type=Path, help="JSON file of media rows")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=3001)

    subparsers.add_parser("version", help="Show version information")

    return parser


def _build_services(args: argparse.Namespace, record_store=None) -> MediaServices:
    pipeline_settings = PipelineSettings.from_env()
    if getattr(args, "workers", None):
        pipeline_settings.scan_workers = args.workers
    if getattr(args, "reuse_existing", False):
        pipeline_settings.reuse_existing = True

    records_path = getattr(args, "records", None)
    if record_store is None:
        record_store = JsonFileRecordStore(records_path) if records_path else InMemoryRecordStore()

    return ProcessingPipelineFactory.create_services(
        record_store,
        storage_settings=StorageSettings.from_env(),
        pipeline_settings=pipeline_settings,
        logger=LoggerFactory.create_logger("media-variants", level="DEBUG" if args.debug else None),
    )


def _print_summary(summary: BatchSummary) -> None:
    logger = get_logger("media-variants.cli")
    logger.info("=" * 60)
    logger.info("Processing Summary:")
    logger.info(f"  Success: {summary.success_count}")
    logger.info(f"  Skipped: {summary.skipped_count}")
    logger.info(f"  Errors:  {summary.error_count}")
    logger.info(f"  Total:   {summary.processed}")
    logger.info("=" * 60)
    for detail in summary.error_details:
        logger.error(f"  {detail.filename} ({detail.id}): {detail.error}")


def run_command(args: argparse.Namespace) -> int:
    """Execute a parsed command and return the process exit code."""
    if args.command in ("regenerate", "fix-batch"):
        services = _build_services(args)
        if args.command == "regenerate":
            asset_filter = AssetFilter(media_id=args.media_id, force=args.force)
        else:
            asset_filter = AssetFilter(require_source=True)
        summary = services.scanner.scan_and_repair(asset_filter)
        _print_summary(summary)
        return 1 if summary.error_count else 0

    if args.command == "check":
        services = _build_services(args)
        base_filename = strip_extension(filename_from_url(args.filename))
        exists = services.store.variants_exist(base_filename)
        print(f"{base_filename}: {'variants present' if exists else 'variants missing'}")
        return 0 if exists else 1

    if args.command == "optimize":
        services = _build_services(args)
        data = services.pipeline.optimize_image(
            args.url, quality=args.quality, max_width=args.max_width, max_height=args.max_height
        )
        args.output.write_bytes(data)
        print(f"Wrote {len(data)} bytes to {args.output}")
        return 0

    if args.command == "serve":
        from .api import create_app

        services = _build_services(args)
        create_app(services).run(host=args.host, port=args.port)
        return 0

    if args.command == "version":
        print("Media Variants CLI")
        print(f"Version {VERSION}")
        return 0

    build_parser().print_help()
    return 1


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``media-variants`` command."""
    args = build_parser().parse_args(argv)
    logger = get_logger("media-variants.cli")
    if args.debug:
        set_debug_logging(logger)
    else:
        quiet_third_party_loggers()

    try:
        exit_code = run_command(args)
    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user.")
        exit_code = 130
    except MediaVariantsError as e:
        logger.error(f"Processing failed: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
