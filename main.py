#!/usr/bin/env python3
"""flacmirror - Entry Point

Mirrors a music library into a destination tree: FLAC is transcoded to
AAC or Opus, MP3 is copied unchanged and album covers are thumbnailed.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config import LOG_LEVELS, SUPPORTED_CODECS, build_config, read_config_file
from errors import ConfigError, WalkError
from pipeline import Pipeline

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure application logging.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    # Defaults live in config.py; None means "not given on the command line".
    parser = argparse.ArgumentParser(
        prog='flacmirror',
        description='Mirror a music library, converting FLAC to AAC or Opus and copying MP3'
    )
    parser.add_argument('--src', help='Source directory containing the music files.')
    parser.add_argument('--dest', help='Destination directory where the converted files will be saved.')
    parser.add_argument('--workers', type=int, help='Number of workers for processing files (default: 5).')
    parser.add_argument(
        '--codec',
        choices=SUPPORTED_CODECS,
        help="Codec to use for conversion (default: aac)."
    )
    parser.add_argument(
        '--bitrate',
        type=int,
        help='Bitrate for the output file (default: 192; opus always uses 160).'
    )
    parser.add_argument('--qaac', dest='qaac_bin', help='qaac executable (default: qaac64).')
    parser.add_argument('--opusenc', dest='opusenc_bin', help='opusenc executable (default: opusenc).')
    parser.add_argument('--config', type=Path, help='Optional TOML configuration file.')
    parser.add_argument('--log-level', choices=LOG_LEVELS, type=str.upper, help='Log level (default: INFO).')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be processed without converting or copying'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level or 'INFO')

    try:
        data = read_config_file(args.config) if args.config else None
        config = build_config(
            data,
            src_dir=args.src,
            dest_dir=args.dest,
            qaac_bin=args.qaac_bin,
            opusenc_bin=args.opusenc_bin,
            codec=args.codec,
            bitrate=args.bitrate,
            workers=args.workers,
            log_level=args.log_level,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.getLogger().setLevel(config.processing.log_level)

    logger.info(f"Source directory: {config.paths.src_dir}")
    logger.info(f"Destination directory: {config.paths.dest_dir}")
    logger.info(f"Number of workers: {config.processing.workers}")
    logger.info(f"Codec: {config.encoding.codec} @ {config.encoding.bitrate} kbps")

    try:
        pipeline = Pipeline(config, dry_run=args.dry_run)
        stats = pipeline.run()
    except WalkError as e:
        logger.error(f"Error processing files: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Operation cancelled by user")
        return 130

    logger.info("=" * 60)
    logger.info(f"Files queued: {stats.jobs}")
    logger.info(f"Converted: {stats.converted}")
    logger.info(f"Copied: {stats.copied}")
    logger.info(f"Skipped: {stats.skipped}")
    logger.info(f"Failed: {stats.failed}")
    logger.info(f"Covers written: {stats.covers} (failed: {stats.covers_failed})")
    logger.info("=" * 60)
    logger.info("Conversion complete.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
