#!/usr/bin/env python3
"""
Command-line entry point: copy stdin into a rolling log file.

Usage:
    # Pipe a server's output through logroller
    myserver 2>&1 | logroller --filename /var/log/myserver/server.log \
        --max-size-bytes 52428800 --max-backups 5 --compress
    
    # Rotate on demand
    kill -HUP <logroller pid>
"""

import argparse
import signal
import sys
import threading
from typing import BinaryIO, List, Optional

from logroller.core.roller import RollerError, RollingLogger
from logroller.utils.config import Config
from logroller.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='logroller - copy stdin to a size-rotated log file'
    )
    
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='YAML configuration file layered over the defaults'
    )
    
    parser.add_argument(
        '--filename',
        type=str,
        default=None,
        help='Live log file (default: <tempdir>/<process>-logroller.log)'
    )
    
    parser.add_argument(
        '--archive-dir',
        type=str,
        default=None,
        help='Directory for rotated files (default: <filename>.rotated)'
    )
    
    parser.add_argument(
        '--max-size-bytes',
        type=int,
        default=None,
        help='Rotate before the live file reaches this size (default: 100 MiB)'
    )
    
    parser.add_argument(
        '--max-backups',
        type=int,
        default=None,
        help='Number of backups to keep, 0 for all (default: 0)'
    )
    
    parser.add_argument(
        '--max-age-days',
        type=int,
        default=None,
        help='Delete backups older than this many days, 0 to disable (default: 0)'
    )
    
    parser.add_argument(
        '--compress',
        action='store_true',
        default=None,
        help='Gzip rotated files'
    )
    
    parser.add_argument(
        '--local-time',
        action='store_true',
        default=None,
        help='Use local time instead of UTC in backup names'
    )
    
    parser.add_argument(
        '--preamble-lines',
        type=int,
        default=None,
        help='Replay this many leading lines at the top of every new file (default: 0)'
    )
    
    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Diagnostic logging level (default: INFO)'
    )
    
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    """Layer command-line options over file and environment settings."""
    config = Config(args.config)
    
    overrides = {
        "roller.filename": args.filename,
        "roller.archive_dir": args.archive_dir,
        "roller.max_size_bytes": args.max_size_bytes,
        "roller.max_backups": args.max_backups,
        "roller.max_age_days": args.max_age_days,
        "roller.compress_backups": args.compress,
        "roller.local_time": args.local_time,
        "roller.preamble_line_count": args.preamble_lines,
        "logging.level": args.log_level,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    
    return config


def _rotate_in_background(roller: RollingLogger) -> None:
    # Signal handlers run on the main thread, possibly mid-write; rotating
    # from another thread makes the rotation wait for the write lock.
    def run() -> None:
        try:
            roller.rotate()
        except RollerError as e:
            logger.error("Rotation on SIGHUP failed", error=str(e))
    
    threading.Thread(target=run, name="logroller-sighup", daemon=True).start()


def pump(source: BinaryIO, roller: RollingLogger) -> int:
    """
    Copy source into roller line by line until EOF.
    
    Lines too large for the size limit are dropped and reported.
    
    Returns:
        Number of lines written
    """
    lines = 0
    for line in iter(source.readline, b""):
        try:
            roller.write(line)
        except RollerError as e:
            logger.error("Dropped line", size=len(line), error=str(e))
            continue
        lines += 1
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    
    try:
        config = build_config(args)
        roller_config = config.roller_config()
    except (OSError, ValueError) as e:
        print(f"logroller: invalid configuration: {e}", file=sys.stderr)
        return 2
    
    configure_logging(
        log_level=config.get("logging.level", "INFO"),
        log_format=config.get("logging.format", "json"),
        log_output=config.get("logging.output", "stderr"),
    )
    
    roller = RollingLogger.from_config(roller_config)
    
    logger.info(
        "Starting logroller",
        filename=roller.filename,
        archive_dir=roller.archive_dir,
        max_size_bytes=roller.max_size_bytes,
    )
    
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, lambda signum, frame: _rotate_in_background(roller))
    
    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, lambda signum, frame: sys.exit(0))
    
    try:
        lines = pump(sys.stdin.buffer, roller)
        logger.info("Reached end of input", lines=lines)
    
    except OSError as e:
        logger.error("Write failed", error=str(e), exc_info=True)
        return 1
    
    finally:
        roller.close()
        logger.info("Closed log file")
    
    return 0


if __name__ == '__main__':
    sys.exit(main())
