"""
logroller - a size-triggered rolling log file writer.

RollingLogger behaves like an append-only file but rotates to a fresh
file whenever a write would reach a size limit:
- Rotated files are archived under timestamped names in a separate directory
- Archived files can be gzip-compressed
- Old archives are pruned by count and by age
- The first N writes are replayed at the top of every new file
"""

__version__ = "0.1.0"

from logroller.core.roller import (
    DEFAULT_MAX_SIZE_BYTES,
    MEGABYTE,
    PREAMBLE_SENTINEL,
    CleanupError,
    PartialWriteError,
    PayloadTooLargeError,
    RollerError,
    RollingLogger,
    RotationError,
)
from logroller.utils.config import RollerConfig

__all__ = [
    "DEFAULT_MAX_SIZE_BYTES",
    "MEGABYTE",
    "PREAMBLE_SENTINEL",
    "CleanupError",
    "PartialWriteError",
    "PayloadTooLargeError",
    "RollerConfig",
    "RollerError",
    "RollingLogger",
    "RotationError",
]
