"""
Backup file naming.

A rotated file is archived as ``<stem>-<timestamp><ext>`` where the
timestamp is the rotation instant in a fixed RFC 3339 layout with nine
fractional digits, e.g. ``server-2016-11-04T18:30:00.000000000Z.log``.
These functions are the only place that decides whether a file in the
archive directory belongs to a logger.
"""

import os
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union

from logroller.utils.logging import get_logger

logger = get_logger(__name__)

COMPRESS_SUFFIX = ".gz"

NANOS_PER_SECOND = 1_000_000_000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<zone>Z|[+-]\d{2}:\d{2})$"
)


class BackupInfo:
    """
    An archived file and the rotation time decoded from its name.
    
    Attributes:
        timestamp: Rotation time in nanoseconds since the epoch
        path: Location of the archived file
    """
    
    def __init__(self, timestamp: int, path: Path):
        self.timestamp = timestamp
        self.path = Path(path)
    
    @property
    def name(self) -> str:
        return self.path.name
    
    @property
    def compressed(self) -> bool:
        return self.path.name.endswith(COMPRESS_SUFFIX)
    
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BackupInfo):
            return NotImplemented
        return self.timestamp == other.timestamp and self.path == other.path
    
    def __hash__(self) -> int:
        return hash((self.timestamp, self.path))
    
    def __repr__(self) -> str:
        return f"BackupInfo(timestamp={self.timestamp}, path={str(self.path)!r})"


def split_filename(filename: Union[str, Path]) -> Tuple[str, str]:
    """
    Split a log filename into the backup prefix and extension.
    
    Args:
        filename: Live log filename (any directory part is ignored)
    
    Returns:
        ``(stem + "-", ext)``; ext keeps its leading dot and may be empty
    """
    stem, ext = os.path.splitext(os.path.basename(str(filename)))
    return stem + "-", ext


def format_timestamp(timestamp_ns: int, local: bool = False) -> str:
    """
    Render a timestamp in the backup-name layout.
    
    Args:
        timestamp_ns: Nanoseconds since the epoch
        local: Use the machine's local zone instead of UTC
    
    Returns:
        e.g. ``2024-03-01T09:15:02.000000042Z`` or ``...042+02:00``
    """
    seconds, nanos = divmod(timestamp_ns, NANOS_PER_SECOND)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    if local:
        dt = dt.astimezone()
    
    offset = dt.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        zone = "Z"
    else:
        sign = "-" if offset < timedelta(0) else "+"
        minutes = abs(int(offset.total_seconds())) // 60
        zone = f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"
    
    return f"{dt.strftime('%Y-%m-%dT%H:%M:%S')}.{nanos:09d}{zone}"


def parse_timestamp(text: str) -> int:
    """
    Parse a backup-name timestamp back into nanoseconds since the epoch.
    
    Fractions with fewer than nine digits (or none) are accepted.
    
    Raises:
        ValueError: If text is not an RFC 3339 timestamp
    """
    match = _TIMESTAMP_RE.match(text)
    if match is None:
        raise ValueError(f"not a backup timestamp: {text!r}")
    
    zone = match.group("zone")
    if zone == "Z":
        tz = timezone.utc
    else:
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        delta = timedelta(hours=hours, minutes=minutes)
        tz = timezone(-delta if zone[0] == "-" else delta)
    
    dt = datetime.strptime(match.group("base"), "%Y-%m-%dT%H:%M:%S").replace(tzinfo=tz)
    seconds = (dt - _EPOCH) // timedelta(seconds=1)
    nanos = int((match.group("frac") or "0").ljust(9, "0"))
    return seconds * NANOS_PER_SECOND + nanos


def backup_name(
    filename: Union[str, Path],
    archive_dir: Union[str, Path],
    timestamp_ns: int,
    local: bool = False,
) -> Path:
    """
    Build the archive path for a live file rotated at timestamp_ns.
    
    Args:
        filename: Live log filename
        archive_dir: Directory that receives rotated files
        timestamp_ns: Rotation time in nanoseconds since the epoch
        local: Format the timestamp in local time instead of UTC
    
    Returns:
        ``archive_dir / <stem>-<timestamp><ext>``
    """
    prefix, ext = split_filename(filename)
    return Path(archive_dir) / f"{prefix}{format_timestamp(timestamp_ns, local)}{ext}"


def time_from_name(name: str, prefix: str, ext: str) -> Optional[str]:
    """
    Extract the timestamp text from a backup name.
    
    Stripping the exact prefix and suffix first keeps an unrelated name
    from ever reaching the timestamp parser.
    
    Returns:
        The text between prefix and ext, or None if either does not match
    """
    if not name.startswith(prefix):
        return None
    rest = name[len(prefix):]
    if not rest.endswith(ext):
        return None
    if ext:
        rest = rest[:-len(ext)]
    return rest


def decode_backup(name: str, prefix: str, ext: str, include_compressed: bool = False) -> Optional[int]:
    """
    Decode the rotation time embedded in a backup name.
    
    Returns:
        Nanoseconds since the epoch, or None if name is not a backup
    """
    suffixes = [ext + COMPRESS_SUFFIX, ext] if include_compressed else [ext]
    for suffix in suffixes:
        text = time_from_name(name, prefix, suffix)
        if text is None:
            continue
        try:
            return parse_timestamp(text)
        except ValueError:
            continue
    return None


def list_backups(
    archive_dir: Union[str, Path],
    filename: Union[str, Path],
    include_compressed: bool = False,
) -> List[BackupInfo]:
    """
    Scan the archive directory for backups of filename.
    
    Directories and names that do not decode are skipped; the archive
    directory may hold files that have nothing to do with this logger.
    
    Args:
        archive_dir: Directory holding rotated files
        filename: Live log filename the backups were rotated from
        include_compressed: Also match names carrying COMPRESS_SUFFIX
    
    Returns:
        Backups sorted newest first; equal timestamps keep listing order
    
    Raises:
        OSError: If the directory cannot be listed
    """
    prefix, ext = split_filename(filename)
    backups = []
    
    with os.scandir(archive_dir) as entries:
        for entry in entries:
            if entry.is_dir():
                continue
            timestamp = decode_backup(entry.name, prefix, ext, include_compressed)
            if timestamp is None:
                continue
            backups.append(BackupInfo(timestamp, Path(archive_dir) / entry.name))
    
    backups.sort(key=lambda b: b.timestamp, reverse=True)
    
    logger.debug(
        "Scanned archive directory",
        archive_dir=str(archive_dir),
        backups=len(backups),
    )
    
    return backups
