"""
Gzip compression of archived log files.

A sweep compresses every plain backup in the archive directory into
``<name>.gz`` and removes the original. Sweeps hold their own lock so
one started while opening the logger and one started by a rotation
never interleave; the live file's write lock is never involved.
"""

import gzip
import shutil
import threading
from pathlib import Path
from typing import Union

from logroller.core.naming import COMPRESS_SUFFIX, list_backups
from logroller.utils.logging import get_logger

logger = get_logger(__name__)


class Compressor:
    """Compresses backups in place, one sweep at a time."""
    
    def __init__(self, compression_level: int = 6):
        """
        Initialize compressor.
        
        Args:
            compression_level: gzip level, 1 (fastest) to 9 (smallest)
        """
        if not 1 <= compression_level <= 9:
            raise ValueError(f"compression level must be 1-9, got {compression_level}")
        
        self.compression_level = compression_level
        self._lock = threading.Lock()
    
    def compress_file(self, path: Union[str, Path]) -> Path:
        """
        Compress one file to ``path + .gz`` and remove the source.
        
        The destination is removed if compression fails or the source
        cannot be removed, so one backup never exists in both forms.
        
        Args:
            path: Plain file to compress
        
        Returns:
            Path of the compressed file
        
        Raises:
            OSError: If reading, writing, or removing fails
        """
        source = Path(path)
        target = source.with_name(source.name + COMPRESS_SUFFIX)
        
        try:
            with open(source, "rb") as f_in:
                with gzip.open(target, "wb", compresslevel=self.compression_level) as f_out:
                    shutil.copyfileobj(f_in, f_out)
        except OSError:
            target.unlink(missing_ok=True)
            raise
        
        try:
            source.unlink()
        except OSError:
            target.unlink(missing_ok=True)
            raise
        
        logger.debug(
            "Compressed backup",
            source=str(source),
            target=str(target),
            compressed_size=target.stat().st_size,
        )
        
        return target
    
    def sweep(self, archive_dir: Union[str, Path], filename: Union[str, Path]) -> int:
        """
        Compress every uncompressed backup of filename in archive_dir.
        
        Failures are reported and skipped; a sweep never raises for an
        individual file or for an unreadable directory.
        
        Args:
            archive_dir: Directory holding rotated files
            filename: Live log filename the backups belong to
        
        Returns:
            Number of files compressed
        """
        with self._lock:
            try:
                backups = list_backups(archive_dir, filename, include_compressed=False)
            except OSError as e:
                logger.warning(
                    "Unable to list backups for compression",
                    archive_dir=str(archive_dir),
                    error=str(e),
                )
                return 0
            
            compressed = 0
            for backup in backups:
                if backup.compressed:
                    continue
                try:
                    self.compress_file(backup.path)
                except OSError as e:
                    logger.warning(
                        "Unable to compress backup",
                        path=str(backup.path),
                        error=str(e),
                    )
                    continue
                compressed += 1
            
            if compressed:
                logger.info(
                    "Compressed backups",
                    archive_dir=str(archive_dir),
                    count=compressed,
                )
            
            return compressed
