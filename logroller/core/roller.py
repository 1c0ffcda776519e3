"""
Size-triggered rolling log file.

RollingLogger is a file-like sink that appends opaque payloads to a live
file and, whenever a payload would push that file to its size limit,
moves the file into an archive directory under a timestamped name and
starts a fresh one. The first ``preamble_line_count`` payloads are
replayed at the top of every new file so version and configuration
banners survive rotation.

Only one process may write to a given filename/archive_dir pair.
"""

import os
import stat
import sys
import tempfile
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from logroller.core.compression import Compressor
from logroller.core.naming import backup_name, list_backups
from logroller.core.retention import RetentionManager, delete_backups
from logroller.core.system import SystemClock, SystemFileStat
from logroller.utils.logging import get_logger

if TYPE_CHECKING:
    from logroller.utils.config import RollerConfig

MEGABYTE = 1024 * 1024
DEFAULT_MAX_SIZE_BYTES = 100 * MEGABYTE

PREAMBLE_SENTINEL = b"___***___END_OF_PREAMBLE___***___\n"


class RollerError(Exception):
    """Base class for rolling logger errors."""
    pass


class PayloadTooLargeError(RollerError):
    """Raised when a single payload is larger than the size limit."""
    pass


class RotationError(RollerError):
    """Raised when the live file cannot be archived or recreated."""
    pass


class CleanupError(RollerError):
    """Raised when the archive directory cannot be scanned after a rotation."""
    pass


class PartialWriteError(RollerError):
    """Raised when the OS accepts only part of a payload."""
    
    def __init__(self, message: str, bytes_written: int):
        super().__init__(message)
        self.bytes_written = bytes_written


def default_filename() -> str:
    """Return ``<tempdir>/<process-name>-logroller.log``."""
    name = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "python"
    return os.path.join(tempfile.gettempdir(), f"{name}-logroller.log")


class RollingLogger:
    """
    Append-only writer that rotates its file at a size limit.
    
    The file is opened on the first write. An existing file is appended to
    unless the pending write would bring it to max_size_bytes, in which case
    it is archived first. Every later write that would bring the file to
    the limit triggers a rotation before it is written, so a payload is
    never split across files.
    
    After each rotation a cleanup pass compresses plain backups (if
    compress_backups is set) and hands backups outside the retention caps
    to a background executor for deletion.
    
    Attributes:
        max_size_bytes: Rotation threshold in bytes
        max_backups: Backups to retain (0 = all)
        max_age_days: Max backup age in days (0 = unlimited)
        compress_backups: Gzip archived files
        local_time: Timestamp backup names in local time instead of UTC
        preamble_line_count: Payloads to capture for replay (0 = none)
    """
    
    def __init__(
        self,
        filename: Optional[Union[str, Path]] = None,
        archive_dir: Optional[Union[str, Path]] = None,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        max_backups: int = 0,
        max_age_days: int = 0,
        compress_backups: bool = False,
        local_time: bool = False,
        preamble_line_count: int = 0,
        clock: Optional[SystemClock] = None,
        file_stat: Optional[SystemFileStat] = None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize a rolling logger. Nothing is touched on disk until the
        first write or rotation.
        
        Args:
            filename: Live log file (default: per-process file in the temp dir)
            archive_dir: Directory for rotated files (default: ``<filename>.rotated``)
            max_size_bytes: Rotation threshold; 0 selects the 100 MiB default
            max_backups: Backups to retain (0 = all)
            max_age_days: Max backup age in days (0 = unlimited)
            compress_backups: Gzip archived files
            local_time: Use local time in backup names
            preamble_line_count: Number of leading payloads replayed into new files
            clock: Source of the current time
            file_stat: Source of file metadata
            executor: Runs background deletions; owned by the caller if given
        
        Raises:
            ValueError: If a size, count, or age is negative
        """
        if max_size_bytes < 0:
            raise ValueError(f"max_size_bytes must be non-negative, got {max_size_bytes}")
        if preamble_line_count < 0:
            raise ValueError(f"preamble_line_count must be non-negative, got {preamble_line_count}")
        
        self._filename = str(filename) if filename else default_filename()
        self._archive_dir = str(archive_dir) if archive_dir else self._filename + ".rotated"
        
        self.max_size_bytes = max_size_bytes or DEFAULT_MAX_SIZE_BYTES
        self.max_backups = max_backups
        self.max_age_days = max_age_days
        self.compress_backups = compress_backups
        self.local_time = local_time
        self.preamble_line_count = preamble_line_count
        
        self._clock = clock or SystemClock()
        self._file_stat = file_stat or SystemFileStat()
        self._retention = RetentionManager(max_backups=max_backups, max_age_days=max_age_days)
        self._compressor = Compressor()
        
        self._executor = executor
        self._owns_executor = executor is None
        self._pending: List[Future] = []
        
        self._fd: Optional[int] = None
        self._size = 0
        self._preamble: List[bytes] = []
        
        self._write_lock = threading.RLock()
        
        self._logger = get_logger(__name__, filename=self._filename)
    
    @classmethod
    def from_config(cls, config: "RollerConfig", **kwargs) -> "RollingLogger":
        """
        Build a logger from a RollerConfig.
        
        Args:
            config: Logger settings
            **kwargs: Collaborators (clock, file_stat, executor)
        """
        return cls(
            filename=config.filename,
            archive_dir=config.archive_dir,
            max_size_bytes=config.max_size_bytes,
            max_backups=config.max_backups,
            max_age_days=config.max_age_days,
            compress_backups=config.compress_backups,
            local_time=config.local_time,
            preamble_line_count=config.preamble_line_count,
            **kwargs,
        )
    
    @property
    def filename(self) -> str:
        return self._filename
    
    @property
    def archive_dir(self) -> str:
        return self._archive_dir
    
    @property
    def size(self) -> int:
        """Bytes written to the live file, including any replayed preamble."""
        return self._size
    
    @property
    def preamble(self) -> Tuple[bytes, ...]:
        return tuple(self._preamble)
    
    @property
    def closed(self) -> bool:
        return self._fd is None
    
    def writable(self) -> bool:
        return True
    
    def write(self, data: Union[bytes, bytearray, memoryview, str]) -> int:
        """
        Append one payload to the live file, rotating first if needed.
        
        A str is encoded as UTF-8, which lets the logger back a
        ``logging.StreamHandler``. The payload is captured into the
        preamble even when the write fails part way.
        
        Args:
            data: Payload to write
        
        Returns:
            Number of bytes written, or of characters for a str
        
        Raises:
            PayloadTooLargeError: If the payload alone exceeds max_size_bytes;
                nothing is written
            RotationError: If a needed rotation fails
            CleanupError: If the post-rotation scan of the archive fails
            PartialWriteError: If only part of the payload was written
        """
        if isinstance(data, str):
            payload = data.encode("utf-8")
        else:
            payload = bytes(data)
        write_len = len(payload)
        
        with self._write_lock:
            if write_len > self.max_size_bytes:
                raise PayloadTooLargeError(
                    f"write length {write_len} exceeds maximum file size {self.max_size_bytes}"
                )
            
            if self._fd is None:
                self._open_existing_or_new(write_len)
                if self.compress_backups:
                    self._compressor.sweep(self._archive_dir, self._filename)
            
            if self._size > 0 and self._size + write_len >= self.max_size_bytes:
                self._rotate()
            
            try:
                written = self._write_bytes(payload)
            finally:
                if len(self._preamble) < self.preamble_line_count:
                    self._preamble.append(payload)
            
            if isinstance(data, str):
                return len(data)
            return written
    
    def rotate(self) -> None:
        """
        Archive the live file now and start a new one.
        
        For applications that rotate outside the size rule, for example
        on SIGHUP. Runs a cleanup pass afterwards.
        
        Raises:
            RotationError: If archiving or reopening fails
            CleanupError: If the archive directory cannot be scanned
        """
        with self._write_lock:
            self._rotate()
    
    def close(self) -> None:
        """Close the live file. Closing a closed logger is a no-op."""
        with self._write_lock:
            self._close()
            if self._owns_executor and self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
    
    def flush(self) -> None:
        # Writes go straight to the descriptor; nothing is buffered here.
        pass
    
    def sync(self) -> None:
        """Force written data to stable storage."""
        with self._write_lock:
            if self._fd is not None:
                os.fsync(self._fd)
    
    def wait_for_cleanup(self, timeout: Optional[float] = None) -> bool:
        """
        Block until background deletions submitted so far have finished.
        
        Args:
            timeout: Seconds to wait (None = forever)
        
        Returns:
            True if every deletion finished within the timeout
        """
        with self._write_lock:
            pending = list(self._pending)
        
        _, not_done = wait(pending, timeout=timeout)
        return not not_done
    
    def __enter__(self) -> "RollingLogger":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
    
    def __repr__(self) -> str:
        return (
            f"RollingLogger(filename={self._filename!r}, "
            f"size={self._size}, "
            f"max_size_bytes={self.max_size_bytes})"
        )
    
    def _close(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        os.close(fd)
    
    def _rotate(self) -> None:
        self._close()
        self._open_new()
        self._cleanup()
    
    def _open_existing_or_new(self, write_len: int) -> None:
        """
        Open the live file for appending, or start a new one if it is
        missing or the pending write would bring it to the size limit.
        """
        try:
            info = self._file_stat.stat(self._filename)
        except FileNotFoundError:
            self._open_new()
            return
        except OSError as e:
            raise RotationError(f"error getting log file info: {e}") from e
        
        if info.st_size > 0 and info.st_size + write_len >= self.max_size_bytes:
            self._rotate()
            return
        
        try:
            fd = os.open(self._filename, os.O_WRONLY | os.O_APPEND)
        except OSError as e:
            self._logger.warning(
                "Unable to reopen existing log file, starting a new one",
                error=str(e),
            )
            self._open_new()
            return
        
        self._fd = fd
        self._size = info.st_size
        
        self._logger.debug("Opened existing log file", size=self._size)
    
    def _open_new(self) -> None:
        """
        Move any existing live file into the archive and create an empty
        one in its place, replaying the preamble. Assumes the live file
        is already closed.
        """
        live_dir = os.path.dirname(os.path.abspath(self._filename))
        try:
            os.makedirs(live_dir, mode=0o755, exist_ok=True)
        except OSError as e:
            raise RotationError(f"can't make directory for new logfile: {e}") from e
        try:
            os.makedirs(self._archive_dir, mode=0o755, exist_ok=True)
        except OSError as e:
            raise RotationError(f"can't make directory for rotated logfiles: {e}") from e
        
        mode = 0o644
        try:
            info = self._file_stat.stat(self._filename)
        except FileNotFoundError:
            info = None
        except OSError as e:
            raise RotationError(f"error getting log file info: {e}") from e
        
        if info is not None:
            mode = stat.S_IMODE(info.st_mode)
            archive_path = backup_name(
                self._filename,
                self._archive_dir,
                self._clock.now_ns(),
                self.local_time,
            )
            try:
                os.rename(self._filename, archive_path)
            except OSError as e:
                raise RotationError(f"can't rename log file: {e}") from e
            
            self._logger.info(
                "Archived log file",
                archive=str(archive_path),
                size=info.st_size,
            )
            
            self._preserve_ownership(info, mode)
        
        # Truncate: if anything appeared at this path since the rename,
        # the live sink wins over its contents.
        try:
            fd = os.open(self._filename, os.O_CREAT | os.O_WRONLY | os.O_TRUNC | os.O_APPEND, mode)
        except OSError as e:
            raise RotationError(f"can't open new logfile: {e}") from e
        
        self._fd = fd
        self._size = 0
        
        if self._preamble:
            for payload in self._preamble:
                self._write_bytes(payload)
            self._write_bytes(PREAMBLE_SENTINEL)
        
        self._logger.info(
            "Opened new log file",
            preamble_lines=len(self._preamble),
            size=self._size,
        )
    
    def _preserve_ownership(self, info: os.stat_result, mode: int) -> None:
        """Create the new live file owned like the one just archived."""
        if not hasattr(os, "chown"):
            return
        
        try:
            fd = os.open(self._filename, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
            os.close(fd)
            os.chown(self._filename, info.st_uid, info.st_gid)
        except OSError as e:
            raise RotationError(f"can't preserve ownership of log file: {e}") from e
    
    def _write_bytes(self, payload: bytes) -> int:
        n = os.write(self._fd, payload)
        self._size += n
        if n != len(payload):
            raise PartialWriteError(
                f"partial write: expected {len(payload)} bytes, wrote {n} bytes",
                bytes_written=n,
            )
        return n
    
    def _cleanup(self) -> None:
        """Compress plain backups, then queue retention deletions."""
        if self.compress_backups:
            self._compressor.sweep(self._archive_dir, self._filename)
        
        if not self._retention.enabled:
            return
        
        try:
            backups = list_backups(
                self._archive_dir,
                self._filename,
                include_compressed=self.compress_backups,
            )
        except OSError as e:
            raise CleanupError(f"can't read log file directory: {e}") from e
        
        deletes = self._retention.backups_to_delete(backups, self._clock.now_ns())
        if not deletes:
            return
        
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._get_executor().submit(delete_backups, deletes))
        
        self._logger.info(
            "Scheduled backup deletion",
            backups=len(backups),
            deleting=len(deletes),
        )
    
    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix="logroller-cleanup",
            )
        return self._executor
