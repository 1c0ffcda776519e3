"""
Core rolling-file implementation.

This package provides:
- Backup naming and archive scanning
- Count and age retention
- Gzip compression sweeps
- The rolling writer itself
"""

from logroller.core.compression import Compressor
from logroller.core.naming import BackupInfo, backup_name, list_backups
from logroller.core.retention import RetentionManager, RetentionPolicy
from logroller.core.roller import RollingLogger
from logroller.core.system import SystemClock, SystemFileStat

__all__ = [
    "BackupInfo",
    "Compressor",
    "RetentionManager",
    "RetentionPolicy",
    "RollingLogger",
    "SystemClock",
    "SystemFileStat",
    "backup_name",
    "list_backups",
]
