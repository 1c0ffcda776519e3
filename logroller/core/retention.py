"""
Retention policies for archived log files.

Backups are kept up to a count cap and an age cap. Both work on the
rotation time encoded in each backup's name, not on filesystem mtimes.
"""

from enum import Enum
from typing import List, Sequence

from logroller.core.naming import BackupInfo
from logroller.utils.logging import get_logger

logger = get_logger(__name__)

NANOS_PER_DAY = 24 * 3600 * 1_000_000_000


class RetentionPolicy(Enum):
    """Retention policy types."""
    
    NONE = "none"
    COUNT = "count"
    AGE = "age"
    BOTH = "both"


class RetentionManager:
    """
    Chooses which backups a cleanup pass removes.
    
    The count cap keeps the newest max_backups files. The age cap then
    removes any surviving file rotated more than max_age_days ago, where
    a day is exactly 24 hours.
    """
    
    def __init__(self, max_backups: int = 0, max_age_days: int = 0):
        """
        Initialize retention manager.
        
        Args:
            max_backups: Backups to keep (0 = unlimited)
            max_age_days: Max backup age in days (0 = unlimited)
        """
        if max_backups < 0 or max_age_days < 0:
            raise ValueError("retention caps must be non-negative")
        
        self.max_backups = max_backups
        self.max_age_days = max_age_days
        
        if max_backups > 0 and max_age_days > 0:
            self.policy = RetentionPolicy.BOTH
        elif max_backups > 0:
            self.policy = RetentionPolicy.COUNT
        elif max_age_days > 0:
            self.policy = RetentionPolicy.AGE
        else:
            self.policy = RetentionPolicy.NONE
    
    @property
    def enabled(self) -> bool:
        return self.policy is not RetentionPolicy.NONE
    
    def backups_to_delete(
        self,
        backups: Sequence[BackupInfo],
        now_ns: int,
    ) -> List[BackupInfo]:
        """
        Select backups for deletion.
        
        Args:
            backups: Decoded backups, in any order
            now_ns: Current time in nanoseconds since the epoch
        
        Returns:
            Backups to delete: the count-cap excess (oldest first out),
            followed by survivors older than the age cutoff
        """
        if not self.enabled:
            return []
        
        remaining = sorted(backups, key=lambda b: b.timestamp, reverse=True)
        to_delete: List[BackupInfo] = []
        
        if self.max_backups > 0 and len(remaining) > self.max_backups:
            to_delete.extend(remaining[self.max_backups:])
            remaining = remaining[:self.max_backups]
        
        if self.max_age_days > 0:
            cutoff = now_ns - self.max_age_days * NANOS_PER_DAY
            for backup in remaining:
                if backup.timestamp < cutoff:
                    to_delete.append(backup)
        
        if to_delete:
            logger.debug(
                "Selected backups for deletion",
                policy=self.policy.value,
                candidates=len(backups),
                deleting=len(to_delete),
            )
        
        return to_delete


def delete_backups(backups: Sequence[BackupInfo]) -> int:
    """
    Remove backup files, dropping individual failures.
    
    Runs on a background worker; nothing waits on its outcome, so a
    failure is only reported and never retried.
    
    Returns:
        Number of files removed
    """
    deleted = 0
    
    for backup in backups:
        try:
            backup.path.unlink()
        except OSError as e:
            logger.debug(
                "Failed to delete backup",
                path=str(backup.path),
                error=str(e),
            )
            continue
        deleted += 1
    
    logger.info("Deleted old backups", deleted=deleted, requested=len(backups))
    
    return deleted
