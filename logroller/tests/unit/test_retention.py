"""Tests for backup retention policies."""

from pathlib import Path

import pytest

from logroller.core.naming import BackupInfo, backup_name
from logroller.core.retention import (
    NANOS_PER_DAY,
    RetentionManager,
    RetentionPolicy,
    delete_backups,
)

NOW_NS = 1_700_000_000 * 1_000_000_000


def make_backups(*ages_days, directory=Path("/archive")):
    """Backups rotated the given number of days before NOW_NS, in argument order."""
    return [
        BackupInfo(
            NOW_NS - int(age * NANOS_PER_DAY),
            backup_name("app.log", directory, NOW_NS - int(age * NANOS_PER_DAY)),
        )
        for age in ages_days
    ]


class TestRetentionManager:
    """Test RetentionManager."""
    
    def test_no_retention_policy(self):
        """Test manager with no caps deletes nothing."""
        manager = RetentionManager()
        
        assert manager.policy == RetentionPolicy.NONE
        assert not manager.enabled
        assert manager.backups_to_delete(make_backups(1, 400, 9000), NOW_NS) == []
    
    def test_policy_types(self):
        """Test policy derivation from caps."""
        assert RetentionManager(max_backups=3).policy == RetentionPolicy.COUNT
        assert RetentionManager(max_age_days=7).policy == RetentionPolicy.AGE
        assert RetentionManager(max_backups=3, max_age_days=7).policy == RetentionPolicy.BOTH
    
    def test_negative_caps_rejected(self):
        """Test negative caps raise."""
        with pytest.raises(ValueError):
            RetentionManager(max_backups=-1)
    
    def test_count_cap_deletes_oldest_excess(self):
        """Test exactly n-k oldest backups are selected."""
        backups = make_backups(3, 1, 5, 2, 4)
        manager = RetentionManager(max_backups=2)
        
        to_delete = manager.backups_to_delete(backups, NOW_NS)
        
        assert sorted(b.timestamp for b in to_delete) == sorted(
            b.timestamp for b in make_backups(3, 4, 5)
        )
    
    def test_count_cap_not_exceeded(self):
        """Test nothing is deleted when under the count cap."""
        manager = RetentionManager(max_backups=5)
        
        assert manager.backups_to_delete(make_backups(1, 2, 3), NOW_NS) == []
    
    def test_age_cap(self):
        """Test backups older than the cutoff are selected."""
        backups = make_backups(0.5, 2.5, 3.5, 10)
        manager = RetentionManager(max_age_days=3)
        
        to_delete = manager.backups_to_delete(backups, NOW_NS)
        
        assert [b.timestamp for b in to_delete] == [b.timestamp for b in make_backups(3.5, 10)]
    
    def test_age_cutoff_is_strict(self):
        """Test a backup exactly at the cutoff survives."""
        manager = RetentionManager(max_age_days=2)
        
        assert manager.backups_to_delete(make_backups(2), NOW_NS) == []
        assert len(manager.backups_to_delete(make_backups(2), NOW_NS + 1)) == 1
    
    def test_age_applies_to_count_survivors(self):
        """Test age cap only considers backups the count cap kept."""
        backups = make_backups(1, 5, 6, 7)
        manager = RetentionManager(max_backups=2, max_age_days=3)
        
        to_delete = manager.backups_to_delete(backups, NOW_NS)
        timestamps = [b.timestamp for b in to_delete]
        
        assert len(to_delete) == 3
        assert len(set(timestamps)) == 3
        assert timestamps[-1] == make_backups(5)[0].timestamp
    
    def test_ties_keep_listing_order(self):
        """Test equal timestamps are broken by input order."""
        first = BackupInfo(NOW_NS, Path("/archive/a"))
        second = BackupInfo(NOW_NS, Path("/archive/b"))
        manager = RetentionManager(max_backups=1)
        
        assert manager.backups_to_delete([first, second], NOW_NS) == [second]
        assert manager.backups_to_delete([second, first], NOW_NS) == [first]


class TestDeleteBackups:
    """Test deleting selected backups."""
    
    def test_delete_backups(self, temp_dir):
        """Test files are removed."""
        backups = make_backups(1, 2, directory=temp_dir)
        for backup in backups:
            backup.path.write_bytes(b"old")
        
        deleted = delete_backups(backups)
        
        assert deleted == 2
        assert not any(b.path.exists() for b in backups)
    
    def test_failures_are_dropped(self, temp_dir):
        """Test a missing file does not stop the rest."""
        missing, present = make_backups(1, 2, directory=temp_dir)
        present.path.write_bytes(b"old")
        
        deleted = delete_backups([missing, present])
        
        assert deleted == 1
        assert not present.path.exists()
