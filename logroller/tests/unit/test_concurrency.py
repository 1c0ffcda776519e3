"""Tests for concurrent writers sharing one rolling logger."""

import os
import threading

from logroller.core.naming import list_backups
from logroller.core.roller import RollingLogger


class TestConcurrentWrites:
    """Test concurrent write and rotate calls."""
    
    def _all_bytes(self, logger):
        data = b""
        for backup in reversed(list_backups(logger.archive_dir, logger.filename)):
            data += backup.path.read_bytes()
        with open(logger.filename, "rb") as f:
            data += f.read()
        return data
    
    def test_concurrent_writes(self, temp_dir, clock):
        """Test no payload is lost, split, or interleaved across rotations."""
        logger = RollingLogger(filename=temp_dir / "app.log", max_size_bytes=100, clock=clock)
        
        def writer(thread_id):
            for i in range(20):
                logger.write(f"t{thread_id}-{i:03d}\n".encode())
        
        threads = [threading.Thread(target=writer, args=(t,)) for t in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        logger.close()
        
        lines = self._all_bytes(logger).decode().splitlines()
        
        assert len(lines) == 100
        assert sorted(lines) == sorted(f"t{t}-{i:03d}" for t in range(5) for i in range(20))
        for backup in list_backups(logger.archive_dir, logger.filename):
            assert os.path.getsize(backup.path) < 100
    
    def test_rotate_during_writes(self, temp_dir, clock):
        """Test explicit rotations interleave safely with writes."""
        logger = RollingLogger(filename=temp_dir / "app.log", max_size_bytes=1000, clock=clock)
        
        def writer():
            for i in range(50):
                logger.write(f"line-{i:03d}\n".encode())
        
        def rotator():
            for _ in range(10):
                logger.rotate()
        
        threads = [threading.Thread(target=writer), threading.Thread(target=rotator)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        logger.close()
        
        lines = self._all_bytes(logger).decode().splitlines()
        
        assert lines == [f"line-{i:03d}" for i in range(50)]
