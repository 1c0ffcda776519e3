"""
Clock and file-metadata collaborators for the rolling logger.

Both are passed to RollingLogger explicitly so tests can substitute
deterministic versions without patching module globals.
"""

import os
import time
from pathlib import Path
from typing import Union


class SystemClock:
    """Wall clock reporting nanoseconds since the Unix epoch."""
    
    def now_ns(self) -> int:
        return time.time_ns()


class SystemFileStat:
    """Reads file metadata from the real filesystem."""
    
    def stat(self, path: Union[str, Path]) -> os.stat_result:
        """
        Stat a path.
        
        Raises:
            FileNotFoundError: If nothing exists at path
            OSError: For any other stat failure
        """
        return os.stat(path)
