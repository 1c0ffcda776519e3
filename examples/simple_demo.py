#!/usr/bin/env python3
"""
Simple demo of logroller with the standard logging package.

Writes enough records to force several rotations, then lists what ended
up in the archive directory.
"""

import logging
import os
import tempfile

from logroller import RollingLogger


def main():
    print("=" * 60)
    print("logroller - Simple Rotation Demo")
    print("=" * 60)
    
    workdir = tempfile.mkdtemp(prefix="logroller-demo-")
    filename = os.path.join(workdir, "demo.log")
    
    # Create the rolling file
    print("\n[1] Creating rolling logger...")
    roller = RollingLogger(
        filename=filename,
        max_size_bytes=512,
        max_backups=3,
        compress_backups=True,
        # each new file starts with the first two records
        preamble_line_count=2,
    )
    print(f"  live file:   {roller.filename}")
    print(f"  archive dir: {roller.archive_dir}")
    
    # Route stdlib logging into it
    handler = logging.StreamHandler(roller)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    log = logging.getLogger("demo")
    log.setLevel(logging.INFO)
    log.addHandler(handler)
    
    print("\n[2] Logging 50 records...")
    log.info("demo version 1.0")
    log.info("config: max_size_bytes=512 max_backups=3")
    for i in range(48):
        log.info("record %d of the demo run", i)
    
    roller.wait_for_cleanup(timeout=5.0)
    roller.close()
    
    print("\n[3] Archive directory:")
    for name in sorted(os.listdir(roller.archive_dir)):
        size = os.path.getsize(os.path.join(roller.archive_dir, name))
        print(f"  {name} ({size} bytes)")
    
    print("\n[4] Head of the live file:")
    with open(filename, "r", encoding="utf-8") as f:
        for line in f.readlines()[:4]:
            print(f"  {line.rstrip()}")


if __name__ == '__main__':
    main()
