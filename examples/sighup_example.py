#!/usr/bin/env python3
"""
Rotate a rolling logger on SIGHUP.

Run it, then from another shell:
    kill -HUP <pid>
"""

import logging
import os
import signal
import threading
import time

from logroller import RollerError, RollingLogger
from logroller.utils.logging import configure_logging


def main():
    configure_logging(log_level="INFO", log_format="console")
    
    roller = RollingLogger(filename="/tmp/sighup-demo/app.log", max_backups=5)
    
    def rotate():
        try:
            roller.rotate()
        except RollerError as e:
            print(f"rotation failed: {e}")
    
    # Rotate off the signal-handling thread so the write lock is honoured.
    signal.signal(
        signal.SIGHUP,
        lambda signum, frame: threading.Thread(target=rotate, daemon=True).start(),
    )
    
    log = logging.getLogger("sighup-demo")
    log.propagate = False
    log.addHandler(logging.StreamHandler(roller))
    log.setLevel(logging.INFO)
    
    print(f"pid {os.getpid()}: writing to {roller.filename}, send SIGHUP to rotate")
    
    try:
        while True:
            log.info("tick %s", time.strftime("%H:%M:%S"))
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        roller.close()


if __name__ == '__main__':
    main()
