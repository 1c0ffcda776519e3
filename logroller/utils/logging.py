"""
Diagnostic logging for logroller, built on structlog.

A rolling logger is itself the destination of an application's log output,
so its own diagnostics (rotations, cleanup passes, dropped compression and
deletion failures) travel through a separate structlog pipeline that never
writes into the rolled file.
"""

import logging
import os
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor


def add_process_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the component name and writer pid."""
    event_dict["app"] = "logroller"
    event_dict["pid"] = os.getpid()
    return event_dict


def _build_handler(log_output: str) -> logging.Handler:
    if log_output == "stdout":
        return logging.StreamHandler(sys.stdout)
    if log_output == "stderr":
        return logging.StreamHandler(sys.stderr)
    return logging.FileHandler(log_output, mode="a", encoding="utf-8")


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_output: str = "stderr",
) -> None:
    """
    Configure diagnostic logging.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_output: stdout, stderr, or a path to append diagnostics to.
            Must not be the file being rolled.
    """
    logging.basicConfig(
        format="%(message)s",
        handlers=[_build_handler(log_output)],
        level=getattr(logging, log_level.upper()),
        force=True,
    )
    
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_process_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    
    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    
    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, filename: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a diagnostic logger.
    
    Args:
        name: Logger name (typically __name__)
        filename: Live file the events concern; bound into every event
    
    Returns:
        structlog logger
    """
    logger = structlog.get_logger(name)
    if filename is not None:
        logger = logger.bind(filename=filename)
    return logger
