"""Observability module for assetgraft.

Provides structured logging for edit and transplant runs.
"""

from assetgraft.observability.logging import (
    bind_package_context,
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

__all__ = [
    "bind_package_context",
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
]
