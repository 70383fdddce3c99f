"""Core module exports."""

from acpindex.core.errors import (
    AcpIndexError,
    ConfigError,
    ErrorCode,
    IndexBuildError,
    InternalError,
)
from acpindex.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    run_context,
    set_run_id,
)
from acpindex.core.progress import progress

__all__ = [
    # Errors
    "AcpIndexError",
    "ConfigError",
    "ErrorCode",
    "IndexBuildError",
    "InternalError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "run_context",
    "set_run_id",
    # Progress
    "progress",
]
