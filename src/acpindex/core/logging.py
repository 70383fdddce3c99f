"""structlog setup for indexing runs.

Every record passes through the same processor chain (context vars, level,
timestamp, run id) and is then rendered once per configured output: JSON
lines for files and machines, the dev console renderer for terminals.
Console outputs go quiet while a progress bar is live; file outputs never do.

An indexing run wraps its work in ``run_context``, which binds a short run
id and the project root to every record logged inside it::

    with run_context(str(root)) as run_id:
        log.info("index_start", files=len(files))
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from acpindex.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

_log_file_path: Path | None = None

_CONSOLE_DESTINATIONS = frozenset({"stderr", "stdout"})


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set the run id, generating a 12-character hex id when none is given."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


@contextmanager
def run_context(root: str, run_id: str | None = None) -> Iterator[str]:
    """Bind a run id and the indexed root to every record logged inside the block."""
    rid = set_run_id(run_id)
    structlog.contextvars.bind_contextvars(root=root)
    try:
        yield rid
    finally:
        structlog.contextvars.unbind_contextvars("root")
        clear_run_id()


def get_log_file_path() -> Path | None:
    """First file destination of the active configuration, if any."""
    return _log_file_path


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_run_id():
        event_dict["run_id"] = rid
    return event_dict


def _level(name: str | None, default: int) -> int:
    if name is None:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


class ConsoleSuppressingFilter(logging.Filter):
    """Drops console records while a live progress display owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from acpindex.core.progress import is_console_suppressed

        return not is_console_suppressed()


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Install handlers for every configured output.

    Without ``config`` a single stderr output is used, rendered as JSON when
    ``json_format`` is set. Reconfiguring replaces all root handlers.
    """
    from acpindex.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level, logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    global _log_file_path
    _log_file_path = next(
        (Path(o.destination) for o in config.outputs if o.destination not in _CONSOLE_DESTINATIONS),
        None,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    for output in config.outputs:
        handler = _build_handler(output, pre_chain)
        handler.setLevel(_level(output.level or config.level, root_level))
        root.addHandler(handler)


def _build_handler(
    output: LogOutputConfig, pre_chain: list[structlog.types.Processor]
) -> logging.Handler:
    """Stream or file handler for one output, with its renderer attached."""
    handler: logging.Handler
    console = output.destination in _CONSOLE_DESTINATIONS
    if console:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        handler = logging.StreamHandler(stream)
        handler.addFilter(ConsoleSuppressingFilter())
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")

    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=console and sys.stderr.isatty(), pad_event_to=0, pad_level=False
        )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    return handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
