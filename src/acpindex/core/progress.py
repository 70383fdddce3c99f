"""Progress display for indexing runs.

A rich bar is drawn on stderr when it is a terminal and the run is large
enough to be worth watching. Console log handlers stay silent while the bar
is live so log lines do not tear it. Off a terminal the run is reported as
DEBUG events at its start, at every tenth of the way through, and at its end.

Usage::

    for path in progress(paths, desc="Indexing"):
        process(path)
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

T = TypeVar("T")

_PROGRESS_THRESHOLD = 100
_LOG_STEPS = 10

_console = Console(stderr=True)

_state = threading.local()


def is_console_suppressed() -> bool:
    return getattr(_state, "suppressed", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Silence console log handlers for the block; nested blocks restore the outer state."""
    previous = is_console_suppressed()
    _state.suppressed = True
    try:
        yield
    finally:
        _state.suppressed = previous


def _is_tty() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def _length(iterable: Iterable[object]) -> int | None:
    try:
        return len(iterable)  # type: ignore[arg-type]
    except TypeError:
        return None


def _bar() -> Progress:
    return Progress(
        TextColumn("  {task.description}"),
        BarColumn(bar_width=30, style="cyan", complete_style="green"),
        TaskProgressColumn(),
        TextColumn("{task.completed}/{task.total} {task.fields[unit]}"),
        console=_console,
        transient=True,
    )


def progress(
    iterable: Iterable[T],
    *,
    desc: str | None = None,
    total: int | None = None,
    unit: str = "files",
    force: bool = False,
) -> Iterator[T]:
    """Yield from ``iterable`` while reporting how far through it the caller is.

    ``total`` is taken from ``len()`` when not given. The bar is drawn only on
    a terminal, and only above the item threshold unless ``force`` is set.
    """
    if total is None:
        total = _length(iterable)
    label = desc or "Processing"

    if _is_tty() and total is not None and (force or total > _PROGRESS_THRESHOLD):
        with suppress_console_logs(), _bar() as bar:
            task = bar.add_task(label, total=total, unit=unit)
            for item in iterable:
                yield item
                bar.advance(task)
        return

    from acpindex.core.logging import get_logger

    log = get_logger("progress")
    step = max(total // _LOG_STEPS, 1) if total else 0
    log.debug("progress_start", desc=label, total=total)
    done = 0
    for item in iterable:
        yield item
        done += 1
        if step and done % step == 0 and done < total:  # type: ignore[operator]
            log.debug("progress", desc=label, done=done, total=total)
    log.debug("progress_done", desc=label, done=done)
