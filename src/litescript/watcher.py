"""Re-run a litescript file whenever it changes.

The watcher polls the file's modification stamp; changes observed while a
cycle is running collapse into one follow-up cycle.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Optional, Tuple

from .runner import report
from .types import ExecutionError, TranspileError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.25

Stamp = Optional[Tuple[int, int]]


def file_stamp(path: str) -> Stamp:
    """(mtime_ns, size) of *path*, or None when it cannot be stat'ed."""
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return (st.st_mtime_ns, st.st_size)


def run_cycle(path: str, cycle: Callable[[], None]) -> bool:
    """Run one cycle, reporting its failure instead of raising. True on success."""
    print(f"\n--- Executing {path} ---")
    try:
        cycle()
    except (TranspileError, ExecutionError, FileNotFoundError) as exc:
        report(exc)
        logger.info("cycle for %s failed: %s", path, exc)
        return False

    logger.info("cycle for %s finished", path)
    return True


def watch(
    path: str,
    cycle: Callable[[], None],
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    stop: Optional[threading.Event] = None,
) -> int:
    """Run *cycle* now and after every change of *path*; return the cycle count.

    Runs until *stop* is set or the user interrupts with Ctrl-C.
    """
    stop = stop or threading.Event()
    print(f"Watching {path} for changes...")

    stamp = file_stamp(path)
    run_cycle(path, cycle)
    cycles = 1

    try:
        while not stop.wait(poll_interval):
            current = file_stamp(path)
            if current == stamp:
                continue

            stamp = current
            if current is None:
                logger.warning("%s disappeared; waiting for it to come back", path)
                continue

            logger.info("change detected in %s", path)
            run_cycle(path, cycle)
            cycles += 1
            # Edits made during the cycle show up as one more stamp change.
    except KeyboardInterrupt:
        print()

    logger.info("stopped watching %s after %d cycle(s)", path, cycles)
    return cycles
