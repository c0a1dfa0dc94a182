# similarity-ts - Find duplicated TypeScript code by structural comparison
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Worker processes for the comparison engines.

Tree edit distance is pure Python and CPU bound, so comparisons run in
separate processes rather than threads. The data shared by every row (units,
fingerprints, options) is sent once per worker through the pool initializer;
each task only carries its row.
"""

import logging
import multiprocessing as mp
import os
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)

R = TypeVar("R")

# Set in each worker process by _init_worker
_worker_state = None


def _init_worker(state: Any) -> None:
    """Initialize worker process with the shared comparison state."""
    global _worker_state
    _worker_state = state


def _run_row(task) -> Any:
    row_fn, row = task
    return row_fn(_worker_state, row)


def resolve_workers(workers: Optional[int]) -> int:
    """Worker count, defaulting to the available CPUs."""
    return workers or os.cpu_count() or 1


def run_rows(
    row_fn: Callable[[Any, Any], R],
    state: Any,
    rows: Sequence[Any],
    workers: Optional[int] = None,
) -> Iterator[R]:
    """
    Apply row_fn(state, row) to every row, in worker processes when useful.

    row_fn must be a module-level function so it can be sent to the workers.
    Results arrive in completion order; callers sort them.

    Runs in the calling process when a single worker is requested, when
    there is at most one row, or when worker processes cannot be started.
    """
    processes = min(resolve_workers(workers), len(rows))
    if processes <= 1:
        for row in rows:
            yield row_fn(state, row)
        return

    # 'spawn' keeps workers independent of the parent's parsing threads
    ctx = mp.get_context("spawn")
    try:
        pool = ctx.Pool(processes=processes, initializer=_init_worker, initargs=(state,))
    except OSError as e:
        logger.warning(f"Could not start worker processes, comparing in-process: {e}")
        for row in rows:
            yield row_fn(state, row)
        return

    with pool:
        for result in pool.imap_unordered(_run_row, [(row_fn, row) for row in rows]):
            yield result
