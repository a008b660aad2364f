"""Deadline-bounded folder sizing.

A folder's size is the sum of the sizes of every non-directory entry below it.
Walking a large tree can take far longer than a page render should, so each
walk runs on a worker thread and the caller only waits until the deadline.
Whatever has been summed by then is the answer, which makes directory sizes a
best-effort estimate rather than an exact figure.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

DEFAULT_DEADLINE = 0.1
MAX_WALKERS = 4

logger = logging.getLogger("shelf_server.folder_size")

_executor = ThreadPoolExecutor(max_workers=MAX_WALKERS, thread_name_prefix="folder-size")


class SizeWalk:
    """One subtree walk that owns its running total."""

    def __init__(self, root: str, deadline_at: float, cancel: threading.Event | None = None) -> None:
        self.root = root
        self.deadline_at = deadline_at
        self.cancel = cancel if cancel is not None else threading.Event()
        self.total = 0

    def stopped(self) -> bool:
        return self.cancel.is_set() or time.monotonic() >= self.deadline_at

    def run(self) -> int:
        pending = [self.root]
        while pending and not self.stopped():
            current = pending.pop()
            try:
                with os.scandir(current) as children:
                    for child in children:
                        if self.stopped():
                            return self.total
                        try:
                            if child.is_dir(follow_symlinks=False):
                                pending.append(child.path)
                            else:
                                self.total += child.stat(follow_symlinks=False).st_size
                        except OSError:
                            continue
            except OSError:
                # Unreadable subtree contributes nothing.
                continue
        return self.total


def aggregate_size(
    path: str | os.PathLike[str],
    deadline: float = DEFAULT_DEADLINE,
    cancel: threading.Event | None = None,
) -> int:
    """Return the summed file size under ``path``, giving up after ``deadline`` seconds.

    The walk also stops early when ``cancel`` is set. In both cases the partial
    sum reached so far is returned; this never raises for walk errors.
    """

    walk = SizeWalk(os.fspath(path), time.monotonic() + deadline, cancel)
    future = _executor.submit(walk.run)
    try:
        return future.result(timeout=max(deadline, 0.0))
    except FutureTimeoutError:
        walk.cancel.set()
        future.cancel()
        logger.debug("Size walk of %s hit its %.3fs deadline at %d bytes", walk.root, deadline, walk.total)
        return walk.total
