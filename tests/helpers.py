from __future__ import annotations

import os

T1 = 1_600_000_000
T2 = T1 + 3600


def write_file(path, size: int, mtime: float | None = None):
    path.write_bytes(b"x" * size)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path
