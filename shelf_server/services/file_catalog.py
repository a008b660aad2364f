from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from shelf_server.errors import NotFoundError, OutsideRootError
from shelf_server.services.folder_size import DEFAULT_DEADLINE, aggregate_size

KB = 1024
MB = 1024 * KB

logger = logging.getLogger("shelf_server.catalog")


@dataclass(frozen=True)
class Entry:
    """Metadata describing one visible item of a listed directory."""

    path: str
    name: str
    modified_at: datetime
    size_bytes: int
    is_dir: bool


def _absolute(path: str | os.PathLike[str], canonicalize: bool = False) -> Path:
    path = Path(path).expanduser()
    if canonicalize:
        return path.resolve()
    # normpath collapses ".." without touching symlinks.
    return Path(os.path.normpath(path.absolute()))


def normalize_path(path: str | os.PathLike[str], canonicalize: bool = False) -> str:
    return str(_absolute(path, canonicalize))


def _ensure_within_root(base: Path, target: Path) -> Path:
    if base == target:
        return target
    if base in target.parents:
        return target
    raise OutsideRootError(f"Path '{target}' escapes root {base}")


def resolve_within_root(candidate: str, root: str | os.PathLike[str], *, canonicalize: bool = False) -> str:
    """Return the absolute form of ``candidate``, ensuring it lies under ``root``.

    Relative candidates are taken relative to ``root``. ``..`` segments are
    collapsed textually; symlinks are only followed when ``canonicalize`` is set.
    """

    if not candidate or "\x00" in candidate:
        raise OutsideRootError("No path provided")
    base = _absolute(root, canonicalize)
    target = _absolute(base / candidate, canonicalize)
    return str(_ensure_within_root(base, target))


def list_directory(directory: str | os.PathLike[str], size_deadline: float = DEFAULT_DEADLINE) -> list[Entry]:
    """Return the visible entries of ``directory`` in scan order.

    Hidden (dot-prefixed) children are left out, as are children whose
    metadata cannot be read. Subdirectory sizes come from a deadline-bounded
    walk; when that walk yields nothing the directory's own size is used.
    """

    directory = _absolute(directory)
    try:
        children = list(directory.iterdir())
    except (OSError, ValueError) as exc:
        raise NotFoundError(f"Directory '{directory}' cannot be read: {exc}") from exc

    entries = []
    for child in children:
        if child.name.startswith("."):
            continue
        try:
            info = child.stat()
        except OSError:
            logger.debug("Skipping %s: metadata unavailable", child)
            continue

        is_dir = stat.S_ISDIR(info.st_mode)
        size = info.st_size
        if is_dir:
            # An empty folder and a timed-out walk both come back as 0.
            aggregated = aggregate_size(child, size_deadline)
            if aggregated != 0:
                size = aggregated

        entries.append(
            Entry(
                path=str(child),
                name=child.name,
                modified_at=datetime.fromtimestamp(info.st_mtime),
                size_bytes=size,
                is_dir=is_dir,
            )
        )
    return entries


def format_size(size: int) -> str:
    if size >= MB:
        return f"{size / MB:.2f} MB"
    if size >= KB:
        return f"{size / KB:.2f} KB"
    return f"{size} Bytes"


def format_modified(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M")
