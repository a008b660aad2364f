"""Request-level composition of path guarding, listing and sorting."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import PurePath

from shelf_server.services.file_catalog import (
    Entry,
    list_directory,
    normalize_path,
    resolve_within_root,
)
from shelf_server.services.folder_size import DEFAULT_DEADLINE
from shelf_server.services.sorting import SORT_BY_DATE, normalize_sort_mode, sort_entries


@dataclass(frozen=True)
class Listing:
    directory: str
    root: str
    parent: str | None
    sort_by: str
    entries: list[Entry]


class ListingService:
    """Lists directories under a root, sorted per request."""

    def __init__(
        self,
        root: str,
        start_dir: str | None = None,
        default_sort: str = SORT_BY_DATE,
        size_deadline: float = DEFAULT_DEADLINE,
        canonicalize: bool = False,
    ) -> None:
        self.root = normalize_path(root, canonicalize)
        self.start_dir = resolve_within_root(start_dir or self.root, self.root, canonicalize=canonicalize)
        self.default_sort = normalize_sort_mode(default_sort)
        self.size_deadline = size_deadline
        self.canonicalize = canonicalize

    def list(self, requested_dir: str | None = None, sort_by: str | None = None) -> Listing:
        directory = resolve_within_root(
            requested_dir or self.start_dir, self.root, canonicalize=self.canonicalize
        )
        mode = normalize_sort_mode(sort_by or self.default_sort)
        entries = sort_entries(list_directory(directory, self.size_deadline), mode)
        parent = None if directory == self.root else os.path.dirname(directory)
        return Listing(
            directory=directory,
            root=self.root,
            parent=parent,
            sort_by=mode,
            entries=entries,
        )


class FileDeliveryService:
    """Maps a requested file onto a path relative to the served root."""

    def __init__(self, root: str, canonicalize: bool = False) -> None:
        self.root = normalize_path(root, canonicalize)
        self.canonicalize = canonicalize

    def locate(self, requested_file: str) -> str:
        target = resolve_within_root(requested_file, self.root, canonicalize=self.canonicalize)
        return PurePath(os.path.relpath(target, self.root)).as_posix()
