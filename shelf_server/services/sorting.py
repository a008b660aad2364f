from __future__ import annotations

from collections.abc import Iterable

from shelf_server.services.file_catalog import Entry

SORT_BY_DATE = "date"
SORT_BY_NAME = "alphabetical"
SORT_MODES = (SORT_BY_DATE, SORT_BY_NAME)


def by_modified_date(entries: Iterable[Entry]) -> list[Entry]:
    """Most recently modified first; equal timestamps keep their input order."""

    return sorted(entries, key=lambda entry: entry.modified_at, reverse=True)


def by_name(entries: Iterable[Entry]) -> list[Entry]:
    """Case-insensitive ascending by name; equal names keep their input order."""

    return sorted(entries, key=lambda entry: entry.name.lower())


def normalize_sort_mode(mode: str | None) -> str:
    if mode == SORT_BY_NAME:
        return SORT_BY_NAME
    return SORT_BY_DATE


def sort_entries(entries: Iterable[Entry], mode: str | None) -> list[Entry]:
    if normalize_sort_mode(mode) == SORT_BY_NAME:
        return by_name(entries)
    return by_modified_date(entries)
