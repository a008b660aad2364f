from __future__ import annotations

import os

import pytest

from helpers import T1, T2, write_file


@pytest.fixture
def shelf(tmp_path):
    """A root holding ``books/`` with two epubs, a hidden cache file and a nested folder."""

    root = tmp_path / "home"
    books = root / "books"
    books.mkdir(parents=True)
    write_file(books / "a.epub", 1000, T1)
    write_file(books / "b.epub", 2000, T2)
    write_file(books / ".cache", 50, T2 + 10)

    series = books / "Series"
    series.mkdir()
    write_file(series / "one.epub", 300)
    write_file(series / "two.epub", 400)
    os.utime(series, (T1 - 3600, T1 - 3600))
    return root
