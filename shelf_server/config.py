"""Configuration management."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from shelf_server.errors import ConfigurationError, OutsideRootError
from shelf_server.services.file_catalog import normalize_path, resolve_within_root
from shelf_server.services.sorting import SORT_BY_DATE, normalize_sort_mode

PORT_ENV = "PORT"
HOST_ENV = "SHELF_HOST"
ROOT_ENV = "SHELF_ROOT"
START_DIR_ENV = "SHELF_START_DIR"
SORT_BY_ENV = "SHELF_SORT_BY"
SIZE_DEADLINE_ENV = "SHELF_SIZE_DEADLINE_MS"
CANONICALIZE_ENV = "SHELF_CANONICALIZE_PATHS"
LOG_LEVEL_ENV = "SHELF_LOG_LEVEL"

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_SIZE_DEADLINE_MS = 100

_TRUTHY = {"1", "true", "yes", "on"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    root: str
    start_dir: str
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    sort_by: str = SORT_BY_DATE
    size_deadline: float = DEFAULT_SIZE_DEADLINE_MS / 1000
    canonicalize_paths: bool = False
    log_level: str = "INFO"


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    start_dir: str | None = None,
) -> Settings:
    """Read settings from the environment, validating the served directories.

    ``start_dir`` (for example a CLI argument) overrides ``SHELF_START_DIR``;
    either is interpreted relative to the root.
    """

    if environ is None:
        environ = os.environ

    canonicalize = environ.get(CANONICALIZE_ENV, "").strip().lower() in _TRUTHY
    root = normalize_path(environ.get(ROOT_ENV) or str(Path.home()), canonicalize)
    if not os.path.isdir(root):
        raise ConfigurationError(f"Root directory '{root}' does not exist")

    requested_start = start_dir or environ.get(START_DIR_ENV) or root
    try:
        resolved_start = resolve_within_root(requested_start, root, canonicalize=canonicalize)
    except OutsideRootError as exc:
        raise ConfigurationError(f"Start directory '{requested_start}' is outside {root}") from exc
    if not os.path.isdir(resolved_start):
        raise ConfigurationError(f"Start directory '{resolved_start}' does not exist")

    port = _int_setting(environ, PORT_ENV, DEFAULT_PORT)
    if not 0 < port < 65536:
        raise ConfigurationError(f"{PORT_ENV} must be between 1 and 65535, got {port}")

    log_level = (environ.get(LOG_LEVEL_ENV) or "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(f"{LOG_LEVEL_ENV} must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    return Settings(
        root=root,
        start_dir=resolved_start,
        port=port,
        host=environ.get(HOST_ENV) or DEFAULT_HOST,
        sort_by=normalize_sort_mode(environ.get(SORT_BY_ENV)),
        size_deadline=_int_setting(environ, SIZE_DEADLINE_ENV, DEFAULT_SIZE_DEADLINE_MS) / 1000,
        canonicalize_paths=canonicalize,
        log_level=log_level,
    )
