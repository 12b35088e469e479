"""Managed temp directory used for downloads and extracted audio."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator
from uuid import uuid4

import structlog

from copy_forge.config import get_settings

logger = structlog.get_logger()


def get_temp_dir(base: str | Path | None = None) -> Path:
    """Return the managed temp directory, creating it if absent."""
    path = Path(base if base is not None else get_settings().temp_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def new_temp_path(suffix: str = "", base: str | Path | None = None) -> Path:
    """Unique file path inside the temp directory: ``<random token><suffix>``."""
    return get_temp_dir(base) / f"{uuid4().hex}{suffix}"


async def write_temp_file(data: bytes, suffix: str = "", base: str | Path | None = None) -> Path:
    path = new_temp_path(suffix, base)
    await asyncio.to_thread(path.write_bytes, data)
    return path


def remove_quietly(path: str | Path | None) -> bool:
    """Delete a temp file; failures are logged and swallowed (the cleanup monitor is the backstop)."""
    if not path:
        return False
    try:
        Path(path).unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.warning("tempfiles.remove_failed", path=str(path), error=str(e))
        return False


@asynccontextmanager
async def scoped_temp_file(path: str | Path) -> AsyncIterator[Path]:
    """Yield ``path`` and delete it on every exit path."""
    try:
        yield Path(path)
    finally:
        remove_quietly(path)
