"""Cleanup Monitor: removes orphaned temp files and temp bucket objects.

Components delete what they create on every exit path; this is the backstop
for crashes and cancelled requests. Safe to run concurrently with itself.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import structlog

from copy_forge.config import get_settings
from copy_forge.integrations.gcs import ObjectStore
from copy_forge.utils.tempfiles import get_temp_dir
from copy_forge.utils.timeutil import Clock, to_iso, utcnow

logger = structlog.get_logger()

MAX_AGE = timedelta(hours=1)


@dataclass
class DomainReport:
    found: int = 0
    cleaned: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class CleanupReport:
    timestamp: str
    temp_files: DomainReport
    gcs_files: DomainReport
    gcs_enabled: bool = True

    @property
    def summary(self) -> dict[str, Any]:
        return {
            "total_temp_files": self.temp_files.found,
            "total_gcs_files": self.gcs_files.found,
            "cleanup_success": not (self.temp_files.errors or self.gcs_files.errors),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "temp_files": asdict(self.temp_files),
            "gcs_files": asdict(self.gcs_files),
            "gcs_enabled": self.gcs_enabled,
            "summary": self.summary,
        }


class CleanupMonitor:
    def __init__(
        self,
        temp_dir: str | Path,
        object_store: ObjectStore | None = None,
        max_age: timedelta = MAX_AGE,
        clock: Clock = utcnow,
    ) -> None:
        self.temp_dir = Path(temp_dir)
        self.object_store = object_store
        self.max_age = max_age
        self._clock = clock

    async def scan_temp_files(self) -> list[Path]:
        """Files in the temp dir last modified more than ``max_age`` ago."""
        if not self.temp_dir.exists():
            return []
        now = self._clock()

        def _scan() -> list[Path]:
            stale = []
            for path in self.temp_dir.iterdir():
                try:
                    if not path.is_file():
                        continue
                    mtime = path.stat().st_mtime
                except OSError:
                    # removed by its owner mid-scan
                    continue
                modified = datetime.fromtimestamp(mtime, tz=timezone.utc)
                if now - modified > self.max_age:
                    stale.append(path)
            return stale

        return await asyncio.to_thread(_scan)

    async def scan_gcs_files(self) -> list[str]:
        """Bucket objects created more than ``max_age`` ago; objects without a creation time are skipped."""
        if self.object_store is None:
            return []
        now = self._clock()
        stale = []
        for obj in await self.object_store.list_objects():
            if obj.created_at is None:
                logger.debug("cleanup.gcs_no_timestamp", uri=obj.uri)
                continue
            if now - obj.created_at > self.max_age:
                stale.append(obj.uri)
        return stale

    async def cleanup_temp_files(self, paths: list[Path]) -> DomainReport:
        report = DomainReport(found=len(paths))
        for path in paths:
            try:
                await asyncio.to_thread(path.unlink, missing_ok=True)
                report.cleaned += 1
            except OSError as e:
                report.failed += 1
                report.errors.append(f"{path}: {e}")
                logger.warning("cleanup.temp_delete_failed", path=str(path), error=str(e))
        return report

    async def cleanup_gcs_files(self, uris: list[str]) -> DomainReport:
        report = DomainReport(found=len(uris))
        if self.object_store is None:
            return report
        for uri in uris:
            try:
                await self.object_store.delete(uri)
                report.cleaned += 1
            except Exception as e:
                report.failed += 1
                report.errors.append(f"{uri}: {e}")
                logger.warning("cleanup.gcs_delete_failed", uri=uri, error=str(e))
        return report

    async def perform_cleanup(self) -> CleanupReport:
        try:
            temp_report = await self.cleanup_temp_files(await self.scan_temp_files())
        except OSError as e:
            logger.warning("cleanup.temp_scan_failed", error=str(e))
            temp_report = DomainReport(errors=[str(e)])

        if self.object_store is None:
            logger.info("cleanup.gcs_skipped", reason="no object store configured")
            gcs_report = DomainReport()
        else:
            try:
                gcs_report = await self.cleanup_gcs_files(await self.scan_gcs_files())
            except Exception as e:
                logger.warning("cleanup.gcs_scan_failed", error=str(e))
                gcs_report = DomainReport(errors=[str(e)])

        report = CleanupReport(
            timestamp=to_iso(self._clock()),
            temp_files=temp_report,
            gcs_files=gcs_report,
            gcs_enabled=self.object_store is not None,
        )
        logger.info(
            "cleanup.completed",
            temp_cleaned=temp_report.cleaned,
            gcs_cleaned=gcs_report.cleaned,
            **report.summary,
        )
        return report


_monitor: CleanupMonitor | None = None


def get_cleanup_monitor() -> CleanupMonitor:
    """Get the global cleanup monitor (lazy init)."""
    global _monitor
    if _monitor is None:
        settings = get_settings()
        store = ObjectStore.from_settings(settings) if settings.has_google_cloud_credentials else None
        _monitor = CleanupMonitor(get_temp_dir(settings.temp_dir), store)
    return _monitor
