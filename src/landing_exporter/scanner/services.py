"""Per-category scan services.

A service runs one category scan for one tenant from start to published
metrics. Anything that goes wrong for the scan as a whole (snapshot I/O,
an unexpected error in the walk) is logged and ends that scan without
publishing; other tenants and categories are unaffected.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from landing_exporter.logging import scan_context
from landing_exporter.scanner.classifiers import (
    Classifier,
    Clock,
    FailureClassifier,
    TranscodedClassifier,
    utc_now,
    zombie_classifier_for,
)
from landing_exporter.scanner.models import FailureMatch, ScanCategory, ZombieType
from landing_exporter.scanner.report import AggregateReport, attributed_groups
from landing_exporter.scanner.snapshot import ReasonSnapshotWriter

if TYPE_CHECKING:
    from landing_exporter.config.models import ScannerConfig
    from landing_exporter.metrics.publisher import LabelContext, MetricPublisher
    from landing_exporter.scanner.filesystem import LocalFileSystem
    from landing_exporter.scanner.models import ScanTarget
    from landing_exporter.scanner.traversal import TraversalEngine

logger = logging.getLogger(__name__)


class _ScanService:
    def __init__(
        self,
        filesystem: LocalFileSystem,
        config: ScannerConfig,
        engine: TraversalEngine,
        publisher: MetricPublisher,
        clock: Clock = utc_now,
    ) -> None:
        self._fs = filesystem
        self._config = config
        self._engine = engine
        self._publisher = publisher
        self._clock = clock

    def _log_progress(self, total: int, what: str) -> None:
        if total % self._config.progress_log_threshold == 0:
            logger.info("Scan in progress, found %d %s so far", total, what)

    @staticmethod
    def _labels(target: ScanTarget, zombie_type: ZombieType | None = None) -> LabelContext:
        # Deferred: landing_exporter.metrics imports scanner.models
        from landing_exporter.metrics.publisher import LabelContext

        return LabelContext(
            root_dir=str(target.root_dir),
            tenant=target.tenant,
            env=target.env,
            zombie_type=zombie_type,
        )

    def _record(
        self,
        classifier: Classifier,
        path: Path,
        groups: tuple[Path, ...],
        report: AggregateReport,
        last_write_time: datetime | None,
        what: str,
    ) -> bool:
        recent = classifier.is_recent(last_write_time)
        total = report.record_match(attributed_groups(path, groups), recent=recent)
        self._log_progress(total, what)
        return recent


class FailureScanService(_ScanService):
    """Walks a tenant's Failed directory and writes the reason snapshots."""

    async def scan(self, target: ScanTarget) -> AggregateReport | None:
        """Run a failure scan.

        Returns:
            The report, or None if the scan was abandoned.
        """
        with scan_context(target.tenant, ScanCategory.FAILURES.value):
            logger.info("Starting failure scan of %s", target.path)
            classifier = FailureClassifier(self._fs, self._config, self._clock)

            try:
                with ReasonSnapshotWriter(target.path) as snapshot:

                    async def process(
                        path: Path, groups: tuple[Path, ...], report: AggregateReport
                    ) -> None:
                        outcome = await classifier.classify(path)
                        if not isinstance(outcome, FailureMatch):
                            return
                        recent = self._record(
                            classifier,
                            path,
                            groups,
                            report,
                            outcome.last_write_time,
                            "failures",
                        )
                        await asyncio.to_thread(snapshot.add, outcome, recent=recent)

                    report = await self._engine.traverse(
                        target.path, target.tenant, process
                    )
                    await asyncio.to_thread(snapshot.commit)
            except Exception:
                logger.exception("Critical error during failure scan, aborting")
                return None

            self._publisher.publish_report(
                ScanCategory.FAILURES, report, self._labels(target), target.path
            )
            logger.info(
                "Completed failure scan: %d failures (%d recent)",
                report.total_count,
                report.recent_count,
            )
            return report


class ZombieScanService(_ScanService):
    """Walks a tenant's landing directory looking for one zombie flavour."""

    async def scan(
        self, target: ScanTarget, zombie_type: ZombieType
    ) -> AggregateReport | None:
        with scan_context(target.tenant, f"zombies:{zombie_type.value}"):
            logger.info("Starting %s zombie scan of %s", zombie_type.value, target.path)
            classifier = zombie_classifier_for(
                zombie_type, self._fs, self._config, target.tenant, self._clock
            )

            async def process(
                path: Path, groups: tuple[Path, ...], report: AggregateReport
            ) -> None:
                outcome = await classifier.classify(path)
                if outcome.matched:
                    self._record(
                        classifier,
                        path,
                        groups,
                        report,
                        outcome.last_write_time,
                        "zombies",
                    )

            try:
                report = await self._engine.traverse(target.path, target.tenant, process)
            except Exception:
                logger.exception("Error during zombie scan, aborting")
                return None

            self._publisher.publish_report(
                ScanCategory.ZOMBIES,
                report,
                self._labels(target, zombie_type),
                target.path,
            )
            logger.info(
                "Completed %s zombie scan: %d zombies (%d recent)",
                zombie_type.value,
                report.total_count,
                report.recent_count,
            )
            return report


class TranscodedScanService(_ScanService):
    """Counts transcoded output folders that still hold files.

    Only the immediate children of the transcoded root are inspected; the
    traversal engine is not used.
    """

    async def scan(self, target: ScanTarget) -> tuple[int, int] | None:
        """Run a transcoded scan.

        Returns:
            ``(total, recent)``, or None if the scan was abandoned.
        """
        with scan_context(target.tenant, ScanCategory.TRANSCODED.value):
            logger.info("Starting transcoded scan of %s", target.path)
            try:
                total, recent = await self._count(target.path)
            except Exception:
                logger.exception("Error during transcoded scan, aborting")
                return None

            self._publisher.publish_transcoded(total, recent, self._labels(target))
            logger.info(
                "Completed transcoded scan: %d folders (%d recent)", total, recent
            )
            return total, recent

    async def _count(self, root: Path) -> tuple[int, int]:
        if not await self._fs.exists(root):
            logger.warning("Transcoded path %s does not exist, skipping", root)
            return 0, 0

        classifier = TranscodedClassifier(self._fs, self._config, self._clock)
        total = 0
        recent = 0
        for name in await self._fs.list_subdirectories(root):
            try:
                outcome = await classifier.classify(root / name)
            except Exception:
                logger.exception("Error processing subdirectory %s in %s", name, root)
                continue
            if outcome.matched:
                total += 1
                if classifier.is_recent(outcome.last_write_time):
                    recent += 1
        return total, recent
