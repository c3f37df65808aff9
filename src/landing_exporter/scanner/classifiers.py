"""Per-directory classification rules.

Each classifier answers one question about a single directory (does it
match, and when was it last written) and never touches shared state.
Aggregation into a report happens in the scan services.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from landing_exporter.scanner.filesystem import FAILURE_MARKER, OBSERVED_MARKER
from landing_exporter.scanner.models import (
    ClassificationOutcome,
    FailureMatch,
    NoMatch,
    TranscodedMatch,
    ZombieMatch,
    ZombieType,
)

if TYPE_CHECKING:
    from landing_exporter.config.models import ScannerConfig
    from landing_exporter.scanner.filesystem import LocalFileSystem

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _contains(name: str, marker: str) -> bool:
    return marker in name.casefold()


class Classifier(ABC):
    """Base class: shared filesystem, config and clock."""

    def __init__(
        self,
        filesystem: LocalFileSystem,
        config: ScannerConfig,
        clock: Clock = utc_now,
    ) -> None:
        self._fs = filesystem
        self._config = config
        self._clock = clock

    @abstractmethod
    async def classify(self, path: Path) -> ClassificationOutcome:
        """Classify a single directory."""

    def is_recent(self, last_write_time: datetime | None) -> bool:
        """True if the timestamp falls inside the recent window."""
        if last_write_time is None:
            return False
        window = timedelta(hours=self._config.recent_window_hours)
        return last_write_time >= self._clock() - window


class FailureClassifier(Classifier):
    """Matches directories holding a failure marker file.

    The first file whose name contains "fail" is read as the failure
    reason. Reason files over ``max_reason_file_bytes`` are skipped, and so
    is their directory.
    """

    async def classify(self, path: Path) -> ClassificationOutcome:
        marker = await self._fs.find_file_containing(path, FAILURE_MARKER)
        if marker is None:
            return NoMatch(path=path)

        reason_file = await self._fs.read_text_file(
            path / marker, self._config.max_reason_file_bytes
        )
        if reason_file is None:
            return NoMatch(path=path)

        image = await self._fs.find_image(
            path, self._config.supported_image_extensions
        )
        logger.debug(
            "Failure found at %s, last write %s", path, reason_file.last_write_time
        )
        return FailureMatch(
            path=path,
            last_write_time=reason_file.last_write_time,
            reason=reason_file.content,
            image=image,
        )


class ZombieClassifier(Classifier):
    """Shared age-threshold rule for both zombie flavours."""

    zombie_type: ZombieType

    def __init__(
        self,
        filesystem: LocalFileSystem,
        config: ScannerConfig,
        tenant: str,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(filesystem, config, clock)
        self._threshold = config.zombie_threshold_for(tenant)

    @property
    def threshold_minutes(self) -> int:
        return self._threshold

    def _decide(self, path: Path, last_write_time: datetime | None) -> ClassificationOutcome:
        if last_write_time is None:
            return NoMatch(path=path)

        age_minutes = (self._clock() - last_write_time).total_seconds() / 60
        if age_minutes > self._threshold:
            logger.debug(
                "Zombie detected at %s, age %.2f min, threshold %d min",
                path,
                age_minutes,
                self._threshold,
            )
            return ZombieMatch(
                path=path,
                last_write_time=last_write_time,
                age_minutes=age_minutes,
                zombie_type=self.zombie_type,
            )

        logger.debug(
            "Potential zombie at %s is too recent, age %.2f min, threshold %d min",
            path,
            age_minutes,
            self._threshold,
        )
        return NoMatch(path=path, last_write_time=last_write_time)


class ObservedZombieClassifier(ZombieClassifier):
    """Exactly one "observed" file, no "fail" file; aged by the observed file."""

    zombie_type = ZombieType.OBSERVED

    async def classify(self, path: Path) -> ClassificationOutcome:
        names = await self._fs.list_files(path)
        if any(_contains(name, FAILURE_MARKER) for name in names):
            return NoMatch(path=path)

        observed = [name for name in names if _contains(name, OBSERVED_MARKER)]
        if len(observed) != 1:
            return NoMatch(path=path)

        last_write = await self._fs.file_mtime(path / observed[0])
        return self._decide(path, last_write)


class NonObservedZombieClassifier(ZombieClassifier):
    """Leaf directory with files but no "fail"/"observed" marker; aged by its own mtime."""

    zombie_type = ZombieType.NON_OBSERVED

    async def classify(self, path: Path) -> ClassificationOutcome:
        if await self._fs.list_subdirectories(path):
            return NoMatch(path=path)

        names = await self._fs.list_files(path)
        if not names:
            return NoMatch(path=path)
        if any(
            _contains(name, FAILURE_MARKER) or _contains(name, OBSERVED_MARKER)
            for name in names
        ):
            return NoMatch(path=path)

        last_write = await self._fs.directory_mtime(path)
        return self._decide(path, last_write)


class TranscodedClassifier(Classifier):
    """Transcoded output folder that still holds at least one file."""

    async def classify(self, path: Path) -> ClassificationOutcome:
        names = await self._fs.list_files(path)
        if not names:
            return NoMatch(path=path)

        last_write = await self._fs.file_mtime(path / names[0])
        if last_write is None:
            return NoMatch(path=path)
        return TranscodedMatch(path=path, last_write_time=last_write)


def zombie_classifier_for(
    zombie_type: ZombieType,
    filesystem: LocalFileSystem,
    config: ScannerConfig,
    tenant: str,
    clock: Clock = utc_now,
) -> ZombieClassifier:
    """Pick the zombie classifier for a zombie type."""
    if zombie_type is ZombieType.OBSERVED:
        return ObservedZombieClassifier(filesystem, config, tenant, clock)
    return NonObservedZombieClassifier(filesystem, config, tenant, clock)
