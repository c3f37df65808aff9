"""Data models shared by the traversal engine, classifiers and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


class ScanCategory(Enum):
    """Anomaly category a scan looks for."""

    FAILURES = "failures"
    ZOMBIES = "zombies"
    TRANSCODED = "transcoded"


class ZombieType(Enum):
    """Zombie flavour, used as the ``zombie_type`` metric label."""

    OBSERVED = "observed"
    NON_OBSERVED = "non_observed"


@dataclass(frozen=True)
class ClassificationOutcome:
    """Base outcome of classifying one directory.

    Attributes:
        path: Directory that was classified.
        last_write_time: Timestamp the recency decision is based on.
        matched: Whether the directory counts for the scan.
    """

    path: Path
    last_write_time: datetime | None
    matched: bool


@dataclass(frozen=True)
class NoMatch(ClassificationOutcome):
    """Directory did not match."""

    last_write_time: datetime | None = None
    matched: bool = False


@dataclass(frozen=True)
class FailureMatch(ClassificationOutcome):
    """Directory holds a failure marker file."""

    reason: str = ""
    image: Path | None = None
    matched: bool = True

    def to_snapshot_entry(self) -> dict[str, Any]:
        """JSON snapshot value for this failure."""
        return {
            "reason": self.reason,
            "image": str(self.image) if self.image is not None else None,
            "lastWriteTime": (
                self.last_write_time.isoformat() if self.last_write_time else None
            ),
        }


@dataclass(frozen=True)
class ZombieMatch(ClassificationOutcome):
    """Directory is stuck past its tenant's age threshold."""

    age_minutes: float = 0.0
    zombie_type: ZombieType = ZombieType.OBSERVED
    matched: bool = True


@dataclass(frozen=True)
class TranscodedMatch(ClassificationOutcome):
    """Transcoded output folder that still holds files."""

    matched: bool = True


@dataclass(frozen=True)
class TenantDirectory:
    """Tenant landing directory parsed from ``<tenant>-landing-dir-<env>``."""

    tenant: str
    env: str
    dir_name: str

    @property
    def display_tenant(self) -> str:
        """Tenant name with its first character upper-cased (metric label form)."""
        return normalize_tenant(self.tenant)


@dataclass(frozen=True)
class ScanTarget:
    """A validated directory to scan for one tenant and category.

    Attributes:
        tenant: Normalised tenant name.
        env: Environment parsed from the landing directory name.
        root_dir: Value of the ``root_dir`` metric label.
        path: Directory the scan walks.
    """

    tenant: str
    env: str
    root_dir: Path
    path: Path


@dataclass
class ScanAllResult:
    """Outcome of dispatching every scan category for one tenant."""

    failure_scan_queued: bool = False
    observed_zombie_scan_queued: bool = False
    non_observed_zombie_scan_queued: bool = False
    transcoded_scan_queued: bool = False
    messages: list[str] = field(default_factory=list)

    @property
    def any_scan_queued(self) -> bool:
        return (
            self.failure_scan_queued
            or self.observed_zombie_scan_queued
            or self.non_observed_zombie_scan_queued
            or self.transcoded_scan_queued
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "failure_scan_queued": self.failure_scan_queued,
            "observed_zombie_scan_queued": self.observed_zombie_scan_queued,
            "non_observed_zombie_scan_queued": self.non_observed_zombie_scan_queued,
            "transcoded_scan_queued": self.transcoded_scan_queued,
            "any_scan_queued": self.any_scan_queued,
            "messages": list(self.messages),
        }


def normalize_tenant(tenant: str) -> str:
    """Upper-case the first character of a tenant name (``svc-a`` -> ``Svc-a``)."""
    if not tenant:
        return tenant
    return tenant[0].upper() + tenant[1:]
