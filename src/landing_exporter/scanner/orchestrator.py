"""Tenant discovery and scan fan-out.

ScanManager resolves tenants to their directories under the landing root
and runs the four category scans. The periodic path awaits every scan;
the on-demand ``queue_*`` methods validate synchronously and detach the
scan as a background task.

Layout under ``root_path``::

    <tenant>-landing-dir-<env>/         zombie scans (root_dir label: root)
    <tenant>-transcoded/                transcoded scan (root_dir label: root)
    Failed/<tenant>-landing-dir-<env>/  failure scan (root_dir label: root/Failed)
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Coroutine
from pathlib import Path
from typing import TYPE_CHECKING, Any

from landing_exporter.config.models import VALID_ENVS
from landing_exporter.scanner.classifiers import Clock, utc_now
from landing_exporter.scanner.filesystem import LocalFileSystem
from landing_exporter.scanner.models import (
    ScanAllResult,
    ScanTarget,
    TenantDirectory,
    ZombieType,
)
from landing_exporter.scanner.services import (
    FailureScanService,
    TranscodedScanService,
    ZombieScanService,
)
from landing_exporter.scanner.traversal import TraversalEngine

if TYPE_CHECKING:
    from landing_exporter.config.models import ScannerConfig
    from landing_exporter.metrics.publisher import MetricPublisher

logger = logging.getLogger(__name__)

FAILED_SUBDIR = "Failed"
TRANSCODED_SUFFIX = "-transcoded"

_DIRECTORY_PATTERN = re.compile(r"^\w+(-\w+)*-landing-dir-\w+$", re.IGNORECASE)


def parse_directory_name(dir_name: str | None) -> TenantDirectory | None:
    """Parse ``<tenant>-landing-dir-<env>``.

    The tenant may itself contain hyphens; it is every segment before the
    first ``landing`` segment. The env must be dev, int or prod.

    Returns:
        TenantDirectory, or None if the name is not a landing directory.

    Example:
        >>> parse_directory_name("svc-a-landing-dir-prod")
        TenantDirectory(tenant='svc-a', env='prod', dir_name='svc-a-landing-dir-prod')
    """
    if not dir_name:
        return None

    if not _DIRECTORY_PATTERN.match(dir_name):
        logger.debug("Directory %r does not match the landing pattern", dir_name)
        return None

    parts = dir_name.split("-")
    landing_index = next(
        (i for i, part in enumerate(parts) if part.casefold() == "landing"), -1
    )
    if landing_index <= 0:
        return None

    env = parts[-1]
    if env.casefold() not in VALID_ENVS:
        return None

    return TenantDirectory(
        tenant="-".join(parts[:landing_index]), env=env, dir_name=dir_name
    )


class ScanManager:
    """Discovers tenant directories and dispatches category scans."""

    def __init__(
        self,
        config: ScannerConfig,
        publisher: MetricPublisher,
        filesystem: LocalFileSystem | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._fs = filesystem if filesystem is not None else LocalFileSystem()
        engine = TraversalEngine(self._fs, config)
        self.failure_service = FailureScanService(
            self._fs, config, engine, publisher, clock
        )
        self.zombie_service = ZombieScanService(
            self._fs, config, engine, publisher, clock
        )
        self.transcoded_service = TranscodedScanService(
            self._fs, config, engine, publisher, clock
        )
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def root_path(self) -> Path:
        return self._config.root_path

    # Directory resolution

    async def discover_tenants(self) -> list[TenantDirectory]:
        """Landing directories under the root for the configured env."""
        wanted_env = self._config.env.casefold()
        tenants = []
        for dir_name in await self._fs.list_subdirectories(self.root_path):
            parsed = parse_directory_name(dir_name)
            if parsed is not None and parsed.env.casefold() == wanted_env:
                tenants.append(parsed)
        return tenants

    async def _find_base_directory(self, tenant: str) -> TenantDirectory | None:
        folded = tenant.casefold()
        for parsed in await self.discover_tenants():
            if parsed.tenant.casefold() == folded:
                return parsed
        logger.warning(
            "Could not find a landing directory for tenant %r in env %r",
            tenant,
            self._config.env,
        )
        return None

    def _zombie_target(self, base: TenantDirectory) -> ScanTarget:
        return ScanTarget(
            tenant=base.display_tenant,
            env=base.env,
            root_dir=self.root_path,
            path=self.root_path / base.dir_name,
        )

    async def _failure_target(self, base: TenantDirectory) -> ScanTarget | None:
        failed_root = self.root_path / FAILED_SUBDIR
        failed_path = failed_root / base.dir_name
        if not await self._fs.exists(failed_path):
            logger.warning(
                "Failed directory not found for tenant %s at %s",
                base.tenant,
                failed_path,
            )
            return None
        return ScanTarget(
            tenant=base.display_tenant,
            env=base.env,
            root_dir=failed_root,
            path=failed_path,
        )

    async def _transcoded_target(self, base: TenantDirectory) -> ScanTarget | None:
        expected = f"{base.tenant}{TRANSCODED_SUFFIX}".casefold()
        for dir_name in await self._fs.list_subdirectories(self.root_path):
            if dir_name.casefold() == expected:
                return ScanTarget(
                    tenant=base.display_tenant,
                    env=base.env,
                    root_dir=self.root_path,
                    path=self.root_path / dir_name,
                )
        logger.warning("Transcoded directory not found for tenant %s", base.tenant)
        return None

    # Awaited scans (periodic path)

    async def _run(self, coro: Coroutine[Any, Any, Any], description: str) -> bool:
        try:
            await coro
        except Exception:
            logger.exception("Awaited %s failed", description)
            return False
        return True

    async def _scan_failures(self, base: TenantDirectory) -> bool:
        target = await self._failure_target(base)
        if target is None:
            return False
        return await self._run(
            self.failure_service.scan(target), f"failure scan for {base.tenant}"
        )

    async def _scan_zombies(self, base: TenantDirectory, zombie_type: ZombieType) -> bool:
        return await self._run(
            self.zombie_service.scan(self._zombie_target(base), zombie_type),
            f"{zombie_type.value} zombie scan for {base.tenant}",
        )

    async def _scan_transcoded(self, base: TenantDirectory) -> bool:
        target = await self._transcoded_target(base)
        if target is None:
            return False
        return await self._run(
            self.transcoded_service.scan(target), f"transcoded scan for {base.tenant}"
        )

    async def scan_failures_for_tenant(self, tenant: str) -> bool:
        """Run and await a failure scan. False if the directory is missing."""
        base = await self._find_base_directory(tenant)
        return base is not None and await self._scan_failures(base)

    async def scan_zombies_for_tenant(self, tenant: str, zombie_type: ZombieType) -> bool:
        """Run and await a zombie scan. False if the directory is missing."""
        base = await self._find_base_directory(tenant)
        return base is not None and await self._scan_zombies(base, zombie_type)

    async def scan_transcoded_for_tenant(self, tenant: str) -> bool:
        """Run and await a transcoded scan. False if the directory is missing."""
        base = await self._find_base_directory(tenant)
        return base is not None and await self._scan_transcoded(base)

    async def scan_all_types_for_tenant(self, tenant: str) -> ScanAllResult:
        """Run the four category scans for a tenant concurrently and await them."""
        result = ScanAllResult()
        base = await self._find_base_directory(tenant)
        if base is None:
            result.messages.append(f"Tenant {tenant} not found.")
            return result
        return await self._scan_all_types(base)

    async def _scan_all_types(self, base: TenantDirectory) -> ScanAllResult:
        logger.info("Executing all scan types for tenant %s", base.tenant)
        (
            failures,
            observed,
            non_observed,
            transcoded,
        ) = await asyncio.gather(
            self._scan_failures(base),
            self._scan_zombies(base, ZombieType.OBSERVED),
            self._scan_zombies(base, ZombieType.NON_OBSERVED),
            self._scan_transcoded(base),
        )
        result = ScanAllResult(
            failure_scan_queued=failures,
            observed_zombie_scan_queued=observed,
            non_observed_zombie_scan_queued=non_observed,
            transcoded_scan_queued=transcoded,
        )
        result.messages.extend(
            _status_messages(result, done="Completed", skipped="Skipped")
        )
        return result

    async def discover_and_scan_all(self) -> int:
        """Scan every tenant of the configured env.

        Tenants run concurrently, at most ``max_parallel_tenant_scans`` at a
        time. A tenant's slot is held until all four of its scans finish.

        Returns:
            Number of tenants scanned.
        """
        limit = self._config.max_parallel_tenant_scans
        logger.info("Starting discovery and scan, max parallel tenant scans: %d", limit)

        gate = asyncio.Semaphore(limit)
        tasks: list[asyncio.Task[None]] = []

        for base in await self.discover_tenants():
            await gate.acquire()
            logger.debug("Slot acquired for tenant %s", base.tenant)
            tasks.append(asyncio.create_task(self._scan_tenant_slot(base, gate)))

        if not tasks:
            logger.info("No tenant directories found for env %s", self._config.env)
            return 0

        logger.info("Waiting for %d tenant scans to complete", len(tasks))
        await asyncio.gather(*tasks)
        logger.info("All tenant scans have completed")
        return len(tasks)

    async def _scan_tenant_slot(
        self, base: TenantDirectory, gate: asyncio.Semaphore
    ) -> None:
        try:
            await self._scan_all_types(base)
        except Exception:
            logger.exception("Scan for tenant %s failed", base.tenant)
        finally:
            gate.release()
            logger.debug("Slot released for tenant %s", base.tenant)

    # Detached scans (on-demand path)

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        task = asyncio.create_task(coro, name=description)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            logger.warning("Background %s was cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background %s failed", task.get_name(), exc_info=exc)

    @property
    def background_scan_count(self) -> int:
        return len(self._background)

    async def wait_for_background_scans(self) -> None:
        """Wait until every detached scan has finished."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def queue_failure_scan(self, tenant: str) -> bool:
        """Validate and detach a failure scan. Returns whether it was queued."""
        base = await self._find_base_directory(tenant)
        if base is None:
            return False
        return await self._queue_failures(base)

    async def _queue_failures(self, base: TenantDirectory) -> bool:
        target = await self._failure_target(base)
        if target is None:
            return False
        logger.info("Queueing background failure scan for %s", base.tenant)
        self._spawn(self.failure_service.scan(target), f"failure scan for {base.tenant}")
        return True

    async def queue_zombie_scan(self, tenant: str, zombie_type: ZombieType) -> bool:
        """Validate and detach a zombie scan. Returns whether it was queued."""
        base = await self._find_base_directory(tenant)
        if base is None:
            return False
        self._queue_zombies(base, zombie_type)
        return True

    def _queue_zombies(self, base: TenantDirectory, zombie_type: ZombieType) -> None:
        logger.info(
            "Queueing background %s zombie scan for %s", zombie_type.value, base.tenant
        )
        self._spawn(
            self.zombie_service.scan(self._zombie_target(base), zombie_type),
            f"{zombie_type.value} zombie scan for {base.tenant}",
        )

    async def queue_transcoded_scan(self, tenant: str) -> bool:
        """Validate and detach a transcoded scan. Returns whether it was queued."""
        base = await self._find_base_directory(tenant)
        if base is None:
            return False
        return await self._queue_transcoded(base)

    async def _queue_transcoded(self, base: TenantDirectory) -> bool:
        target = await self._transcoded_target(base)
        if target is None:
            return False
        logger.info("Queueing background transcoded scan for %s", base.tenant)
        self._spawn(
            self.transcoded_service.scan(target), f"transcoded scan for {base.tenant}"
        )
        return True

    async def queue_all_scans(self, tenant: str) -> ScanAllResult:
        """Validate and detach every category scan for a tenant."""
        result = ScanAllResult()
        base = await self._find_base_directory(tenant)
        if base is None:
            result.messages.append(f"Tenant {tenant} not found.")
            return result

        result.failure_scan_queued = await self._queue_failures(base)
        self._queue_zombies(base, ZombieType.OBSERVED)
        result.observed_zombie_scan_queued = True
        self._queue_zombies(base, ZombieType.NON_OBSERVED)
        result.non_observed_zombie_scan_queued = True
        result.transcoded_scan_queued = await self._queue_transcoded(base)
        result.messages.extend(
            _status_messages(result, done="Queued", skipped="Skipped (directory not found)")
        )
        return result


def _status_messages(result: ScanAllResult, *, done: str, skipped: str) -> list[str]:
    def status(flag: bool) -> str:
        return done if flag else skipped

    return [
        f"Failure scan: {status(result.failure_scan_queued)}.",
        f"Observed zombie scan: {status(result.observed_zombie_scan_queued)}.",
        f"Non-observed zombie scan: {status(result.non_observed_zombie_scan_queued)}.",
        f"Transcoded scan: {status(result.transcoded_scan_queued)}.",
    ]


__all__ = [
    "FAILED_SUBDIR",
    "TRANSCODED_SUFFIX",
    "ScanManager",
    "parse_directory_name",
]
