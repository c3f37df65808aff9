"""Landing directory scanning.

Public API:
    - ScanManager: discovers tenants and runs category scans
    - parse_directory_name: parses ``<tenant>-landing-dir-<env>`` names
    - TraversalEngine: bounded-concurrency directory walker
    - AggregateReport: thread-safe per-scan match counters
    - LocalFileSystem: async filesystem primitives
"""

from landing_exporter.scanner.filesystem import LocalFileSystem, TextFile
from landing_exporter.scanner.models import (
    FailureMatch,
    NoMatch,
    ScanAllResult,
    ScanCategory,
    ScanTarget,
    TenantDirectory,
    TranscodedMatch,
    ZombieMatch,
    ZombieType,
)
from landing_exporter.scanner.orchestrator import ScanManager, parse_directory_name
from landing_exporter.scanner.report import AggregateReport
from landing_exporter.scanner.traversal import TraversalEngine

__all__ = [
    "AggregateReport",
    "FailureMatch",
    "LocalFileSystem",
    "NoMatch",
    "ScanAllResult",
    "ScanCategory",
    "ScanManager",
    "ScanTarget",
    "TenantDirectory",
    "TextFile",
    "TranscodedMatch",
    "TraversalEngine",
    "ZombieMatch",
    "ZombieType",
    "parse_directory_name",
]
