"""Tests for AggregateReport and group attribution."""

from __future__ import annotations

import threading
from pathlib import Path

from landing_exporter.scanner.report import AggregateReport, attributed_groups


class TestAggregateReport:
    """Tests for AggregateReport counters."""

    def test_empty_report(self) -> None:
        report = AggregateReport()
        assert report.total_count == 0
        assert report.recent_count == 0
        assert report.group_counts() == {}

    def test_record_match_counts_total_and_recent(self) -> None:
        report = AggregateReport()
        assert report.record_match([], recent=False) == 1
        assert report.record_match([], recent=True) == 2
        assert report.total_count == 2
        assert report.recent_count == 1

    def test_group_counts_all_and_recent(self) -> None:
        report = AggregateReport()
        report.record_match([Path("/r/Group1")], recent=True)
        report.record_match([Path("/r/Group1")], recent=False)
        report.record_match([Path("/r/Group2")], recent=False)

        assert report.group_counts() == {"/r/Group1": 2, "/r/Group2": 1}
        assert report.group_counts(recent=True) == {"/r/Group1": 1}
        assert report.group_count("/r/Group2", recent=True) == 0

    def test_groups_are_case_insensitive_keeping_first_spelling(self) -> None:
        report = AggregateReport()
        report.record_match(["/r/Group1"], recent=False)
        report.record_match(["/r/GROUP1"], recent=False)

        assert report.group_counts() == {"/r/Group1": 2}
        assert report.group_count("/r/group1") == 2

    def test_recent_never_exceeds_total_under_threads(self) -> None:
        report = AggregateReport()

        def worker(recent: bool) -> None:
            for _ in range(500):
                report.record_match(["/r/G"], recent=recent)

        threads = [threading.Thread(target=worker, args=(i % 2 == 0,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert report.total_count == 4000
        assert report.recent_count == 2000
        assert report.group_count("/r/G") == 4000
        assert report.group_count("/r/G", recent=True) == 2000

    def test_as_dict(self) -> None:
        report = AggregateReport()
        report.record_match(["/r/G"], recent=True)
        assert report.as_dict() == {
            "total_count": 1,
            "recent_count": 1,
            "group_counts_all": {"/r/G": 1},
            "group_counts_recent": {"/r/G": 1},
        }


def test_attributed_groups_excludes_the_node_itself() -> None:
    groups = [Path("/r/Group1")]
    assert attributed_groups(Path("/r/Group1"), groups) == []
    assert attributed_groups(Path("/r/group1"), groups) == []
    assert attributed_groups(Path("/r/Group1/a"), groups) == groups
