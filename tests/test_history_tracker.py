"""Tests for HistoryTracker."""

from datetime import UTC, datetime, timedelta

import pytest

from toolrep.models.model_score import FactorResult, ReputationScore, Trend
from toolrep.scoring.history import HistoryTracker
from toolrep.storage.file_store import FileStore


@pytest.fixture
def tracker(store: FileStore) -> HistoryTracker:
    return HistoryTracker(store)


def _history(*scores: int) -> list[ReputationScore]:
    """Rows in most-recent-first order."""
    return [ReputationScore(tool_id="t1", overall_score=s) for s in scores]


class TestHistoryTracker:
    """Tests for tracking, trend and pruning."""

    def test_track_score_maps_factor_columns(self, tracker: HistoryTracker, store: FileStore):
        row = tracker.track_score(
            "t1",
            81,
            {
                "repo_activity": FactorResult(score=80, confidence=1),
                "license": FactorResult(score=95, confidence=0.9),
                "unknown_factor": FactorResult(score=10, confidence=1),
            },
        )

        assert row.repo_activity_score == 80
        assert row.license_score == 95
        assert row.maintenance_score is None
        assert store.list_scores("t1") == [row]

    def test_latest_and_history(self, tracker: HistoryTracker, store: FileStore):
        base = datetime(2025, 1, 1, tzinfo=UTC)
        for day in range(4):
            store.insert_score(
                ReputationScore(
                    tool_id="t1", overall_score=60 + day, calculated_at=base + timedelta(days=day)
                )
            )

        assert tracker.get_latest_score("t1").overall_score == 63
        assert [r.overall_score for r in tracker.get_score_history("t1", limit=2)] == [63, 62]
        assert tracker.get_latest_score("t2") is None

    @pytest.mark.parametrize(
        "scores,expected",
        [
            ((82, 80), Trend.NEUTRAL),
            ((83, 80), Trend.NEUTRAL),
            ((84, 80), Trend.POSITIVE),
            ((90, 80), Trend.POSITIVE),
            ((70, 90), Trend.NEGATIVE),
            ((77, 80), Trend.NEUTRAL),
        ],
    )
    def test_calculate_trend(self, tracker: HistoryTracker, scores, expected):
        assert tracker.calculate_trend(_history(*scores)) == expected

    def test_trend_uses_two_latest_rows(self, tracker: HistoryTracker):
        assert tracker.calculate_trend(_history(50, 50, 10)) == Trend.NEUTRAL

    def test_trend_needs_two_rows(self, tracker: HistoryTracker):
        assert tracker.calculate_trend([]) is None
        assert tracker.calculate_trend(_history(70)) is None

    def test_prune_history(self, tracker: HistoryTracker, store: FileStore):
        base = datetime(2025, 1, 1, tzinfo=UTC)
        for i in range(8):
            store.insert_score(
                ReputationScore(tool_id="t1", overall_score=i, calculated_at=base + timedelta(i))
            )
        store.insert_score(ReputationScore(tool_id="t2", overall_score=1))

        removed = tracker.prune_history("t1", keep_count=5)

        assert removed == 3
        assert [r.overall_score for r in store.list_scores("t1")] == [7, 6, 5, 4, 3]
        assert len(store.list_scores("t2")) == 1

    def test_prune_below_keep_count(self, tracker: HistoryTracker, store: FileStore):
        store.insert_score(ReputationScore(tool_id="t1", overall_score=1))
        assert tracker.prune_history("t1", keep_count=5) == 0
