"""
Analytics Tests

Window filtering, KPIs, trends and the deviation ranking over snapshots.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from analytics.aggregator import (
    compute_analytics,
    filter_snapshots,
    fulfilment_rate,
    rank_deviations,
)
from core.models.canonical import AnalyticsWindow, AuditItem, AuditSnapshot


def snapshot(snapshot_id, created_at, items, delivery_date="Unknown"):
    return AuditSnapshot(
        id=snapshot_id,
        created_at=created_at,
        delivery_date=delivery_date,
        items=[
            AuditItem(article_id=article_id, name=f"Artikel {article_id}", ordered=ordered, delivered=delivered)
            for article_id, ordered, delivered in items
        ],
        total_ordered=sum(ordered for _, ordered, _ in items),
        total_delivered=sum(delivered for _, _, delivered in items),
    )


@pytest.fixture
def history():
    return [
        snapshot("s2", datetime(2024, 3, 2, 10, 0), [("1001", 10, 8), ("1002", 5, 5)], "02-03-2024"),
        snapshot("s1", datetime(2024, 3, 1, 10, 0), [("1001", 10, 10), ("1003", 0, 4)], "01-03-2024"),
        snapshot("s3", datetime(2024, 3, 3, 23, 59, 30), [("1001", 10, 12)], "03-03-2024"),
    ]


# =============================================================================
# Filtering
# =============================================================================

class TestFilterSnapshots:

    def test_open_window_keeps_everything(self, history):
        assert len(filter_snapshots(AnalyticsWindow(), history)) == 3

    def test_end_date_includes_whole_day(self, history):
        window = AnalyticsWindow(start=date(2024, 3, 2), end=date(2024, 3, 3))
        assert [s.id for s in filter_snapshots(window, history)] == ["s2", "s3"]

    def test_start_only(self, history):
        window = AnalyticsWindow(start=date(2024, 3, 3))
        assert [s.id for s in filter_snapshots(window, history)] == ["s3"]

    def test_undated_snapshots_kept(self, history):
        undated = snapshot("s0", None, [("1001", 1, 1)])
        window = AnalyticsWindow(start=date(2030, 1, 1), end=date(2030, 1, 31))
        assert [s.id for s in filter_snapshots(window, history + [undated])] == ["s0"]

    def test_aware_timestamps_compared_in_utc(self):
        # 01:30 at +02:00 is 23:30 UTC on the previous day
        aware = snapshot("tz", datetime(2024, 3, 2, 1, 30, tzinfo=timezone(timedelta(hours=2))), [])
        window = AnalyticsWindow(end=date(2024, 3, 1))
        assert [s.id for s in filter_snapshots(window, [aware])] == ["tz"]


# =============================================================================
# KPIs
# =============================================================================

class TestFulfilmentRate:

    def test_nothing_ordered_is_zero(self):
        assert fulfilment_rate(0, 0) == 0
        assert fulfilment_rate(0, 12) == 0

    def test_half_rounds_up(self):
        # 1 / 8 = 12.5%
        assert fulfilment_rate(8, 1) == 13
        assert fulfilment_rate(200, 1) == 1

    def test_over_delivery(self):
        assert fulfilment_rate(10, 12) == 120


class TestComputeAnalytics:

    def test_kpis(self, history):
        result = compute_analytics(AnalyticsWindow(), history)

        assert result.total_audits == 3
        # ordered 15 + 10 + 10 = 35, delivered 13 + 14 + 12 = 39
        assert result.fulfilment_rate == 111
        assert result.net_difference == 4

    def test_empty_window(self, history):
        window = AnalyticsWindow(start=date(2025, 1, 1))
        result = compute_analytics(window, history)

        assert result.total_audits == 0
        assert result.fulfilment_rate == 0
        assert result.net_difference == 0
        assert result.trend == []
        assert result.top_deviations == []

    def test_only_unordered_articles(self):
        result = compute_analytics(AnalyticsWindow(), [snapshot("s", datetime(2024, 1, 1), [("1003", 0, 4)])])
        assert result.fulfilment_rate == 0
        assert result.net_difference == 4

    def test_trend_is_chronological(self, history):
        undated = snapshot("s0", None, [("1001", 1, 1)], "28-02-2024")
        result = compute_analytics(AnalyticsWindow(), [undated] + history)

        assert [p.snapshot_id for p in result.trend] == ["s1", "s2", "s3", "s0"]
        assert [p.label for p in result.trend] == ["01-03-2024", "02-03-2024", "03-03-2024", "28-02-2024"]
        assert result.trend[1].ordered == 15
        assert result.trend[1].delivered == 13

    def test_product_trend_only_for_one_article(self, history):
        assert compute_analytics(AnalyticsWindow(), history).product_trend == []

        result = compute_analytics(AnalyticsWindow(product_id="1002"), history)
        assert [(p.snapshot_id, p.ordered, p.delivered) for p in result.product_trend] == [
            ("s1", 0, 0),
            ("s2", 5, 5),
            ("s3", 0, 0),
        ]


# =============================================================================
# Deviations
# =============================================================================

class TestRankDeviations:

    def test_absolute_and_net_deviation(self, history):
        entries = {e.article_id: e for e in rank_deviations(history)}

        # 1001: -2, 0, +2
        assert entries["1001"].total_deviation == 4
        assert entries["1001"].net_difference == 0
        assert entries["1001"].shortfall == 0
        assert entries["1001"].surplus == 0

        assert entries["1003"].total_deviation == 4
        assert entries["1003"].surplus == 4
        assert entries["1003"].shortfall == 0

    def test_shortfall_is_positive(self):
        entries = rank_deviations([snapshot("s", datetime(2024, 1, 1), [("1001", 10, 7)])])
        assert entries[0].shortfall == 3
        assert entries[0].surplus == 0
        assert entries[0].net_difference == -3

    def test_top_five_ties_by_article_id(self):
        items = [
            ("1007", 1, 2),
            ("1006", 10, 1),
            ("1005", 1, 2),
            ("1004", 1, 2),
            ("1003", 1, 2),
            ("1002", 1, 2),
            ("1001", 5, 5),
        ]
        entries = rank_deviations([snapshot("s", datetime(2024, 1, 1), items)])

        assert [e.article_id for e in entries] == ["1006", "1002", "1003", "1004", "1005"]

    def test_name_from_first_snapshot(self, history):
        entries = {e.article_id: e for e in rank_deviations(history)}
        assert entries["1001"].name == "Artikel 1001"
