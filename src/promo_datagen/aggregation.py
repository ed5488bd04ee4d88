"""
AggregationEngine - Reduces a record set into per-dimension summaries.

Buckets accumulate raw funnel totals; every rate is computed on read from
those totals. An engine is built from one record set and never mutated, so
repeated calls always reflect exactly that set.

Usage:
    engine = AggregationEngine(records)
    engine.by_category()                 # list[AggregateBucket], first-seen order
    engine.chart_series("category")      # [{"name": ..., "value": ...}, ...]
    engine.top_n(10)                     # stable on equal scores
    engine.week_over_week("views", 39, 40)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .generation.records import PromotionRecord, safe_rate

# Category average score below which an alert is raised
UNDERPERFORMING_THRESHOLD = 40

DIMENSIONS: dict[str, Callable[[PromotionRecord], Any]] = {
    "category": lambda r: r.category,
    "store": lambda r: r.store_id,
    "size": lambda r: r.card_size.code,
    "deal_type": lambda r: r.deal_type,
    "week": lambda r: r.week_id,
    "group": lambda r: r.group_id,
    "quartile": lambda r: r.position_quartile,
}

BUCKET_METRICS = frozenset(
    {
        "impressions",
        "views",
        "clicks",
        "add_to_list",
        "shares",
        "engagement_score_sum",
        "record_count",
        "view_rate",
        "click_rate",
        "atl_rate",
        "share_rate",
        "avg_engagement_score",
    }
)

SCORES: dict[str, Callable[[PromotionRecord], int]] = {
    "engagement_score": lambda r: r.engagement_score,
    "composite": lambda r: r.composite_score,
}


@dataclass
class AggregateBucket:
    """Running funnel totals for one dimension value."""

    name: Any
    impressions: int = 0
    views: int = 0
    clicks: int = 0
    add_to_list: int = 0
    shares: int = 0
    engagement_score_sum: int = 0
    record_count: int = 0

    def add(self, record: PromotionRecord) -> None:
        self.impressions += record.impressions
        self.views += record.views
        self.clicks += record.clicks
        self.add_to_list += record.add_to_list
        self.shares += record.shares
        self.engagement_score_sum += record.engagement_score
        self.record_count += 1

    @property
    def view_rate(self) -> float:
        return safe_rate(self.views, self.impressions)

    @property
    def click_rate(self) -> float:
        return safe_rate(self.clicks, self.views)

    @property
    def atl_rate(self) -> float:
        return safe_rate(self.add_to_list, self.clicks)

    @property
    def share_rate(self) -> float:
        return safe_rate(self.shares, self.add_to_list)

    @property
    def avg_engagement_score(self) -> float:
        return safe_rate(self.engagement_score_sum, self.record_count)

    def metric(self, name: str) -> float:
        """Read a total or rate by attribute name."""
        if name not in BUCKET_METRICS:
            raise ValueError(f"Unknown bucket metric: {name}")
        return getattr(self, name)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": round(self.avg_engagement_score, 2),
            "total_impressions": self.impressions,
            "total_views": self.views,
            "total_clicks": self.clicks,
            "total_add_to_list": self.add_to_list,
            "total_shares": self.shares,
            "record_count": self.record_count,
            "view_rate": round(self.view_rate, 4),
            "click_rate": round(self.click_rate, 4),
            "atl_rate": round(self.atl_rate, 4),
            "share_rate": round(self.share_rate, 4),
            "avg_engagement_score": round(self.avg_engagement_score, 2),
        }


class AggregationEngine:
    """
    Per-dimension summaries and rankings over a fixed record set.

    Attributes:
        records: Records in input order (materialized once)
    """

    def __init__(self, records: Iterable[PromotionRecord]) -> None:
        self.records: list[PromotionRecord] = list(records)

    def __len__(self) -> int:
        return len(self.records)

    # =========================================================================
    # Buckets
    # =========================================================================

    def aggregate(self, dimension: str, records: Iterable[PromotionRecord] | None = None) -> list[AggregateBucket]:
        """
        Bucket records by a dimension.

        Args:
            dimension: One of DIMENSIONS
            records: Subset to aggregate (default: all records)

        Returns:
            Buckets ordered by first appearance in the input

        Raises:
            ValueError: If the dimension is unknown
        """
        try:
            key = DIMENSIONS[dimension]
        except KeyError:
            raise ValueError(
                f"Unknown dimension {dimension!r}; expected one of {sorted(DIMENSIONS)}"
            ) from None

        buckets: dict[Any, AggregateBucket] = {}
        for record in self.records if records is None else records:
            value = key(record)
            bucket = buckets.get(value)
            if bucket is None:
                bucket = buckets[value] = AggregateBucket(name=value)
            bucket.add(record)
        return list(buckets.values())

    def by_category(self) -> list[AggregateBucket]:
        return self.aggregate("category")

    def by_store(self) -> list[AggregateBucket]:
        return self.aggregate("store")

    def by_size(self) -> list[AggregateBucket]:
        return self.aggregate("size")

    def by_deal_type(self) -> list[AggregateBucket]:
        return self.aggregate("deal_type")

    def by_week(self) -> list[AggregateBucket]:
        return self.aggregate("week")

    def by_group(self) -> list[AggregateBucket]:
        return self.aggregate("group")

    def aggregate_all(self) -> dict[str, list[AggregateBucket]]:
        """Buckets for every dimension, keyed by dimension name."""
        return {dimension: self.aggregate(dimension) for dimension in DIMENSIONS}

    def chart_series(self, dimension: str, metric: str = "avg_engagement_score") -> list[dict]:
        """[{"name", "value"}] pairs in bucket order, the shape charts expect."""
        return [
            {"name": bucket.name, "value": bucket.metric(metric)}
            for bucket in self.aggregate(dimension)
        ]

    def summary(self, records: Iterable[PromotionRecord] | None = None) -> dict[str, Any]:
        """
        Overall totals with rates as percentages.

        avg_ctr is clicks per view and avg_conversion is add-to-list per
        click, both in percent rounded to two decimals.
        """
        total = AggregateBucket(name="overall")
        for record in self.records if records is None else records:
            total.add(record)
        return {
            "total_promotions": total.record_count,
            "total_impressions": total.impressions,
            "total_views": total.views,
            "total_clicks": total.clicks,
            "total_add_to_list": total.add_to_list,
            "total_shares": total.shares,
            "avg_ctr": round(total.click_rate * 100, 2),
            "avg_conversion": round(total.atl_rate * 100, 2),
            "avg_engagement_score": round(total.avg_engagement_score, 2),
        }

    # =========================================================================
    # Rankings
    # =========================================================================

    def top_n(self, n: int, score: str = "engagement_score") -> list[PromotionRecord]:
        """
        Highest-scoring records.

        Ties keep input order (Python's sort is stable, reverse included).
        """
        return sorted(self.records, key=self._score_key(score), reverse=True)[:n]

    def bottom_n(self, n: int, score: str = "engagement_score") -> list[PromotionRecord]:
        """Lowest-scoring records; ties keep input order."""
        return sorted(self.records, key=self._score_key(score))[:n]

    @staticmethod
    def _score_key(score: str) -> Callable[[PromotionRecord], int]:
        try:
            return SCORES[score]
        except KeyError:
            raise ValueError(f"Unknown score {score!r}; expected one of {sorted(SCORES)}") from None

    # =========================================================================
    # Insights
    # =========================================================================

    def insights(self, alert_threshold: float = UNDERPERFORMING_THRESHOLD) -> list[str]:
        """
        Short human-readable observations.

        Convenience text only; nothing downstream depends on its wording.
        """
        if not self.records:
            return []

        messages: list[str] = []
        categories = self._ranked(self.by_category())
        best, worst = categories[0], categories[-1]
        messages.append(
            f"Top category: {best.name} (avg score {best.avg_engagement_score:.1f})"
        )
        if len(categories) > 1:
            messages.append(
                f"Weakest category: {worst.name} (avg score {worst.avg_engagement_score:.1f})"
            )

        sizes = self._ranked(self.by_size())
        if sizes:
            messages.append(
                f"Quick win: {sizes[0].name} cards average "
                f"{sizes[0].avg_engagement_score:.1f}"
            )

        underperforming = [c for c in categories if c.avg_engagement_score < alert_threshold]
        if underperforming:
            messages.append(
                f"{len(underperforming)} categories below score {alert_threshold}: "
                + ", ".join(str(c.name) for c in underperforming)
            )

        shared = sum(r.shares for r in self.records)
        messages.append(f"Share activity: {shared:,} shares across {len(self.records):,} cards")
        return messages

    @staticmethod
    def _ranked(buckets: list[AggregateBucket]) -> list[AggregateBucket]:
        return sorted(buckets, key=lambda b: b.avg_engagement_score, reverse=True)

    # =========================================================================
    # Weekly metrics
    # =========================================================================

    def weekly_metrics(self, current_week: int | None = None) -> dict[str, Any]:
        """
        Weekly rollup consumed by the dashboard period selector.

        Args:
            current_week: Week treated as current (default: latest week present)

        Returns:
            Dict with current_week, available_weeks, by_week, by_store,
            by_group and overall
        """
        weeks = sorted({r.week_id for r in self.records})
        if current_week is None and weeks:
            current_week = weeks[-1]

        by_week = {w: self.summary(r for r in self.records if r.week_id == w) for w in weeks}
        return {
            "current_week": current_week,
            "available_weeks": weeks,
            "by_week": by_week,
            "by_store": {b.name: b.to_dict() for b in self.by_store()},
            "by_group": {b.name: b.to_dict() for b in self.by_group()},
            "overall": self.summary(),
        }

    def weekly_trend(self, metric: str, store_id: str | None = None) -> list[dict]:
        """[{"week", "value"}] for a bucket metric, ordered by week."""
        records = self._filter(store_id=store_id)
        buckets = sorted(self.aggregate("week", records), key=lambda b: b.name)
        return [{"week": b.name, "value": b.metric(metric)} for b in buckets]

    def week_over_week(
        self,
        metric: str,
        week_a: int,
        week_b: int,
        store_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Change in a bucket metric from week_a to week_b.

        Returns:
            Dict with value1, value2, change, change_percent (None when the
            week_a value is zero) and direction (up/down/flat)
        """
        value1 = self._week_metric(metric, week_a, store_id)
        value2 = self._week_metric(metric, week_b, store_id)
        change = value2 - value1
        change_percent = None if value1 == 0 else round(change / value1 * 100, 2)
        if change > 0:
            direction = "up"
        elif change < 0:
            direction = "down"
        else:
            direction = "flat"
        return {
            "metric": metric,
            "week1": week_a,
            "week2": week_b,
            "value1": value1,
            "value2": value2,
            "change": change,
            "change_percent": change_percent,
            "direction": direction,
        }

    def _week_metric(self, metric: str, week: int, store_id: str | None) -> float:
        bucket = AggregateBucket(name=week)
        for record in self._filter(store_id=store_id, week=week):
            bucket.add(record)
        return bucket.metric(metric)

    def _filter(self, store_id: str | None = None, week: int | None = None) -> list[PromotionRecord]:
        return [
            r
            for r in self.records
            if (store_id is None or r.store_id == store_id)
            and (week is None or r.week_id == week)
        ]
