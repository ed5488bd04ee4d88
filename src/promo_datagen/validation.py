"""
Validation checks for generated promotion datasets.

Checks a record set against its expected shape:
- Record count, store cardinality, week set
- Per-store-per-week product count
- Required fields on a sample
- card_id uniqueness
- Engagement score range and funnel monotonicity
- Equal-group hierarchy invariant

Failed structural checks are errors. Anomalies that leave the dataset
usable, such as store score drift, are warnings.
Findings are collected, never raised. The caller decides whether to abort.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, Literal, Sequence

from .generation.catalog import SCORE_MAX, SCORE_MIN
from .generation.hierarchy import StoreHierarchy
from .generation.records import PromotionRecord

REQUIRED_FIELDS = (
    "card_id",
    "week_id",
    "store_id",
    "category",
    "product_name",
    "price",
    "unit",
    "deal_type",
    "card_size",
    "position_quartile",
    "impressions",
    "views",
    "clicks",
    "add_to_list",
    "shares",
    "engagement_score",
)


@dataclass(frozen=True)
class ValidationFinding:
    """Outcome of one check."""

    check: str
    passed: bool
    message: str
    severity: Literal["error", "warning"] = "error"

    def __str__(self) -> str:
        return f"{self.check}: {self.message}"


@dataclass
class ValidationReport:
    """All findings for one dataset."""

    findings: list[ValidationFinding] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [str(f) for f in self.findings if not f.passed and f.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [str(f) for f in self.findings if not f.passed and f.severity == "warning"]

    @property
    def passed(self) -> bool:
        """True when no error-severity check failed. Warnings do not count."""
        return not self.errors

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def to_dict(self) -> dict:
        return {"errors": self.errors, "warnings": self.warnings, "pass": self.passed}


@dataclass
class ExpectedShape:
    """What a dataset should look like."""

    store_count: int
    weeks: Sequence[int]
    products_per_store: int  # Per store per week
    group_count: int | None = None

    @property
    def record_count(self) -> int:
        return self.store_count * len(self.weeks) * self.products_per_store


class DatasetValidator:
    """
    Validator for a generated record set.

    Usage:
        validator = DatasetValidator(50, [40], 34, group_count=5)
        report = validator.validate(records, hierarchy)
        report.to_dict()  # {"errors": [...], "warnings": [...], "pass": bool}
    """

    def __init__(
        self,
        store_count: int,
        weeks: Sequence[int],
        products_per_store: int,
        group_count: int | None = None,
        sample_size: int = 10,
        size_budget_mb: float = 50.0,
        drift_tolerance: float = 25.0,
    ) -> None:
        """
        Args:
            store_count: Expected number of distinct stores
            weeks: Expected week set
            products_per_store: Expected records per store per week
            group_count: Expected number of groups (None: not checked)
            sample_size: Records checked for required fields
            size_budget_mb: Serialized size above which a warning is raised
            drift_tolerance: Score points a store's average may sit from the
                overall average before a warning is raised
        """
        self.expected = ExpectedShape(store_count, weeks, products_per_store, group_count)
        self.sample_size = sample_size
        self.size_budget_mb = size_budget_mb
        self.drift_tolerance = drift_tolerance
        self.records: list[PromotionRecord] = []
        self.hierarchy: StoreHierarchy | None = None

    # =========================================================================
    # Errors
    # =========================================================================

    def validate_record_count(self) -> tuple[bool, str]:
        expected = self.expected.record_count
        actual = len(self.records)
        return actual == expected, f"{actual:,} records (expected {expected:,})"

    def validate_store_count(self) -> tuple[bool, str]:
        stores = {r.store_id for r in self.records}
        return (
            len(stores) == self.expected.store_count,
            f"{len(stores)} unique stores (expected {self.expected.store_count})",
        )

    def validate_weeks(self) -> tuple[bool, str]:
        seen = {r.week_id for r in self.records}
        expected = set(self.expected.weeks)
        if seen == expected:
            return True, f"weeks {sorted(seen)}"
        missing = sorted(expected - seen)
        extra = sorted(seen - expected)
        return False, f"missing weeks {missing}, unexpected weeks {extra}"

    def validate_store_week_counts(self) -> tuple[bool, str]:
        counts = Counter((r.store_id, r.week_id) for r in self.records)
        wrong = {k: v for k, v in counts.items() if v != self.expected.products_per_store}
        if not wrong:
            return True, f"{len(counts)} store-weeks with {self.expected.products_per_store} products each"
        (store_id, week), count = next(iter(wrong.items()))
        return (
            False,
            f"{len(wrong)} store-weeks with wrong product count "
            f"(e.g. {store_id} week {week}: {count}, expected {self.expected.products_per_store})",
        )

    def validate_required_fields(self) -> tuple[bool, str]:
        sample = self.records[: self.sample_size]
        missing: list[str] = []
        for record in sample:
            row = record.to_dict()
            for name in REQUIRED_FIELDS:
                if row.get(name) is None or row.get(name) == "":
                    missing.append(f"{record.card_id}.{name}")
        if missing:
            return False, f"{len(missing)} missing fields in sample: {missing[:5]}"
        return True, f"{len(sample)} sampled records complete"

    def validate_unique_card_ids(self) -> tuple[bool, str]:
        counts = Counter(r.card_id for r in self.records)
        duplicates = [card_id for card_id, n in counts.items() if n > 1]
        if duplicates:
            return False, f"{len(duplicates)} duplicate card_ids (e.g. {duplicates[0]})"
        return True, f"{len(counts):,} unique card_ids"

    def validate_score_range(self) -> tuple[bool, str]:
        out_of_range = [
            r.card_id for r in self.records if not SCORE_MIN <= r.engagement_score <= SCORE_MAX
        ]
        if out_of_range:
            return False, f"{len(out_of_range)} scores outside {SCORE_MIN}-{SCORE_MAX}"
        return True, f"all scores within {SCORE_MIN}-{SCORE_MAX}"

    def validate_funnel(self) -> tuple[bool, str]:
        broken = [
            r.card_id
            for r in self.records
            if not r.impressions >= r.views >= r.clicks >= r.add_to_list >= r.shares >= 0
        ]
        if broken:
            return False, f"{len(broken)} records break funnel order (e.g. {broken[0]})"
        return True, "impressions >= views >= clicks >= add_to_list >= shares >= 0"

    def validate_groups(self) -> tuple[bool, str]:
        if self.hierarchy is None:
            return True, "no hierarchy supplied"
        hierarchy = self.hierarchy

        membership = Counter(sid for g in hierarchy.groups for sid in g.store_ids)
        unassigned = [s.store_id for s in hierarchy.stores if membership[s.store_id] == 0]
        duplicated = [sid for sid, n in membership.items() if n > 1]
        sizes = {g.size for g in hierarchy.groups}
        problems = []
        if unassigned:
            problems.append(f"{len(unassigned)} stores in no group")
        if duplicated:
            problems.append(f"{len(duplicated)} stores in several groups")
        if len(sizes) > 1:
            problems.append(f"unequal group sizes {sorted(sizes)}")
        if self.expected.group_count is not None and hierarchy.group_count != self.expected.group_count:
            problems.append(
                f"{hierarchy.group_count} groups (expected {self.expected.group_count})"
            )
        unknown = {r.store_id for r in self.records} - set(membership)
        if unknown:
            problems.append(f"{len(unknown)} record stores missing from hierarchy")

        if problems:
            return False, "; ".join(problems)
        return True, f"{hierarchy.group_count} groups of {hierarchy.group_size} stores"

    # =========================================================================
    # Warnings
    # =========================================================================

    def check_serialized_size(self) -> tuple[bool, str]:
        if not self.records:
            return True, "empty dataset"
        sample = self.records[: max(1, self.sample_size)]
        avg_bytes = sum(len(json.dumps(r.to_dict())) for r in sample) / len(sample)
        size_mb = avg_bytes * len(self.records) / (1024 * 1024)
        message = f"~{size_mb:.1f}MB serialized (budget {self.size_budget_mb:.0f}MB)"
        return size_mb <= self.size_budget_mb, message

    def check_zero_view_records(self) -> tuple[bool, str]:
        zero = sum(1 for r in self.records if r.views == 0)
        if zero:
            return False, f"{zero} records with zero views"
        return True, "every record has views"

    def check_store_drift(self) -> tuple[bool, str]:
        totals: dict[str, list[int]] = {}
        for r in self.records:
            totals.setdefault(r.store_id, []).append(r.engagement_score)
        if not totals:
            return True, "empty dataset"
        overall = sum(r.engagement_score for r in self.records) / len(self.records)
        drifted = [
            store_id
            for store_id, scores in totals.items()
            if abs(sum(scores) / len(scores) - overall) > self.drift_tolerance
        ]
        if drifted:
            return False, (
                f"{len(drifted)} stores average more than {self.drift_tolerance:g} points "
                f"from overall score {overall:.1f} (e.g. {drifted[0]})"
            )
        return True, f"store averages within {self.drift_tolerance:g} points of {overall:.1f}"

    def check_score_spread(self) -> tuple[bool, str]:
        scores = {r.engagement_score for r in self.records}
        if len(self.records) > 1 and len(scores) == 1:
            return False, f"all records share engagement score {scores.pop()}"
        return True, f"{len(scores)} distinct engagement scores"

    # =========================================================================
    # Runner
    # =========================================================================

    def run_all_validations(
        self,
        records: Iterable[PromotionRecord],
        hierarchy: StoreHierarchy | None = None,
    ) -> list[ValidationFinding]:
        """
        Run every check.

        Returns:
            List of findings, errors first then warnings
        """
        self.records = list(records)
        self.hierarchy = hierarchy

        checks: list[tuple[str, Callable[[], tuple[bool, str]], str]] = [
            ("Record count", self.validate_record_count, "error"),
            ("Store count", self.validate_store_count, "error"),
            ("Weeks", self.validate_weeks, "error"),
            ("Products per store-week", self.validate_store_week_counts, "error"),
            ("Required fields", self.validate_required_fields, "error"),
            ("Unique card_ids", self.validate_unique_card_ids, "error"),
            ("Score range", self.validate_score_range, "error"),
            ("Funnel order", self.validate_funnel, "error"),
            ("Group sizes", self.validate_groups, "error"),
            ("Serialized size", self.check_serialized_size, "warning"),
            ("Zero-view records", self.check_zero_view_records, "warning"),
            ("Store drift", self.check_store_drift, "warning"),
            ("Score spread", self.check_score_spread, "warning"),
        ]

        findings = []
        for name, check, severity in checks:
            passed, message = check()
            findings.append(ValidationFinding(name, passed, message, severity))
        return findings

    def validate(
        self,
        records: Iterable[PromotionRecord],
        hierarchy: StoreHierarchy | None = None,
    ) -> ValidationReport:
        return ValidationReport(self.run_all_validations(records, hierarchy))


def print_validation_report(report: ValidationReport) -> bool:
    """
    Print a formatted report.

    Returns:
        True if no error-severity check failed
    """
    print("\n" + "=" * 60)
    print("Validation Report")
    print("=" * 60)

    for finding in report.findings:
        if finding.passed:
            status = "PASS"
        elif finding.severity == "warning":
            status = "WARN"
        else:
            status = "FAIL"
        print(f"  {status} {finding.check}: {finding.message}")

    print("=" * 60)
    if report.passed:
        print(f"All validations PASSED ({len(report.warnings)} warnings)")
    else:
        print(f"{len(report.errors)} validations FAILED")
    print("=" * 60 + "\n")

    return report.passed
