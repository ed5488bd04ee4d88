"""
Tests for DatasetValidator.
"""

from dataclasses import replace

import pytest

from promo_datagen.generation import Group
from promo_datagen.validation import (
    DatasetValidator,
    ExpectedShape,
    ValidationFinding,
    ValidationReport,
    print_validation_report,
)


@pytest.fixture
def processor(make_processor):
    return make_processor(store_count=4, group_count=2, weeks=(39, 40))


@pytest.fixture
def records(processor):
    return processor.process_batch(1, 4).promotions


@pytest.fixture
def validator():
    return DatasetValidator(store_count=4, weeks=[39, 40], products_per_store=34, group_count=2)


def failed_checks(report: ValidationReport) -> set[str]:
    return {f.check for f in report.findings if not f.passed}


class TestDatasetValidator:
    """Tests for error-severity checks."""

    def test_valid_dataset_passes(self, validator, records, processor):
        """A generated dataset passes with no errors."""
        report = validator.validate(records, processor.hierarchy)
        assert report.passed
        assert report.errors == []
        assert report.exit_code == 0

    def test_expected_record_count(self):
        assert ExpectedShape(50, [36, 37, 38, 39, 40], 34).record_count == 8500

    def test_missing_records(self, validator, records, processor):
        """Dropped records fail count and per-store-week checks."""
        report = validator.validate(records[:-1], processor.hierarchy)
        assert not report.passed
        assert {"Record count", "Products per store-week"} <= failed_checks(report)

    def test_duplicate_card_ids(self, validator, records, processor):
        """A duplicated record is an error."""
        duplicated = records[:-1] + [records[0]]
        report = validator.validate(duplicated, processor.hierarchy)
        assert "Unique card_ids" in failed_checks(report)
        assert any("duplicate card_ids" in e for e in report.errors)

    def test_missing_week(self, records, processor):
        """A week absent from the records is reported."""
        validator = DatasetValidator(4, [38, 39, 40], 34)
        report = validator.validate(records, processor.hierarchy)
        assert "Weeks" in failed_checks(report)

    def test_broken_funnel(self, validator, records, processor):
        """Clicks above views break funnel order."""
        bad = replace(records[0], clicks=records[0].views + 1)
        report = validator.validate([bad] + records[1:], processor.hierarchy)
        assert "Funnel order" in failed_checks(report)

    def test_required_fields(self, validator, records, processor):
        """Empty required fields in the sample are reported."""
        bad = replace(records[0], product_name="")
        report = validator.validate([bad] + records[1:], processor.hierarchy)
        assert "Required fields" in failed_checks(report)

    def test_unequal_groups(self, validator, records, processor):
        """Groups of different sizes violate the hierarchy invariant."""
        hierarchy = processor.hierarchy
        a, b = hierarchy.groups
        lopsided = replace(
            hierarchy,
            groups=(
                Group(a.group_id, a.group_name, a.store_ids + b.store_ids[:1], a.template),
                Group(b.group_id, b.group_name, b.store_ids[1:], b.template),
            ),
        )
        report = validator.validate(records, lopsided)
        assert "Group sizes" in failed_checks(report)
        assert any("unequal group sizes" in e for e in report.errors)

    def test_wrong_group_count(self, records, processor):
        validator = DatasetValidator(4, [39, 40], 34, group_count=4)
        report = validator.validate(records, processor.hierarchy)
        assert "Group sizes" in failed_checks(report)

    def test_no_hierarchy(self, validator, records):
        """Without a hierarchy the group check is skipped."""
        assert validator.validate(records).passed


class TestWarnings:
    """Tests for warning-severity checks."""

    def test_size_budget_is_warning(self, records, processor):
        """Exceeding the size budget warns but still passes."""
        validator = DatasetValidator(4, [39, 40], 34, group_count=2, size_budget_mb=0.0001)
        report = validator.validate(records, processor.hierarchy)
        assert report.passed
        assert any(w.startswith("Serialized size") for w in report.warnings)

    def test_zero_views_is_warning(self, validator, records, processor):
        bad = replace(records[0], views=0, clicks=0, add_to_list=0, shares=0)
        report = validator.validate([bad] + records[1:], processor.hierarchy)
        assert report.passed
        assert "Zero-view records" in failed_checks(report)

    def test_store_drift_is_warning(self, validator, records, processor):
        """A store far from the overall average score only warns."""
        drifted = [
            replace(r, impressions=100, views=100, clicks=100, add_to_list=100, shares=0)
            if r.store_id == "STORE_001"
            else r
            for r in records
        ]
        report = validator.validate(drifted, processor.hierarchy)
        assert report.passed
        assert "Store drift" in failed_checks(report)
        assert any("STORE_001" in w for w in report.warnings)

    def test_flat_scores_is_warning(self, records):
        """Identical scores across records only warn."""
        flat = [replace(r, impressions=100, views=50, clicks=10, add_to_list=2, shares=0) for r in records]
        validator = DatasetValidator(4, [39, 40], 34)
        report = validator.validate(flat)
        assert report.passed
        assert "Score spread" in failed_checks(report)


class TestReport:
    """Tests for ValidationReport and printing."""

    def test_to_dict(self):
        report = ValidationReport(
            [
                ValidationFinding("A", False, "broken"),
                ValidationFinding("B", False, "odd", "warning"),
                ValidationFinding("C", True, "fine"),
            ]
        )
        assert report.to_dict() == {"errors": ["A: broken"], "warnings": ["B: odd"], "pass": False}
        assert report.exit_code == 1

    def test_print_report(self, validator, records, processor, capsys):
        report = validator.validate(records, processor.hierarchy)
        assert print_validation_report(report) is True
        out = capsys.readouterr().out
        assert "PASS Record count" in out
        assert "All validations PASSED" in out
