"""
Unit Tests - Date Ranges and Labels
"""
from datetime import date

from fieldsales.analytics.calendar import Granularity, zoned_instant
from fieldsales.analytics.ranges import (
    DateRangeInput,
    expand_day_keys,
    format_day_label,
    format_period_label,
    format_range_label,
    normalize_ranges,
    range_summary,
)


class TestRangeLabels:
    """Tests for Thai and English range labels"""

    def test_single_day(self):
        assert format_range_label(date(2025, 1, 5), date(2025, 1, 5)) == "5 มกราคม 2568"

    def test_same_month(self):
        assert format_range_label(date(2025, 1, 1), date(2025, 1, 31)) == "1 – 31 มกราคม 2568"

    def test_same_year(self):
        assert format_range_label(date(2025, 1, 20), date(2025, 2, 3)) == "20 ม.ค. – 3 ก.พ. 2568"

    def test_across_years(self):
        label = format_range_label(date(2024, 12, 30), date(2025, 1, 2))
        assert label == "30 ธ.ค. 2567 – 2 ม.ค. 2568"

    def test_english_locale(self):
        assert format_range_label(date(2025, 1, 1), date(2025, 1, 31), "en") == "1 – 31 January 2025"

    def test_day_and_period_labels(self):
        assert format_day_label(date(2025, 1, 5)) == "5 ม.ค. 2568"
        assert format_period_label(Granularity.MONTH, date(2025, 1, 1), date(2025, 1, 31)) == "ม.ค. 2568"
        assert format_period_label(Granularity.QUARTER, date(2025, 4, 1), date(2025, 6, 30)) == "ไตรมาส 2 2568"
        assert format_period_label(Granularity.YEAR, date(2025, 1, 1), date(2025, 12, 31)) == "ปี 2568"
        assert format_period_label(Granularity.QUARTER, date(2025, 4, 1), date(2025, 6, 30), "en") == "Q2 2025"


class TestNormalizeRanges:
    """Tests for range canonicalization"""

    def test_missing_end_is_single_day(self, zone):
        [single] = normalize_ranges([DateRangeInput("2025-01-05")], zone)

        assert single.start_day_key == single.end_day_key == "2025-01-05"
        assert single.start == zoned_instant(zone, 2025, 1, 5)
        assert single.end == zoned_instant(zone, 2025, 1, 6)
        assert single.day_count == 1

    def test_reversed_bounds_are_swapped(self, zone):
        [swapped] = normalize_ranges([DateRangeInput("2025-01-31", "2025-01-01")], zone)
        assert (swapped.start_day_key, swapped.end_day_key) == ("2025-01-01", "2025-01-31")

    def test_malformed_entries_dropped_and_sorted(self, zone):
        ranges = normalize_ranges(
            ["2025-03-01:2025-03-05", "not-a-date", {"start": "2025-01-01", "end": "2025-01-02"}],
            zone,
        )
        assert [r.start_day_key for r in ranges] == ["2025-01-01", "2025-03-01"]

    def test_empty_input_falls_back_to_trailing_window(self, zone):
        [fallback] = normalize_ranges(None, zone, today=date(2025, 1, 30), default_days=30)

        assert fallback.start_day_key == "2025-01-01"
        assert fallback.end_day_key == "2025-01-30"

    def test_all_malformed_falls_back(self, zone):
        [fallback] = normalize_ranges(["2025-02-30"], zone, today=date(2025, 3, 10), default_days=7)
        assert (fallback.start_day_key, fallback.end_day_key) == ("2025-03-04", "2025-03-10")

    def test_contains_is_half_open(self, make_range, zone):
        date_range = make_range("2025-01-05")
        assert date_range.contains(zoned_instant(zone, 2025, 1, 5))
        assert date_range.contains(zoned_instant(zone, 2025, 1, 5, 23, 59, 59))
        assert not date_range.contains(zoned_instant(zone, 2025, 1, 6))

    def test_param_syntax(self):
        assert DateRangeInput.from_param("2025-01-01:2025-01-31") == DateRangeInput("2025-01-01", "2025-01-31")
        assert DateRangeInput.from_param("2025-01-01") == DateRangeInput("2025-01-01", None)


class TestRangeUnion:

    def test_overlapping_days_counted_once(self, make_range):
        keys = expand_day_keys([make_range("2025-01-01", "2025-01-03"), make_range("2025-01-02", "2025-01-04")])
        assert keys == ["2025-01-01", "2025-01-02", "2025-01-03", "2025-01-04"]

    def test_summary_joins_labels(self, make_range):
        summary = range_summary([make_range("2025-01-05"), make_range("2025-02-01", "2025-02-03")])
        assert summary == "5 มกราคม 2568, 1 – 3 กุมภาพันธ์ 2568"
