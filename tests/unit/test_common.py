"""
Unit Tests - Shared Report Helpers
"""
from decimal import Decimal

from fieldsales.analytics.aggregator import CellMap
from fieldsales.reporting.common import dimension_rows


def _cells(*pairs):
    cells = CellMap()
    for key, revenue in pairs:
        cells.cell(key).add(Decimal(1), Decimal(revenue))
    return cells


class TestDimensionRows:
    """Tests for ranked dimension rows"""

    def test_ties_keep_first_seen_order(self):
        rows = dimension_rows(_cells(("a", 10), ("b", 30), ("c", 10), ("d", 30)))
        assert [row.key for row in rows] == ["b", "d", "a", "c"]

    def test_limit_keeps_share_of_whole(self):
        rows = dimension_rows(_cells(("a", 10), ("b", 30), ("c", 10), ("d", 30)), limit=2)

        assert [row.key for row in rows] == ["b", "d"]
        assert rows[0].share_percent == 37.5

    def test_label_fn(self):
        [row] = dimension_rows(_cells(("p1", 5)), label_fn=str.upper)
        assert (row.key, row.label, row.count, row.revenue) == ("p1", "P1", 1, 5.0)
