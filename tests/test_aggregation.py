"""Tests for chart/aggregation.py: per-field scale bounds and memoization."""

import pytest

from logscope.chart.aggregation import FieldAggregator
from logscope.chart.records import FieldSelection, LogBuffer

from conftest import make_records


class TestFieldAggregator:
    """Test min/max aggregation over the full buffer."""

    def test_mixed_sign_values(self):
        buffer = LogBuffer(make_records([3, 7, -2, 0], name="x"))
        ranges = FieldAggregator().compute(buffer, [FieldSelection("x")])
        assert ranges["x"].min == -2
        assert ranges["x"].max == 7

    def test_bounds_seeded_at_zero(self):
        positive = LogBuffer(make_records([3, 5], name="x"))
        negative = LogBuffer(make_records([-3, -1], name="x"))
        aggregator = FieldAggregator()
        assert (aggregator.compute(positive, [FieldSelection("x")])["x"].min) == 0
        assert (aggregator.compute(negative, [FieldSelection("x")])["x"].max) == 0

    def test_bounds_contain_every_present_value(self, temp_buffer):
        ranges = FieldAggregator().compute(temp_buffer, [FieldSelection("temp")])
        assert ranges["temp"].min <= 5
        assert ranges["temp"].max >= 25
        assert ranges["temp"].min <= 0 <= ranges["temp"].max

    def test_missing_values_never_move_bounds(self):
        buffer = LogBuffer(make_records([4, None, 8, None], name="x"))
        ranges = FieldAggregator().compute(buffer, [FieldSelection("x")])
        assert (ranges["x"].min, ranges["x"].max) == (0.0, 8.0)

    def test_field_missing_everywhere(self, temp_buffer):
        ranges = FieldAggregator().compute(temp_buffer, [FieldSelection("absent")])
        assert (ranges["absent"].min, ranges["absent"].max) == (0.0, 0.0)

    def test_marker_values_count(self):
        # markers can carry field values; they contribute like any record
        buffer = LogBuffer(make_records([1, 50, 2], name="x", types=["field", "marker", "field"]))
        ranges = FieldAggregator().compute(buffer, [FieldSelection("x")])
        assert ranges["x"].max == 50

    def test_tag_field_not_aggregated(self):
        buffer = LogBuffer([{"type": "field", "time": 0, "gear": "N"}])
        ranges = FieldAggregator().compute(buffer, [FieldSelection("gear", kind="tag")])
        assert (ranges["gear"].min, ranges["gear"].max) == (0.0, 0.0)

    def test_empty_buffer(self):
        ranges = FieldAggregator().compute(LogBuffer([]), [FieldSelection("x")])
        assert (ranges["x"].min, ranges["x"].max) == (0.0, 0.0)

    def test_ranges_keep_selection_metadata(self, temp_buffer):
        field = FieldSelection("temp", units="C", scale=2, transform=-1, format="1")
        field_range = FieldAggregator().compute(temp_buffer, [field])["temp"]
        assert field_range.units == "C"
        assert field_range.scale == 2.0
        assert field_range.transform == -1.0
        assert field_range.format == "1"

    def test_symbolic_scale_resolution(self, temp_buffer):
        symbols = {"HALF": 0.5}
        aggregator = FieldAggregator(resolver=symbols.__getitem__)
        ranges = aggregator.compute(
            temp_buffer, [FieldSelection("temp", scale="HALF", transform="UNKNOWN")]
        )
        assert ranges["temp"].scale == 0.5
        assert ranges["temp"].transform == 0.0

    def test_unresolvable_scale_defaults_to_one(self, temp_buffer):
        ranges = FieldAggregator().compute(temp_buffer, [FieldSelection("temp", scale="KPA")])
        assert ranges["temp"].scale == 1.0


class TestMemoization:
    """Test that ranges are recomputed only when inputs change."""

    def test_same_inputs_reuse_result(self, temp_buffer, temp_fields):
        aggregator = FieldAggregator()
        first = aggregator.field_ranges(temp_buffer, temp_fields)
        second = aggregator.field_ranges(temp_buffer, list(temp_fields))
        assert first is second
        assert aggregator.compute_count == 1

    def test_new_buffer_recomputes(self, temp_buffer, temp_fields):
        aggregator = FieldAggregator()
        aggregator.field_ranges(temp_buffer, temp_fields)
        aggregator.field_ranges(LogBuffer(temp_buffer.records), temp_fields)
        assert aggregator.compute_count == 2

    def test_selection_change_recomputes(self, temp_buffer, temp_fields):
        aggregator = FieldAggregator()
        aggregator.field_ranges(temp_buffer, temp_fields)
        aggregator.field_ranges(temp_buffer, [FieldSelection("temp", units="K")])
        assert aggregator.compute_count == 2

    def test_clear_cache(self, temp_buffer, temp_fields):
        aggregator = FieldAggregator()
        aggregator.field_ranges(temp_buffer, temp_fields)
        aggregator.clear_cache()
        aggregator.field_ranges(temp_buffer, temp_fields)
        assert aggregator.compute_count == 2

    def test_duplicate_selection_rejected(self, temp_buffer):
        with pytest.raises(ValueError):
            FieldAggregator().field_ranges(
                temp_buffer, [FieldSelection("temp"), FieldSelection("temp")]
            )
