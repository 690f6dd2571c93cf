import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from logscope.chart.records import FieldSelection, LogBuffer  # noqa: E402

TEMP_VALUES = [10, 20, 15, 25, 5]


def make_records(values, name="temp", dt=0.25, types=None):
    """Field records for ``values``; ``types`` overrides the type per record."""
    records = []
    for i, value in enumerate(values):
        record_type = types[i] if types is not None else "field"
        record = {"type": record_type, "time": i * dt}
        if value is not None:
            record[name] = value
        records.append(record)
    return records


@pytest.fixture
def temp_buffer():
    return LogBuffer(make_records(TEMP_VALUES))


@pytest.fixture
def temp_fields():
    return [FieldSelection(name="temp", units="C")]


@pytest.fixture
def marker_buffer():
    """field 10, marker, field 20, field 30, field 5, field 0."""
    records = make_records(
        [10, None, 20, 30, 5, 0],
        types=["field", "marker", "field", "field", "field", "field"],
    )
    return LogBuffer(records)
