from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

RECORD_TYPE_FIELD = "field"
RECORD_TYPE_MARKER = "marker"

FIELD_KIND_NUMERIC = "numeric"
FIELD_KIND_TAG = "tag"
FIELD_KINDS = (FIELD_KIND_NUMERIC, FIELD_KIND_TAG)

Record = Mapping[str, Union[int, float, str]]
SymbolResolver = Callable[[str], float]


def default_resolver(symbol: str) -> float:
    """Resolve a symbolic scale/transform. Only numeric strings are understood."""
    return float(symbol)


@dataclass(frozen=True)
class FieldSelection:
    """
    A field chosen for display, as supplied by configuration.

    ``scale`` and ``transform`` may be numbers or symbols; symbols are
    resolved to numbers by the aggregator's resolver.
    """

    name: str
    units: str = ""
    scale: Union[float, str] = 1.0
    transform: Union[float, str] = 0.0
    format: str = ""
    kind: str = FIELD_KIND_NUMERIC

    def __post_init__(self):
        if not self.name:
            raise ValueError("Field selection requires a non-empty name.")
        if self.kind not in FIELD_KINDS:
            raise ValueError(
                f"Invalid kind {self.kind!r} for field '{self.name}'. Must be one of {FIELD_KINDS}."
            )

    @property
    def is_numeric(self) -> bool:
        return self.kind == FIELD_KIND_NUMERIC


@dataclass(frozen=True)
class FieldRange:
    """
    Scale bounds of one field over the full buffer.

    ``min``/``max`` start at 0 and only widen towards observed values, so a
    field with only positive samples reports ``min == 0``.
    """

    name: str
    min: float
    max: float
    scale: float
    transform: float
    units: str
    format: str

    def display_value(self, raw: float) -> float:
        """Apply ``scale`` then ``transform`` to a raw sample."""
        return raw * self.scale + self.transform


def resolve_number(
    value: Union[int, float, str],
    resolver: SymbolResolver,
    fallback: float,
    what: str,
) -> float:
    """Turn a numeric or symbolic config value into a float, never failing."""
    if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
        return float(value)
    try:
        return float(resolver(str(value)))
    except (ValueError, TypeError, KeyError) as e:
        logger.warning(f"Could not resolve {what} {value!r} ({e}); using {fallback}")
        return fallback


def validate_selection(fields: Sequence[FieldSelection]) -> Tuple[FieldSelection, ...]:
    """Check a field-selection list and freeze it into a tuple."""
    seen = set()
    for field in fields:
        if not isinstance(field, FieldSelection):
            raise TypeError(
                f"Expected FieldSelection, got {type(field).__name__}."
            )
        if field.name in seen:
            raise ValueError(f"Field '{field.name}' is selected more than once.")
        seen.add(field.name)
    return tuple(fields)


class LogBuffer:
    """
    Read-only view over an ingested record buffer.

    Records are borrowed, never modified. Each record is a mapping from field
    name to a number or a short tag, plus a ``type`` discriminator
    (``"field"`` or ``"marker"``) and a non-decreasing ``time`` value.

    Numeric columns are built lazily per field name and cached: a value that
    is missing, non-numeric or non-finite becomes NaN, so a missing sample
    is distinguishable from a zero.
    """

    def __init__(
        self,
        records: Sequence[Record],
        time_key: str = "time",
        type_key: str = "type",
    ):
        """
        Initialise the buffer.

        Parameters
        ----------
        records : Sequence[Record]
            Ordered records, owned by the caller.
        time_key : str, default="time"
            Key holding the record timestamp.
        type_key : str, default="type"
            Key holding the record type discriminator.

        Raises
        ------
        TypeError
            If a record is not a mapping.
        """
        self._records: Tuple[Record, ...] = tuple(records)
        self.time_key = time_key
        self.type_key = type_key

        for i, record in enumerate(self._records):
            if not isinstance(record, Mapping):
                raise TypeError(
                    f"Record {i} must be a mapping, got {type(record).__name__}."
                )

        self._columns: Dict[str, np.ndarray] = {}
        self._is_field = np.array(
            [r.get(type_key) == RECORD_TYPE_FIELD for r in self._records], dtype=np.bool_
        )
        self._is_marker = np.array(
            [r.get(type_key) == RECORD_TYPE_MARKER for r in self._records], dtype=np.bool_
        )
        self._times = self.column(time_key)
        self._validate_times()

    def _validate_times(self) -> None:
        """Warn when timestamps go backwards; the buffer stays usable."""
        finite = self._times[np.isfinite(self._times)]
        if len(finite) < 2:
            return
        diffs = np.diff(finite)
        if np.any(diffs < 0):
            logger.warning(
                f"Record time is not monotonically non-decreasing: "
                f"{int(np.sum(diffs < 0))} backward steps (first 10 diffs: {diffs[diffs < 0][:10]})."
            )

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    def __iter__(self):
        return iter(self._records)

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    @property
    def last_index(self) -> int:
        """Last valid record index, -1 for an empty buffer."""
        return len(self._records) - 1

    @property
    def is_field(self) -> np.ndarray:
        """Boolean mask, True where the record is a regular ``field`` sample."""
        return self._is_field

    @property
    def is_marker_mask(self) -> np.ndarray:
        """Boolean mask, True where the record is a discrete ``marker`` event."""
        return self._is_marker

    @property
    def times(self) -> np.ndarray:
        return self._times

    def is_marker(self, index: int) -> bool:
        return bool(self._is_marker[index])

    def column(self, name: str) -> np.ndarray:
        """
        Numeric column for ``name`` across all records.

        Returns
        -------
        np.ndarray
            float64 array of length ``len(self)``, NaN where absent.
        """
        cached = self._columns.get(name)
        if cached is not None:
            return cached

        values = np.full(len(self._records), np.nan, dtype=np.float64)
        overflowed = 0
        for i, record in enumerate(self._records):
            value = record.get(name)
            if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
                try:
                    values[i] = value
                except OverflowError:
                    overflowed += 1
        if overflowed:
            logger.warning(
                f"Column '{name}': {overflowed} value(s) out of float range treated as missing"
            )
        values[~np.isfinite(values)] = np.nan
        values.setflags(write=False)

        self._columns[name] = values
        logger.debug(
            f"Built column '{name}': {int(np.sum(~np.isnan(values)))}/{len(values)} values present"
        )
        return values

    def value(self, index: int, name: str) -> Optional[Any]:
        """Raw value of ``name`` in record ``index``, None when absent."""
        return self._records[index].get(name)

    def unknown_keys(self, fields: Sequence[FieldSelection]) -> List[str]:
        """
        Keys present in records that are neither selected nor reserved.

        They are ignored by the engine; the list is sorted so the result does
        not depend on record order.
        """
        known = {f.name for f in fields} | {self.time_key, self.type_key}
        unknown = set()
        for record in self._records:
            unknown.update(k for k in record.keys() if k not in known)
        return sorted(unknown)
