from typing import Dict, Optional, Sequence, Tuple

import numpy as np
from loguru import logger
from numba import njit

from .records import (
    FieldRange,
    FieldSelection,
    LogBuffer,
    SymbolResolver,
    default_resolver,
    resolve_number,
    validate_selection,
)


@njit
def _seeded_min_max_numba(values: np.ndarray) -> Tuple[float, float]:
    """
    Numba-optimized min/max seeded at 0.

    NaN entries (missing samples) never move a bound.

    Parameters
    ----------
    values : np.ndarray
        Column of samples.

    Returns
    -------
    Tuple[float, float]
        Minimum and maximum, both starting from 0.
    """
    v_min = 0.0
    v_max = 0.0
    for i in range(len(values)):
        val = values[i]
        if np.isnan(val):
            continue
        if val > v_max:
            v_max = val
        if val < v_min:
            v_min = val
    return v_min, v_max


class FieldAggregator:
    """
    Computes per-field scale bounds over the full record buffer.

    The result is memoized against the buffer identity and the selection,
    so repeated renders of the same data reuse it.
    """

    def __init__(self, resolver: SymbolResolver = default_resolver):
        """
        Initialise the aggregator.

        Parameters
        ----------
        resolver : SymbolResolver, default=default_resolver
            Turns symbolic ``scale``/``transform`` values into numbers.
        """
        self.resolver = resolver
        self._memo_buffer: Optional[LogBuffer] = None
        self._memo_fields: Optional[Tuple[FieldSelection, ...]] = None
        self._memo_result: Dict[str, FieldRange] = {}
        self.compute_count = 0

    def clear_cache(self) -> None:
        self._memo_buffer = None
        self._memo_fields = None
        self._memo_result = {}

    def field_ranges(
        self, buffer: LogBuffer, fields: Sequence[FieldSelection]
    ) -> Dict[str, FieldRange]:
        """
        Get field ranges, recomputing only when the buffer or selection changed.

        Parameters
        ----------
        buffer : LogBuffer
            Full record buffer.
        fields : Sequence[FieldSelection]
            Selected fields.

        Returns
        -------
        Dict[str, FieldRange]
            Ranges keyed by field name, in selection order. Tag fields are
            included with ``min == max == 0``.
        """
        fields = validate_selection(fields)
        if buffer is self._memo_buffer and fields == self._memo_fields:
            logger.debug("Using memoized field ranges")
            return self._memo_result

        result = self.compute(buffer, fields)
        self._memo_buffer = buffer
        self._memo_fields = fields
        self._memo_result = result
        return result

    def compute(
        self, buffer: LogBuffer, fields: Sequence[FieldSelection]
    ) -> Dict[str, FieldRange]:
        """Single pass over every selected column, no memo."""
        self.compute_count += 1
        ranges: Dict[str, FieldRange] = {}

        for field in fields:
            if field.is_numeric and len(buffer) > 0:
                v_min, v_max = _seeded_min_max_numba(buffer.column(field.name))
            else:
                v_min, v_max = 0.0, 0.0

            ranges[field.name] = FieldRange(
                name=field.name,
                min=float(v_min),
                max=float(v_max),
                scale=resolve_number(
                    field.scale, self.resolver, 1.0, f"scale of '{field.name}'"
                ),
                transform=resolve_number(
                    field.transform, self.resolver, 0.0, f"transform of '{field.name}'"
                ),
                units=field.units,
                format=field.format,
            )
            if v_min == v_max:
                logger.debug(
                    f"Field '{field.name}' has a degenerate range [{v_min}, {v_max}]"
                )

        logger.debug(
            f"Aggregated {len(ranges)} field(s) over {len(buffer)} records: "
            + ", ".join(f"{r.name}=[{r.min:.6g}, {r.max:.6g}]" for r in ranges.values())
        )
        return ranges
