import math
import re
from typing import Optional, Tuple, Union

import numpy as np
from loguru import logger

Number = Union[int, float, np.number]

# printf-style spec, e.g. "%.2f", "%d", "%8.3e"
_PRINTF_SPEC = re.compile(r"^%[-+ #0]*\d*(?:\.\d+)?[dfeEgG]$")
# python format-spec mini language, e.g. ".2f", "d", ",.1f"
_PYTHON_SPEC = re.compile(r"^[<>^=]?[+\- ]?#?0?\d*[,_]?(?:\.\d+)?[dfeEgG%]$")


def remap(
    value: Union[Number, np.ndarray],
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
) -> Union[float, np.ndarray]:
    """
    Affine map of ``value`` from ``[in_min, in_max]`` onto ``[out_min, out_max]``.

    Works on scalars and numpy arrays alike. A degenerate input range
    (``in_min == in_max``) maps every value to ``out_min``.

    Parameters
    ----------
    value : Union[Number, np.ndarray]
        Value(s) to map.
    in_min, in_max : float
        Source range.
    out_min, out_max : float
        Target range.

    Returns
    -------
    Union[float, np.ndarray]
        Mapped value(s), same shape as ``value``.
    """
    if in_max == in_min:
        if isinstance(value, np.ndarray):
            return np.full(value.shape, out_min, dtype=np.float64)
        return float(out_min)
    return (value - in_min) * (out_max - out_min) / (in_max - in_min) + out_min


def round_half_up(
    value: Union[Number, np.ndarray], precision: int = 0
) -> Union[float, np.ndarray]:
    """
    Round to ``precision`` decimal digits, halves rounding towards +inf.

    ``round_half_up(2.5) == 3`` and ``round_half_up(-2.5) == -2``, unlike the
    built-in ``round`` which rounds halves to even.
    """
    factor = 10.0**precision
    if isinstance(value, np.ndarray):
        return np.floor(value * factor + 0.5) / factor
    return math.floor(float(value) * factor + 0.5) / factor


def color_hsl(min_index: float, max_index: float, index: float) -> Tuple[float, int, int]:
    """
    Evenly spaced hue for ``index`` within ``[min_index, max_index]``.

    Returns
    -------
    Tuple[float, int, int]
        ``(hue, saturation, lightness)`` with hue in ``[0, 360)``. A single
        field (``max_index == min_index``) always gets hue 0.
    """
    if max_index == min_index:
        return 0.0, 90, 50
    hue = remap(index, min_index, max_index + 1, 0.0, 360.0)
    return float(hue) % 360.0, 90, 50


def hsl_string(field_index: int, all_fields: int) -> str:
    """CSS-style colour string for field ``field_index`` of ``all_fields``."""
    hue, saturation, lightness = color_hsl(0, all_fields - 1, field_index)
    return f"hsl({round_half_up(hue, 2):g}, {saturation}%, {lightness}%)"


def hsl_to_rgb(color: str) -> Tuple[float, float, float]:
    """Convert an ``hsl(h, s%, l%)`` string to an RGB tuple in ``[0, 1]``."""
    match = re.match(
        r"^hsl\(\s*([\d.]+)\s*,\s*([\d.]+)%\s*,\s*([\d.]+)%\s*\)$", color.strip()
    )
    if match is None:
        raise ValueError(f"Not an hsl() colour: {color!r}")
    h, s, lum = (float(g) for g in match.groups())
    s /= 100.0
    lum /= 100.0
    chroma = (1 - abs(2 * lum - 1)) * s
    h_prime = (h % 360.0) / 60.0
    x = chroma * (1 - abs(h_prime % 2 - 1))
    sector = int(h_prime)
    r, g, b = [
        (chroma, x, 0.0),
        (x, chroma, 0.0),
        (0.0, chroma, x),
        (0.0, x, chroma),
        (x, 0.0, chroma),
        (chroma, 0.0, x),
    ][sector % 6]
    m = lum - chroma / 2
    return r + m, g + m, b + m


def format_number(value: Optional[Number], fmt: Optional[str]) -> str:
    """
    Render a number for display according to ``fmt``.

    Accepted format specs:

    - ``None`` or ``""``: plain ``str`` of the value (integers without ``.0``)
    - a bare digit count, e.g. ``"2"``: fixed decimals
    - printf style, e.g. ``"%.2f"``
    - python format spec, e.g. ``".1f"`` or ``"{:.3e}"``

    Missing or non-finite values render as ``"-"``.
    """
    if value is None or not np.isfinite(value):
        return "-"
    value = float(value)

    if not fmt:
        return f"{value:g}" if value.is_integer() else repr(value)

    spec = fmt.strip()
    if spec.isdigit():
        return f"{value:.{int(spec)}f}"
    if _PRINTF_SPEC.match(spec):
        return spec % (int(value) if spec.endswith("d") else value)
    if spec.startswith("{") and spec.endswith("}"):
        try:
            return spec.format(int(value) if spec.endswith("d}") else value)
        except (ValueError, IndexError, KeyError) as e:
            logger.warning(f"Invalid format template {fmt!r}: {e}")
            return f"{value:g}"
    if _PYTHON_SPEC.match(spec):
        return format(int(value) if spec.endswith("d") else value, spec)

    logger.warning(f"Unknown number format {fmt!r}, falling back to default")
    return f"{value:g}"
