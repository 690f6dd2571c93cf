from typing import Any, Dict, List
from warnings import warn

import matplotlib as mpl
import numpy as np
from loguru import logger

from logscope import ChartEngine, FieldSelection, LogBuffer, configure_logging
from logscope.chart.mpl_canvas import MatplotlibChart

# --- User configuration dictionary ---
CONFIG = {
    "LOG_LEVEL": "INFO",  # logging level: DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL
    "N_RECORDS": 200_000,  # number of synthetic records
    "MARKER_EVERY": 5000,  # insert a marker event every N records
    "MEAN_DT": 0.01,  # mean sampling interval in seconds (irregular)
    "SEED": 7,
    "CANVAS_WIDTH": 1200,
    "CANVAS_HEIGHT": 600,
    "DECIMATION": True,  # keep every N-th record when several share a pixel
    "SHOW_MARKERS": True,
    "DEBUG_OVERLAY": False,
    "FIELDS": [
        {"name": "rpm", "units": "rpm", "format": "0"},
        {"name": "afr", "units": "", "scale": 0.1, "format": "2"},
        {"name": "coolant", "units": "C", "transform": -40, "format": "1"},
        {"name": "gear", "kind": "tag"},
    ],
}


def synthesize_records(
    n_records: int, marker_every: int, mean_dt: float, seed: int
) -> List[Dict[str, Any]]:
    """
    Build an irregularly sampled engine log with interleaved marker events.
    """
    rng = np.random.default_rng(seed)
    dt = rng.exponential(mean_dt, n_records)
    t = np.cumsum(dt)
    rpm = 2500 + 1500 * np.sin(t / 3.0) + rng.normal(0, 60, n_records)
    afr = 147 + 8 * np.sin(t / 1.7) + rng.normal(0, 1.5, n_records)
    coolant = 40 + 90 * (1 - np.exp(-t / 120.0))
    gears = np.clip((rpm / 900).astype(int), 1, 6)

    records: List[Dict[str, Any]] = []
    for i in range(n_records):
        if marker_every and i and i % marker_every == 0:
            records.append({"type": "marker", "time": float(t[i])})
        records.append(
            {
                "type": "field",
                "time": float(t[i]),
                "rpm": float(rpm[i]),
                "afr": float(afr[i]),
                "coolant": float(coolant[i]),
                "gear": f"G{gears[i]}",
            }
        )
    return records


def main() -> None:
    """
    Build a synthetic log and open it in an interactive chart.
    """
    configure_logging(CONFIG.get("LOG_LEVEL", "INFO"))

    records = synthesize_records(
        CONFIG["N_RECORDS"], CONFIG["MARKER_EVERY"], CONFIG["MEAN_DT"], CONFIG["SEED"]
    )
    logger.info(f"Synthesized {len(records)} records")

    engine = ChartEngine(
        LogBuffer(records),
        [FieldSelection(**field) for field in CONFIG["FIELDS"]],
        canvas_width=CONFIG["CANVAS_WIDTH"],
        canvas_height=CONFIG["CANVAS_HEIGHT"],
        decimation=CONFIG.get("DECIMATION", False),
        show_markers=CONFIG.get("SHOW_MARKERS", False),
        debug_overlay=CONFIG.get("DEBUG_OVERLAY", False),
    )

    chart = MatplotlibChart(engine)
    try:
        chart.show()
    finally:
        chart.close()


if __name__ == "__main__":
    # Set Matplotlib rcParams directly here
    for optn, val in {
        "backend": "QtAgg",
        "font.family": ("sans-serif",),
        "keymap.back": [],  # free the arrow keys for panning
        "keymap.forward": [],
    }.items():
        if isinstance(val, (list, tuple)) and optn == "font.family":
            val = tuple(val)
        try:
            mpl.rcParams[optn] = val
        except (KeyError, ValueError):
            warn(f"mpl rcparams key '{optn}' not recognised as a valid rc parameter.")
    main()
