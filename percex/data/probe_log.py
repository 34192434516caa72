"""
CSV log of a probe run.

One row per tick:
    local_time, tick, state, target, feedback, toggled, output

feedback is empty on the calibration tick and output is empty whenever the
model had no node to report.
"""

import csv
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import numpy as np


COLUMNS = ["local_time", "tick", "state", "target", "feedback", "toggled", "output"]


class ProbeRecorder:
    """Receives every tick of a ContactProbeLoop and writes it to CSV."""

    def __init__(self):
        self._log_file: Optional[Path] = None
        self._file_handle = None
        self._csv_writer = None

    @property
    def log_file(self) -> Optional[Path]:
        return self._log_file

    def start(self, log_dir: Path) -> Path:
        """Open a new timestamped log in log_dir."""
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._log_file = log_dir / f"probe_{timestamp}.csv"

        self._file_handle = open(self._log_file, "w", newline="")
        self._csv_writer = csv.writer(self._file_handle)
        self._csv_writer.writerow(COLUMNS)
        return self._log_file

    def record(self, tick, state, target, feedback, toggled, report):
        if not self._csv_writer:
            return

        output = ""
        if report is not None:
            try:
                output = float(report.output)
            except (TypeError, ValueError):
                output = ""

        self._csv_writer.writerow([
            time.time(),
            tick,
            state.value,
            "" if target is None else target,
            "" if feedback is None else feedback,
            int(toggled),
            output,
        ])
        self._file_handle.flush()

    def stop(self) -> Optional[Path]:
        """Close the log and return its path."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None
            self._csv_writer = None
        return self._log_file


def _to_float(value: str) -> float:
    return float(value) if value != "" else np.nan


def load_probe_log(path) -> Dict[str, np.ndarray]:
    """Load a probe CSV into column arrays. Missing numbers become NaN."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Probe log not found: {path}")

    with open(path, newline="") as f:
        rows = list(csv.DictReader(f))

    return {
        "local_time": np.array([_to_float(r["local_time"]) for r in rows]),
        "tick": np.array([int(r["tick"]) for r in rows], dtype=np.int64),
        "state": np.array([r["state"] for r in rows]),
        "target": np.array([_to_float(r["target"]) for r in rows]),
        "feedback": np.array([_to_float(r["feedback"]) for r in rows]),
        "toggled": np.array([r["toggled"] == "1" for r in rows]),
        "output": np.array([_to_float(r["output"]) for r in rows]),
    }
