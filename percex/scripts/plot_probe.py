"""
Plot a probe log.

Usage:
    percex-plot --log data/probe/probe_20260101_120000.csv
    percex-plot --log data/probe --output probe.png   # latest log in dir
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from percex.data.probe_log import load_probe_log
from percex.viz.probe_viz import plot_probe_log


def find_latest_log(log_dir: Path) -> Optional[Path]:
    logs = sorted(Path(log_dir).glob("probe_*.csv"))
    return logs[-1] if logs else None


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Plot a contact probe log")
    parser.add_argument("--log", required=True, help="Probe CSV, or a directory of them")
    parser.add_argument("--output", default=None, help="Output image (default: next to the log)")
    parser.add_argument("--title", default="Contact Probe", help="Figure title")
    args = parser.parse_args(argv)

    log_path = Path(args.log)
    if log_path.is_dir():
        log_path = find_latest_log(log_path)
        if log_path is None:
            print(f"ERROR: no probe logs in {args.log}")
            return 1

    try:
        log = load_probe_log(log_path)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1

    output = Path(args.output) if args.output else log_path.with_suffix(".png")
    output.parent.mkdir(parents=True, exist_ok=True)
    plot_probe_log(log, title=args.title, save_path=str(output))

    print(f"Ticks: {len(log['tick'])}, toggles: {int(log['toggled'].sum())}")
    print(f"Saved to: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
