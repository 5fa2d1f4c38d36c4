"""
CSV export of the complete metrics report.
"""

from __future__ import annotations

import csv
from pathlib import Path

from .service import MetricsReport


def write_metrics_csv(report: MetricsReport, path: Path) -> Path:
    """
    Writes Label,Value rows (UTF-8). An existing file is overwritten.
    Returns the path.
    """
    path = Path(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Label", "Value"])
        for label, value in report.rows:
            writer.writerow([label, value])
    return path
