from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from .codec import LoadReport, ResolvedIndex
from .records import TAG_NAMES


@dataclass
class LoadReportWriter:
    """Accumulates the anomalies of one or more loads and writes them as text."""

    destination: Path

    def __post_init__(self) -> None:
        self._lines: List[str] = []

    def record(self, source: str, report: LoadReport) -> None:
        self._lines.append(
            f"{source}: objects={report.objects} polygons={report.polygons} "
            f"points={report.points} skipped={len(report.skipped)} remapped={len(report.remapped)}"
        )
        for entry in report.remapped:
            self._lines.append(self._describe_remap(entry))
        for entry in report.skipped:
            self._lines.append(
                f"  skipped off=0x{entry.offset:06X} {TAG_NAMES.get(entry.tag, entry.tag):<8} "
                f"raw={entry.raw_index:<6} | {entry.reason}"
            )

    @staticmethod
    def _describe_remap(entry: ResolvedIndex) -> str:
        return (
            f"  remap   off=0x{entry.offset:06X} {TAG_NAMES[entry.tag]:<8} "
            f"raw={entry.raw_index:<6} -> {entry.index:<5} via {entry.hypothesis}"
        )

    def flush(self) -> None:
        if not self._lines:
            return
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        text = "\n".join(self._lines) + "\n"
        self.destination.write_text(text, encoding="utf-8")
