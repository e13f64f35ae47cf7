"""CSV persistence of findings, one file per project session."""

import csv
import logging
import os
import re
from pathlib import Path
from typing import Iterable

from statelessor.analyzers.base import Finding

logger = logging.getLogger(__name__)

HEADERS = ["Filename", "Function", "LineNum", "Code", "Category", "Severity", "Remediation"]


def sanitize_project_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]", "_", name).strip("._")
    return cleaned or "project"


class FindingsStore:
    """Append-only CSV file of findings for a project."""

    def __init__(self, data_dir: str | Path, project_name: str):
        self.project_name = sanitize_project_name(project_name)
        self.data_dir = Path(data_dir)
        self.csv_path = self.data_dir / f"{self.project_name}.csv"

    def _ensure_file(self) -> None:
        if self.csv_path.exists():
            return
        os.makedirs(self.data_dir, exist_ok=True)
        with open(self.csv_path, "w", encoding="utf-8", newline="") as handle:
            csv.writer(handle, quoting=csv.QUOTE_ALL).writerow(HEADERS)

    def add_findings(self, findings: Iterable[Finding]) -> int:
        """Append findings; returns the number of rows written."""
        rows = [
            [f.filename, f.function, f.line_num, f.code, f.category, f.severity, f.remediation]
            for f in findings
        ]
        self._ensure_file()
        if not rows:
            return 0

        with open(self.csv_path, "a", encoding="utf-8", newline="") as handle:
            csv.writer(handle, quoting=csv.QUOTE_ALL).writerows(rows)
        logger.info(f"Stored {len(rows)} findings in {self.csv_path}")
        return len(rows)

    def get_findings(self) -> list[Finding]:
        """Read every stored finding. A missing file means no findings."""
        if not self.csv_path.exists():
            return []

        findings: list[Finding] = []
        with open(self.csv_path, encoding="utf-8", newline="") as handle:
            reader = csv.reader(handle)
            next(reader, None)
            for row in reader:
                if len(row) < len(HEADERS):
                    logger.warning(f"Skipping short row in {self.csv_path}: {row!r}")
                    continue
                filename, function, line_num, code, category, severity, remediation = row[:7]
                try:
                    number = int(line_num)
                except ValueError:
                    logger.warning(f"Skipping row with bad line number in {self.csv_path}: {line_num!r}")
                    continue
                findings.append(
                    Finding(
                        filename=filename,
                        function=function,
                        line_num=number,
                        code=code,
                        category=category,
                        severity=severity,
                        remediation=remediation,
                    )
                )
        return findings
