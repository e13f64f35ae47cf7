"""Summary aggregation: unique issue classes with per-class effort."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from statelessor.analyzers.base import Finding
from statelessor.services.effort import PatternMap, round_effort

logger = logging.getLogger(__name__)


@dataclass
class SummaryEntry:
    """One distinct (category, severity, remediation) issue class."""

    id: int
    category: str
    severity: str
    remediation: str
    base_effort: float
    effort_score: float
    occurrences: int = 0
    detail_ids: list[int] = field(default_factory=list)


@dataclass
class SummaryStats:
    total_files: int
    total_issues: int
    high_severity: int
    medium_severity: int
    low_severity: int
    complexity_factor: float
    total_effort_score: float


@dataclass
class SummaryReport:
    summary: list[SummaryEntry]
    detailed: list[dict[str, Any]]
    stats: SummaryStats


class SummaryAggregator:
    """Group findings into issue classes, in first-occurrence order."""

    def __init__(self, pattern_map: Optional[PatternMap] = None):
        self.pattern_map = pattern_map or PatternMap()

    def summarize(self, findings: Sequence[Finding], complexity_factor: float) -> SummaryReport:
        groups: dict[tuple[str, str, str], SummaryEntry] = {}

        for index, finding in enumerate(findings):
            key = (finding.category, finding.severity, finding.remediation)
            entry = groups.get(key)
            if entry is None:
                pattern_id = self.pattern_map.pattern_id_for(finding.category)
                base_effort = self.pattern_map.base_effort_for(pattern_id)
                entry = SummaryEntry(
                    id=len(groups) + 1,
                    category=finding.category,
                    severity=finding.severity,
                    remediation=finding.remediation,
                    base_effort=base_effort,
                    effort_score=round_effort(base_effort * complexity_factor),
                )
                groups[key] = entry
            entry.occurrences += 1
            entry.detail_ids.append(index + 1)

        summary = list(groups.values())
        detailed = [{"id": i + 1, **f.to_dict()} for i, f in enumerate(findings)]

        severity_counts = {"high": 0, "medium": 0, "low": 0}
        for finding in findings:
            if finding.severity in severity_counts:
                severity_counts[finding.severity] += 1

        stats = SummaryStats(
            total_files=len({f.filename for f in findings}),
            total_issues=len(findings),
            high_severity=severity_counts["high"],
            medium_severity=severity_counts["medium"],
            low_severity=severity_counts["low"],
            complexity_factor=complexity_factor,
            total_effort_score=round_effort(sum(e.effort_score for e in summary)),
        )

        logger.info(f"Summarized {len(findings)} findings into {len(summary)} issue classes")
        return SummaryReport(summary=summary, detailed=detailed, stats=stats)
