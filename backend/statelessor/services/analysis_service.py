"""Orchestrates an analysis run: scan, match, score, aggregate."""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence

from statelessor.analyzers.base import Ecosystem, Finding
from statelessor.analyzers.context import DEFAULT_WINDOW
from statelessor.analyzers.patterns import LineMatcher
from statelessor.analyzers.rules import RuleRegistry
from statelessor.analyzers.scanner import SourceScanner
from statelessor.services.action_service import ActionPlanner, ActionReport, RemediationCatalog
from statelessor.services.complexity_service import compute_complexity_factor
from statelessor.services.summary_service import SummaryAggregator, SummaryReport

logger = logging.getLogger(__name__)


class UnsupportedProjectError(Exception):
    """No supported ecosystem was detected in the source tree."""
    pass


def _coerce_ecosystem(value: Optional[Ecosystem | str]) -> Optional[Ecosystem]:
    # Uploaded findings may carry "unknown" or nothing at all
    if value is None:
        return None
    try:
        return Ecosystem(value)
    except ValueError:
        return None


@dataclass
class AnalysisResult:
    """Everything a caller needs from one run."""

    project_type: Optional[Ecosystem]
    findings: list[Finding]
    complexity_factor: float
    summary: SummaryReport
    actions: ActionReport


class AnalysisService:
    """Runs the detection-and-scoring engine over a source tree.

    Files are matched concurrently in worker threads, bounded by
    ``max_workers``. Each file task carries its own timeout; a failed or
    timed-out file contributes nothing. Scoring starts only once every file
    task has finished.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        catalog: RemediationCatalog,
        context_window: int = DEFAULT_WINDOW,
        max_workers: Optional[int] = None,
        file_timeout: float = 30.0,
    ):
        self.registry = registry
        self.catalog = catalog
        self.scanner = SourceScanner()
        self.context_window = context_window
        self.max_workers = max_workers or os.cpu_count() or 4
        self.file_timeout = file_timeout
        self.summary_aggregator = SummaryAggregator(catalog.pattern_map)
        self.action_planner = ActionPlanner(catalog)

    async def scan_directory(self, root_dir: str, ecosystem: Ecosystem | str) -> list[Finding]:
        ecosystem = Ecosystem(ecosystem)
        patterns = self.registry.load_patterns(ecosystem)
        files = await asyncio.to_thread(self.scanner.enumerate_files, root_dir, ecosystem)
        logger.info(f"Found {len(files)} {ecosystem.value} files to analyze in {root_dir}")

        matcher = LineMatcher(ecosystem, context_window=self.context_window)
        semaphore = asyncio.Semaphore(self.max_workers)
        root = os.path.abspath(root_dir)

        async def run_file(path: str) -> list[Finding]:
            relative = os.path.relpath(path, root)
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        asyncio.to_thread(matcher.match_file, path, relative, patterns),
                        timeout=self.file_timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning(f"Timed out analyzing {relative} after {self.file_timeout}s")
                    return []
                except Exception as e:
                    logger.warning(f"Error analyzing file {relative}: {e}")
                    return []

        per_file = await asyncio.gather(*(run_file(path) for path in files))
        findings = [finding for file_findings in per_file for finding in file_findings]
        logger.info(f"Analysis complete. Found {len(findings)} issues")
        return findings

    def score(
        self,
        findings: Sequence[Finding],
        ecosystem: Optional[Ecosystem | str] = None,
    ) -> AnalysisResult:
        """Complexity, summary and action plan over a frozen finding list."""
        findings = list(findings)
        project_type = _coerce_ecosystem(ecosystem)
        complexity_factor = compute_complexity_factor(findings, project_type)
        return AnalysisResult(
            project_type=project_type,
            findings=findings,
            complexity_factor=complexity_factor,
            summary=self.summary_aggregator.summarize(findings, complexity_factor),
            actions=self.action_planner.plan_actions(findings, complexity_factor),
        )

    async def analyze_directory(
        self,
        root_dir: str,
        ecosystem: Optional[Ecosystem | str] = None,
    ) -> AnalysisResult:
        if ecosystem is None:
            ecosystem = await asyncio.to_thread(self.scanner.detect_project_type, root_dir)
            logger.info(f"Detected project type: {ecosystem.value if ecosystem else None}")
            if ecosystem is None:
                raise UnsupportedProjectError(f"No .NET or Java project found in {root_dir}")

        findings = await self.scan_directory(root_dir, ecosystem)
        return self.score(findings, ecosystem)
