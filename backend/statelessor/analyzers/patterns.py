"""Line-oriented pattern matching helpers."""

import logging
from typing import Iterable, Sequence

from statelessor.analyzers.base import Ecosystem, Finding, Pattern
from statelessor.analyzers.context import DEFAULT_WINDOW, ContextResolver

logger = logging.getLogger(__name__)


def split_lines(content: str) -> list[str]:
    return content.split("\n")


def match_lines(
    lines: Sequence[str],
    relative_path: str,
    patterns: Iterable[Pattern],
    resolver: ContextResolver,
) -> list[Finding]:
    """Test every pattern against every line.

    A line matching several patterns yields one finding per pattern. Matching
    is textual, so hits inside comments or string literals are reported too.
    """
    patterns = tuple(patterns)
    findings: list[Finding] = []
    for index, line in enumerate(lines):
        for pattern in patterns:
            if not pattern.regex.search(line):
                continue
            findings.append(
                Finding(
                    filename=relative_path,
                    function=resolver.resolve(lines, index),
                    line_num=index + 1,
                    code=line.strip(),
                    category=pattern.category,
                    severity=pattern.severity.value,
                    remediation=pattern.remediation,
                )
            )
    return findings


class LineMatcher:
    """Apply compiled patterns to the lines of a single file."""

    def __init__(self, ecosystem: Ecosystem | str, context_window: int = DEFAULT_WINDOW):
        self.ecosystem = Ecosystem(ecosystem)
        self.resolver = ContextResolver(self.ecosystem, window=context_window)

    def match_file(self, path: str, relative_path: str, patterns: Iterable[Pattern]) -> list[Finding]:
        """Match a file on disk. Read failures yield no findings."""
        try:
            with open(path, encoding="utf-8", errors="replace") as handle:
                content = handle.read()
        except OSError as e:
            logger.warning(f"Error analyzing file {path}: {e}")
            return []

        return match_lines(split_lines(content), relative_path, patterns, self.resolver)
