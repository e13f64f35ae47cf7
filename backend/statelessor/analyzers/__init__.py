"""Analyzer registry."""

from statelessor.analyzers.base import ConfigLoadError, Ecosystem, Finding, Pattern, Severity
from statelessor.analyzers.context import ContextResolver
from statelessor.analyzers.patterns import LineMatcher, match_lines
from statelessor.analyzers.rules import RuleRegistry
from statelessor.analyzers.scanner import SourceScanner

__all__ = [
    "ConfigLoadError",
    "ContextResolver",
    "Ecosystem",
    "Finding",
    "LineMatcher",
    "Pattern",
    "RuleRegistry",
    "Severity",
    "SourceScanner",
    "match_lines",
]
