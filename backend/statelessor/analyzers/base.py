"""Base types shared by the stateful-pattern analyzers."""

import re
from dataclasses import dataclass
from enum import Enum


class ConfigLoadError(Exception):
    """Rule or remediation catalog is missing or malformed."""
    pass


class Ecosystem(str, Enum):
    """Supported source ecosystems."""

    DOTNET = "dotnet"
    JAVA = "java"

    @property
    def extension(self) -> str:
        return ".cs" if self is Ecosystem.DOTNET else ".java"


class Severity(str, Enum):
    """Finding severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Pattern:
    """A compiled stateful-code rule."""

    id: str
    ecosystem: Ecosystem
    regex: re.Pattern
    category: str
    severity: Severity
    remediation: str

    @property
    def source(self) -> str:
        return self.regex.pattern


@dataclass(frozen=True)
class Finding:
    """One pattern match at a specific file and line."""

    filename: str
    function: str
    line_num: int
    code: str
    category: str
    severity: str
    remediation: str

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "function": self.function,
            "lineNum": self.line_num,
            "code": self.code,
            "category": self.category,
            "severity": self.severity,
            "remediation": self.remediation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        """Build a finding from the camelCase payload produced by the scripts."""
        return cls(
            filename=str(data.get("filename", "")),
            function=str(data.get("function", "Unknown")),
            line_num=int(data.get("lineNum") or 0),
            code=str(data.get("code") or ""),
            category=str(data.get("category", "")),
            severity=str(data.get("severity", "")).lower(),
            remediation=str(data.get("remediation") or ""),
        )
