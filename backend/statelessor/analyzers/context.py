"""Enclosing-unit resolution for pattern matches.

Heuristic only: no parsing. A bounded backward scan looks for the nearest
method (or, for C#, property) declaration; when the window is exhausted an
unbounded backward scan looks for the enclosing class declaration.
Methods are expected close to the matched line while a class header can be
arbitrarily far above nested members, hence the two different bounds.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from statelessor.analyzers.base import Ecosystem

UNKNOWN = "Unknown"
DEFAULT_WINDOW = 50


@dataclass(frozen=True)
class DeclarationFamily:
    """Declaration matchers for one ecosystem, in priority order."""

    method: re.Pattern
    class_decl: re.Pattern
    property: Optional[re.Pattern] = None
    method_excludes: tuple[str, ...] = ()


DECLARATIONS: dict[Ecosystem, DeclarationFamily] = {
    Ecosystem.DOTNET: DeclarationFamily(
        method=re.compile(
            r"\b(?:public|private|protected|internal)\s+(?:static\s+)?(?:async\s+)?[\w<>,\s]+\s+(\w+)\s*\("
        ),
        property=re.compile(
            r"\b(?:public|private|protected|internal)\s+(?:static\s+)?[\w<>,\s]+\s+(\w+)\s*\{"
        ),
        class_decl=re.compile(r"\b(?:public|internal)\s+(?:partial\s+)?class\s+(\w+)"),
    ),
    Ecosystem.JAVA: DeclarationFamily(
        method=re.compile(
            r"\b(?:public|private|protected)\s+(?:static\s+)?(?:synchronized\s+)?[\w<>,\[\]\s]+\s+(\w+)\s*\("
        ),
        class_decl=re.compile(r"\b(?:public|)\s*class\s+(\w+)"),
        method_excludes=("class", "interface"),
    ),
}


class ContextResolver:
    """Attribute a matched line to its enclosing method, property or class."""

    def __init__(self, ecosystem: Ecosystem | str, window: int = DEFAULT_WINDOW):
        if window < 1:
            raise ValueError("window must be at least 1 line")
        self.ecosystem = Ecosystem(ecosystem)
        self.window = window
        self.family = DECLARATIONS[self.ecosystem]

    def resolve(self, lines: Sequence[str], index: int) -> str:
        """Return the enclosing unit label for the 0-based line ``index``."""
        if not lines or index < 0:
            return UNKNOWN
        index = min(index, len(lines) - 1)

        lower_bound = index - self.window
        for i in range(index, max(lower_bound, -1), -1):
            label = self._declaration_on(lines[i])
            if label:
                return label

        for i in range(index, -1, -1):
            match = self.family.class_decl.search(lines[i])
            if match:
                return f"ClassLevel: {match.group(1)}"

        return UNKNOWN

    def _declaration_on(self, line: str) -> Optional[str]:
        family = self.family
        match = family.method.search(line)
        if match and not any(word in line for word in family.method_excludes):
            return match.group(1)

        if family.property is not None:
            match = family.property.search(line)
            if match:
                return f"Property: {match.group(1)}"

        return None
