"""Downloadable analyzer scripts generated from the rule catalog.

The scripts re-implement the matcher outside the service so a project can be
scanned locally and the resulting JSON uploaded for scoring. Translation is
best effort: grep ERE has no lookaround, so lookaheads are dropped and
negative lookaheads become a ``grep -v`` style post-filter, and the bash
script does not resolve C# properties.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from statelessor.analyzers.base import Ecosystem, Pattern
from statelessor.analyzers.context import DECLARATIONS
from statelessor.analyzers.scanner import SourceScanner

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_ESCAPES_OUTSIDE = {
    "s": "[[:space:]]",
    "S": "[^[:space:]]",
    "d": "[0-9]",
    "D": "[^0-9]",
    "w": "[[:alnum:]_]",
    "W": "[^[:alnum:]_]",
}
_ESCAPES_INSIDE = {"s": "[:space:]", "d": "0-9", "w": "[:alnum:]_"}
_LOOKAROUNDS = ("(?!", "(?=", "(?<!", "(?<=")


def _group_end(regex: str, start: int) -> int:
    """Index just past the group opened at ``start``."""
    depth = 0
    i = start
    in_class = False
    while i < len(regex):
        c = regex[i]
        if c == "\\":
            i += 2
            continue
        if in_class:
            if c == "]":
                in_class = False
        elif c == "[":
            in_class = True
        elif c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return len(regex)


def _strip_lookarounds(regex: str) -> tuple[str, list[str]]:
    """Remove lookaround groups; return the rest and the negative lookahead bodies."""
    out: list[str] = []
    negatives: list[str] = []
    i = 0
    while i < len(regex):
        if regex[i] == "\\":
            out.append(regex[i:i + 2])
            i += 2
            continue
        prefix = next((p for p in _LOOKAROUNDS if regex.startswith(p, i)), None)
        if prefix:
            end = _group_end(regex, i)
            if prefix == "(?!":
                negatives.append(regex[i + len(prefix):end - 1])
            i = end
            continue
        out.append(regex[i])
        i += 1
    return "".join(out), negatives


def _translate_class(regex: str, start: int) -> tuple[str, int]:
    i = start + 1
    negate = False
    if i < len(regex) and regex[i] == "^":
        negate = True
        i += 1

    items: list[str] = []
    has_close = has_dash = False
    if i < len(regex) and regex[i] == "]":
        has_close = True
        i += 1

    while i < len(regex) and regex[i] != "]":
        c = regex[i]
        if c == "\\" and i + 1 < len(regex):
            nxt = regex[i + 1]
            if nxt in _ESCAPES_INSIDE:
                items.append(_ESCAPES_INSIDE[nxt])
            elif nxt == "]":
                has_close = True
            elif nxt == "-":
                has_dash = True
            else:
                items.append(nxt)
            i += 2
            continue
        items.append(c)
        i += 1

    if i >= len(regex):
        # unterminated, leave it for grep to reject
        return regex[start:], len(regex)

    body = ("]" if has_close else "") + "".join(items) + ("-" if has_dash else "")
    return "[" + ("^" if negate else "") + body + "]", i + 1


def to_grep_regex(regex: str) -> str:
    """Translate a Python regex into a grep -E expression, dropping lookarounds."""
    regex, _ = _strip_lookarounds(regex)
    out: list[str] = []
    i = 0
    while i < len(regex):
        c = regex[i]
        if c == "\\" and i + 1 < len(regex):
            nxt = regex[i + 1]
            out.append(_ESCAPES_OUTSIDE.get(nxt, "\\" + nxt))
            i += 2
        elif c == "[":
            translated, i = _translate_class(regex, i)
            out.append(translated)
        elif regex.startswith("(?:", i):
            out.append("(")
            i += 3
        else:
            out.append(c)
            i += 1
    return "".join(out)


def negative_filters(regex: str) -> list[str]:
    """grep -E expressions for lines a negative lookahead would have rejected."""
    _, negatives = _strip_lookarounds(regex)
    filters = []
    for body in negatives:
        if body.startswith(".*"):
            body = body[2:]
        if body:
            filters.append(to_grep_regex(body))
    return filters


def to_powershell_regex(regex: str) -> str:
    """.NET regex equivalent of a Python regex (named group syntax only differs)."""
    regex = re.sub(r"\(\?P=(\w+)\)", r"\\k<\1>", regex)
    return regex.replace("(?P<", "(?<")


def _ps_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _bash_single(value: str) -> str:
    return "'" + value.replace("'", "'\\''") + "'"


def _bash_double(value: str) -> str:
    escaped = value
    for ch in ("\\", '"', "$", "`"):
        escaped = escaped.replace(ch, "\\" + ch)
    return f'"{escaped}"'


class ScriptService:
    """Render bash and PowerShell analyzers from compiled patterns."""

    def __init__(self, templates_dir: str | Path = TEMPLATES_DIR):
        self.templates_dir = Path(templates_dir)

    def _render(self, template_name: str, replacements: dict[str, str]) -> str:
        script = (self.templates_dir / template_name).read_text(encoding="utf-8")
        for key, value in replacements.items():
            script = script.replace("{{" + key + "}}", value)
        return script

    def _bash_pattern_block(self, pattern: Pattern) -> str:
        filters = "".join(
            f"            if printf '%s' \"$code\" | grep -qE {_bash_single(f)}; then continue; fi\n"
            for f in negative_filters(pattern.source)
        )
        return (
            f"        # {pattern.category}\n"
            "        while IFS= read -r line_info; do\n"
            "            line_num=\"${line_info%%:*}\"\n"
            "            code=\"${line_info#*:}\"\n"
            f"{filters}"
            "            function=$(extract_function_name \"$file\" \"$line_num\")\n"
            "            add_finding \"$relative_file\" \"$function\" \"$line_num\" \"$code\" "
            f"{_bash_double(pattern.category)} {_bash_double(pattern.severity.value)} "
            f"{_bash_double(pattern.remediation)}\n"
            "            issues_found=$((issues_found + 1))\n"
            f"        done < <(grep -nE {_bash_single(to_grep_regex(pattern.source))} \"$file\" 2>/dev/null || true)"
        )

    def _bash_prune(self, ecosystem: Ecosystem) -> str:
        names = sorted(SourceScanner.SKIP_DIRS[ecosystem])
        return " -o ".join(f"-name {_bash_single(n)}" for n in names)

    def generate_bash_script(self, patterns: Iterable[Pattern], generated_at: Optional[datetime] = None) -> str:
        patterns = list(patterns)
        replacements = {
            "GENERATION_DATE": (generated_at or datetime.now(timezone.utc)).isoformat(),
            "RULES_COUNT": str(len(patterns)),
        }
        for eco in Ecosystem:
            key = eco.value.upper()
            family = DECLARATIONS[eco]
            blocks = [self._bash_pattern_block(p) for p in patterns if p.ecosystem is eco]
            replacements[f"{key}_PATTERNS"] = "\n\n".join(blocks) or "        :"
            replacements[f"{key}_METHOD_REGEX"] = _bash_single(to_grep_regex(family.method.pattern))
            replacements[f"{key}_CLASS_REGEX"] = _bash_single(to_grep_regex(family.class_decl.pattern))
            replacements[f"{key}_METHOD_EXCLUDE"] = _bash_single("|".join(family.method_excludes))
            replacements[f"{key}_PRUNE"] = self._bash_prune(eco)

        logger.info(f"Generated bash analyzer with {len(patterns)} rules")
        return self._render("analyzer.sh", replacements)

    def _ps_pattern_block(self, pattern: Pattern) -> str:
        return (
            f"        # {pattern.category}\n"
            "        for ($i = 0; $i -lt $content.Length; $i++) {\n"
            f"            if ($content[$i] -cmatch {_ps_quote(to_powershell_regex(pattern.source))}) {{\n"
            "                $function = Get-FunctionName $content ($i + 1) $decl\n"
            "                Add-Finding $relativeFile $function ($i + 1) $content[$i].Trim() "
            f"{_ps_quote(pattern.category)} {_ps_quote(pattern.severity.value)} {_ps_quote(pattern.remediation)}\n"
            "            }\n"
            "        }"
        )

    def generate_powershell_script(
        self, patterns: Iterable[Pattern], generated_at: Optional[datetime] = None
    ) -> str:
        patterns = list(patterns)
        replacements = {
            "GENERATION_DATE": (generated_at or datetime.now(timezone.utc)).isoformat(),
            "RULES_COUNT": str(len(patterns)),
        }
        for eco in Ecosystem:
            key = eco.value.upper()
            family = DECLARATIONS[eco]
            blocks = [self._ps_pattern_block(p) for p in patterns if p.ecosystem is eco]
            replacements[f"{key}_PATTERNS"] = "\n\n".join(blocks)
            replacements[f"{key}_METHOD_REGEX"] = _ps_quote(to_powershell_regex(family.method.pattern))
            replacements[f"{key}_PROPERTY_REGEX"] = _ps_quote(
                to_powershell_regex(family.property.pattern) if family.property else ""
            )
            replacements[f"{key}_CLASS_REGEX"] = _ps_quote(to_powershell_regex(family.class_decl.pattern))
            replacements[f"{key}_METHOD_EXCLUDE"] = _ps_quote("|".join(family.method_excludes))
            replacements[f"{key}_SKIP_DIRS"] = ", ".join(
                _ps_quote(n) for n in sorted(SourceScanner.SKIP_DIRS[eco])
            )

        logger.info(f"Generated PowerShell analyzer with {len(patterns)} rules")
        return self._render("analyzer.ps1", replacements)
