"""Rule registry: loads and compiles the stateful pattern catalog."""

import json
import logging
import re
import threading
from pathlib import Path

from statelessor.analyzers.base import ConfigLoadError, Ecosystem, Pattern, Severity

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "rules" / "stateful-patterns.json"

REQUIRED_FIELDS = ("id", "language", "regex", "category", "severity", "remediation")


class RuleRegistry:
    """Compiled rule set, memoized per ecosystem.

    A registry is built once and shared read-only by every file task of an
    analysis run. The first ``load_patterns`` call for an ecosystem reads and
    compiles the catalog; later calls return the cached tuple.
    """

    def __init__(self, catalog_path: str | Path = DEFAULT_RULES_PATH):
        self.catalog_path = Path(catalog_path)
        self._patterns: dict[Ecosystem, tuple[Pattern, ...]] = {}
        self._lock = threading.Lock()

    def load_patterns(self, ecosystem: Ecosystem | str) -> tuple[Pattern, ...]:
        ecosystem = Ecosystem(ecosystem)
        cached = self._patterns.get(ecosystem)
        if cached is not None:
            return cached

        with self._lock:
            if ecosystem not in self._patterns:
                compiled = self._compile_all()
                for eco in Ecosystem:
                    self._patterns.setdefault(
                        eco, tuple(p for p in compiled if p.ecosystem is eco)
                    )
                logger.info(
                    f"Loaded {len(self._patterns[ecosystem])} {ecosystem.value} patterns from {self.catalog_path}"
                )
        return self._patterns[ecosystem]

    def all_patterns(self) -> tuple[Pattern, ...]:
        return tuple(p for eco in Ecosystem for p in self.load_patterns(eco))

    def _read_catalog(self) -> list[dict]:
        try:
            raw = self.catalog_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigLoadError(f"Cannot read rule catalog {self.catalog_path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigLoadError(f"Rule catalog {self.catalog_path} is not valid JSON: {e}") from e

        patterns = data.get("patterns") if isinstance(data, dict) else None
        if not isinstance(patterns, list):
            raise ConfigLoadError(f"Rule catalog {self.catalog_path} has no 'patterns' list")
        return patterns

    def _compile_all(self) -> list[Pattern]:
        compiled: list[Pattern] = []
        seen_ids: set[str] = set()

        for index, record in enumerate(self._read_catalog()):
            if not isinstance(record, dict):
                raise ConfigLoadError(f"Pattern #{index} is not an object")

            missing = [f for f in REQUIRED_FIELDS if f not in record]
            if missing:
                raise ConfigLoadError(
                    f"Pattern {record.get('id', f'#{index}')} is missing fields: {', '.join(missing)}"
                )

            pattern_id = str(record["id"])
            if pattern_id in seen_ids:
                raise ConfigLoadError(f"Duplicate pattern id {pattern_id}")
            seen_ids.add(pattern_id)

            try:
                ecosystem = Ecosystem(record["language"])
            except ValueError:
                logger.debug(f"Skipping pattern {pattern_id} for unsupported language {record['language']}")
                continue

            try:
                severity = Severity(str(record["severity"]).lower())
            except ValueError as e:
                raise ConfigLoadError(
                    f"Pattern {pattern_id} has unknown severity {record['severity']!r}"
                ) from e

            try:
                regex = re.compile(record["regex"])
            except (re.error, TypeError) as e:
                raise ConfigLoadError(f"Pattern {pattern_id} has an invalid regex: {e}") from e

            compiled.append(
                Pattern(
                    id=pattern_id,
                    ecosystem=ecosystem,
                    regex=regex,
                    category=str(record["category"]),
                    severity=severity,
                    remediation=str(record["remediation"]),
                )
            )

        return compiled
