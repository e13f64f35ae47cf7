"""Remediation catalog and the weighted action planner."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence

from statelessor.analyzers.base import ConfigLoadError, Finding
from statelessor.services.effort import PatternMap, round_effort

logger = logging.getLogger(__name__)

DEFAULT_ACTIONS_PATH = Path(__file__).resolve().parent.parent / "rules" / "remediation-actions.json"


class ImpactType(str, Enum):
    """Whether an action is paid once per project or once per occurrence."""

    ONE_TIME = "OneTime"
    PER_OCCURRENCE = "PerOccurrence"

    @classmethod
    def parse(cls, value: str) -> "ImpactType":
        normalized = str(value).replace("-", "").replace("_", "").replace(" ", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown impact type: {value!r}")


@dataclass(frozen=True)
class RemediationAction:
    id: str
    description: str
    action_category: str
    impact_type: ImpactType
    impact_severity: str
    base_weight: float
    sub_actions: tuple[str, ...] = ()


@dataclass(frozen=True)
class RemediationCatalog:
    """Actions keyed by canonical pattern id, plus the category mapping."""

    actions: dict[str, tuple[RemediationAction, ...]]
    pattern_map: PatternMap = field(default_factory=PatternMap)

    def actions_for(self, pattern_id: str) -> Optional[tuple[RemediationAction, ...]]:
        return self.actions.get(pattern_id)

    @classmethod
    def load(cls, path: str | Path = DEFAULT_ACTIONS_PATH) -> "RemediationCatalog":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigLoadError(f"Cannot read remediation catalog {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigLoadError(f"Remediation catalog {path} is not valid JSON: {e}") from e
        return cls.from_dict(data, source=str(path))

    @classmethod
    def from_dict(cls, data: Any, source: str = "<memory>") -> "RemediationCatalog":
        if not isinstance(data, dict) or not isinstance(data.get("remediationActions"), dict):
            raise ConfigLoadError(f"Remediation catalog {source} has no 'remediationActions' mapping")

        actions: dict[str, tuple[RemediationAction, ...]] = {}
        try:
            for pattern_id, entry in data["remediationActions"].items():
                actions[str(pattern_id)] = tuple(
                    RemediationAction(
                        id=str(a["id"]),
                        description=str(a["description"]),
                        action_category=str(a.get("actionCategory", "")),
                        impact_type=ImpactType.parse(a["impactType"]),
                        impact_severity=str(a.get("impactSeverity", "")),
                        base_weight=float(a["weight"]),
                        sub_actions=tuple(str(s) for s in a.get("subActions") or ()),
                    )
                    for a in entry["actions"]
                )
            pattern_map = PatternMap.from_catalog(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigLoadError(f"Malformed remediation catalog {source}: {e!r}") from e

        return cls(actions=actions, pattern_map=pattern_map)


@dataclass
class ActionReportEntry:
    id: str
    description: str
    category: str
    impact_type: ImpactType
    impact_severity: str
    base_weight: float
    adjusted_weight: float
    sub_actions: list[str]
    occurrences: int = 0
    affected_findings: list[dict[str, Any]] = field(default_factory=list)
    final_effort: float = 0.0
    total_occurrences: int = 0


@dataclass
class ActionReport:
    total_actions: int
    total_effort: float
    actions: list[ActionReportEntry]


class ActionPlanner:
    """Turn findings into a complexity-weighted remediation plan."""

    def __init__(self, catalog: RemediationCatalog, pattern_map: Optional[PatternMap] = None):
        self.catalog = catalog
        self.pattern_map = pattern_map or catalog.pattern_map

    def plan_actions(self, findings: Sequence[Finding], complexity_factor: float) -> ActionReport:
        entries: dict[str, ActionReportEntry] = {}
        one_time_actions: set[str] = set()
        missing: set[str] = set()

        for finding in findings:
            pattern_id = self.pattern_map.pattern_id_for(finding.category)
            actions = self.catalog.actions_for(pattern_id)
            if actions is None:
                if pattern_id not in missing:
                    logger.warning(
                        f"No remediation actions for pattern {pattern_id} (category {finding.category!r})"
                    )
                    missing.add(pattern_id)
                continue

            for action in actions:
                entry = entries.get(action.id)
                if entry is None:
                    entry = ActionReportEntry(
                        id=action.id,
                        description=action.description,
                        category=action.action_category,
                        impact_type=action.impact_type,
                        impact_severity=action.impact_severity,
                        base_weight=action.base_weight,
                        adjusted_weight=round_effort(action.base_weight * complexity_factor),
                        sub_actions=list(action.sub_actions),
                    )
                    entries[action.id] = entry

                if action.impact_type is ImpactType.ONE_TIME:
                    one_time_actions.add(action.id)
                else:
                    entry.occurrences += 1

                entry.affected_findings.append(
                    {
                        "filename": finding.filename,
                        "function": finding.function,
                        "lineNum": finding.line_num,
                    }
                )

        for action_id, entry in entries.items():
            if action_id in one_time_actions:
                entry.final_effort = entry.adjusted_weight
                entry.total_occurrences = 1
            else:
                entry.final_effort = round_effort(entry.adjusted_weight * entry.occurrences)
                entry.total_occurrences = entry.occurrences

        actions_list = list(entries.values())
        total_effort = round_effort(sum(e.final_effort for e in actions_list))
        logger.info(f"Planned {len(actions_list)} remediation actions, total effort {total_effort}")
        return ActionReport(total_actions=len(actions_list), total_effort=total_effort, actions=actions_list)
