"""Tests for the remediation catalog and action planner."""

import json
import logging

import pytest

from statelessor.analyzers.base import ConfigLoadError
from statelessor.services.action_service import ActionPlanner, ImpactType, RemediationCatalog


@pytest.fixture
def small_catalog():
    return RemediationCatalog.from_dict(
        {
            "categoryMap": {"Session State": "1", "Static Mutable Field": "7"},
            "remediationActions": {
                "1": {
                    "actions": [
                        {
                            "id": "A-ONCE",
                            "description": "Provision shared store",
                            "actionCategory": "Infrastructure",
                            "impactType": "One-time",
                            "impactSeverity": "high",
                            "weight": 20,
                            "subActions": ["Provision", "Configure"],
                        },
                        {
                            "id": "A-EACH",
                            "description": "Rewrite access",
                            "impactType": "Per-occurrence",
                            "weight": 10,
                        },
                    ]
                }
            },
        }
    )


class TestImpactType:
    """Test impact type spellings."""

    @pytest.mark.parametrize("value", ["OneTime", "One-time", "one_time", "ONE TIME"])
    def test_one_time(self, value):
        assert ImpactType.parse(value) is ImpactType.ONE_TIME

    @pytest.mark.parametrize("value", ["PerOccurrence", "Per-occurrence", "per_occurrence"])
    def test_per_occurrence(self, value):
        assert ImpactType.parse(value) is ImpactType.PER_OCCURRENCE

    def test_unknown(self):
        with pytest.raises(ValueError):
            ImpactType.parse("Sometimes")


class TestRemediationCatalog:
    """Test catalog loading."""

    def test_bundled_catalog(self, catalog):
        """Bundled catalog covers every mapped category."""
        for pattern_id in catalog.pattern_map.category_map.values():
            assert catalog.actions_for(pattern_id), pattern_id

    def test_shared_action_across_patterns(self, catalog):
        """The distributed cache action serves session, application and cache state."""
        for pattern_id in ("1", "3", "9"):
            assert "ACT-DIST-CACHE" in [a.id for a in catalog.actions_for(pattern_id)]

    def test_parses_action_fields(self, small_catalog):
        """Action records are fully parsed."""
        once, each = small_catalog.actions_for("1")

        assert once.impact_type is ImpactType.ONE_TIME
        assert once.base_weight == 20.0
        assert once.sub_actions == ("Provision", "Configure")
        assert each.impact_type is ImpactType.PER_OCCURRENCE
        assert each.action_category == ""
        assert small_catalog.actions_for("7") is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigLoadError):
            RemediationCatalog.load(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "actions.json"
        path.write_text("[")

        with pytest.raises(ConfigLoadError):
            RemediationCatalog.load(path)

    def test_missing_actions_mapping(self, tmp_path):
        path = tmp_path / "actions.json"
        path.write_text(json.dumps({"version": "1"}))

        with pytest.raises(ConfigLoadError, match="remediationActions"):
            RemediationCatalog.load(path)

    def test_malformed_action(self):
        """An action without a weight is rejected."""
        data = {"remediationActions": {"1": {"actions": [{"id": "X", "description": "d", "impactType": "OneTime"}]}}}

        with pytest.raises(ConfigLoadError, match="Malformed"):
            RemediationCatalog.from_dict(data)

    def test_bad_impact_type(self):
        data = {
            "remediationActions": {
                "1": {"actions": [{"id": "X", "description": "d", "impactType": "Weekly", "weight": 1}]}
            }
        }

        with pytest.raises(ConfigLoadError):
            RemediationCatalog.from_dict(data)


class TestActionPlanner:
    """Test weighting of one-time and per-occurrence actions."""

    def test_one_time_paid_once(self, small_catalog, make_finding):
        """A one-time action costs its adjusted weight no matter how often it is hit."""
        findings = [make_finding(line_num=n) for n in (1, 2, 3)]

        report = ActionPlanner(small_catalog).plan_actions(findings, 1.5)
        once = next(a for a in report.actions if a.id == "A-ONCE")

        assert once.adjusted_weight == 30.0
        assert once.final_effort == 30.0
        assert once.occurrences == 0
        assert once.total_occurrences == 1
        assert len(once.affected_findings) == 3

    def test_per_occurrence_scales(self, small_catalog, make_finding):
        """A per-occurrence action costs adjusted weight times occurrences."""
        findings = [make_finding(line_num=n) for n in range(4)]

        report = ActionPlanner(small_catalog).plan_actions(findings, 1.2)
        each = next(a for a in report.actions if a.id == "A-EACH")

        assert each.adjusted_weight == 12.0
        assert each.occurrences == 4
        assert each.total_occurrences == 4
        assert each.final_effort == 48.0

    def test_report_totals(self, small_catalog, make_finding):
        """Totals sum every action's final effort."""
        findings = [make_finding(line_num=n) for n in (1, 2, 3)]

        report = ActionPlanner(small_catalog).plan_actions(findings, 1.5)

        assert report.total_actions == 2
        assert [a.id for a in report.actions] == ["A-ONCE", "A-EACH"]
        assert report.total_effort == 75.0

    def test_affected_findings(self, small_catalog, make_finding):
        """Affected findings record file, function and line."""
        finding = make_finding(filename="Cart.cs", function="Add", line_num=11)

        report = ActionPlanner(small_catalog).plan_actions([finding], 1.0)

        assert report.actions[0].affected_findings == [
            {"filename": "Cart.cs", "function": "Add", "lineNum": 11}
        ]

    def test_missing_actions_warned_once(self, small_catalog, make_finding, caplog):
        """Patterns without remediation actions are skipped with one warning."""
        findings = [make_finding(category="Static Mutable Field", line_num=n) for n in (1, 2)]

        with caplog.at_level(logging.WARNING):
            report = ActionPlanner(small_catalog).plan_actions(findings, 1.0)

        assert report.total_actions == 0
        assert report.total_effort == 0.0
        warnings = [r for r in caplog.records if "No remediation actions for pattern 7" in r.getMessage()]
        assert len(warnings) == 1

    def test_bundled_catalog_shares_one_time_action(self, catalog, make_finding):
        """Session and application state share the distributed cache action."""
        findings = [
            make_finding(category="Session State"),
            make_finding(category="Application State", line_num=2),
        ]

        report = ActionPlanner(catalog).plan_actions(findings, 1.0)

        assert [a.id for a in report.actions] == [
            "ACT-DIST-CACHE",
            "ACT-SESSION-MIGRATE",
            "ACT-APPSTATE-MIGRATE",
        ]
        assert report.actions[0].final_effort == 20.0
        assert len(report.actions[0].affected_findings) == 2
        assert report.total_effort == 29.0

    def test_empty(self, small_catalog):
        report = ActionPlanner(small_catalog).plan_actions([], 1.0)

        assert report.total_actions == 0
        assert report.actions == []
