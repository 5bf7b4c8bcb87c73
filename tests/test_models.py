"""Tests for the pydantic result models and their camelCase JSON form."""

import pytest
from pydantic import ValidationError

from neurolint.findings.models import (
    AnalysisResult,
    FixResult,
    Issue,
    LayerError,
    Location,
    Severity,
    Summary,
)


def _issue(**overrides) -> Issue:
    data = dict(
        severity=Severity.WARNING,
        message="Remove console.log statement",
        layer=2,
        location=Location(line=2, column=3),
        rule_name="no-console",
        category="pattern",
    )
    data.update(overrides)
    return Issue(**data)


def test_issue_json_uses_camel_case_aliases():
    data = _issue().model_dump(mode="json", by_alias=True, exclude_none=True)
    assert data["ruleName"] == "no-console"
    assert data["rule"] == "no-console"
    assert data["type"] == "pattern"
    assert data["severity"] == "warning"
    assert data["location"] == {"line": 2, "column": 3}
    assert "cve" not in data


def test_issue_accepts_alias_and_field_names():
    by_alias = Issue.model_validate(
        {
            "severity": "info",
            "message": "m",
            "layer": 3,
            "location": {"line": 1, "column": 1},
            "ruleName": "react-key",
            "type": "component",
        }
    )
    by_name = Issue(
        severity="info",
        message="m",
        layer=3,
        location={"line": 1, "column": 1},
        rule_name="react-key",
        category="component",
    )
    assert by_alias == by_name


def test_issue_is_frozen():
    issue = _issue()
    with pytest.raises(ValidationError):
        issue.message = "changed"


def test_layer_out_of_range_rejected():
    with pytest.raises(ValidationError):
        _issue(layer=9)


def test_location_is_one_based():
    with pytest.raises(ValidationError):
        Location(line=0, column=1)


def test_parity_key_ignores_description():
    a = _issue(description="one")
    b = _issue(description="two")
    assert a.parity_key() == b.parity_key()


def test_analysis_result_defaults_and_degraded():
    result = AnalysisResult()
    assert result.success is True
    assert result.degraded is False
    degraded = AnalysisResult(layer_errors=[LayerError(layer=4, message="Layer 4 failed: boom")])
    assert degraded.degraded is True


def test_analysis_result_to_json_dict():
    result = AnalysisResult(
        issues=[_issue()],
        summary=Summary(total_issues=1, issues_by_layer={2: [_issue()]}, filename="a.js", layers=[2]),
        metadata={"platform": "cli"},
    )
    data = result.to_json_dict()
    assert data["summary"]["totalIssues"] == 1
    assert data["summary"]["issuesByLayer"]["2"][0]["ruleName"] == "no-console"
    assert data["summary"]["qualityScore"] == 100
    assert data["summary"]["readinessScore"] == 100
    assert "transformedCode" not in data
    assert "error" not in data


def test_fix_result_json():
    result = FixResult(success=True, code="x", original_code="x", dry_run=True)
    data = result.to_json_dict()
    assert data["dryRun"] is True
    assert data["originalCode"] == "x"
    assert data["totalFixes"] == 0
