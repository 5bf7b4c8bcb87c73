# Pydantic data models shared by every layer and caller: Issue, Location, Severity,
# AnalysisResult and FixResult. JSON uses camelCase aliases (ruleName, issuesByLayer).

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, computed_field
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


class Severity(str, Enum):
    """Issue severity. Drives CLI exit codes and UI classification."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Location(BaseModel):
    """Where in the source an issue was reported, as seen by the producing layer."""

    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(..., ge=1, description="1-based column number (characters)")

    model_config = {**_MODEL_CONFIG, "frozen": True}


class Issue(BaseModel):
    """A single problem detected by one rule of one layer."""

    severity: Severity
    message: str
    description: str = ""
    layer: int = Field(..., ge=1, le=8)
    location: Location
    rule_name: str
    category: str = Field(default="", alias="type")
    cve: Optional[str] = None
    remediation: Optional[str] = None
    snippet: Optional[str] = None

    model_config = {**_MODEL_CONFIG, "frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def rule(self) -> str:
        return self.rule_name

    def parity_key(self) -> Tuple[str, int, int, int, str]:
        """Fields two callers must agree on for the same input."""
        return (self.message, self.layer, self.location.line, self.location.column, self.rule_name)


class LayerError(BaseModel):
    """Non-fatal failure of one layer during a run."""

    layer: int
    message: str

    model_config = _MODEL_CONFIG


class AppliedFix(BaseModel):
    rule: str
    description: str
    location: Location
    layer: int
    old_code: Optional[str] = None
    new_code: Optional[str] = None

    model_config = _MODEL_CONFIG


class SkippedFix(BaseModel):
    rule: str
    location: Location
    layer: int
    reason: str

    model_config = _MODEL_CONFIG


class SecuritySummary(BaseModel):
    """Layer 8 roll-up attached to an AnalysisResult."""

    threats: int = 0
    vulnerabilities: int = 0
    compromise_indicators: int = 0
    risk_level: str = "clean"

    model_config = _MODEL_CONFIG


class Summary(BaseModel):
    total_issues: int = 0
    issues_by_layer: Dict[int, List[Issue]] = Field(default_factory=dict)
    issues_by_severity: Dict[str, int] = Field(default_factory=dict)
    filename: str = ""
    layers: List[int] = Field(default_factory=list)
    quality_score: int = 100
    readiness_score: int = 100
    recommended_layers: List[int] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class AnalysisResult(BaseModel):
    """Output of one pipeline run."""

    success: bool = True
    issues: List[Issue] = Field(default_factory=list)
    summary: Summary = Field(default_factory=Summary)
    transformed_code: Optional[str] = None
    applied_fixes: List[AppliedFix] = Field(default_factory=list)
    layer_errors: List[LayerError] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    security: Optional[SecuritySummary] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = _MODEL_CONFIG

    @property
    def degraded(self) -> bool:
        """True when the run succeeded but at least one layer failed."""
        return self.success and bool(self.layer_errors)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FixResult(BaseModel):
    """Output of the Fix Applier."""

    success: bool
    code: str
    original_code: Optional[str] = None
    applied_fixes: List[AppliedFix] = Field(default_factory=list)
    skipped_fixes: List[SkippedFix] = Field(default_factory=list)
    total_fixes: int = 0
    dry_run: bool = False
    error: Optional[str] = None
    error_type: Optional[str] = None

    model_config = _MODEL_CONFIG

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
