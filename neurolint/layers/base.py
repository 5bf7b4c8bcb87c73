# Rule and Layer interfaces: the contract every one of the eight layers implements.
# A Layer is a fixed table of Rule objects. A Rule finds matches in a FileContext and
# may propose one Edit per match; fixes are applied by neurolint.fixer.FixApplier.

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

from neurolint.context import AnalysisContext, FileContext, create_context
from neurolint.errors import FixApplicationError
from neurolint.findings.models import FixResult, Issue, Location, Severity
from neurolint.fixer import Clock, FixApplier


@dataclass(frozen=True)
class Match:
    """
    One occurrence of a rule's pattern.

    start/end are character offsets into FileContext.text; the issue location is
    derived from start. node and data are rule-private and excluded from equality.
    """

    start: int
    end: int
    message: str
    node: Any = field(default=None, compare=False)
    data: Mapping[str, Any] = field(default_factory=dict, compare=False)
    description: Optional[str] = None
    severity: Optional[Severity] = None


@dataclass(frozen=True)
class Edit:
    """Replace text[start:end] with replacement (character offsets)."""

    start: int
    end: int
    replacement: str

    def overlaps(self, other: "Edit") -> bool:
        """
        Two edits overlap when their ranges intersect. Two insertions at the same
        offset overlap; an insertion at the boundary of a replaced range does not.
        """
        if self.start == self.end and other.start == other.end:
            return self.start == other.start
        if self.start == self.end:
            return other.start < self.start < other.end
        if other.start == other.end:
            return self.start < other.start < self.end
        return self.start < other.end and other.start < self.end


class Rule(ABC):
    """
    Abstract base class for all rules.

    Subclasses must define:
    - id: str (the ruleName, e.g. "no-console")
    - layer: int (1..8)
    - name, description: human-readable text
    - find(context) -> Iterable[Match]

    Subclasses that can rewrite override edit(context, match) and set
    fix_description.
    """

    id: str
    layer: int
    name: str
    description: str = ""
    severity: Severity = Severity.WARNING
    category: str = ""
    remediation: Optional[str] = None
    cve: Optional[str] = None
    fix_description: Optional[str] = None
    requires_tree: bool = True

    def applies_to(self, context: FileContext) -> bool:
        """Whether this rule inspects the given file at all."""
        return not self.requires_tree or context.tree is not None

    @abstractmethod
    def find(self, context: FileContext) -> Iterable[Match]:
        """Yield every match of this rule in context.text."""
        ...

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        """Return the rewrite for one match, or None if this match cannot be fixed."""
        return None

    @property
    def fixable(self) -> bool:
        return type(self).edit is not Rule.edit

    def matches(self, context: FileContext) -> list[Match]:
        if not self.applies_to(context):
            return []
        return list(self.find(context))

    def run(self, context: FileContext) -> list[Issue]:
        """Analyze one file and return an Issue per match."""
        return [self.to_issue(context, m) for m in self.matches(context)]

    def to_issue(self, context: FileContext, match: Match) -> Issue:
        line, col = context.line_col(match.start)
        snippet = context.text[match.start : match.end].strip()
        return Issue(
            severity=match.severity or self.severity,
            message=match.message,
            description=match.description or self.description,
            layer=self.layer,
            location=Location(line=line, column=col),
            rule_name=self.id,
            category=self.category,
            cve=self.cve,
            remediation=self.remediation,
            snippet=snippet.splitlines()[0][:120] if snippet else None,
        )

    def locate(self, context: FileContext, issue: Issue, matches: Sequence[Match]) -> Optional[Match]:
        """Return the match an issue was reported for, if it is still present."""
        for m in matches:
            if context.line_col(m.start) == (issue.location.line, issue.location.column):
                return m
        return None


class Layer:
    """
    One numbered pass of the pipeline.

    detect() is a pure function of (source, context). fix() rewrites source for the
    given issues using this layer's rules and returns the new text.
    """

    number: int
    name: str
    description: str
    rules: tuple[Rule, ...] = ()

    @property
    def rules_by_id(self) -> dict[str, Rule]:
        return {rule.id: rule for rule in self.rules}

    def detect(self, source: str, context: AnalysisContext) -> list[Issue]:
        return self.detect_in(create_context(source, context))

    def detect_in(self, file_context: FileContext) -> list[Issue]:
        issues: list[Issue] = []
        for rule in self.rules:
            issues.extend(rule.run(file_context))
        issues.sort(key=lambda i: (i.location.line, i.location.column, i.rule_name))
        return issues

    def apply_fixes(
        self,
        source: str,
        issues: Sequence[Issue],
        context: AnalysisContext,
        clock: Clock = time.monotonic,
    ) -> FixResult:
        return FixApplier(self.rules_by_id, clock=clock).apply(source, issues, context)

    def fix(self, source: str, issues: Sequence[Issue], context: AnalysisContext) -> str:
        result = self.apply_fixes(source, issues, context)
        if not result.success:
            raise FixApplicationError(result.error or f"Layer {self.number} fix failed")
        return result.code

    def info(self) -> dict[str, Any]:
        return {
            "id": self.number,
            "name": self.name,
            "description": self.description,
            "rules": [rule.id for rule in self.rules],
        }
