"""
Fix application: rewrite a source text for a set of accepted issues.

Every issue is resolved back to its rule (by ruleName) and to the match at its
recorded location; the rule's edit for that match becomes a candidate. Candidates
are computed against the same input text, conflicts are resolved (lower layer
wins, then earlier position), and the survivors are applied end-to-start so that
offsets stay valid. On any structural failure the input is returned unchanged.
"""

from __future__ import annotations

import logging
import time
from itertools import groupby
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Optional, Sequence

from neurolint.context import AnalysisContext, FileContext, create_context
from neurolint.errors import FixApplicationError, PipelineTimeoutError
from neurolint.findings.models import AppliedFix, FixResult, Issue, SkippedFix
from neurolint.parser import parse_text

if TYPE_CHECKING:
    from neurolint.layers.base import Edit, Match, Rule

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def dedupe_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Drop issues with an identical parity key, keeping the first."""
    seen: set = set()
    unique: list[Issue] = []
    for issue in issues:
        key = issue.parity_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


def order_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Deterministic application order: line, then layer, then column, then rule."""
    return sorted(
        issues,
        key=lambda i: (i.location.line, i.layer, i.location.column, i.rule_name),
    )


def _is_deletion(edit: "Edit") -> bool:
    return edit.start < edit.end and edit.replacement == ""


def _line_emptied_by(text: str, start: int, end: int, others: Sequence["Edit"]) -> tuple[int, int]:
    """Widen a single-line deletion to its whole line when nothing else remains on it."""
    removed = text[start:end]
    if "\n" in removed or not removed.strip():
        return start, end
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = len(text)
    if text[line_start:start].strip() or text[end:line_end].strip():
        return start, end
    if any(other.start <= line_end and other.end >= line_start for other in others):
        return start, end
    if line_end < len(text):
        return line_start, line_end + 1
    return max(line_start - 1, 0), line_end


def _conflict(edit: "Edit", other: "Edit") -> bool:
    return edit.overlaps(other) and not (_is_deletion(edit) and _is_deletion(other))


def apply_edits(text: str, edits: Sequence["Edit"]) -> str:
    """
    Apply edits end-to-start. Deletions may overlap each other and are merged
    first; a merged deletion that leaves only blanks on its line takes the line.
    """
    others = [e for e in edits if not _is_deletion(e)]
    merged: list[tuple[int, int]] = []
    for edit in sorted((e for e in edits if _is_deletion(e)), key=lambda e: (e.start, e.end)):
        if merged and edit.start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], edit.end))
        else:
            merged.append((edit.start, edit.end))

    spans = [(*_line_emptied_by(text, start, end, others), "") for start, end in merged]
    spans.extend((e.start, e.end, e.replacement) for e in others)
    result = text
    for start, end, replacement in sorted(spans, key=lambda s: (s[0], s[1]), reverse=True):
        result = result[:start] + replacement + result[end:]
    return result


class _Candidate:
    __slots__ = ("issue", "rule", "edit")

    def __init__(self, issue: Issue, rule: "Rule", edit: "Edit") -> None:
        self.issue = issue
        self.rule = rule
        self.edit = edit


class FixApplier:
    """
    Applies rule rewrites for a list of issues.

    rules maps ruleName to Rule. Issues whose rule is missing or not fixable are
    skipped, never errors.
    """

    def __init__(self, rules: Mapping[str, "Rule"], clock: Clock = time.monotonic) -> None:
        self._rules = dict(rules)
        self._clock = clock

    def apply(
        self,
        source: str,
        issues: Sequence[Issue],
        context: AnalysisContext,
        *,
        timeout: Optional[float] = None,
    ) -> FixResult:
        if not issues:
            return FixResult(success=True, code=source, original_code=source)

        try:
            return self._apply(source, issues, context, timeout)
        except FixApplicationError as exc:
            logger.warning("Fix application failed for %s: %s", context.filename, exc)
            return self._failure(source, exc)
        except PipelineTimeoutError as exc:
            logger.warning("Fix application timed out for %s: %s", context.filename, exc)
            return self._failure(source, exc)

    @staticmethod
    def _failure(source: str, exc: Exception) -> FixResult:
        return FixResult(
            success=False,
            code=source,
            original_code=source,
            error=str(exc),
            error_type=type(exc).__name__,
        )

    def _apply(
        self,
        source: str,
        issues: Sequence[Issue],
        context: AnalysisContext,
        timeout: Optional[float],
    ) -> FixResult:
        started = self._clock()
        file_ctx = create_context(source, context)
        ordered = order_issues(dedupe_issues(issues))
        skipped: list[SkippedFix] = []
        candidates: list[_Candidate] = []
        matches_by_rule: dict[str, list["Match"]] = {}

        by_layer = sorted(ordered, key=lambda i: i.layer)
        for layer, group in groupby(by_layer, key=lambda i: i.layer):
            if timeout is not None:
                elapsed = self._clock() - started
                if elapsed > timeout:
                    raise PipelineTimeoutError(elapsed, timeout)
            for issue in group:
                candidate = self._candidate_for(file_ctx, issue, matches_by_rule, skipped)
                if candidate is not None:
                    candidates.append(candidate)

        accepted = self._resolve_overlaps(candidates, skipped)
        fixed = apply_edits(source, [c.edit for c in accepted])
        if fixed != source:
            self._validate(file_ctx, fixed)

        accepted.sort(
            key=lambda c: (c.issue.location.line, c.issue.layer, c.issue.location.column, c.rule.id)
        )
        applied = [
            AppliedFix(
                rule=c.rule.id,
                description=c.rule.fix_description or c.rule.description,
                location=c.issue.location,
                layer=c.issue.layer,
                old_code=source[c.edit.start : c.edit.end],
                new_code=c.edit.replacement,
            )
            for c in accepted
        ]
        logger.debug(
            "Applied %d fix(es), skipped %d for %s",
            len(applied),
            len(skipped),
            context.filename,
        )
        return FixResult(
            success=True,
            code=fixed,
            original_code=source,
            applied_fixes=applied,
            skipped_fixes=sorted(skipped, key=lambda s: (s.location.line, s.layer, s.location.column)),
            total_fixes=len(applied),
        )

    def _candidate_for(
        self,
        file_ctx: FileContext,
        issue: Issue,
        matches_by_rule: dict[str, list["Match"]],
        skipped: list[SkippedFix],
    ) -> Optional[_Candidate]:
        def skip(reason: str) -> None:
            skipped.append(
                SkippedFix(rule=issue.rule_name, location=issue.location, layer=issue.layer, reason=reason)
            )

        rule = self._rules.get(issue.rule_name)
        if rule is None or not rule.fixable:
            skip("no-rewrite")
            return None
        if rule.layer != issue.layer:
            skip("layer-mismatch")
            return None

        if rule.id not in matches_by_rule:
            matches_by_rule[rule.id] = rule.matches(file_ctx)
        match = rule.locate(file_ctx, issue, matches_by_rule[rule.id])
        if match is None:
            skip("target-not-found")
            return None

        try:
            edit = rule.edit(file_ctx, match)
        except Exception as exc:
            raise FixApplicationError(
                f"Rule {rule.id} could not rewrite line {issue.location.line}: {exc}",
                rule=rule.id,
            ) from exc
        if edit is None:
            skip("not-rewritable")
            return None
        if not 0 <= edit.start <= edit.end <= len(file_ctx.text):
            raise FixApplicationError(
                f"Rule {rule.id} produced an edit outside the source ({edit.start}..{edit.end})",
                rule=rule.id,
            )
        return _Candidate(issue, rule, edit)

    @staticmethod
    def _resolve_overlaps(candidates: list[_Candidate], skipped: list[SkippedFix]) -> list[_Candidate]:
        """
        Accept candidates by priority (layer, line, column); later overlapping ones
        lose. Two deletions never conflict, apply_edits merges them.
        """
        accepted: list[_Candidate] = []
        for cand in sorted(
            candidates,
            key=lambda c: (c.issue.layer, c.issue.location.line, c.issue.location.column, c.rule.id),
        ):
            if any(_conflict(cand.edit, other.edit) for other in accepted):
                skipped.append(
                    SkippedFix(
                        rule=cand.rule.id,
                        location=cand.issue.location,
                        layer=cand.issue.layer,
                        reason="overlap",
                    )
                )
                continue
            accepted.append(cand)
        return accepted

    @staticmethod
    def _validate(file_ctx: FileContext, fixed: str) -> None:
        """The rewritten text must parse whenever the input did."""
        if file_ctx.language is None or file_ctx.has_parse_errors:
            return
        tree = parse_text(fixed, language=file_ctx.language)
        if tree.root_node.has_error:
            raise FixApplicationError("Rewritten code failed validation: syntax errors introduced")
