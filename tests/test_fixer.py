"""Tests for FixApplier: relocation, conflicts, skips and all-or-nothing failure."""

import itertools
import re

import pytest

from neurolint.context import AnalysisContext, create_context
from neurolint.errors import FixApplicationError
from neurolint.findings.models import Issue, Location, Severity
from neurolint.fixer import FixApplier, apply_edits, dedupe_issues, order_issues
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.patterns import PatternsLayer

CTX = AnalysisContext(filename="a.js")


class _WordRule(Rule):
    """Replaces every occurrence of a word; used to build conflicting edits."""

    severity = Severity.INFO
    requires_tree = False

    def __init__(self, rule_id, layer, word, replacement):
        self.id = rule_id
        self.layer = layer
        self.name = rule_id
        self.word = word
        self.replacement = replacement

    def find(self, context):
        for m in re.finditer(re.escape(self.word), context.text):
            yield Match(m.start(), m.end(), f"found {self.word}")

    def edit(self, context, match):
        return Edit(match.start, match.end, self.replacement)


class _BrokenRule(_WordRule):
    def edit(self, context, match):
        raise RuntimeError("cannot rewrite")


def _issues(rule, text, ctx=CTX):
    return rule.run(create_context(text, ctx))


def _patterns_applier():
    return FixApplier(PatternsLayer().rules_by_id)


def test_no_issues_returns_source():
    result = _patterns_applier().apply("const a = 1;\n", [], CTX)
    assert result.success
    assert result.code == "const a = 1;\n"
    assert result.total_fixes == 0


def test_console_statement_removed_with_its_line():
    source = "console.log('a');\nconst x = 1;\n"
    issues = PatternsLayer().detect(source, CTX)
    result = _patterns_applier().apply(source, issues, CTX)
    assert result.success
    assert result.code == "const x = 1;\n"
    assert [f.rule for f in result.applied_fixes] == ["no-console"]
    assert result.applied_fixes[0].old_code == "console.log('a');\n"
    assert result.original_code == source


def test_unknown_rule_is_skipped_not_an_error():
    issue = Issue(
        severity=Severity.INFO,
        message="?",
        layer=2,
        location=Location(line=1, column=1),
        rule_name="does-not-exist",
    )
    result = _patterns_applier().apply("var a = 1;\n", [issue], CTX)
    assert result.success
    assert result.code == "var a = 1;\n"
    assert [s.reason for s in result.skipped_fixes] == ["no-rewrite"]


def test_stale_location_is_skipped():
    source = "var a = 1;\n"
    issue = PatternsLayer().detect(source, CTX)[0]
    moved = issue.model_copy(update={"location": Location(line=5, column=1)})
    result = _patterns_applier().apply(source, [moved], CTX)
    assert result.success
    assert result.code == source
    assert result.skipped_fixes[0].reason == "target-not-found"


def test_overlap_lower_layer_wins():
    low = _WordRule("low", 2, "foo", "bar")
    high = _WordRule("high", 3, "foo", "baz")
    source = "const foo = 1;\n"
    issues = _issues(high, source) + _issues(low, source)
    result = FixApplier({"low": low, "high": high}).apply(source, issues, CTX)
    assert result.success
    assert result.code == "const bar = 1;\n"
    assert [s.rule for s in result.skipped_fixes] == ["high"]
    assert result.skipped_fixes[0].reason == "overlap"


def test_duplicate_issues_apply_once():
    rule = _WordRule("w", 2, "foo", "bar")
    source = "foo;\n"
    issues = _issues(rule, source) * 2
    result = FixApplier({"w": rule}).apply(source, issues, CTX)
    assert result.code == "bar;\n"
    assert result.total_fixes == 1


def test_rule_exception_returns_original_code():
    """A rewrite that raises fails the whole application; input comes back untouched."""
    good = _WordRule("good", 2, "foo", "bar")
    broken = _BrokenRule("broken", 3, "qux", "")
    source = "foo(qux);\n"
    issues = _issues(good, source) + _issues(broken, source)
    result = FixApplier({"good": good, "broken": broken}).apply(source, issues, CTX)
    assert result.success is False
    assert result.code == source
    assert result.error_type == "FixApplicationError"
    assert "broken" in result.error
    assert result.applied_fixes == []


def test_edit_that_breaks_syntax_is_rejected():
    rule = _WordRule("breaker", 2, "1;", "1 +")
    source = "const a = 1;\n"
    result = FixApplier({"breaker": rule}).apply(source, _issues(rule, source), CTX)
    assert result.success is False
    assert result.code == source
    assert "validation" in result.error


def test_timeout_between_layers():
    rule = _WordRule("w", 2, "foo", "bar")
    ticks = itertools.count()
    applier = FixApplier({"w": rule}, clock=lambda: float(next(ticks)))
    result = applier.apply("foo;\n", _issues(rule, "foo;\n"), CTX, timeout=0.5)
    assert result.success is False
    assert result.error_type == "PipelineTimeoutError"
    assert result.code == "foo;\n"


def test_apply_edits_end_to_start():
    text = "abcdef"
    edits = [Edit(0, 1, "X"), Edit(3, 3, "-"), Edit(5, 6, "")]
    assert apply_edits(text, edits) == "Xbc-de"


def test_edit_overlap_rules():
    assert Edit(2, 2, "a").overlaps(Edit(2, 2, "b"))
    assert not Edit(2, 2, "a").overlaps(Edit(2, 4, "b"))
    assert Edit(3, 3, "a").overlaps(Edit(2, 4, "b"))
    assert Edit(0, 3, "").overlaps(Edit(2, 5, ""))
    assert not Edit(0, 2, "").overlaps(Edit(2, 5, ""))


def test_overlapping_deletions_are_merged():
    assert apply_edits("a; b;\nc;\n", [Edit(0, 3, ""), Edit(2, 5, "")]) == "c;\n"
    assert apply_edits("a; b; c;\n", [Edit(0, 3, ""), Edit(3, 5, "")]) == " c;\n"


def test_dedupe_and_order():
    def make(line, layer, rule):
        return Issue(
            severity=Severity.INFO,
            message="m",
            layer=layer,
            location=Location(line=line, column=1),
            rule_name=rule,
        )

    a, b, c = make(2, 2, "x"), make(1, 5, "y"), make(1, 3, "z")
    assert dedupe_issues([a, a, b]) == [a, b]
    assert order_issues([a, b, c]) == [c, b, a]


class _RenameLayer(Layer):
    number = 2
    name = "Rename"
    description = "foo becomes bar"
    rules = (_WordRule("rename", 2, "foo", "bar"),)


class _BrokenLayer(Layer):
    number = 3
    name = "Broken"
    description = "every rewrite raises"
    rules = (_BrokenRule("broken", 3, "qux", ""),)


def test_layer_fix_returns_rewritten_text():
    layer = _RenameLayer()
    source = "foo(1);\nfoo(2);\n"
    issues = layer.detect(source, CTX)
    assert layer.fix(source, issues, CTX) == "bar(1);\nbar(2);\n"
    result = layer.apply_fixes(source, issues, CTX)
    assert result.success
    assert result.total_fixes == 2


def test_layer_fix_raises_when_a_rewrite_fails():
    layer = _BrokenLayer()
    source = "qux();\n"
    issues = layer.detect(source, CTX)
    with pytest.raises(FixApplicationError) as info:
        layer.fix(source, issues, CTX)
    assert "broken" in str(info.value)
    assert layer.apply_fixes(source, issues, CTX).code == source
