"""Tests for neurolint.context: AnalysisContext, FileContext offsets, create_context."""

from neurolint.context import (
    DEFAULT_FILENAME,
    AnalysisContext,
    ancestors,
    create_context,
    get_line_col,
    get_source_span,
    walk,
)
from neurolint.findings.models import Issue, Location, Severity


def test_default_context_is_tsx():
    ctx = AnalysisContext()
    assert ctx.filename == DEFAULT_FILENAME == "unknown.tsx"
    assert ctx.language == "tsx"
    assert ctx.prior_issues == ()


def test_file_path_kept_verbatim():
    """file_path is not normalized; only path_hint swaps separators."""
    ctx = AnalysisContext(filename="page.tsx", file_path="src\\app\\page.tsx")
    assert ctx.file_path == "src\\app\\page.tsx"
    assert ctx.path_hint == "src/app/page.tsx"
    assert ctx.basename == "page.tsx"


def test_language_falls_back_to_file_path():
    ctx = AnalysisContext(filename="component", file_path="src/component.jsx")
    assert ctx.language == "javascript"


def test_with_prior_issues_returns_copy():
    issue = Issue(
        severity=Severity.WARNING,
        message="m",
        layer=2,
        location=Location(line=1, column=1),
        rule_name="no-console",
    )
    base = AnalysisContext(filename="a.js")
    derived = base.with_prior_issues([issue])
    assert base.prior_issues == ()
    assert derived.prior_issues == (issue,)
    assert derived.filename == "a.js"


def test_create_context_parses_source():
    ctx = create_context("const x = 1;\n", AnalysisContext(filename="a.js"))
    assert ctx.tree is not None
    assert ctx.language == "javascript"
    assert ctx.has_parse_errors is False
    assert ctx.root_node.type == "program"


def test_create_context_unknown_type_has_no_tree():
    ctx = create_context("# title\n", AnalysisContext(filename="README.md"))
    assert ctx.tree is None
    assert ctx.root_node is None
    assert ctx.language is None


def test_create_context_malformed_still_returns_context():
    ctx = create_context("function (", AnalysisContext(filename="bad.js"))
    assert ctx.tree is not None
    assert ctx.has_parse_errors is True


def test_line_col_one_based():
    ctx = create_context("let a;\nlet b;\n", AnalysisContext(filename="a.js"))
    assert ctx.line_col(0) == (1, 1)
    assert ctx.line_col(7) == (2, 1)
    assert ctx.line_col(11) == (2, 5)
    assert ctx.line_count == 3


def test_offset_of_inverts_line_col():
    ctx = create_context("let a;\nlet b;", AnalysisContext(filename="a.js"))
    assert ctx.offset_of(2, 5) == 11
    assert ctx.offset_of(1, 1) == 0
    assert ctx.offset_of(5, 1) is None
    assert ctx.offset_of(1, 50) is None


def test_columns_count_characters_not_bytes():
    """A multi-byte character before a node shifts bytes but not columns."""
    text = 'const s = "é"; console.log(s);\n'
    ctx = create_context(text, AnalysisContext(filename="a.js"))
    call = next(n for n in walk(ctx.root_node) if n.type == "call_expression")
    assert call.start_byte == text.index("console") + 1
    assert get_line_col(ctx, call) == (1, text.index("console") + 1)
    start, end = ctx.node_range(call)
    assert text[start:end] == "console.log(s)"
    assert ctx.byte_offset(start) == call.start_byte


def test_get_source_span():
    ctx = create_context("let answer = 42;", AnalysisContext(filename="a.js"))
    number = next(n for n in walk(ctx.root_node) if n.type == "number")
    assert get_source_span(ctx, number) == "42"


def test_ancestors_innermost_first():
    ctx = create_context("function f() { return 1; }", AnalysisContext(filename="a.js"))
    number = next(n for n in walk(ctx.root_node) if n.type == "number")
    kinds = [a.type for a in ancestors(number)]
    assert kinds[0] == "return_statement"
    assert kinds[-1] == "program"
