"""Unit tests for layer 4: browser globals accessed during server render."""

from neurolint.context import AnalysisContext
from neurolint.layers.hydration import HydrationLayer
from neurolint.pipeline import Mode, Pipeline


def _run_layer(source: str, filename: str = "Widget.jsx") -> list:
    return HydrationLayer().detect(source, AnalysisContext(filename=filename))


def _fix(source: str, filename: str = "Widget.jsx") -> str:
    return Pipeline().run(source, [4], Mode.FIX, AnalysisContext(filename=filename)).transformed_code


def test_unguarded_access_in_render_is_error():
    source = "function Widget() {\n  const width = window.innerWidth;\n  return <div>{width}</div>;\n}\n"
    issues = _run_layer(source)
    assert len(issues) == 1
    issue = issues[0]
    assert issue.rule_name == "ssr-safety"
    assert issue.severity.value == "error"
    assert issue.message == "Unguarded window access during render"
    assert (issue.location.line, issue.location.column) == (2, 17)


def test_access_inside_use_effect_is_safe():
    source = (
        "function Widget() {\n"
        "  useEffect(() => {\n"
        "    document.title = 'x';\n"
        "  }, []);\n"
        "  return null;\n"
        "}\n"
    )
    assert _run_layer(source) == []


def test_event_handlers_are_safe():
    source = (
        "function Widget() {\n"
        "  const handleClick = () => localStorage.setItem('k', '1');\n"
        "  return <button onClick={() => window.scrollTo(0, 0)}>x</button>;\n"
        "}\n"
    )
    assert _run_layer(source) == []


def test_typeof_guards_are_safe():
    source = (
        "const a = typeof window !== 'undefined' ? window.innerWidth : 0;\n"
        "if (typeof document !== 'undefined') { document.body.focus(); }\n"
        "const b = typeof navigator !== 'undefined' && navigator.language;\n"
    )
    assert _run_layer(source, "guards.js") == []


def test_early_return_guard_is_safe():
    source = (
        "function read() {\n"
        "  if (typeof window === 'undefined') return null;\n"
        "  return window.localStorage.getItem('k');\n"
        "}\n"
    )
    assert _run_layer(source, "read.js") == []


def test_inverted_typeof_guard_is_reported():
    """A branch that runs only when window is undefined does not protect the access."""
    source = "if (typeof window === 'undefined') { window.scrollTo(0, 0); }\n"
    issues = _run_layer(source, "a.js")
    assert [i.rule_name for i in issues] == ["ssr-safety"]


def test_else_branch_of_undefined_check_is_safe():
    source = (
        "if (typeof window === 'undefined') { render(); } else { window.scrollTo(0, 0); }\n"
        "const closed = typeof window === 'undefined' || window.closed;\n"
    )
    assert _run_layer(source, "a.js") == []


def test_early_return_in_the_browser_does_not_guard():
    source = (
        "function read() {\n"
        "  if (typeof window !== 'undefined') return null;\n"
        "  return window.localStorage.getItem('k');\n"
        "}\n"
    )
    assert len(_run_layer(source, "read.js")) == 1


def test_typeof_operand_itself_not_reported():
    assert _run_layer("const hasWindow = typeof window.document;\n", "a.js") == []


def test_statement_fix_wraps_in_guard():
    source = "function f() {\n  window.scrollTo(0, 0);\n}\n"
    assert _fix(source, "f.js") == (
        'function f() {\n  if (typeof window !== "undefined") { window.scrollTo(0, 0); }\n}\n'
    )


def test_expression_fix_uses_conditional():
    source = "const width = window.innerWidth;\n"
    assert _fix(source, "w.js") == (
        'const width = (typeof window !== "undefined" ? window.innerWidth : undefined);\n'
    )


def test_assignment_target_not_rewritten():
    source = "const r = (window.name = 'x');\n"
    issues = _run_layer(source, "a.js")
    assert len(issues) == 1
    assert _fix(source, "a.js") == source


def test_json_files_skipped():
    assert _run_layer('{"window": {"innerWidth": 1}}', "data.json") == []
