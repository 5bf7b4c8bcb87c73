"""Unit tests for layer 2: console statements, var declarations, HTML entities."""

from neurolint.context import AnalysisContext
from neurolint.layers.patterns import PatternsLayer
from neurolint.pipeline import Mode, Pipeline


def _run_layer(source: str, filename: str = "test.js") -> list:
    """Detect with layer 2 only and return the issues."""
    return PatternsLayer().detect(source, AnalysisContext(filename=filename))


def _fix(source: str, filename: str = "test.js") -> str:
    result = Pipeline().run(source, [2], Mode.FIX, AnalysisContext(filename=filename))
    return result.transformed_code


def test_clean_code_has_no_issues():
    assert _run_layer("const x = 1;\nexport default x;\n") == []


def test_console_methods_detected():
    source = "console.log(1);\nconsole.warn(2);\nconsole.table(3);\n"
    issues = _run_layer(source)
    assert [i.message for i in issues] == [
        "Remove console.log statement",
        "Remove console.warn statement",
    ]


def test_console_in_nested_expression_reported_but_not_fixed():
    source = "const value = compute(console.log('x'));\n"
    issues = _run_layer(source)
    assert [i.rule_name for i in issues] == ["no-console"]
    assert _fix(source) == source


def test_console_arrow_body_becomes_empty_block():
    assert _fix("const log = () => console.log('x');\n") == "const log = () => {};\n"


def test_console_unbraced_if_body_keeps_a_statement():
    assert _fix("if (debug) console.log('x');\n") == "if (debug) {}\n"


def test_console_removed_from_block():
    source = "function f() {\n  console.debug('a');\n  return 1;\n}\n"
    assert _fix(source) == "function f() {\n  return 1;\n}\n"


def test_console_sharing_a_line_removes_only_the_call():
    source = "let a = 1; console.log(a);\n"
    assert _fix(source) == "let a = 1;\n"


def test_console_before_code_on_its_line_takes_the_gap():
    source = "function f() {\n  console.log(1); return 2;\n}\n"
    assert _fix(source) == "function f() {\n  return 2;\n}\n"


def test_two_console_calls_on_one_line_remove_the_line():
    source = "function f() {\n  console.log(1); console.warn(2);\n  return 3;\n}\n"
    assert _fix(source) == "function f() {\n  return 3;\n}\n"


def test_var_replaced_with_let():
    issues = _run_layer("var count = 0;\n")
    assert [(i.rule_name, i.severity.value) for i in issues] == [("no-var", "info")]
    assert _fix("var count = 0;\n") == "let count = 0;\n"


def test_let_and_const_untouched():
    assert _run_layer("let a = 1;\nconst b = 2;\n") == []


def test_html_entities_in_strings():
    source = 'const title = "Tom &amp; Jerry";\n'
    issues = _run_layer(source)
    assert [i.message for i in issues] == ['HTML entity "&amp;" should be converted']
    assert _fix(source) == 'const title = "Tom & Jerry";\n'


def test_html_entity_matching_the_quote_is_left_alone():
    source = 'const s = "say &quot;hi&quot;";\n'
    assert _run_layer(source) == []


def test_html_entity_in_jsx_attribute_ignored():
    source = 'const a = <input placeholder="a &amp; b" />;\n'
    assert _run_layer(source, "a.jsx") == []


def test_double_escaped_entity_left_alone():
    assert _run_layer("const s = 'a &amp;lt; b';\n") == []


def test_several_entities_in_one_string():
    source = "const s = '&lt;b&gt;';\n"
    assert _fix(source) == "const s = '<b>';\n"
