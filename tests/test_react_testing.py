"""Unit tests for layer 6: error boundaries and React test utility migrations."""

from neurolint.context import AnalysisContext
from neurolint.layers.testing import ReactTestingLayer
from neurolint.pipeline import Mode, Pipeline

TEST_FILE = AnalysisContext(filename="Button.test.jsx", file_path="src/Button.test.jsx")


def _run_layer(source: str, context: AnalysisContext = TEST_FILE) -> list:
    return ReactTestingLayer().detect(source, context)


def _fix(source: str, context: AnalysisContext = TEST_FILE) -> str:
    return Pipeline().run(source, [6], Mode.FIX, context).transformed_code


def test_page_component_without_error_boundary():
    ctx = AnalysisContext(filename="page.tsx", file_path="app/dashboard/page.tsx")
    source = "export default function DashboardPage() {\n  return <main />;\n}\n"
    issues = _run_layer(source, ctx)
    assert [(i.rule_name, i.severity.value) for i in issues] == [("error-boundary", "info")]
    assert issues[0].message == 'Page component "DashboardPage" may need an error boundary'


def test_error_boundary_present():
    ctx = AnalysisContext(filename="layout.tsx")
    source = (
        "import { ErrorBoundary } from 'react-error-boundary';\n"
        "export default function RootLayout({ children }) {\n"
        "  return <ErrorBoundary>{children}</ErrorBoundary>;\n"
        "}\n"
    )
    assert _run_layer(source, ctx) == []


def test_non_route_component_ignored():
    ctx = AnalysisContext(filename="Button.tsx")
    assert _run_layer("export default function Button() { return null; }\n", ctx) == []


def test_act_import_rewritten():
    source = "import { act } from 'react-dom/test-utils';\n"
    issues = _run_layer(source)
    assert [(i.rule_name, i.location.line, i.location.column) for i in issues] == [("test-utils-act", 1, 1)]
    assert _fix(source) == "import { act } from 'react';\n"


def test_act_with_other_test_utils_not_rewritten():
    source = 'import { act, Simulate } from "react-dom/test-utils";\n'
    assert len(_run_layer(source)) == 1
    assert _fix(source) == source


def test_enzyme_imports():
    source = "import { shallow } from 'enzyme';\nimport Adapter from 'enzyme-adapter-react-16';\n"
    issues = _run_layer(source)
    assert [i.rule_name for i in issues] == ["enzyme-usage", "enzyme-usage"]
    assert issues[1].message == "Enzyme import from enzyme-adapter-react-16 is not supported with React 18+"


def test_testing_library_is_fine():
    assert _run_layer("import { render, screen } from '@testing-library/react';\n") == []
