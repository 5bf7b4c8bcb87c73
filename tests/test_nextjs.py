"""Unit tests for layer 5: App Router directives and imports, React 19 migrations."""

from neurolint.context import AnalysisContext, create_context
from neurolint.layers.nextjs import FrameworkMigrationLayer, is_app_router_file
from neurolint.pipeline import Mode, Pipeline

PAGE = AnalysisContext(filename="page.tsx", file_path="src/app/page.tsx")

COUNTER = """import { useState } from 'react';

export default function Page() {
  const [n, setN] = useState(0);
  return <button onClick={() => setN(n + 1)}>{n}</button>;
}
"""


def _run_layer(source: str, context: AnalysisContext = PAGE) -> list:
    return FrameworkMigrationLayer().detect(source, context)


def _fix(source: str, context: AnalysisContext = PAGE) -> str:
    return Pipeline().run(source, [5], Mode.FIX, context).transformed_code


def test_app_router_detection():
    def check(filename, file_path=None):
        return is_app_router_file(create_context("", AnalysisContext(filename=filename, file_path=file_path)))

    assert check("page.tsx", "src/app/page.tsx")
    assert check("Widget.tsx", "app/components/Widget.tsx")
    assert check("layout.tsx")
    assert check("not-found.tsx")
    assert not check("Widget.tsx", "src/components/Widget.tsx")
    assert not check("Pagination.tsx", "src/components/Pagination.tsx")
    assert not check("homepage.tsx", "src/views/homepage.tsx")


def test_hook_without_use_client():
    issues = _run_layer(COUNTER)
    assert [(i.rule_name, i.location.line, i.location.column) for i in issues] == [("use-client", 1, 1)]
    assert issues[0].message == "Hook \"useState\" requires 'use client' directive"


def test_use_client_fix_prepends_directive():
    fixed = _fix(COUNTER)
    assert fixed == "'use client';\n\n" + COUNTER
    assert _run_layer(fixed) == []


def test_existing_directive_respected():
    assert _run_layer('"use client";\n' + COUNTER) == []
    assert _run_layer("'use server';\n" + COUNTER) == []


def test_hooks_outside_app_router_ignored():
    ctx = AnalysisContext(filename="Counter.tsx", file_path="src/components/Counter.tsx")
    assert _run_layer(COUNTER, ctx) == []


def test_react_namespace_hook():
    source = "import React from 'react';\nexport default function Page() {\n  React.useEffect(() => {}, []);\n  return null;\n}\n"
    issues = _run_layer(source)
    assert issues[0].message == "Hook \"useEffect\" requires 'use client' directive"


def test_next_router_import_rewritten():
    source = "'use client';\nimport { useRouter } from 'next/router';\n"
    issues = _run_layer(source)
    assert [i.rule_name for i in issues] == ["next-navigation-import"]
    assert _fix(source) == "'use client';\nimport { useRouter } from 'next/navigation';\n"


def test_next_router_default_import_reported_not_rewritten():
    source = "import Router from 'next/router';\n"
    assert len(_run_layer(source)) == 1
    assert _fix(source) == source


def test_forward_ref_info():
    source = "const Input = React.forwardRef((props, ref) => <input ref={ref} />);\n"
    ctx = AnalysisContext(filename="Input.jsx")
    issues = _run_layer(source, ctx)
    assert [(i.rule_name, i.severity.value) for i in issues] == [("react19-migration", "info")]
    assert issues[0].message == "forwardRef is deprecated in React 19"


def test_legacy_render_calls():
    ctx = AnalysisContext(filename="index.js")
    namespaced = "ReactDOM.render(<App />, root);\n"
    assert [i.rule_name for i in _run_layer(namespaced, ctx)] == ["react19-render"]

    imported = "import { hydrate } from 'react-dom';\nhydrate(<App />, root);\n"
    issues = _run_layer(imported, ctx)
    assert [i.message for i in issues] == ["ReactDOM.hydrate is removed in React 19; use hydrateRoot"]


def test_unrelated_render_not_reported():
    ctx = AnalysisContext(filename="index.js")
    assert _run_layer("render(<App />);\n", ctx) == []
