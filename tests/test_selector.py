"""Tests for layer selection: parsing, validation and the "auto" heuristics."""

import pytest

from neurolint.context import AnalysisContext
from neurolint.errors import InvalidLayerError
from neurolint.selector import AUTO, auto_layers, parse_layers, resolve, validate_layers


def test_parse_layers_forms():
    assert parse_layers(None) == AUTO
    assert parse_layers("auto") == AUTO
    assert parse_layers(" AUTO ") == AUTO
    assert parse_layers("3") == [3]
    assert parse_layers("1, 2,3") == [1, 2, 3]
    assert parse_layers([4, 2]) == [4, 2]
    assert parse_layers((1,)) == [1]


@pytest.mark.parametrize("value", ["", "1,,2", "one", "1.5", [1, "2"], [True], 3.0])
def test_parse_layers_rejects_garbage(value):
    with pytest.raises(InvalidLayerError):
        parse_layers(value)


def test_validate_layers_sorts_and_dedupes():
    assert validate_layers([3, 1, 3, 2]) == [1, 2, 3]


def test_validate_layers_rejects_out_of_range():
    with pytest.raises(InvalidLayerError) as info:
        validate_layers([2, 99, 0])
    assert info.value.layers == [99, 0]
    assert "between 1 and 8" in str(info.value)


def test_validate_layers_rejects_empty():
    with pytest.raises(InvalidLayerError, match="No layers requested"):
        validate_layers([])


def test_resolve_explicit_ignores_file():
    """An explicit selection is used as is, whatever the file looks like."""
    ctx = AnalysisContext(filename="tsconfig.json")
    assert resolve([7, 2], ctx) == [2, 7]
    assert resolve("5", ctx) == [5]


def test_auto_config_files():
    assert auto_layers(AnalysisContext(filename="tsconfig.json")) == [1, 8]
    assert auto_layers(AnalysisContext(filename="package.json")) == [1, 8]
    assert auto_layers(AnalysisContext(filename="next.config.js")) == [1, 8]
    assert auto_layers(AnalysisContext(filename="data.json")) == [1]


def test_auto_plain_script():
    """A plain module with no React markers gets the generic layers only."""
    source = "export function add(a, b) { return a + b; }\n"
    assert auto_layers(AnalysisContext(filename="math.js"), source) == [2, 7, 8]


def test_auto_react_component():
    source = "import React from 'react';\nexport const A = () => <div />;\n"
    assert auto_layers(AnalysisContext(filename="A.jsx"), source) == [2, 3, 4, 5, 7, 8]


def test_auto_browser_globals_add_hydration():
    source = "export const width = () => window.innerWidth;\n"
    assert 4 in auto_layers(AnalysisContext(filename="size.js"), source)


def test_auto_app_router_and_tests():
    page = AnalysisContext(filename="page.tsx", file_path="src/app/dashboard/page.tsx")
    assert auto_layers(page, "export default function Page() { return null; }") == [2, 3, 4, 5, 6, 7, 8]

    test_file = AnalysisContext(filename="Button.test.js", file_path="src/Button.test.js")
    assert 6 in auto_layers(test_file, "test('x', () => {});")


def test_auto_is_deterministic():
    ctx = AnalysisContext(filename="Widget.tsx")
    source = "import { useState } from 'react';\n"
    assert auto_layers(ctx, source) == auto_layers(ctx, source)


def test_resolve_auto_uses_source():
    ctx = AnalysisContext(filename="hooks.js")
    assert 5 in resolve("auto", ctx, "const [a, setA] = useState(0);")
    assert 5 not in resolve("auto", ctx, "const a = 0;")
