# Layer 6, testing compatibility: error boundaries on route components and test
# utilities that moved or lost support in React 18/19.

from __future__ import annotations

import re
from typing import Iterable, Optional

from neurolint.context import FileContext, walk
from neurolint.findings.models import Severity
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.syntax import (
    import_sources,
    imported_names,
    quote_of,
    string_value,
    text_of,
)

_ROUTE_COMPONENT = re.compile(r"^\w+(Page|Layout)$")


class ErrorBoundaryRule(Rule):
    id = "error-boundary"
    layer = 6
    name = "Missing error boundary"
    description = "Route components without an error boundary unmount the whole tree on a render error"
    severity = Severity.INFO
    category = "testing"
    remediation = "Wrap the component in an ErrorBoundary or add an error.tsx segment"

    def find(self, context: FileContext) -> Iterable[Match]:
        if "ErrorBoundary" in context.text:
            return
        for node in walk(context.root_node):
            if node.type != "export_statement":
                continue
            if not any(child.type == "default" for child in node.children):
                continue
            declaration = node.child_by_field_name("declaration") or node.child_by_field_name("value")
            if declaration is None or declaration.type not in ("function_declaration", "function_expression", "function"):
                continue
            name = text_of(context, declaration.child_by_field_name("name"))
            if not _ROUTE_COMPONENT.match(name):
                continue
            start, end = context.node_range(node)
            yield Match(start, end, f'Page component "{name}" may need an error boundary', node=node)


class ActImportRule(Rule):
    """
    `act` moved from react-dom/test-utils to react.

    Rewritten only when act is the sole import; other test-utils exports were
    removed in React 19 and need a manual migration.
    """

    id = "test-utils-act"
    layer = 6
    name = "act from react-dom/test-utils"
    description = "react-dom/test-utils is deprecated; act is exported from react"
    severity = Severity.WARNING
    category = "testing"
    remediation = "import { act } from 'react'"
    fix_description = "Imported act from react"

    def find(self, context: FileContext) -> Iterable[Match]:
        for stmt, source in import_sources(context.root_node):
            if string_value(context, source) != "react-dom/test-utils":
                continue
            names, has_default = imported_names(context, stmt)
            if "act" not in names:
                continue
            start, end = context.node_range(stmt)
            yield Match(
                start,
                end,
                "Import act from react instead of react-dom/test-utils",
                node=source,
                data={"rewritable": names == {"act"} and not has_default},
            )

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        if not match.data["rewritable"]:
            return None
        source = match.node
        start, end = context.node_range(source)
        quote = quote_of(context, source)
        return Edit(start, end, f"{quote}react{quote}")


class EnzymeRule(Rule):
    id = "enzyme-usage"
    layer = 6
    name = "Enzyme"
    description = "Enzyme has no adapter for React 18 or later"
    severity = Severity.INFO
    category = "testing"
    remediation = "Migrate the test to React Testing Library"

    def find(self, context: FileContext) -> Iterable[Match]:
        for stmt, source in import_sources(context.root_node):
            module = string_value(context, source) or ""
            if module == "enzyme" or module.startswith("enzyme-adapter-") or module.startswith("@wojtekmaj/enzyme-adapter-"):
                start, end = context.node_range(stmt)
                yield Match(start, end, f"Enzyme import from {module} is not supported with React 18+", node=stmt)


class ReactTestingLayer(Layer):
    number = 6
    name = "Testing"
    description = "Error boundaries and React testing utility migrations"
    rules = (ErrorBoundaryRule(), ActImportRule(), EnzymeRule())
