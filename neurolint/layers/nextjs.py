# Layer 5, framework migration: Next.js App Router directives and imports, React 19
# API removals.

from __future__ import annotations

import re
from typing import Iterable, Optional

from neurolint.context import FileContext, walk
from neurolint.findings.models import Severity
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.syntax import (
    call_name,
    has_directive,
    import_sources,
    imported_names,
    quote_of,
    string_value,
)

CLIENT_HOOKS = frozenset(
    {
        "useState",
        "useEffect",
        "useContext",
        "useReducer",
        "useCallback",
        "useMemo",
        "useRef",
        "useLayoutEffect",
        "useTransition",
        "useDeferredValue",
        "useSyncExternalStore",
        "useImperativeHandle",
        "useOptimistic",
        "useActionState",
    }
)

APP_ROUTER_FILES = frozenset({"page", "layout", "template", "loading", "error", "not-found", "default"})

_STEM = re.compile(r"^([^.]+)")


def is_app_router_file(context: FileContext) -> bool:
    """
    Heuristic for Next.js App Router modules: anything under an app/ directory,
    or a file named like one of the route segment conventions (page, layout, ...).
    """
    path = context.analysis.path_hint
    if "/app/" in path or path.startswith("app/"):
        return True
    stem = _STEM.match(context.analysis.basename)
    return bool(stem and stem.group(1) in APP_ROUTER_FILES)


class UseClientRule(Rule):
    """
    Hooks used in an App Router module that lacks the "use client" directive.

    One issue per file, at 1:1, naming the first hook used.
    """

    id = "use-client"
    layer = 5
    name = "Missing use client"
    description = "Components using React hooks must be Client Components in the App Router"
    severity = Severity.WARNING
    category = "nextjs"
    remediation = "Add 'use client' at the top of the file"
    fix_description = "Added 'use client' directive"

    def applies_to(self, context: FileContext) -> bool:
        return (
            super().applies_to(context)
            and context.language != "json"
            and is_app_router_file(context)
        )

    def find(self, context: FileContext) -> Iterable[Match]:
        if has_directive(context, "use client") or has_directive(context, "use server"):
            return
        for node in walk(context.root_node):
            if node.type != "call_expression":
                continue
            name = call_name(context, node)
            if not name:
                continue
            hook = name.rsplit(".", 1)[-1] if name.startswith("React.") else name
            if hook in CLIENT_HOOKS:
                yield Match(0, 0, f"Hook \"{hook}\" requires 'use client' directive")
                return

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        return Edit(0, 0, "'use client';\n\n")


class NextNavigationImportRule(Rule):
    """next/router is Pages Router only; App Router modules import from next/navigation."""

    id = "next-navigation-import"
    layer = 5
    name = "next/router in App Router"
    description = "next/router does not work in the App Router"
    severity = Severity.WARNING
    category = "nextjs"
    remediation = "Import useRouter from next/navigation"
    fix_description = "Switched import to next/navigation"

    def applies_to(self, context: FileContext) -> bool:
        return (
            super().applies_to(context)
            and context.language != "json"
            and is_app_router_file(context)
        )

    def find(self, context: FileContext) -> Iterable[Match]:
        for stmt, source in import_sources(context.root_node):
            if string_value(context, source) != "next/router":
                continue
            names, has_default = imported_names(context, stmt)
            start, end = context.node_range(source)
            yield Match(
                start,
                end,
                "Use next/navigation instead of next/router in the App Router",
                node=source,
                data={"rewritable": not has_default and names <= {"useRouter"}},
            )

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        if not match.data["rewritable"]:
            # withRouter and the default Router export have no next/navigation equivalent.
            return None
        quote = quote_of(context, match.node)
        return Edit(match.start, match.end, f"{quote}next/navigation{quote}")


class ForwardRefRule(Rule):
    id = "react19-migration"
    layer = 5
    name = "forwardRef"
    description = "React 19 passes ref as a regular prop; forwardRef is no longer needed"
    severity = Severity.INFO
    category = "migration"
    remediation = "Convert to direct ref prop pattern"

    def find(self, context: FileContext) -> Iterable[Match]:
        for node in walk(context.root_node):
            if node.type != "call_expression":
                continue
            if call_name(context, node) in ("forwardRef", "React.forwardRef"):
                start, end = context.node_range(node)
                yield Match(start, end, "forwardRef is deprecated in React 19", node=node)


class LegacyRenderRule(Rule):
    """ReactDOM.render and ReactDOM.hydrate were removed in React 19."""

    id = "react19-render"
    layer = 5
    name = "Legacy root API"
    description = "ReactDOM.render and ReactDOM.hydrate were removed in React 19"
    severity = Severity.WARNING
    category = "migration"
    remediation = "Use createRoot(container).render(...) or hydrateRoot(container, ...) from react-dom/client"

    def find(self, context: FileContext) -> Iterable[Match]:
        root = context.root_node
        imported: set[str] = set()
        for stmt, source in import_sources(root):
            if string_value(context, source) == "react-dom":
                names, _ = imported_names(context, stmt)
                imported |= names & {"render", "hydrate"}

        for node in walk(root):
            if node.type != "call_expression":
                continue
            name = call_name(context, node)
            if name in ("ReactDOM.render", "ReactDOM.hydrate"):
                method = name.split(".", 1)[1]
            elif name in imported:
                method = name
            else:
                continue
            start, end = context.node_range(node)
            replacement = "createRoot" if method == "render" else "hydrateRoot"
            yield Match(
                start,
                end,
                f"ReactDOM.{method} is removed in React 19; use {replacement}",
                node=node,
            )


class FrameworkMigrationLayer(Layer):
    number = 5
    name = "Next.js"
    description = "App Router directives and imports, React 19 API migrations"
    rules = (UseClientRule(), NextNavigationImportRule(), ForwardRefRule(), LegacyRenderRule())
