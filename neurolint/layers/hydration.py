# Layer 4, hydration and SSR safety: browser-only globals touched while rendering on
# the server.
#
# An access is safe when it is deferred (inside an effect hook, event handler, timer
# or promise callback, a JSX event prop, a handle*/on* function or a lifecycle method)
# or guarded (inside a typeof check on a browser global, or after an early return
# on one). Everything else is reported.

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional

from tree_sitter import Node as TSNode

from neurolint.context import FileContext, ancestors, walk
from neurolint.findings.models import Severity
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.syntax import (
    FUNCTION_TYPES,
    STATEMENT_LISTS,
    call_name,
    named_children,
    same_node,
    text_of,
)

BROWSER_GLOBALS = frozenset({"window", "document", "localStorage", "sessionStorage", "navigator"})

# Callbacks passed to these run after hydration, never during a server render.
DEFERRING_CALLS = frozenset(
    {
        "useEffect",
        "useLayoutEffect",
        "useInsertionEffect",
        "useCallback",
        "addEventListener",
        "setTimeout",
        "setInterval",
        "requestAnimationFrame",
        "requestIdleCallback",
        "queueMicrotask",
        "then",
        "catch",
        "finally",
    }
)

LIFECYCLE_METHODS = frozenset({"componentDidMount", "componentDidUpdate", "componentWillUnmount"})

_HANDLER_NAME = re.compile(r"^(handle|on)[A-Z_]")
_GLOBAL_NAMES = r"(?:window|document|localStorage|sessionStorage|navigator)"
_TYPEOF_CHECK = re.compile(
    rf"""\btypeof\s+{_GLOBAL_NAMES}\s*(?P<op>[!=]==?)\s*(?P<q>['"`])(?P<kind>\w+)(?P=q)"""
)
_TYPEOF_CHECK_REVERSED = re.compile(
    rf"""(?P<q>['"`])(?P<kind>\w+)(?P=q)\s*(?P<op>[!=]==?)\s*typeof\s+{_GLOBAL_NAMES}\b"""
)

GUARD = 'typeof window !== "undefined"'


def _is_typeof_operand(node: TSNode) -> bool:
    parent = node.parent
    if parent is None or parent.type != "unary_expression":
        return False
    operator = parent.child_by_field_name("operator")
    return operator is not None and operator.type == "typeof"


def _access_chain(node: TSNode) -> TSNode:
    """Widen `window` to the full `window.a.b(...)` chain that starts with it."""
    current = node
    while current.parent is not None:
        parent = current.parent
        if parent.type in ("member_expression", "subscript_expression") and same_node(
            parent.child_by_field_name("object"), current
        ):
            current = parent
        elif parent.type == "call_expression" and same_node(
            parent.child_by_field_name("function"), current
        ):
            current = parent
        elif parent.type == "non_null_expression":
            current = parent
        else:
            break
    return current


def _function_name(context: FileContext, fn: TSNode) -> Optional[str]:
    name = fn.child_by_field_name("name")
    if name is not None:
        return text_of(context, name)
    parent = fn.parent
    if parent is None:
        return None
    if parent.type == "variable_declarator":
        return text_of(context, parent.child_by_field_name("name"))
    if parent.type == "pair":
        return text_of(context, parent.child_by_field_name("key"))
    if parent.type in ("assignment_expression", "public_field_definition", "field_definition"):
        target = parent.child_by_field_name("left") or parent.child_by_field_name("name")
        if target is not None:
            return text_of(context, target).rsplit(".", 1)[-1]
    return None


def _is_deferred(context: FileContext, fn: TSNode) -> bool:
    name = _function_name(context, fn)
    if name and (_HANDLER_NAME.match(name) or name in LIFECYCLE_METHODS):
        return True

    parent = fn.parent
    if parent is None:
        return False
    if parent.type == "jsx_expression":
        holder = parent.parent
        return holder is not None and holder.type == "jsx_attribute"
    if parent.type == "arguments":
        call = parent.parent
        callee = call_name(context, call) if call is not None else None
        if callee is None and call is not None:
            fn_node = call.child_by_field_name("function")
            prop = fn_node.child_by_field_name("property") if fn_node is not None else None
            callee = text_of(context, prop) if prop is not None else None
        if callee:
            return callee.rsplit(".", 1)[-1] in DEFERRING_CALLS
    return False


def _guard_polarity(context: FileContext, node: Optional[TSNode]) -> Optional[bool]:
    """
    For a condition that compares typeof of a browser global: True when the
    condition holds only in the browser, False when it holds only on the
    server, None when it is not such a check.
    """
    if node is None:
        return None
    text = text_of(context, node)
    m = _TYPEOF_CHECK.search(text) or _TYPEOF_CHECK_REVERSED.search(text)
    if m is None:
        return None
    equal = m.group("op").startswith("=")
    if m.group("kind") == "undefined":
        return not equal
    return equal


def _within(node: TSNode, outer: Optional[TSNode]) -> bool:
    return outer is not None and outer.start_byte <= node.start_byte and node.end_byte <= outer.end_byte


def _exits(stmt: TSNode) -> bool:
    """True if a guard's consequence always leaves the enclosing block."""
    if stmt.type in ("return_statement", "throw_statement"):
        return True
    if stmt.type == "statement_block":
        body = named_children(stmt)
        return bool(body) and body[-1].type in ("return_statement", "throw_statement")
    return False


def _early_return_guarded(context: FileContext, block: TSNode, node: TSNode) -> bool:
    """An earlier `if (server-only condition) return/throw` in the same block."""
    for stmt in named_children(block):
        if stmt.start_byte >= node.start_byte:
            return False
        if stmt.type != "if_statement":
            continue
        consequence = stmt.child_by_field_name("consequence")
        if consequence is None or not _exits(consequence):
            continue
        if _guard_polarity(context, stmt.child_by_field_name("condition")) is False:
            return True
    return False


def _branch_guarded(context: FileContext, parent: TSNode, node: TSNode) -> bool:
    """node sits in the branch of an if/ternary that only runs in the browser."""
    polarity = _guard_polarity(context, parent.child_by_field_name("condition"))
    if polarity is None:
        return False
    if _within(node, parent.child_by_field_name("consequence")):
        return polarity
    if _within(node, parent.child_by_field_name("alternative")):
        return not polarity
    return False


def _is_safe(context: FileContext, node: TSNode) -> bool:
    for parent in ancestors(node):
        kind = parent.type
        if kind in FUNCTION_TYPES:
            if _is_deferred(context, parent):
                return True
        elif kind in ("if_statement", "ternary_expression"):
            if _branch_guarded(context, parent, node):
                return True
        elif kind == "binary_expression":
            operator = parent.child_by_field_name("operator")
            if operator is None or operator.type not in ("&&", "||"):
                continue
            if not _within(node, parent.child_by_field_name("right")):
                continue
            # `browser && access` or `server || access`
            polarity = _guard_polarity(context, parent.child_by_field_name("left"))
            if polarity is not None and polarity == (operator.type == "&&"):
                return True
        elif kind in ("statement_block", "program"):
            if _early_return_guarded(context, parent, node):
                return True
    return False


def _browser_accesses(context: FileContext) -> Iterator[TSNode]:
    for node in walk(context.root_node):
        if node.type != "identifier" or node.parent is None:
            continue
        if text_of(context, node) not in BROWSER_GLOBALS:
            continue
        parent = node.parent
        if parent.type not in ("member_expression", "subscript_expression"):
            continue
        if not same_node(parent.child_by_field_name("object"), node):
            continue
        if _is_typeof_operand(_access_chain(node)):
            continue
        yield node


def _statement_of(node: TSNode) -> Optional[TSNode]:
    """The expression statement holding node, if it sits directly in a block."""
    for parent in ancestors(node):
        if parent.type in FUNCTION_TYPES:
            return None
        if parent.type == "expression_statement":
            holder = parent.parent
            return parent if holder is not None and holder.type in STATEMENT_LISTS else None
        if parent.type.endswith("_statement") or parent.type.endswith("_declaration"):
            return None
    return None


class SsrSafetyRule(Rule):
    """Browser globals read during render break server rendering and hydration."""

    id = "ssr-safety"
    layer = 4
    name = "Unguarded browser API"
    description = "Browser-only globals are undefined during server rendering"
    severity = Severity.ERROR
    category = "hydration"
    remediation = "Move the access into useEffect or guard it with typeof window !== 'undefined'"
    fix_description = "Added typeof window guard"

    def applies_to(self, context: FileContext) -> bool:
        return super().applies_to(context) and context.language != "json"

    def find(self, context: FileContext) -> Iterable[Match]:
        for node in _browser_accesses(context):
            if _is_safe(context, node):
                continue
            chain = _access_chain(node)
            start, end = context.node_range(chain)
            yield Match(
                start,
                end,
                f"Unguarded {text_of(context, node)} access during render",
                node=chain,
            )

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        chain = match.node
        stmt = _statement_of(chain)
        if stmt is not None:
            start, end = context.node_range(stmt)
            body = context.text[start:end]
            return Edit(start, end, f"if ({GUARD}) {{ {body} }}")

        parent = chain.parent
        if parent is not None and parent.type in (
            "assignment_expression",
            "augmented_assignment_expression",
            "update_expression",
        ):
            # A guarded expression cannot be an assignment target.
            left = parent.child_by_field_name("left") or parent.child_by_field_name("argument")
            if same_node(left, chain):
                return None
        return Edit(match.start, match.end, f"({GUARD} ? {context.text[match.start : match.end]} : undefined)")


class HydrationLayer(Layer):
    number = 4
    name = "Hydration"
    description = "Guards browser-only APIs so components render safely on the server"
    rules = (SsrSafetyRule(),)
