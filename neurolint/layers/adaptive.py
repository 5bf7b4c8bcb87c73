# Layer 7, adaptive follow-ups derived from what earlier layers reported in this
# call. Everything the layer "learns" comes from context.prior_issues; nothing is
# kept between calls.

from __future__ import annotations

from collections import Counter
from typing import Iterable

from tree_sitter import Node as TSNode

from neurolint.context import FileContext, ancestors, walk
from neurolint.findings.models import Severity
from neurolint.layers.base import Layer, Match, Rule
from neurolint.layers.syntax import (
    FUNCTION_TYPES,
    function_params,
    named_children,
    text_of,
    unwrap_parens,
)

RECURRENCE_THRESHOLD = 3


def _reported(context: FileContext, rule_name: str) -> bool:
    return any(issue.rule_name == rule_name for issue in context.prior_issues)


def _is_console(context: FileContext, node: TSNode) -> bool:
    return node is not None and node.type == "identifier" and text_of(context, node) == "console"


class ConsoleAliasRule(Rule):
    """
    Console access the plain console.* cleanup cannot see: `const log = console.log`,
    `console["log"](...)` and `const { log } = console`. Active only when no-console
    fired earlier in the same call.
    """

    id = "adaptive-console-alias"
    layer = 7
    name = "Aliased console access"
    description = "Console methods reached through an alias or a computed property"
    severity = Severity.WARNING
    category = "adaptive"
    remediation = "Remove the alias and its call sites"

    def find(self, context: FileContext) -> Iterable[Match]:
        if not _reported(context, "no-console"):
            return
        for node in walk(context.root_node):
            if node.type == "subscript_expression" and _is_console(context, node.child_by_field_name("object")):
                start, end = context.node_range(node)
                yield Match(start, end, "Computed console access bypasses console cleanup", node=node)
            elif node.type == "variable_declarator":
                value = unwrap_parens(node.child_by_field_name("value"))
                target = node.child_by_field_name("name")
                if value is None or target is None:
                    continue
                aliased = _is_console(context, value) and target.type == "object_pattern"
                if value.type == "member_expression" and _is_console(context, value.child_by_field_name("object")):
                    aliased = True
                if aliased:
                    start, end = context.node_range(node)
                    yield Match(start, end, "Console method aliased to a variable", node=node)


def _map_index_param(context: FileContext, node: TSNode) -> bool:
    """True if identifier node is the index parameter of an enclosing .map callback."""
    name = text_of(context, node)
    for parent in ancestors(node):
        if parent.type not in FUNCTION_TYPES:
            continue
        params = function_params(parent)
        if len(params) < 2 or params[1].type != "identifier" or text_of(context, params[1]) != name:
            continue
        args = parent.parent
        call = args.parent if args is not None else None
        if call is None or call.type != "call_expression":
            return False
        fn = call.child_by_field_name("function")
        prop = fn.child_by_field_name("property") if fn is not None and fn.type == "member_expression" else None
        return prop is not None and text_of(context, prop) == "map"
    return False


class IndexKeyRule(Rule):
    """
    key={index} in mapped lists; reordering the list then reuses the wrong
    component state. Active only when react-key fired earlier in the same call.
    """

    id = "adaptive-index-key"
    layer = 7
    name = "Index used as key"
    description = "Array index keys break state when list items are reordered"
    severity = Severity.INFO
    category = "adaptive"
    remediation = "Use a stable identifier from the item as the key"

    def find(self, context: FileContext) -> Iterable[Match]:
        if not _reported(context, "react-key"):
            return
        for node in walk(context.root_node):
            if node.type != "jsx_attribute":
                continue
            children = named_children(node)
            if len(children) < 2 or text_of(context, children[0]) != "key":
                continue
            value = children[1]
            if value.type != "jsx_expression":
                continue
            inner = named_children(value)
            if len(inner) != 1 or inner[0].type != "identifier":
                continue
            if _map_index_param(context, inner[0]):
                start, end = context.node_range(node)
                yield Match(start, end, "List key is the map index", node=node)


class RecurrenceRule(Rule):
    """A rule that fired RECURRENCE_THRESHOLD or more times in this call, once per rule at 1:1."""

    id = "adaptive-recurring-rule"
    layer = 7
    name = "Recurring pattern"
    description = "The same rule fired repeatedly in this file; consider a project-wide fix"
    severity = Severity.INFO
    category = "adaptive"
    requires_tree = False

    def find(self, context: FileContext) -> Iterable[Match]:
        counts = Counter(issue.rule_name for issue in context.prior_issues)
        for rule_name in sorted(counts):
            if counts[rule_name] >= RECURRENCE_THRESHOLD:
                yield Match(0, 0, f'Rule "{rule_name}" fired {counts[rule_name]} times in this file')


class AdaptiveLayer(Layer):
    number = 7
    name = "Adaptive"
    description = "Follow-up checks learned from earlier layers in the same run"
    rules = (ConsoleAliasRule(), IndexKeyRule(), RecurrenceRule())
