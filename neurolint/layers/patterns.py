# Layer 2, pattern cleanup: console statements, var declarations, HTML entities in
# string literals.

from __future__ import annotations

import re
from typing import Iterable, Optional

from tree_sitter import Node as TSNode

from neurolint.context import FileContext, ancestors, walk
from neurolint.findings.models import Severity
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.syntax import (
    STATEMENT_LISTS,
    call_name,
    removal_range,
    same_node,
)

CONSOLE_METHODS = frozenset({"log", "warn", "error", "debug", "info", "trace"})

ENTITIES = {
    "&quot;": '"',
    "&apos;": "'",
    "&#39;": "'",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&nbsp;": "\u00a0",
}

_ENTITY_RE = re.compile("|".join(re.escape(e) for e in ENTITIES))

# "&amp;lt;" decodes to "&lt;", which is itself an entity; leave it alone.
_ENTITY_NAME_AFTER_AMP = re.compile(r"(?:quot|apos|#39|amp|lt|gt|nbsp);")


class NoConsoleRule(Rule):
    """console.* calls left in production code."""

    id = "no-console"
    layer = 2
    name = "Console statement"
    description = "Console statements should be removed in production code"
    severity = Severity.WARNING
    category = "pattern"
    remediation = "Use a logger or remove the statement"
    fix_description = "Removed console statement"

    def find(self, context: FileContext) -> Iterable[Match]:
        for node in walk(context.root_node):
            if node.type != "call_expression":
                continue
            name = call_name(context, node)
            if not name or not name.startswith("console."):
                continue
            method = name.split(".", 1)[1]
            if method not in CONSOLE_METHODS:
                continue
            start, end = context.node_range(node)
            yield Match(start, end, f"Remove console.{method} statement", node=node)

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        call = match.node
        parent = call.parent
        if parent is None:
            return None

        if parent.type == "arrow_function" and same_node(parent.child_by_field_name("body"), call):
            start, end = context.node_range(call)
            return Edit(start, end, "{}")

        if parent.type != "expression_statement":
            # Value is used by an enclosing expression.
            return None

        start, end = context.node_range(parent)
        holder = parent.parent
        if holder is not None and holder.type in STATEMENT_LISTS:
            start, end = removal_range(context, start, end)
            return Edit(start, end, "")
        # Unbraced body of if/for/while: keep a statement there.
        return Edit(start, end, "{}")


class NoVarRule(Rule):
    id = "no-var"
    layer = 2
    name = "var declaration"
    description = "var is function-scoped; block-scoped let avoids hoisting surprises"
    severity = Severity.INFO
    category = "pattern"
    fix_description = "Replaced var with let"

    def find(self, context: FileContext) -> Iterable[Match]:
        for node in walk(context.root_node):
            if node.type != "variable_declaration" or node.child_count == 0:
                continue
            keyword = node.children[0]
            if keyword.type != "var":
                continue
            start, end = context.node_range(keyword)
            yield Match(start, end, "Use let or const instead of var", node=keyword)

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        return Edit(match.start, match.end, "let")


class HtmlEntitiesRule(Rule):
    """
    HTML entities inside JavaScript string literals (usually pasted from markup).

    JSX attribute strings are skipped because JSX decodes entities there itself.
    An entity whose decoded character equals the literal's quote is not reported.
    """

    id = "html-entities"
    layer = 2
    name = "HTML entity in string"
    description = "HTML entities are not decoded inside JavaScript strings"
    severity = Severity.INFO
    category = "pattern"
    fix_description = "Decoded HTML entity"

    def applies_to(self, context: FileContext) -> bool:
        return super().applies_to(context) and context.language != "json"

    def find(self, context: FileContext) -> Iterable[Match]:
        for node in walk(context.root_node):
            if node.type != "string" or self._in_jsx_attribute(node):
                continue
            start, end = context.node_range(node)
            raw = context.text[start:end]
            if len(raw) < 2:
                continue
            quote = raw[0]
            for m in _ENTITY_RE.finditer(raw, 1, len(raw) - 1):
                entity = m.group(0)
                decoded = ENTITIES[entity]
                if decoded == quote:
                    continue
                if entity == "&amp;" and _ENTITY_NAME_AFTER_AMP.match(raw, m.end()):
                    continue
                yield Match(
                    start + m.start(),
                    start + m.end(),
                    f'HTML entity "{entity}" should be converted',
                    data={"decoded": decoded},
                )

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        return Edit(match.start, match.end, match.data["decoded"])

    @staticmethod
    def _in_jsx_attribute(node: TSNode) -> bool:
        for parent in ancestors(node):
            if parent.type == "jsx_attribute":
                return True
            if parent.type in ("jsx_expression", "expression_statement", "program"):
                return False
        return False


class PatternsLayer(Layer):
    number = 2
    name = "Patterns"
    description = "Removes console statements, legacy var declarations and stray HTML entities"
    rules = (NoConsoleRule(), NoVarRule(), HtmlEntitiesRule())
