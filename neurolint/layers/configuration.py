# Layer 1, project configuration: tsconfig/jsconfig compiler options and
# next.config flags.

from __future__ import annotations

import re
from typing import Iterable, Iterator, Optional

from tree_sitter import Node as TSNode

from neurolint.context import FileContext, walk
from neurolint.findings.models import Severity
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.syntax import named_children, removal_range, string_value, text_of

_TSCONFIG = re.compile(r"^(tsconfig(\..+)?|jsconfig)\.json$")
_NEXT_CONFIG = re.compile(r"^next\.config\.(js|mjs|cjs|ts|mts)$")

LEGACY_TARGETS = frozenset({"es3", "es5"})
MODERN_TARGET = "ES2017"


def is_tsconfig(context: FileContext) -> bool:
    return bool(_TSCONFIG.match(context.analysis.basename))


def is_next_config(context: FileContext) -> bool:
    return bool(_NEXT_CONFIG.match(context.analysis.basename))


def json_root_object(context: FileContext) -> Optional[TSNode]:
    root = context.root_node
    if root is None:
        return None
    return next((n for n in named_children(root) if n.type == "object"), None)


def json_pair(context: FileContext, obj: Optional[TSNode], key: str) -> Optional[TSNode]:
    """The pair for key in a JSON object node, or None."""
    if obj is None or obj.type != "object":
        return None
    for pair in named_children(obj):
        if pair.type == "pair" and string_value(context, pair.child_by_field_name("key")) == key:
            return pair
    return None


def _compiler_options(context: FileContext) -> Optional[TSNode]:
    pair = json_pair(context, json_root_object(context), "compilerOptions")
    if pair is None:
        return None
    value = pair.child_by_field_name("value")
    return value if value is not None and value.type == "object" else None


class TsconfigStrictRule(Rule):
    """compilerOptions.strict set to false, or missing from compilerOptions."""

    id = "tsconfig-strict"
    layer = 1
    name = "TypeScript strict mode"
    description = "Strict mode catches null and implicit-any errors at compile time"
    severity = Severity.WARNING
    category = "configuration"
    remediation = 'Set "strict": true in compilerOptions'
    fix_description = "Enabled strict mode"

    def applies_to(self, context: FileContext) -> bool:
        return super().applies_to(context) and context.language == "json" and is_tsconfig(context)

    def find(self, context: FileContext) -> Iterable[Match]:
        options = _compiler_options(context)
        if options is None:
            return
        pair = json_pair(context, options, "strict")
        if pair is None:
            start, _ = context.node_range(options.parent)
            yield Match(start, start, "TypeScript strict mode is not enabled", node=options)
            return
        value = pair.child_by_field_name("value")
        if value is not None and value.type == "false":
            start, end = context.node_range(value)
            yield Match(start, end, "TypeScript strict mode is disabled", node=value)

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        node = match.node
        if node.type == "false":
            return Edit(match.start, match.end, "true")

        pairs = [p for p in named_children(node) if p.type == "pair"]
        if not pairs:
            start, end = context.node_range(node)
            return Edit(start, end, '{ "strict": true }')
        first_start, _ = context.node_range(pairs[0])
        line_start, _ = context.line_bounds(first_start)
        indent = context.text[line_start:first_start]
        if indent.strip():
            # First option shares a line with the brace.
            return Edit(first_start, first_start, '"strict": true, ')
        return Edit(first_start, first_start, f'"strict": true,\n{indent}')


class TsconfigTargetRule(Rule):
    id = "tsconfig-target"
    layer = 1
    name = "Legacy compile target"
    description = "ES3/ES5 output adds heavy down-level helpers that modern runtimes do not need"
    severity = Severity.INFO
    category = "configuration"
    remediation = f'Set "target": "{MODERN_TARGET}" or later'
    fix_description = f"Raised compile target to {MODERN_TARGET}"

    def applies_to(self, context: FileContext) -> bool:
        return super().applies_to(context) and context.language == "json" and is_tsconfig(context)

    def find(self, context: FileContext) -> Iterable[Match]:
        pair = json_pair(context, _compiler_options(context), "target")
        if pair is None:
            return
        value = pair.child_by_field_name("value")
        target = string_value(context, value)
        if target is not None and target.lower() in LEGACY_TARGETS:
            start, end = context.node_range(value)
            yield Match(start, end, f"Compile target {target} is outdated", node=value)

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        return Edit(match.start, match.end, f'"{MODERN_TARGET}"')


def _js_pairs(context: FileContext, key: str) -> Iterator[TSNode]:
    """Object-literal pairs in a JS file whose key is the given name."""
    for node in walk(context.root_node):
        if node.type != "pair":
            continue
        key_node = node.child_by_field_name("key")
        if key_node is None:
            continue
        name = string_value(context, key_node) if key_node.type == "string" else text_of(context, key_node)
        if name == key:
            yield node


class NextStrictModeRule(Rule):
    id = "next-strict-mode"
    layer = 1
    name = "React strict mode disabled"
    description = "reactStrictMode surfaces unsafe lifecycles and side effects during development"
    severity = Severity.WARNING
    category = "configuration"
    remediation = "Set reactStrictMode: true in next.config"
    fix_description = "Enabled reactStrictMode"

    def applies_to(self, context: FileContext) -> bool:
        return super().applies_to(context) and is_next_config(context)

    def find(self, context: FileContext) -> Iterable[Match]:
        for pair in _js_pairs(context, "reactStrictMode"):
            value = pair.child_by_field_name("value")
            if value is not None and value.type == "false":
                start, end = context.node_range(value)
                yield Match(start, end, "reactStrictMode is disabled", node=value)

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        return Edit(match.start, match.end, "true")


class NextAppDirRule(Rule):
    """experimental.appDir is the default since Next.js 13.4 and rejected by newer releases."""

    id = "next-deprecated-app-dir"
    layer = 1
    name = "Deprecated experimental.appDir"
    description = "The App Router is stable; experimental.appDir is no longer recognized"
    severity = Severity.INFO
    category = "configuration"
    remediation = "Remove experimental.appDir"
    fix_description = "Removed experimental.appDir"

    def applies_to(self, context: FileContext) -> bool:
        return super().applies_to(context) and is_next_config(context)

    def find(self, context: FileContext) -> Iterable[Match]:
        for pair in _js_pairs(context, "appDir"):
            obj = pair.parent
            holder = obj.parent if obj is not None else None
            if holder is None or holder.type != "pair":
                continue
            key_node = holder.child_by_field_name("key")
            if text_of(context, key_node).strip("'\"") != "experimental":
                continue
            start, end = context.node_range(pair)
            yield Match(start, end, "experimental.appDir is deprecated", node=pair)

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        pair = match.node
        start, end = match.start, match.end
        following = pair.next_sibling
        preceding = pair.prev_sibling
        if following is not None and following.type == ",":
            _, end = context.node_range(following)
        elif preceding is not None and preceding.type == ",":
            start, _ = context.node_range(preceding)
            return Edit(start, end, "")
        return Edit(*removal_range(context, start, end), "")


class ConfigurationLayer(Layer):
    number = 1
    name = "Configuration"
    description = "TypeScript and Next.js configuration modernization"
    rules = (TsconfigStrictRule(), TsconfigTargetRule(), NextStrictModeRule(), NextAppDirRule())
