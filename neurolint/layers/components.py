# Layer 3, React component fixes: missing list keys and images without alt text.

from __future__ import annotations

from typing import Iterable, Optional

from tree_sitter import Node as TSNode

from neurolint.context import FileContext, walk
from neurolint.findings.models import Severity
from neurolint.layers.base import Edit, Layer, Match, Rule
from neurolint.layers.syntax import (
    FUNCTION_TYPES,
    function_params,
    jsx_attributes,
    jsx_opening,
    jsx_tag_name,
    named_children,
    returned_jsx,
    text_of,
)


def _map_callback(call: TSNode) -> Optional[TSNode]:
    """The callback of an `xs.map(cb)` call, or None if call is anything else."""
    fn = call.child_by_field_name("function")
    if fn is None or fn.type != "member_expression":
        return None
    prop = fn.child_by_field_name("property")
    if prop is None or prop.type != "property_identifier":
        return None
    args = call.child_by_field_name("arguments")
    if args is None:
        return None
    callbacks = named_children(args)
    if not callbacks or callbacks[0].type not in FUNCTION_TYPES:
        return None
    return callbacks[0]


def _key_expression(context: FileContext, callback: TSNode) -> Optional[str]:
    """
    Pick a key for the mapped element: item.id when the body already reads it,
    then the index parameter, then the item itself.
    """
    params = function_params(callback)
    item = params[0] if params else None
    index = params[1] if len(params) > 1 else None
    body_text = text_of(context, callback.child_by_field_name("body"))

    if item is not None and item.type == "identifier":
        name = text_of(context, item)
        if f"{name}.id" in body_text:
            return f"{name}.id"
        if index is not None and index.type == "identifier":
            return text_of(context, index)
        return name
    if index is not None and index.type == "identifier":
        return text_of(context, index)
    if item is not None and item.type == "object_pattern":
        for child in named_children(item):
            if child.type == "shorthand_property_identifier_pattern" and text_of(context, child) == "id":
                return "id"
    return None


class ReactKeyRule(Rule):
    """
    .map() callbacks that return a JSX element without a key prop.

    The issue is reported at the "." of ".map". Elements with a spread attribute
    are skipped since the spread may carry the key.
    """

    id = "react-key"
    layer = 3
    name = "Missing list key"
    description = "React lists need unique key props for efficient reconciliation"
    severity = Severity.WARNING
    category = "component"
    remediation = "Add key prop using index or unique identifier"
    fix_description = "Added key prop to list item"

    def find(self, context: FileContext) -> Iterable[Match]:
        for node in walk(context.root_node):
            if node.type != "call_expression":
                continue
            callback = _map_callback(node)
            if callback is None:
                continue
            prop = node.child_by_field_name("function").child_by_field_name("property")
            if text_of(context, prop) != "map":
                continue
            element = returned_jsx(callback)
            if element is None:
                continue
            opening = jsx_opening(element)
            if opening is None:
                continue
            attrs, has_spread = jsx_attributes(context, opening)
            if "key" in attrs or has_spread:
                continue
            dot = prop.prev_sibling
            start = context.char_offset(dot.start_byte if dot is not None else prop.start_byte)
            _, end = context.node_range(node)
            yield Match(
                start,
                end,
                "Missing key prop in list item",
                node=node,
                data={"callback": callback, "opening": opening},
            )

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        opening = match.data["opening"]
        name = jsx_tag_name(context, opening)
        if name is None:
            # Fragment shorthand cannot take props.
            return None
        key = _key_expression(context, match.data["callback"])
        if key is None:
            return None
        _, at = context.node_range(name)
        return Edit(at, at, f" key={{{key}}}")


class ImgAltRule(Rule):
    id = "img-alt"
    layer = 3
    name = "Image without alt"
    description = "Images need alt text for screen readers"
    severity = Severity.WARNING
    category = "accessibility"
    remediation = 'Add a descriptive alt attribute, or alt="" for decorative images'
    fix_description = "Added empty alt attribute"

    def find(self, context: FileContext) -> Iterable[Match]:
        for node in walk(context.root_node):
            if node.type not in ("jsx_opening_element", "jsx_self_closing_element"):
                continue
            name = jsx_tag_name(context, node)
            if name is None or text_of(context, name) != "img":
                continue
            attrs, has_spread = jsx_attributes(context, node)
            if "alt" in attrs or has_spread:
                continue
            start, end = context.node_range(node)
            yield Match(start, end, "Image missing alt attribute", node=node)

    def edit(self, context: FileContext, match: Match) -> Optional[Edit]:
        tag = match.node
        anchor = jsx_tag_name(context, tag)
        for child in tag.named_children:
            if child.type == "jsx_attribute":
                anchor = child
        _, at = context.node_range(anchor)
        return Edit(at, at, ' alt=""')


class ComponentsLayer(Layer):
    number = 3
    name = "Components"
    description = "Adds missing React list keys and accessibility attributes"
    rules = (ReactKeyRule(), ImgAltRule())

