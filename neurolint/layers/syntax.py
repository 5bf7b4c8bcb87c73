# AST helpers shared by the JavaScript/TypeScript/JSON layers: node text, call names,
# string literal values, JSX attributes, function parameters, and removal ranges.

from __future__ import annotations

from typing import Iterator, Optional

from tree_sitter import Node as TSNode

from neurolint.context import FileContext, get_source_span

FUNCTION_TYPES = frozenset(
    {
        "arrow_function",
        "function",
        "function_expression",
        "function_declaration",
        "generator_function",
        "generator_function_declaration",
        "method_definition",
    }
)

JSX_ELEMENTS = frozenset({"jsx_element", "jsx_self_closing_element"})

# Statement containers from which a statement can be deleted outright.
STATEMENT_LISTS = frozenset({"program", "statement_block", "switch_case", "switch_default"})


def same_node(a: Optional[TSNode], b: Optional[TSNode]) -> bool:
    if a is None or b is None:
        return False
    return (a.start_byte, a.end_byte, a.type) == (b.start_byte, b.end_byte, b.type)


def text_of(context: FileContext, node: Optional[TSNode]) -> str:
    return get_source_span(context, node) if node is not None else ""


def named_children(node: TSNode) -> list[TSNode]:
    """Named children without comments."""
    return [c for c in node.named_children if c.type != "comment"]


def unwrap_parens(node: Optional[TSNode]) -> Optional[TSNode]:
    while node is not None and node.type == "parenthesized_expression":
        inner = named_children(node)
        node = inner[0] if inner else None
    return node


def call_name(context: FileContext, call: TSNode) -> Optional[str]:
    """
    Dotted callee name of a call_expression: "useState", "console.log",
    "React.forwardRef". None for computed callees.
    """
    if call.type != "call_expression":
        return None
    fn = call.child_by_field_name("function")
    if fn is None:
        return None
    if fn.type == "identifier":
        return text_of(context, fn)
    if fn.type == "member_expression":
        obj = fn.child_by_field_name("object")
        prop = fn.child_by_field_name("property")
        if obj is None or prop is None:
            return None
        if obj.type == "identifier":
            return f"{text_of(context, obj)}.{text_of(context, prop)}"
        if obj.type == "member_expression":
            inner = call_name_of_member(context, obj)
            return f"{inner}.{text_of(context, prop)}" if inner else None
    return None


def call_name_of_member(context: FileContext, member: TSNode) -> Optional[str]:
    obj = member.child_by_field_name("object")
    prop = member.child_by_field_name("property")
    if obj is None or prop is None:
        return None
    if obj.type in ("identifier", "this"):
        return f"{text_of(context, obj)}.{text_of(context, prop)}"
    if obj.type == "member_expression":
        inner = call_name_of_member(context, obj)
        return f"{inner}.{text_of(context, prop)}" if inner else None
    return None


def string_value(context: FileContext, node: Optional[TSNode]) -> Optional[str]:
    """Body of a simple string literal (JS or JSON), or None for anything else."""
    if node is None or node.type != "string":
        return None
    raw = text_of(context, node)
    if len(raw) < 2 or raw[0] not in "'\"" or raw[-1] != raw[0]:
        return None
    return raw[1:-1]


def quote_of(context: FileContext, node: TSNode) -> str:
    raw = text_of(context, node)
    return raw[0] if raw and raw[0] in "'\"`" else '"'


def jsx_opening(element: TSNode) -> Optional[TSNode]:
    """The tag carrying attributes: the opening element or the self-closing element."""
    if element.type == "jsx_self_closing_element":
        return element
    if element.type == "jsx_element":
        tag = element.child_by_field_name("open_tag")
        if tag is not None:
            return tag
        for child in element.named_children:
            if child.type == "jsx_opening_element":
                return child
    return None


def jsx_tag_name(context: FileContext, opening: TSNode) -> Optional[TSNode]:
    name = opening.child_by_field_name("name")
    if name is not None:
        return name
    for child in opening.named_children:
        if child.type in ("identifier", "member_expression", "jsx_namespace_name", "nested_identifier"):
            return child
    return None


def jsx_attributes(context: FileContext, opening: TSNode) -> tuple[dict[str, TSNode], bool]:
    """Return ({attribute name: attribute node}, has_spread) for a JSX tag."""
    attrs: dict[str, TSNode] = {}
    has_spread = False
    for child in opening.named_children:
        if child.type == "jsx_attribute":
            name_node = child.named_children[0] if child.named_children else None
            if name_node is not None:
                attrs[text_of(context, name_node)] = child
        elif child.type == "jsx_expression":
            has_spread = True
    return attrs, has_spread


def function_params(fn: TSNode) -> list[TSNode]:
    """Parameter pattern nodes of a function, in order (JS and TS grammars)."""
    single = fn.child_by_field_name("parameter")
    if single is not None:
        return [single]
    params = fn.child_by_field_name("parameters")
    if params is None:
        return []
    out: list[TSNode] = []
    for child in named_children(params):
        if child.type in ("required_parameter", "optional_parameter"):
            pattern = child.child_by_field_name("pattern")
            if pattern is None and child.named_children:
                pattern = child.named_children[0]
            if pattern is None:
                continue
            child = pattern
        if child.type == "assignment_pattern":
            left = child.child_by_field_name("left")
            if left is not None:
                child = left
        out.append(child)
    return out


def returned_jsx(fn: TSNode) -> Optional[TSNode]:
    """The JSX element a callback returns directly, if any."""
    body = unwrap_parens(fn.child_by_field_name("body"))
    if body is None:
        return None
    if body.type in JSX_ELEMENTS:
        return body
    if body.type == "statement_block":
        for stmt in named_children(body):
            if stmt.type == "return_statement":
                inner = named_children(stmt)
                expr = unwrap_parens(inner[0]) if inner else None
                if expr is not None and expr.type in JSX_ELEMENTS:
                    return expr
    return None


def import_sources(root: TSNode) -> Iterator[tuple[TSNode, TSNode]]:
    """Yield (import_statement, source string node) for top-level imports."""
    for stmt in named_children(root):
        if stmt.type != "import_statement":
            continue
        source = stmt.child_by_field_name("source")
        if source is None:
            for child in stmt.named_children:
                if child.type == "string":
                    source = child
        if source is not None:
            yield stmt, source


def imported_names(context: FileContext, stmt: TSNode) -> tuple[set[str], bool]:
    """Return (named imports, has default or namespace import) for an import_statement."""
    names: set[str] = set()
    other = False
    for clause in stmt.named_children:
        if clause.type != "import_clause":
            continue
        for child in clause.named_children:
            if child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type == "import_specifier":
                        name = spec.child_by_field_name("name")
                        names.add(text_of(context, name or spec))
            else:
                other = True
    return names, other


def has_directive(context: FileContext, directive: str) -> bool:
    """True if the file's directive prologue contains the given string."""
    root = context.root_node
    if root is None:
        return False
    for stmt in named_children(root):
        if stmt.type != "expression_statement":
            return False
        inner = named_children(stmt)
        value = string_value(context, inner[0]) if inner else None
        if value is None:
            return False
        if value == directive:
            return True
    return False


def removal_range(context: FileContext, start: int, end: int) -> tuple[int, int]:
    """
    Widen [start, end) so deleting a statement leaves no stray whitespace: the
    whole line when nothing else shares it, otherwise the blanks separating it
    from its neighbours on the line.
    """
    text = context.text
    line_start, _ = context.line_bounds(start)
    _, tail_end = context.line_bounds(end)
    before = text[line_start:start]
    after = text[end:tail_end]
    if not before.strip() and not after.strip():
        if tail_end < len(text):
            return line_start, tail_end + 1
        # Last line: take the preceding newline instead.
        return max(line_start - 1, 0), tail_end
    if after.strip():
        return start, end + len(after) - len(after.lstrip(" \t"))
    return start - (len(before) - len(before.rstrip(" \t"))), tail_end
