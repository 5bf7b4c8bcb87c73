# Layer selection: validate explicit layer numbers or expand "auto" from the file
# name, path and content markers. The result is always sorted ascending, which is
# also the execution order.

from __future__ import annotations

import re
from typing import Any, Iterable, List, Sequence, Union

from neurolint.context import AnalysisContext
from neurolint.errors import InvalidLayerError
from neurolint.layers.registry import VALID_LAYERS
from neurolint.parser import extension_of

AUTO = "auto"

LayerSelection = Union[str, Sequence[int], None]

_CONFIG_NAMES = re.compile(r"^(package\.json|jsconfig\.json|tsconfig(\..+)?\.json|next\.config\.\w+)$")
_JSX_EXTENSIONS = frozenset({".jsx", ".tsx"})
_REACT_IMPORT = re.compile(r"""(?:from\s+|require\(\s*)['"]react(?:-dom)?(?:/[\w-]+)?['"]""")
_JSX_MARKER = re.compile(r"</[A-Za-z][\w.]*>|<[A-Za-z][\w.]*(?:\s[^<>]*)?/>")
_BROWSER_GLOBALS = re.compile(r"\b(?:window|document|localStorage|sessionStorage|navigator)\s*[.\[]")
_HOOK_CALL = re.compile(r"\buse[A-Z]\w*\s*\(")
_DIRECTIVE = re.compile(r"""^\s*['"]use (?:client|server)['"]""", re.MULTILINE)
_TEST_PATH = re.compile(r"(\.test\.|\.spec\.|(^|/)__tests__/)")
_ROUTE_FILE = re.compile(r"^(page|layout)\.")


def parse_layers(value: Any) -> Union[str, List[int]]:
    """
    Parse a CLI/API layer selection: "auto", "3", "1,2,3", or a sequence of ints.

    Returns "auto" or a list of ints; anything else raises InvalidLayerError.
    """
    if value is None:
        return AUTO
    if isinstance(value, str):
        text = value.strip()
        if text.lower() == AUTO:
            return AUTO
        parts = [p.strip() for p in text.split(",")]
        numbers: List[int] = []
        for part in parts:
            if not re.fullmatch(r"[+-]?\d+", part):
                raise InvalidLayerError([value])
            numbers.append(int(part))
        return numbers
    if isinstance(value, (list, tuple)):
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
            raise InvalidLayerError(value)
        return list(value)
    raise InvalidLayerError([value])


def validate_layers(requested: Iterable[int]) -> List[int]:
    """Sorted, de-duplicated layer numbers; raises InvalidLayerError otherwise."""
    numbers = list(requested)
    if not numbers:
        raise InvalidLayerError(numbers, "No layers requested: select at least one layer between 1 and 8")
    invalid = [n for n in numbers if n not in VALID_LAYERS]
    if invalid:
        raise InvalidLayerError(invalid)
    return sorted(set(numbers))


def auto_layers(context: AnalysisContext, source: str = "") -> List[int]:
    """
    Derive a layer set from the file itself. Only the path and the text are
    consulted, so every caller gets the same set for the same file.
    """
    base = context.basename
    if _CONFIG_NAMES.match(base):
        return [1, 8]
    if extension_of(base) == ".json":
        return [1]

    path = context.path_hint
    layers = {2, 7, 8}
    if extension_of(base) in _JSX_EXTENSIONS or _REACT_IMPORT.search(source) or _JSX_MARKER.search(source):
        layers.update((3, 4, 5))
    if _BROWSER_GLOBALS.search(source):
        layers.add(4)
    if _HOOK_CALL.search(source) or _DIRECTIVE.search(source) or "/app/" in path or path.startswith("app/"):
        layers.add(5)
    if _TEST_PATH.search(path) or _ROUTE_FILE.match(base):
        layers.add(6)
    return sorted(layers)


def resolve(requested: LayerSelection, context: AnalysisContext, source: str = "") -> List[int]:
    """
    Resolve a selection to the sorted list of layers to run.

    Raises InvalidLayerError for numbers outside 1..8, an empty list, or an
    unparseable string.
    """
    parsed = parse_layers(requested)
    if parsed == AUTO:
        return auto_layers(context, source)
    return validate_layers(parsed)
