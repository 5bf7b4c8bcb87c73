# Per-call and per-text analysis context.
# AnalysisContext carries what the caller supplied (filename, verbatim file path,
# options) plus the issues earlier layers produced in this call. FileContext holds
# one version of the source text, its AST, and helpers that convert tree-sitter
# byte positions into 1-based line/character-column locations.

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Mapping, Optional, Sequence

from tree_sitter import Node as TSNode
from tree_sitter import Tree

from neurolint.findings.models import Issue
from neurolint.parser import basename, language_for_filename, parse_bytes

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "unknown.tsx"


@dataclass(frozen=True)
class AnalysisContext:
    """
    Caller-supplied inputs that may influence detection.

    file_path is kept exactly as given (relative or absolute); layer heuristics
    key off substrings such as "/app/" or "/page.".
    """

    filename: str = DEFAULT_FILENAME
    file_path: Optional[str] = None
    options: Mapping[str, Any] = field(default_factory=dict)
    prior_issues: tuple[Issue, ...] = ()

    @property
    def path_hint(self) -> str:
        """The most specific path we have, with separators normalized for matching only."""
        return (self.file_path or self.filename).replace("\\", "/")

    @property
    def basename(self) -> str:
        return basename(self.file_path or self.filename)

    @property
    def language(self) -> Optional[str]:
        return language_for_filename(self.filename) or (
            language_for_filename(self.file_path) if self.file_path else None
        )

    def with_prior_issues(self, issues: Sequence[Issue]) -> "AnalysisContext":
        return replace(self, prior_issues=tuple(issues))


class FileContext:
    """
    One version of the source text plus its AST.

    Rules use context.text, context.tree and the offset helpers. Offsets exposed to
    rules are character offsets into context.text; tree-sitter nodes carry byte
    offsets, converted with char_offset().
    """

    def __init__(
        self,
        text: str,
        analysis: AnalysisContext,
        tree: Optional[Tree] = None,
        language: Optional[str] = None,
    ) -> None:
        self.text = text
        self.source = text.encode("utf-8")
        self.analysis = analysis
        self.tree = tree
        self.language = language
        self.has_parse_errors = bool(tree is not None and tree.root_node.has_error)
        self._line_starts = [0]
        for idx, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(idx + 1)
        # Byte offset of every character boundary; only needed for non-ASCII text.
        self._char_bytes: Optional[list[int]] = None
        if len(self.source) != len(text):
            offsets = [0]
            total = 0
            for ch in text:
                total += len(ch.encode("utf-8"))
                offsets.append(total)
            self._char_bytes = offsets

    @property
    def root_node(self) -> Optional[TSNode]:
        """Convenience access to the AST root."""
        return self.tree.root_node if self.tree is not None else None

    @property
    def filename(self) -> str:
        return self.analysis.filename

    @property
    def file_path(self) -> Optional[str]:
        return self.analysis.file_path

    @property
    def prior_issues(self) -> tuple[Issue, ...]:
        return self.analysis.prior_issues

    # --- offsets ---------------------------------------------------------------

    def char_offset(self, byte_offset: int) -> int:
        if self._char_bytes is None:
            return byte_offset
        return bisect_right(self._char_bytes, byte_offset) - 1

    def byte_offset(self, char_offset: int) -> int:
        if self._char_bytes is None:
            return char_offset
        return self._char_bytes[char_offset]

    def node_range(self, node: TSNode) -> tuple[int, int]:
        """Character range [start, end) of a node."""
        return self.char_offset(node.start_byte), self.char_offset(node.end_byte)

    def line_col(self, offset: int) -> tuple[int, int]:
        """1-based (line, column) for a character offset."""
        line_idx = bisect_right(self._line_starts, offset) - 1
        return line_idx + 1, offset - self._line_starts[line_idx] + 1

    def offset_of(self, line: int, column: int) -> Optional[int]:
        """Character offset for a 1-based (line, column), or None if out of range."""
        if line < 1 or line > len(self._line_starts) or column < 1:
            return None
        start = self._line_starts[line - 1]
        end = self._line_starts[line] - 1 if line < len(self._line_starts) else len(self.text)
        offset = start + column - 1
        if offset > end:
            return None
        return offset

    def line_bounds(self, offset: int) -> tuple[int, int]:
        """Character range of the line containing offset, excluding the newline."""
        line_idx = bisect_right(self._line_starts, offset) - 1
        start = self._line_starts[line_idx]
        end = self.text.find("\n", start)
        return start, (len(self.text) if end == -1 else end)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)


def get_source_span(context: FileContext, node: TSNode) -> str:
    """
    Return the substring of context.source for the given node's byte range.

    Decodes with errors="replace" so bad UTF-8 does not crash.
    """
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_line_col(context: FileContext, node: TSNode) -> tuple[int, int]:
    """Return the 1-based (line, column) of a node's start, in characters."""
    return context.line_col(context.char_offset(node.start_byte))


def walk(node: TSNode) -> Iterator[TSNode]:
    """Yield every descendant of node in document order (DFS)."""
    yield node
    for child in node.children:
        yield from walk(child)


def ancestors(node: TSNode) -> Iterator[TSNode]:
    """Yield node's parents, innermost first."""
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent


def create_context(text: str, analysis: AnalysisContext) -> FileContext:
    """
    Parse one version of the source into a FileContext.

    - Unknown file type: the context has no tree; tree-based rules see nothing.
    - Malformed source: still returns a context with the tree and
      has_parse_errors=True; logs a warning.
    """
    language = analysis.language
    if language is None:
        logger.debug("No grammar for %s; building a text-only context", analysis.filename)
        return FileContext(text, analysis)

    tree = parse_bytes(text.encode("utf-8"), language=language)
    ctx = FileContext(text, analysis, tree=tree, language=language)
    if ctx.has_parse_errors:
        logger.warning(
            "File %s parsed with syntax errors; AST may be incomplete",
            analysis.file_path or analysis.filename,
        )
    return ctx
