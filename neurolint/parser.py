# Tree-sitter setup and AST parsing: parse JavaScript, TypeScript, TSX and JSON
# source into AST trees. Grammar is chosen from the file extension.

import logging
import re
from typing import Optional

import tree_sitter
import tree_sitter_javascript
import tree_sitter_json
import tree_sitter_typescript
from tree_sitter import Language

logger = logging.getLogger(__name__)

# Grammars: wrap the tree-sitter capsules once; Language objects are immutable.
_LANGUAGES = {
    "javascript": Language(tree_sitter_javascript.language()),
    "typescript": Language(tree_sitter_typescript.language_typescript()),
    "tsx": Language(tree_sitter_typescript.language_tsx()),
    "json": Language(tree_sitter_json.language()),
}

# The JavaScript grammar accepts JSX, so .js and .jsx share it.
EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".json": "json",
}

_PATH_SEPARATORS = re.compile(r"[\\/]")


def basename(path: str) -> str:
    """Last segment of a POSIX or Windows style path, without touching the input."""
    return _PATH_SEPARATORS.split(path)[-1]


def extension_of(filename: str) -> str:
    name = basename(filename)
    idx = name.rfind(".")
    if idx <= 0:
        return ""
    return name[idx:].lower()


def language_for_filename(filename: str) -> Optional[str]:
    """Return the grammar name for a filename, or None if no grammar handles it."""
    return EXTENSION_LANGUAGES.get(extension_of(filename))


def get_language(name: str) -> Language:
    """Return the Tree-sitter Language object for a grammar name."""
    try:
        return _LANGUAGES[name]
    except KeyError:
        raise ValueError(f"Unknown grammar: {name}") from None


def create_parser(language: str = "tsx") -> tree_sitter.Parser:
    """Create and return a Tree-sitter Parser configured for one grammar."""
    return tree_sitter.Parser(get_language(language))


def parse_bytes(
    source: bytes,
    language: str = "tsx",
    parser: Optional[tree_sitter.Parser] = None,
) -> tree_sitter.Tree:
    """
    Parse UTF-8 source bytes into an AST.

    Args:
        source: UTF-8 encoded source code.
        language: Grammar name (javascript, typescript, tsx, json).
        parser: Optional parser instance; if None, a new one is created.

    Returns:
        The parse tree. Check tree.root_node.has_error for syntax errors.
    """
    if parser is None:
        parser = create_parser(language)
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.warning(
            "Parse completed with errors: language=%s root=%s",
            language,
            tree.root_node.type,
        )
    else:
        logger.debug(
            "Parse succeeded: language=%s root=%s",
            language,
            tree.root_node.type,
        )
    return tree


def parse_text(text: str, language: str = "tsx") -> tree_sitter.Tree:
    """Parse a str; a fresh parser is created per call."""
    return parse_bytes(text.encode("utf-8"), language=language)
