"""
File system traversal: walk directories and collect JavaScript, TypeScript and
JSON files for analysis.

Typical usage:
    from pathlib import Path
    from neurolint.traversal import find_source_files

    files = find_source_files(Path("./my-app"))

    # JSON configuration files are skipped unless asked for
    files = find_source_files(Path("./my-app"), include_json=True)
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)

SCRIPT_EXTENSIONS: Set[str] = {".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts"}
JSON_EXTENSIONS: Set[str] = {".json"}

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Dependencies and build output
    "node_modules",
    ".next",
    ".nuxt",
    ".turbo",
    ".vercel",
    ".output",
    "dist",
    "build",
    "out",
    "coverage",
    "storybook-static",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".vscode",
    ".idea",

    # Cache directories
    ".cache",
    "__pycache__",
}

# Lock files are JSON but never hand-edited.
IGNORED_FILES: Set[str] = {"package-lock.json", "npm-shrinkwrap.json"}


def is_script_file(path: Path) -> bool:
    """
    Check if a file is a JavaScript or TypeScript source file.

    Examples:
        >>> is_script_file(Path("page.tsx"))
        True
        >>> is_script_file(Path("types.d.ts"))
        False
    """
    if path.name.endswith(".d.ts"):
        return False
    return path.suffix.lower() in SCRIPT_EXTENSIONS


def is_source_file(path: Path, include_json: bool = False) -> bool:
    if path.name in IGNORED_FILES:
        return False
    if is_script_file(path):
        return True
    return include_json and path.suffix.lower() in JSON_EXTENSIONS


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """Only the directory name is compared, not the full path."""
    return dir_path.name in ignore_dirs


def find_source_files(
    root: Path,
    include_json: bool = False,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find all analyzable files in a directory tree.

    Args:
        root: Root directory to start traversal from.
        include_json: If True, also collect .json files (tsconfig, package.json, ...).
        ignore_dirs: Set of directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        follow_symlinks: If True, follow symbolic links during traversal.
        filter_fn: Optional additional filter; only files for which it returns
                   True are included.

    Returns:
        Sorted list of matching files.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If root is not a directory.

    Permission errors on subdirectories are logged and skipped.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)
    logger.debug(
        "Traversal config: include_json=%s, follow_symlinks=%s, ignore_dirs=%s",
        include_json,
        follow_symlinks,
        ignore_dirs,
    )

    collected_files: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)

                elif entry.is_file() and is_source_file(entry, include_json=include_json):
                    if filter_fn is not None and not filter_fn(entry):
                        logger.debug("Filtered out by custom filter: %s", entry)
                        continue
                    logger.debug("Found source file: %s", entry)
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)
    collected_files.sort()

    logger.info(
        "Traversal complete: found %d source file(s) in %s",
        len(collected_files),
        root,
    )

    return collected_files
