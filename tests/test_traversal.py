"""Tests for file system traversal functionality."""

import logging
from pathlib import Path

import pytest

from neurolint.traversal import (
    DEFAULT_IGNORE_DIRS,
    find_source_files,
    is_script_file,
    is_source_file,
    should_ignore_directory,
)


class TestFileTypeChecks:
    """Test file type checking functions."""

    def test_is_script_file_recognizes_js_and_ts(self):
        """is_script_file() accepts every JavaScript and TypeScript extension."""
        for name in ("a.js", "a.jsx", "a.mjs", "a.cjs", "a.ts", "a.tsx", "a.mts", "a.cts"):
            assert is_script_file(Path(name)), name

    def test_is_script_file_case_insensitive(self):
        assert is_script_file(Path("App.JSX"))

    def test_is_script_file_rejects_declarations_and_others(self):
        """Type declaration files and non-script files are skipped."""
        assert not is_script_file(Path("types.d.ts"))
        assert not is_script_file(Path("styles.css"))
        assert not is_script_file(Path("README.md"))

    def test_is_source_file_json_opt_in(self):
        assert not is_source_file(Path("tsconfig.json"))
        assert is_source_file(Path("tsconfig.json"), include_json=True)

    def test_lock_files_never_collected(self):
        assert not is_source_file(Path("package-lock.json"), include_json=True)


class TestDirectoryFiltering:
    """Test directory ignore logic."""

    def test_should_ignore_directory_by_name(self):
        ignore_set = {"node_modules", ".next"}
        assert should_ignore_directory(Path("node_modules"), ignore_set)
        assert should_ignore_directory(Path("app/.next"), ignore_set)
        assert not should_ignore_directory(Path("src"), ignore_set)

    def test_default_ignore_dirs_includes_common_patterns(self):
        for name in ("node_modules", ".next", "dist", "build", ".git"):
            assert name in DEFAULT_IGNORE_DIRS


class TestTraversal:
    """Test file traversal functions."""

    @pytest.fixture
    def temp_project(self, tmp_path):
        """
        tmp_path/
          src/app/page.tsx
          src/components/Button.jsx
          src/types.d.ts
          tsconfig.json
          package-lock.json
          node_modules/react/index.js   (ignored)
          .next/server/page.js          (ignored)
          README.md
        """
        (tmp_path / "src" / "app").mkdir(parents=True)
        (tmp_path / "src" / "components").mkdir()
        (tmp_path / "node_modules" / "react").mkdir(parents=True)
        (tmp_path / ".next" / "server").mkdir(parents=True)

        (tmp_path / "src" / "app" / "page.tsx").write_text("export default function Page() { return null; }")
        (tmp_path / "src" / "components" / "Button.jsx").write_text("export const Button = () => <button />;")
        (tmp_path / "src" / "types.d.ts").write_text("declare const x: number;")
        (tmp_path / "tsconfig.json").write_text('{"compilerOptions": {}}')
        (tmp_path / "package-lock.json").write_text("{}")
        (tmp_path / "node_modules" / "react" / "index.js").write_text("module.exports = {};")
        (tmp_path / ".next" / "server" / "page.js").write_text("// build output")
        (tmp_path / "README.md").write_text("# App")
        return tmp_path

    def test_find_source_files_scripts_only(self, temp_project):
        files = find_source_files(temp_project)
        assert [f.name for f in files] == ["page.tsx", "Button.jsx"]
        assert all("node_modules" not in f.parts for f in files)
        assert all(".next" not in f.parts for f in files)

    def test_find_source_files_with_json(self, temp_project):
        names = {f.name for f in find_source_files(temp_project, include_json=True)}
        assert names == {"page.tsx", "Button.jsx", "tsconfig.json"}

    def test_results_are_sorted(self, temp_project):
        files = find_source_files(temp_project, include_json=True)
        assert files == sorted(files)

    def test_custom_filter(self, temp_project):
        files = find_source_files(temp_project, filter_fn=lambda p: p.suffix == ".tsx")
        assert [f.name for f in files] == ["page.tsx"]

    def test_custom_ignore_dirs(self, temp_project):
        files = find_source_files(temp_project, ignore_dirs={"components"})
        names = {f.name for f in files}
        assert "Button.jsx" not in names
        assert "index.js" in names

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_source_files(tmp_path / "missing")

    def test_file_root_raises(self, tmp_path):
        target = tmp_path / "a.js"
        target.write_text("1;")
        with pytest.raises(NotADirectoryError):
            find_source_files(target)

    def test_traversal_logs_summary(self, temp_project, caplog):
        with caplog.at_level(logging.INFO):
            find_source_files(temp_project)
        assert any("Traversal complete" in r.message for r in caplog.records)
