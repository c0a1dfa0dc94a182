"""Tests for source file discovery and reading."""

import logging
from pathlib import Path

from similarity_ts.config import FUNCTION_EXTENSIONS, TYPE_EXTENSIONS
from similarity_ts.indexer import find_source_files, read_sources
from similarity_ts.models import DiagnosticKind


def names(files):
    return sorted(Path(f).name for f in files)


class TestFindSourceFiles:
    def test_walks_directory_and_skips_node_modules(self, project):
        files = find_source_files([str(project)], FUNCTION_EXTENSIONS)

        assert names(files) == ["broken.ts", "math.ts", "types.ts"]
        assert all("node_modules" not in f for f in files)
        assert files == sorted(files)

    def test_extension_filter(self, project):
        (project / "src" / "app.js").write_text("const x = 1;\n")
        (project / "src" / "README.md").write_text("# readme\n")

        assert "app.js" in names(find_source_files([str(project)], FUNCTION_EXTENSIONS))
        assert "app.js" not in names(find_source_files([str(project)], TYPE_EXTENSIONS))
        assert "README.md" not in names(find_source_files([str(project)], FUNCTION_EXTENSIONS))

    def test_honours_gitignore(self, project):
        (project / ".gitignore").write_text("broken.ts\ngenerated/\n")
        generated = project / "generated"
        generated.mkdir()
        (generated / "api.ts").write_text("export const a = 1;\n")

        assert names(find_source_files([str(project)], FUNCTION_EXTENSIONS)) == ["math.ts", "types.ts"]

    def test_honours_nested_gitignore(self, project):
        pkg = project / "pkg"
        (pkg / "gen").mkdir(parents=True)
        (pkg / ".gitignore").write_text("gen/\n/local.ts\n")
        (pkg / "gen" / "out.ts").write_text("export const a = 1;\n")
        (pkg / "local.ts").write_text("export const b = 2;\n")
        (pkg / "index.ts").write_text("export const c = 3;\n")
        (project / "src" / "local.ts").write_text("export const d = 4;\n")

        files = find_source_files([str(project)], FUNCTION_EXTENSIONS)
        rel = sorted(Path(f).relative_to(project).as_posix() for f in files)

        assert "pkg/gen/out.ts" not in rel
        assert "pkg/local.ts" not in rel
        assert "pkg/index.ts" in rel
        assert "src/local.ts" in rel

    def test_repository_gitignore_applies_to_subfolder(self, project):
        (project / ".git").mkdir()
        (project / ".gitignore").write_text("src/broken.ts\n*.gen.ts\n")
        (project / "src" / "api.gen.ts").write_text("export const a = 1;\n")

        files = find_source_files([str(project / "src")], FUNCTION_EXTENSIONS)

        assert names(files) == ["math.ts", "types.ts"]

    def test_parent_gitignore_ignored_outside_a_repository(self, project):
        (project / ".gitignore").write_text("*.ts\n")

        files = find_source_files([str(project / "src")], FUNCTION_EXTENSIONS)

        assert names(files) == ["broken.ts", "math.ts", "types.ts"]

    def test_exclude_patterns(self, project):
        files = find_source_files([str(project)], FUNCTION_EXTENSIONS, exclude_patterns=["*types.ts"])
        assert names(files) == ["broken.ts", "math.ts"]

        files = find_source_files([str(project)], FUNCTION_EXTENSIONS, exclude_patterns=["src"])
        assert files == []

    def test_explicit_file(self, project):
        target = project / "src" / "math.ts"

        assert find_source_files([str(target)], FUNCTION_EXTENSIONS) == [str(target)]

    def test_explicit_file_with_other_extension(self, project):
        target = project / "notes.txt"
        target.write_text("hello\n")

        assert find_source_files([str(target)], FUNCTION_EXTENSIONS) == []

    def test_deduplicates_overlapping_paths(self, project):
        src = project / "src"
        files = find_source_files([str(project), str(src), str(src / "math.ts")], FUNCTION_EXTENSIONS)

        assert len(files) == 3

    def test_missing_path_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            files = find_source_files([str(tmp_path / "missing")], FUNCTION_EXTENSIONS)

        assert files == []
        assert "Path not found" in caplog.text


class TestReadSources:
    def test_reads_files(self, project):
        files = find_source_files([str(project / "src")], FUNCTION_EXTENSIONS)
        sources, diagnostics = read_sources(files)

        assert set(sources) == set(files)
        assert diagnostics == []
        assert "calculateTotal" in sources[str(project / "src" / "math.ts")]

    def test_unreadable_file_becomes_diagnostic(self, tmp_path):
        bad = tmp_path / "latin1.ts"
        bad.write_bytes(b"const s = '\xff\xfe';\n")
        missing = tmp_path / "gone.ts"

        sources, diagnostics = read_sources([str(bad), str(missing)])

        assert sources == {}
        assert [d.file_path for d in diagnostics] == [str(bad), str(missing)]
        assert all(d.kind is DiagnosticKind.INPUT_ERROR for d in diagnostics)
