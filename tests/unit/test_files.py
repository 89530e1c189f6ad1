"""Tests for file system helpers."""

import os

import pytest

from kreate.errors import ResolutionError
from kreate.files import GITIGNORE_CONTENT, ensure_managed_dir, find_file, find_global, infer_main_dir


class TestManagedDir:
    def test_creates_directory_with_gitignore(self, tmp_path):
        target = tmp_path / "build" / "nested"
        ensure_managed_dir(target)
        assert (target / ".gitignore").read_text() == GITIGNORE_CONTENT
        assert GITIGNORE_CONTENT.endswith("*")

    def test_overwrites_edited_gitignore(self, tmp_path):
        (tmp_path / ".gitignore").write_text("edited")
        ensure_managed_dir(tmp_path)
        assert (tmp_path / ".gitignore").read_text() == GITIGNORE_CONTENT


class TestInferMainDir:
    def test_first_source_directory(self):
        assert infer_main_dir(["cmd/app/main.go", "lib/util.go"]) == "cmd/app"

    def test_bare_file_and_no_sources(self):
        assert infer_main_dir(["main.go"]) == "."
        assert infer_main_dir([]) == "."


class TestFindFile:
    def test_direct_relative_path(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "main.go").write_text("")
        assert find_file("src/main.go", root=tmp_path) == os.path.normpath(tmp_path / "src" / "main.go")

    def test_search_by_base_name(self, tmp_path):
        deep = tmp_path / "a" / "b"
        deep.mkdir(parents=True)
        (deep / "util.d").write_text("")
        assert find_file("util.d", root=tmp_path) == os.path.normpath(deep / "util.d")

    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        (tmp_path / "x.odin").write_text("")
        monkeypatch.chdir(tmp_path)
        assert find_file("x.odin") == os.path.normpath(os.path.join(os.getcwd(), "x.odin"))

    def test_not_found(self, tmp_path):
        with pytest.raises(ResolutionError, match="could not find: nope.go"):
            find_file("nope.go", root=tmp_path)


class TestFindGlobal:
    def test_first_matching_directory_wins(self, tmp_path, monkeypatch):
        first, second = tmp_path / "one", tmp_path / "two"
        first.mkdir()
        second.mkdir()
        (second / "std.h").write_text("")
        (first / "std.h").write_text("")
        monkeypatch.setenv("INCLUDE", os.pathsep.join([str(first), str(second)]))
        assert find_global("std.h") == os.path.normpath(first / "std.h")

    def test_skips_empty_entries(self, tmp_path, monkeypatch):
        (tmp_path / "lib.h").write_text("")
        monkeypatch.setenv("INCLUDE", os.pathsep + str(tmp_path))
        assert find_global("lib.h") == os.path.normpath(tmp_path / "lib.h")

    def test_custom_variable(self, tmp_path, monkeypatch):
        (tmp_path / "m.odin").write_text("")
        monkeypatch.setenv("ODIN_PATH", str(tmp_path))
        assert find_global("m.odin", env_var="ODIN_PATH").endswith("m.odin")

    def test_unset_variable(self, monkeypatch):
        monkeypatch.delenv("INCLUDE", raising=False)
        with pytest.raises(ResolutionError, match="INCLUDE is not set"):
            find_global("std.h")

    def test_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INCLUDE", str(tmp_path))
        with pytest.raises(ResolutionError, match="Could not find: std.h"):
            find_global("std.h")
