"""Tests for deletion, external clean and Kotlin build cleanup."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

from devsweep.core.cleaner import (
    clean_cache,
    clean_caches,
    clean_kotlin_build_artifacts,
    clean_project,
    delete_path,
    run_external_clean,
)
from devsweep.models.cache_entry import CacheEntry
from devsweep.models.project_entry import ProjectEntry
from devsweep.models.results import DELETION_FAILED, NOT_FOUND, SPAWN_FAILED, TIMED_OUT


def _fail_rmtree_for(monkeypatch, failing: Path) -> None:
    real_rmtree = shutil.rmtree

    def flaky(path, *args, **kwargs):
        if Path(path) == failing:
            raise PermissionError(13, "Permission denied", str(path))
        return real_rmtree(path, *args, **kwargs)

    monkeypatch.setattr("devsweep.core.cleaner.shutil.rmtree", flaky)


class TestDeletePath:
    def test_removes_directory_tree(self, tmp_path):
        target = tmp_path / "cache"
        (target / "a" / "b").mkdir(parents=True)
        (target / "a" / "b" / "file").write_bytes(b"x" * 10)

        result = delete_path(target)
        assert result.ok
        assert result.failure is None
        assert not target.exists()

    def test_removes_single_file(self, tmp_path):
        target = tmp_path / "file.bin"
        target.write_bytes(b"x")
        assert delete_path(target).ok
        assert not target.exists()

    def test_symlink_is_unlinked_not_followed(self, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        (real / "keep.txt").write_text("keep")
        link = tmp_path / "link"
        os.symlink(real, link)

        assert delete_path(link).ok
        assert not os.path.lexists(link)
        assert (real / "keep.txt").exists()

    def test_missing_path_is_not_found(self, tmp_path):
        result = delete_path(tmp_path / "missing")
        assert not result.ok
        assert result.failure == NOT_FOUND

    def test_retry_is_idempotent(self, tmp_path):
        target = tmp_path / "cache"
        target.mkdir()
        assert delete_path(target).ok

        first = delete_path(target)
        second = delete_path(target)
        assert first.failure == NOT_FOUND
        assert first == second

    def test_removal_error_carries_reason(self, tmp_path, monkeypatch):
        target = tmp_path / "locked"
        target.mkdir()
        _fail_rmtree_for(monkeypatch, target)

        result = delete_path(target, label="Gradle Caches")
        assert result.failure == DELETION_FAILED
        assert "Permission denied" in result.reason
        assert result.describe() == f"Failed to delete Gradle Caches at {target}: {result.reason}"
        assert target.exists()

    def test_describe(self, tmp_path):
        assert delete_path(tmp_path / "gone", label="Flutter Pub Cache").describe() == (
            f"Path not found for Flutter Pub Cache at {tmp_path / 'gone'}"
        )
        assert delete_path(tmp_path / "gone").describe() == f"Path not found: {tmp_path / 'gone'}"


class TestBatchDeletion:
    def test_batch_continues_after_failure(self, tmp_path, monkeypatch):
        first, second, third = (tmp_path / n for n in ("one", "two", "three"))
        for d in (first, second, third):
            d.mkdir()
        _fail_rmtree_for(monkeypatch, second)

        entries = [CacheEntry(p.name, p.name, p) for p in (first, second, third, tmp_path / "missing")]
        result = clean_caches(entries)
        assert [a.failure for a in result.attempts] == [None, DELETION_FAILED, None, NOT_FOUND]
        assert result.deleted == [first, third]
        assert len(result.errors) == 1
        assert len(result.log_lines) == 4

    def test_clean_caches_only_selected(self, tmp_path):
        gradle = tmp_path / "gradle"
        pub = tmp_path / "pub"
        gradle.mkdir()
        pub.mkdir()
        entries = [
            CacheEntry("gradle_caches", "Gradle Caches", gradle, selected=True, size_bytes=1000),
            CacheEntry("flutter_pub_cache", "Flutter Pub Cache", pub, selected=False, size_bytes=500),
        ]

        result = clean_caches(entries)
        assert len(result.attempts) == 1
        assert not gradle.exists()
        assert pub.exists()
        assert result.freed_bytes == 1000
        assert result.log_lines == [f"Deleted Gradle Caches at {gradle}"]

    def test_clean_cache_single_entry(self, tmp_path):
        cache = tmp_path / "pub"
        cache.mkdir()
        attempt = clean_cache(CacheEntry("flutter_pub_cache", "Flutter Pub Cache", cache, size_bytes=42))
        assert attempt.ok
        assert attempt.size_bytes == 42
        assert attempt.describe() == f"Deleted Flutter Pub Cache at {cache}"

    def test_clean_caches_unknown_size_counts_zero(self, tmp_path):
        cache = tmp_path / "cache"
        cache.mkdir()
        result = clean_caches([CacheEntry("c", "Cache", cache)])
        assert result.freed_bytes == 0
        assert result.deleted == [cache]


class TestRunExternalClean:
    def test_captures_combined_output(self, tmp_path, make_tool):
        tool = make_tool("flutter", 'echo "Deleting build..."\necho "warning: stale lock" >&2')
        result = run_external_clean(tool, tmp_path)

        assert result.ok
        assert result.returncode == 0
        assert "Deleting build..." in result.output
        assert "warning: stale lock" in result.output

    def test_runs_in_working_directory(self, tmp_path, make_tool):
        project = tmp_path / "project"
        project.mkdir()
        (project / "pubspec.yaml").write_text("")
        tool = make_tool("flutter", 'ls\necho "arg=$1"')

        result = run_external_clean(tool, project)
        assert "pubspec.yaml" in result.output
        assert "arg=clean" in result.output
        assert result.working_directory == project

    def test_exit_status_not_classified(self, tmp_path, make_tool):
        tool = make_tool("flutter", 'echo "flutter: command not found"\nexit 127')
        result = run_external_clean(tool, tmp_path)

        assert result.ok
        assert result.failure is None
        assert result.returncode == 127
        assert "command not found" in result.output

    def test_missing_executable_is_spawn_failure(self, tmp_path):
        result = run_external_clean(tmp_path / "bin" / "flutter", tmp_path)

        assert not result.ok
        assert result.failure == SPAWN_FAILED
        assert result.output == ""
        assert result.returncode is None
        assert result.reason

    def test_spawn_failure_distinct_from_tool_error(self, tmp_path, make_tool):
        missing = run_external_clean(tmp_path / "nowhere" / "flutter", tmp_path)
        tool = make_tool("flutter", 'echo "zsh: command not found: flutter"')
        printed = run_external_clean(tool, tmp_path)

        assert missing.failure == SPAWN_FAILED
        assert printed.failure is None
        assert missing != printed

    def test_timeout(self, tmp_path, make_tool):
        tool = make_tool("flutter", "exec sleep 5")
        result = run_external_clean(tool, tmp_path, timeout=0.5)

        assert result.failure == TIMED_OUT
        assert "timed out" in result.reason


class TestCleanKotlinBuildArtifacts:
    def test_deletes_build_dirs_at_any_depth(self, tmp_path):
        build_dirs = [
            tmp_path / "build",
            tmp_path / "app" / "build",
            tmp_path / "feature" / "src" / "main" / "build",
        ]
        for d in build_dirs:
            d.mkdir(parents=True)
            (d / "output.bin").write_bytes(b"o" * 10)
        (tmp_path / "app" / "src").mkdir()
        (tmp_path / "app" / "src" / "Main.kt").write_text("fun main() {}")

        result = clean_kotlin_build_artifacts(tmp_path)
        assert len(result.attempts) == 3
        assert len(result.log_lines) == 3
        assert sorted(result.deleted) == sorted(build_dirs)
        assert not any(d.exists() for d in build_dirs)
        assert (tmp_path / "app" / "src" / "Main.kt").exists()
        assert result.freed_bytes == 30

    def test_logs_every_attempt_despite_failures(self, tmp_path, monkeypatch):
        build_dirs = [tmp_path / "build", tmp_path / "a" / "build", tmp_path / "a" / "b" / "build"]
        for d in build_dirs:
            d.mkdir(parents=True)
        _fail_rmtree_for(monkeypatch, build_dirs[1])

        result = clean_kotlin_build_artifacts(tmp_path)
        assert len(result.attempts) == 3
        assert len(result.log_lines) == 3
        assert len(result.errors) == 1
        assert build_dirs[1].exists()
        assert not build_dirs[0].exists()
        assert not build_dirs[2].exists()

    def test_descends_into_build_dir_that_could_not_be_deleted(self, tmp_path, monkeypatch):
        outer = tmp_path / "build"
        inner = outer / "intermediates" / "build"
        inner.mkdir(parents=True)
        (inner / "classes.dex").write_bytes(b"d" * 8)
        _fail_rmtree_for(monkeypatch, outer)

        result = clean_kotlin_build_artifacts(tmp_path)
        assert [a.path for a in result.attempts] == [outer, inner]
        assert result.attempts[0].failure == DELETION_FAILED
        assert result.attempts[1].ok
        assert outer.exists()
        assert not inner.exists()
        assert result.freed_bytes == 8

    def test_nested_build_removed_with_parent(self, tmp_path):
        nested = tmp_path / "build" / "intermediates" / "build"
        nested.mkdir(parents=True)

        result = clean_kotlin_build_artifacts(tmp_path)
        assert result.deleted == [tmp_path / "build"]

    def test_files_named_build_are_kept(self, tmp_path):
        (tmp_path / "build").write_text("#!/bin/sh\n")
        result = clean_kotlin_build_artifacts(tmp_path)
        assert result.attempts == []
        assert (tmp_path / "build").exists()

    def test_project_root_itself_is_kept(self, tmp_path):
        root = tmp_path / "build"
        root.mkdir()
        (root / "settings.gradle").write_text("")
        result = clean_kotlin_build_artifacts(root)
        assert result.attempts == []
        assert root.exists()

    def test_missing_project(self, tmp_path):
        result = clean_kotlin_build_artifacts(tmp_path / "missing", name="ghost")
        assert result.target == "ghost"
        assert result.attempts == []
        assert "not found" in result.error


class TestCleanProject:
    @pytest.fixture
    def flutter_project(self, tmp_path):
        path = tmp_path / "my_app"
        (path / "android" / "app" / "build").mkdir(parents=True)
        (path / "pubspec.yaml").write_text("name: my_app\n")
        (path / "settings.gradle").write_text("")
        return ProjectEntry("my_app", path, is_flutter_project=True, is_kotlin_project=True)

    def test_runs_flutter_and_kotlin(self, flutter_project, make_tool):
        tool = make_tool("flutter", 'echo "Cleaning Xcode workspace..."')
        result = clean_project(flutter_project, flutter_path=tool)

        assert result.ok
        assert result.flutter is not None and "Cleaning Xcode workspace" in result.flutter.output
        assert result.kotlin is not None and len(result.kotlin.deleted) == 1
        assert "Flutter clean output for my_app:" in result.log_text
        assert "Kotlin cache cleanup for my_app:" in result.log_text

    def test_resolves_flutter_via_resolver(self, flutter_project, make_tool):
        tool = make_tool("flutter", "echo ok")
        calls: list[str] = []

        def resolver(name):
            calls.append(name)
            return tool

        result = clean_project(flutter_project, kotlin=False, resolver=resolver)
        assert calls == ["flutter"]
        assert result.flutter is not None and result.flutter.ok
        assert result.kotlin is None

    def test_flutter_not_found(self, flutter_project):
        result = clean_project(flutter_project, resolver=lambda name: None)

        assert not result.ok
        assert result.flutter is None
        assert result.messages == ["Error: Flutter executable not found in PATH."]
        assert result.kotlin is not None
        assert "Flutter executable not found" in result.log_text

    def test_spawn_failure_reported(self, flutter_project, tmp_path):
        result = clean_project(flutter_project, flutter_path=tmp_path / "missing" / "flutter", kotlin=False)

        assert not result.ok
        assert result.flutter is not None and result.flutter.failure == SPAWN_FAILED
        assert "Error running flutter clean on my_app" in result.log_text

    def test_kotlin_only_project_never_resolves_flutter(self, tmp_path):
        path = tmp_path / "kt"
        (path / "build").mkdir(parents=True)
        project = ProjectEntry("kt", path, is_kotlin_project=True)

        def resolver(name):
            raise AssertionError("flutter lookup not expected")

        result = clean_project(project, resolver=resolver)
        assert result.flutter is None
        assert result.kotlin is not None and result.kotlin.deleted == [path / "build"]
