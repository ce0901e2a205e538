from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from codepack.classification import (
    detect_project_type,
    file_extension,
    is_excluded_dir,
    is_source_file,
    plugin_matches,
)
from codepack.config import GENERIC_PROJECT_TYPE
from codepack.models import PluginDef

if TYPE_CHECKING:
    from pathlib import Path


def touch(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.mark.unit
@pytest.mark.parametrize("name", ["node_modules", "NODE_MODULES", ".git", "target", "__pycache__", "Pods"])
def test_is_excluded_dir_builtin_case_insensitive(name: str) -> None:
    assert is_excluded_dir(name) is True


@pytest.mark.unit
def test_is_excluded_dir_extra_and_regular() -> None:
    assert is_excluded_dir("src") is False
    assert is_excluded_dir("Generated", ["generated"]) is True


@pytest.mark.unit
def test_file_extension_leading_dot_has_none() -> None:
    assert file_extension(".gitignore") == ""
    assert file_extension("Main.RS") == "rs"
    assert file_extension("archive.tar.gz") == "gz"


@pytest.mark.unit
@pytest.mark.parametrize("name", ["main.rs", "App.TSX", "Dockerfile", "makefile", "CMakeLists.txt", "Gemfile"])
def test_is_source_file_accepts_sources_and_build_files(name: str) -> None:
    assert is_source_file(name) is True


@pytest.mark.unit
@pytest.mark.parametrize("name", ["LICENSE", "image.png", ".gitignore", "notes.docx"])
def test_is_source_file_rejects_others(name: str) -> None:
    assert is_source_file(name) is False


@pytest.mark.unit
def test_is_source_file_extra_extensions_with_or_without_dot() -> None:
    assert is_source_file("rules.dsl", ["dsl"]) is True
    assert is_source_file("rules.dsl", [".DSL"]) is True
    assert is_source_file("rules.dsl") is False


@pytest.mark.unit
def test_plugin_matches_requires_at_least_one_rule(tmp_path: Path) -> None:
    assert plugin_matches(PluginDef(name="Empty"), tmp_path) is False


@pytest.mark.unit
def test_plugin_matches_checks_files_and_dirs(tmp_path: Path) -> None:
    touch(tmp_path / "special.config")
    plugin = PluginDef(name="Special", detect_files=["special.config"], detect_dirs=["modules"])
    assert plugin_matches(plugin, tmp_path) is False

    (tmp_path / "modules").mkdir()
    assert plugin_matches(plugin, tmp_path) is True


@pytest.mark.unit
def test_detect_project_type_plugin_wins_over_builtin(tmp_path: Path) -> None:
    touch(tmp_path / "special.config")
    touch(tmp_path / "Cargo.toml", '[package]\nname = "x"\n')
    plugins = [
        PluginDef(name="Other", detect_files=["missing.cfg"]),
        PluginDef(name="Special", detect_files=["special.config"]),
        PluginDef(name="Later", detect_files=["special.config"]),
    ]

    assert detect_project_type(tmp_path, plugins) == "Special"
    assert detect_project_type(tmp_path) == "Rust"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("files", "expected"),
    [
        (["build.gradle.kts", "app/Main.kt"], "Android / Gradle"),
        (["build.gradle"], "Gradle"),
        (["pubspec.yaml"], "Flutter / Dart"),
        (["go.mod"], "Go"),
        (["pom.xml"], "Java / Maven"),
        (["Package.swift"], "Swift"),
        (["CMakeLists.txt"], "C++ / CMake"),
        (["Makefile", "main.c"], "C"),
        (["Gemfile"], "Ruby"),
        (["docker-compose.yml"], "Docker"),
        (["package.json", "next.config.js"], "Next.js"),
        (["package.json", "vite.config.ts"], "Vite"),
        (["nuxt.config.ts"], "Nuxt.js"),
        (["requirements.txt"], "Python"),
        (["package.json"], "Node.js"),
        (["README.md"], GENERIC_PROJECT_TYPE),
    ],
)
def test_detect_builtin_cascade(tmp_path: Path, files: list[str], expected: str) -> None:
    for f in files:
        touch(tmp_path / f)

    assert detect_project_type(tmp_path) == expected


@pytest.mark.unit
def test_makefile_without_c_sources_is_not_c(tmp_path: Path) -> None:
    touch(tmp_path / "Makefile")
    touch(tmp_path / "script.py")

    assert detect_project_type(tmp_path) == GENERIC_PROJECT_TYPE
