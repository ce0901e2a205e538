"""Directory/file classification and project-type detection."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from codepack.config import (
    BUILD_FILE_NAMES,
    EXCLUDED_DIRS,
    FRAMEWORK_CONFIG_PREFIXES,
    GENERIC_PROJECT_TYPE,
    SOURCE_EXTENSIONS,
)
from codepack.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from codepack.models import PluginDef

_EXCLUDED_DIRS_LOWER = frozenset(d.lower() for d in EXCLUDED_DIRS)


def is_excluded_dir(name: str, extra_excludes: Iterable[str] = ()) -> bool:
    """Check whether a directory name is on the builtin or caller-supplied denylist.

    Args:
        name (str): bare directory name (not a path)
        extra_excludes (Iterable[str]): additional names, e.g. from plugins

    Returns:
        bool: True if the name matches either list, ignoring case
    """
    low = name.lower()
    if low in _EXCLUDED_DIRS_LOWER:
        return True
    return any(low == extra.lower() for extra in extra_excludes)


def file_extension(name: str) -> str:
    """Return the lowercase extension of a file name without the dot.

    A leading dot does not start an extension: ``.gitignore`` has none.

    Args:
        name (str): bare file name

    Returns:
        str: the extension, or "" when there is none
    """
    return Path(name).suffix.lower().removeprefix(".")


def is_source_file(name: str, extra_extensions: Iterable[str] = ()) -> bool:
    """Check whether a file name counts as source for packing.

    Args:
        name (str): bare file name
        extra_extensions (Iterable[str]): additional extensions, with or without a leading dot

    Returns:
        bool: True for known build files and allowlisted extensions
    """
    if name.lower() in BUILD_FILE_NAMES:
        return True
    ext = file_extension(name)
    if not ext:
        return False
    if ext in SOURCE_EXTENSIONS:
        return True
    return any(ext == extra.lower().removeprefix(".") for extra in extra_extensions)


def plugin_matches(plugin: PluginDef, root: Path) -> bool:
    """Check whether every detection rule of a plugin holds under ``root``.

    A plugin without any detection rule never matches.
    """
    if not plugin.detect_files and not plugin.detect_dirs:
        return False
    files_ok = all((root / f).exists() for f in plugin.detect_files)
    dirs_ok = all((root / d).is_dir() for d in plugin.detect_dirs)
    return files_ok and dirs_ok


def _top_level_names(root: Path) -> list[str]:
    try:
        return sorted(entry.name for entry in root.iterdir())
    except OSError as e:
        logger.debug("cannot list directory", path=str(root), error=str(e))
        return []


def _has_c_sources(root: Path) -> bool:
    return any(name.endswith((".c", ".h")) for name in _top_level_names(root))


def _framework_from_config(root: Path) -> str | None:
    for name in _top_level_names(root):
        for prefix, label in FRAMEWORK_CONFIG_PREFIXES:
            if name.startswith(prefix):
                return label
    return None


def detect_builtin_project_type(root: Path) -> str:  # noqa: PLR0911
    """Name the project's ecosystem from marker files, most specific first.

    Args:
        root (Path): the project root

    Returns:
        str: an ecosystem label such as "Rust" or "Node.js", or the generic label
    """
    if (root / "build.gradle.kts").exists() or (root / "build.gradle").exists():
        if (root / "app").is_dir() or (root / "AndroidManifest.xml").exists():
            return "Android / Gradle"
        return "Gradle"
    if (root / "pubspec.yaml").exists():
        return "Flutter / Dart"
    if (root / "Cargo.toml").exists():
        return "Rust"
    if (root / "go.mod").exists():
        return "Go"
    if (root / "pom.xml").exists():
        return "Java / Maven"
    if (root / "Package.swift").exists():
        return "Swift"
    if (root / "CMakeLists.txt").exists():
        return "C++ / CMake"
    if ((root / "Makefile").exists() or (root / "makefile").exists()) and _has_c_sources(root):
        return "C"
    if (root / "Gemfile").exists():
        return "Ruby"
    if (root / "docker-compose.yml").exists() or (root / "docker-compose.yaml").exists():
        return "Docker"
    framework = _framework_from_config(root)
    if framework:
        return framework
    if any((root / marker).exists() for marker in ("pyproject.toml", "requirements.txt", "setup.py")):
        return "Python"
    if (root / "package.json").exists():
        return "Node.js"
    return GENERIC_PROJECT_TYPE


def detect_project_type(root: Path, plugins: Sequence[PluginDef] = ()) -> str:
    """Detect the project type, giving plugins priority over builtin heuristics.

    Plugins are tried in the given (load) order and the first match wins; no
    conflict detection is done between plugins.

    Args:
        root (Path): the project root
        plugins (Sequence[PluginDef]): plugin definitions in load order

    Returns:
        str: the matching plugin's name, or the builtin label
    """
    for plugin in plugins:
        if plugin_matches(plugin, root):
            logger.debug("plugin matched", plugin=plugin.name, root=str(root))
            return plugin.name
    return detect_builtin_project_type(root)
