"""Per-ecosystem manifest readers.

Each reader pulls a fixed set of fields out of one or two manifest files and
degrades silently: a missing or malformed manifest leaves the defaults in
place, and the problem is only logged at debug level.

``package.json``/``tsconfig.json`` are read with :mod:`json` and
``Cargo.toml``/``pyproject.toml`` with :mod:`tomlkit`. The other manifests are
read with narrow line scanners that are not parsers:

- ``pubspec.yaml``: single document, nesting by indentation only, one
  ``key: value`` per line; no flow collections, anchors or multiline scalars.
  Every indented key under ``dependencies:`` counts as a dependency, so the
  nested keys of git or path sources (``git:``, ``url:``, ``path:``) are
  reported as dependencies too.
- ``pom.xml``: plain ``<tag>text</tag>`` matching; no attributes, namespaces,
  CDATA, comments or self-closing tags. A dependency's tags must each sit on
  one line.
- ``go.mod``: only the ``require ( ... )`` block form is read.
- ``settings.gradle(.kts)``: only the ``rootProject.name = "..."`` line.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field
from functools import wraps
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomlkit

from codepack.config import GRADLE_PROJECT_TYPES, NODE_PROJECT_TYPES, PYTHON_ENTRY_POINTS
from codepack.logging import logger
from codepack.models import ProjectMetadata

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    MetadataReaderFn = Callable[[Path, "MetadataDraft"], None]

_REQUIREMENT_NAME_END = re.compile(r"[><=~!;\[]")


@dataclass
class MetadataDraft:
    """Mutable accumulator filled in by a reader, frozen into ProjectMetadata at the end."""

    name: str
    project_type: str
    version: str | None = None
    description: str | None = None
    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    entry_point: str | None = None
    runtime: list[str] = field(default_factory=list)
    requirements: list[str] = field(default_factory=list)

    def freeze(self) -> ProjectMetadata:
        return ProjectMetadata(**asdict(self))


METADATA_READERS: dict[str, MetadataReaderFn] = {}


def register_metadata_reader(
    project_types: str | Iterable[str],
) -> Callable[[MetadataReaderFn], MetadataReaderFn]:
    """Decorator to register a manifest reader for one or more project type labels.

    Args:
        project_types (str | Iterable[str]): the label(s) produced by project
            type detection that the decorated reader handles.

    Returns:
        Callable[[MetadataReaderFn], MetadataReaderFn]: A decorator that
        registers the reader in ``METADATA_READERS`` and returns it.
    """
    labels = [project_types] if isinstance(project_types, str) else list(project_types)

    def decorator(func: MetadataReaderFn) -> MetadataReaderFn:
        @wraps(func)
        def wrapper(root: Path, draft: MetadataDraft) -> None:
            try:
                func(root, draft)
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.debug("manifest reader failed", reader=func.__name__, root=str(root), error=str(e))

        for label in labels:
            METADATA_READERS[label] = wrapper
        return wrapper

    return decorator


def extract_metadata(root: Path, project_type: str) -> ProjectMetadata:
    """Read the manifest(s) matching ``project_type`` under ``root``.

    Unknown labels yield a record with only the name (the root directory's
    basename) and the project type.

    Args:
        root (Path): the project root
        project_type (str): the detected ecosystem label

    Returns:
        ProjectMetadata: a fresh metadata record
    """
    root = Path(root)
    draft = MetadataDraft(name=root.resolve().name or "project", project_type=project_type)
    reader = METADATA_READERS.get(project_type)
    if reader is not None:
        reader(root, draft)
    return draft.freeze()


# ------------------------------ Helpers --------------------------------------


def extract_xml_tag(text: str, tag: str) -> str | None:
    """Return the trimmed text between the first ``<tag>`` and the next ``</tag>``.

    Purely textual and case-sensitive: attributes and self-closing tags are
    not recognized.

    Args:
        text (str): the text to search
        tag (str): the tag name, without angle brackets

    Returns:
        str | None: the enclosed text, or None when the tag pair is absent
    """
    open_tag = f"<{tag}>"
    start = text.find(open_tag)
    if start < 0:
        return None
    after = start + len(open_tag)
    end = text.find(f"</{tag}>", after)
    if end < 0:
        return None
    return text[after:end].strip()


def strip_quotes(value: str) -> str:
    return value.strip().strip('"').strip("'")


def requirement_name(requirement: str) -> str:
    """Return the bare package name of a PEP 508-ish requirement string.

    The name ends at the first of ``> < = ~ ! ; [``.
    """
    return _REQUIREMENT_NAME_END.split(requirement, maxsplit=1)[0].strip()


def read_text(path: Path) -> str | None:
    """Read a UTF-8 file, returning None when it is missing or unreadable."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def read_json(path: Path) -> dict[str, Any] | None:
    text = read_text(path)
    if text is None:
        return None
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.debug("invalid json manifest", path=str(path), error=str(e))
        return None
    return data if isinstance(data, dict) else None


def read_toml(path: Path) -> dict[str, Any] | None:
    text = read_text(path)
    if text is None:
        return None
    try:
        return tomlkit.parse(text).unwrap()
    except ValueError as e:
        logger.debug("invalid toml manifest", path=str(path), error=str(e))
        return None


def first_nonempty_line(path: Path) -> str | None:
    text = read_text(path)
    if text is None:
        return None
    for line in text.splitlines():
        value = line.strip()
        if value:
            return value
    return None


def _str_or_none(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _nonempty_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


# ------------------------------ Readers --------------------------------------


@register_metadata_reader(NODE_PROJECT_TYPES)
def read_node_metadata(root: Path, draft: MetadataDraft) -> None:
    """Read ``package.json`` plus node version files and the TypeScript target."""
    pkg = read_json(root / "package.json")
    if pkg is not None:
        draft.name = _str_or_none(pkg.get("name")) or draft.name
        draft.version = _str_or_none(pkg.get("version"))
        draft.description = _nonempty_str(pkg.get("description"))
        draft.entry_point = _str_or_none(pkg.get("main"))

        engines = pkg.get("engines")
        if isinstance(engines, dict):
            draft.runtime.extend(f"{key} {val}" for key, val in engines.items() if isinstance(val, str))

        deps = pkg.get("dependencies")
        if isinstance(deps, dict):
            draft.dependencies.extend(deps)
            draft.requirements.extend(f"{key}@{val}" for key, val in deps.items() if isinstance(val, str))

        dev_deps = pkg.get("devDependencies")
        if isinstance(dev_deps, dict):
            draft.dev_dependencies.extend(dev_deps)

    if not draft.runtime:
        for version_file in (".nvmrc", ".node-version"):
            version = first_nonempty_line(root / version_file)
            if version:
                draft.runtime.append(f"node {version}")
                break

    tsconfig = read_json(root / "tsconfig.json")
    if tsconfig is not None:
        options = tsconfig.get("compilerOptions")
        target = _str_or_none(options.get("target")) if isinstance(options, dict) else None
        if target:
            draft.runtime.append(f"ts target: {target}")


@register_metadata_reader("Rust")
def read_cargo_metadata(root: Path, draft: MetadataDraft) -> None:
    """Read ``Cargo.toml``: package table, dependencies and dev-dependencies."""
    doc = read_toml(root / "Cargo.toml")
    if doc is None:
        return

    package = doc.get("package")
    if isinstance(package, dict):
        draft.name = _str_or_none(package.get("name")) or draft.name
        draft.version = _str_or_none(package.get("version"))
        draft.description = _nonempty_str(package.get("description"))
        edition = _str_or_none(package.get("edition"))
        if edition:
            draft.runtime.append(f"rust edition {edition}")
        msrv = _str_or_none(package.get("rust-version"))
        if msrv:
            draft.runtime.append(f"rust >={msrv}")

    deps = doc.get("dependencies")
    if isinstance(deps, dict):
        for name, spec in deps.items():
            if isinstance(spec, str):
                version = spec
            elif isinstance(spec, dict):
                version = _str_or_none(spec.get("version")) or "*"
            else:
                version = "*"
            draft.dependencies.append(name)
            draft.requirements.append(f"{name}@{version}")

    dev_deps = doc.get("dev-dependencies")
    if isinstance(dev_deps, dict):
        draft.dev_dependencies.extend(dev_deps)


@register_metadata_reader("Python")
def read_python_metadata(root: Path, draft: MetadataDraft) -> None:
    """Read ``pyproject.toml``, then ``requirements.txt`` and ``.python-version`` as fallbacks."""
    doc = read_toml(root / "pyproject.toml")
    project = doc.get("project") if doc is not None else None
    if isinstance(project, dict):
        draft.name = _str_or_none(project.get("name")) or draft.name
        draft.version = _str_or_none(project.get("version"))
        draft.description = _nonempty_str(project.get("description"))
        requires_python = _str_or_none(project.get("requires-python"))
        if requires_python:
            draft.runtime.append(f"python {requires_python}")
        deps = project.get("dependencies")
        if isinstance(deps, list):
            for dep in deps:
                if isinstance(dep, str):
                    draft.dependencies.append(requirement_name(dep))
                    draft.requirements.append(dep.strip())

    if not draft.dependencies:
        text = read_text(root / "requirements.txt")
        for line in (text or "").splitlines():
            req = line.strip()
            if not req or req.startswith(("#", "-")):
                continue
            draft.dependencies.append(requirement_name(req))
            draft.requirements.append(req)

    if not draft.runtime:
        version = first_nonempty_line(root / ".python-version")
        if version:
            draft.runtime.append(f"python {version}")

    draft.entry_point = next((ep for ep in PYTHON_ENTRY_POINTS if (root / ep).exists()), None)


@register_metadata_reader("Go")
def read_go_metadata(root: Path, draft: MetadataDraft) -> None:
    """Scan ``go.mod`` for the module path, go version and the require block."""
    text = read_text(root / "go.mod")
    if text is not None:
        in_require = False
        for line in text.splitlines():
            trimmed = line.strip()
            if trimmed.startswith("module "):
                draft.name = trimmed.removeprefix("module ").strip()
            elif trimmed.startswith("go "):
                go_version = trimmed.removeprefix("go ").strip()
                draft.version = go_version
                draft.runtime.append(f"go {go_version}")
            elif trimmed == "require (":
                in_require = True
            elif trimmed == ")":
                in_require = False
            elif in_require and trimmed and not trimmed.startswith("//"):
                parts = trimmed.split()
                draft.dependencies.append(parts[0])
                if len(parts) >= 2:  # noqa: PLR2004
                    draft.requirements.append(f"{parts[0]}@{parts[1]}")

    if (root / "main.go").exists():
        draft.entry_point = "main.go"


@register_metadata_reader("Flutter / Dart")
def read_pubspec_metadata(root: Path, draft: MetadataDraft) -> None:
    """Scan ``pubspec.yaml`` by indentation for scalars, environment and dependencies."""
    text = read_text(root / "pubspec.yaml")
    if text is not None:
        block = ""
        for line in text.splitlines():
            trimmed = line.strip()
            if not trimmed or trimmed.startswith("#"):
                continue
            if not line[0].isspace():
                key, _, value = trimmed.partition(":")
                block = key if not value.strip() else ""
                if key == "name":
                    draft.name = strip_quotes(value) or draft.name
                elif key == "version":
                    draft.version = strip_quotes(value) or None
                elif key == "description":
                    draft.description = strip_quotes(value) or None
                continue
            if ":" not in trimmed:
                continue
            key, _, value = trimmed.partition(":")
            key = key.strip()
            value = strip_quotes(value)
            if block == "environment":
                if value:
                    draft.runtime.append(f"{key} {value}")
            elif block in {"dependencies", "dev_dependencies"} and key and key != "sdk":
                if block == "dev_dependencies":
                    draft.dev_dependencies.append(key)
                    continue
                draft.dependencies.append(key)
                if value and value != "^":
                    draft.requirements.append(f"{key}@{value}")

    if (root / "lib" / "main.dart").exists():
        draft.entry_point = "lib/main.dart"


def _strip_block(text: str, tag: str) -> str:
    start = text.find(f"<{tag}>")
    if start < 0:
        return text
    end = text.find(f"</{tag}>", start)
    if end < 0:
        return text
    return text[:start] + text[end + len(tag) + 3 :]


@register_metadata_reader("Java / Maven")
def read_pom_metadata(root: Path, draft: MetadataDraft) -> None:
    """Extract coordinates, java version and dependencies from ``pom.xml`` textually."""
    text = read_text(root / "pom.xml")
    if text is None:
        return

    # The <parent> block carries its own artifactId/version.
    own = _strip_block(text, "parent")
    draft.name = extract_xml_tag(own, "artifactId") or draft.name
    draft.version = extract_xml_tag(own, "version")
    draft.description = extract_xml_tag(own, "description") or None
    java = extract_xml_tag(text, "java.version") or extract_xml_tag(text, "maven.compiler.source")
    if java:
        draft.runtime.append(f"java {java}")

    in_deps = False
    group = artifact = version = ""
    for line in text.splitlines():
        trimmed = line.strip()
        if "<dependencies>" in trimmed:
            in_deps = True
        if "</dependencies>" in trimmed:
            in_deps = False
        if not in_deps:
            continue
        group = extract_xml_tag(trimmed, "groupId") or group
        artifact = extract_xml_tag(trimmed, "artifactId") or artifact
        version = extract_xml_tag(trimmed, "version") or version
        if "</dependency>" in trimmed:
            if artifact:
                draft.dependencies.append(artifact)
                coords = [group, artifact, version] if version else [group, artifact]
                draft.requirements.append(":".join(coords))
            group = artifact = version = ""


@register_metadata_reader(GRADLE_PROJECT_TYPES)
def read_gradle_metadata(root: Path, draft: MetadataDraft) -> None:
    """Take ``rootProject.name`` from the first existing Gradle settings file."""
    for settings_file in ("settings.gradle.kts", "settings.gradle"):
        text = read_text(root / settings_file)
        if text is None:
            continue
        for line in text.splitlines():
            trimmed = line.strip()
            if trimmed.startswith("rootProject.name") and "=" in trimmed:
                name = strip_quotes(trimmed.split("=", 1)[1])
                if name:
                    draft.name = name
        break
