"""Gitignore-aware project tree builder.

The walk happens once; nodes are collected into a path-keyed mapping of
pending children and assembled bottom-up (deepest directories first), so
directories without any surviving descendant simply never get attached.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pathspec

from codepack.classification import is_excluded_dir, is_source_file
from codepack.logging import logger
from codepack.models import FileNode

if TYPE_CHECKING:
    from collections.abc import Iterable


def is_hidden(name: str) -> bool:
    return name.startswith(".")


class GitIgnoreMatcher:
    """Evaluate ``.gitignore`` rules for paths below a root directory.

    Each directory's ``.gitignore`` is scoped to that directory; deeper files
    take precedence, and ``!pattern`` negations are honored. The repository's
    ``.git/info/exclude`` applies at the root level.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._specs: dict[Path, pathspec.GitIgnoreSpec | None] = {}

    def _read_spec(self, *files: Path) -> pathspec.GitIgnoreSpec | None:
        lines: list[str] = []
        for f in files:
            try:
                lines.extend(f.read_text(encoding="utf-8", errors="ignore").splitlines())
            except OSError:
                continue
        if not lines:
            return None
        return pathspec.GitIgnoreSpec.from_lines(lines)

    def spec_for(self, directory: Path) -> pathspec.GitIgnoreSpec | None:
        if directory not in self._specs:
            files = [directory / ".gitignore"]
            if directory == self.root:
                files.insert(0, directory / ".git" / "info" / "exclude")
            self._specs[directory] = self._read_spec(*files)
        return self._specs[directory]

    def is_ignored(self, path: Path, *, is_dir: bool) -> bool:
        """Return whether ``path`` is ignored by the rules of its ancestors."""
        try:
            rel_parts = path.relative_to(self.root).parts
        except ValueError:
            return False
        ignored = False
        directory = self.root
        for depth in range(len(rel_parts)):
            spec = self.spec_for(directory)
            if spec is not None:
                rel = "/".join(rel_parts[depth:]) + ("/" if is_dir else "")
                result = spec.check_file(rel)
                if result.include is not None:
                    ignored = result.include
            directory /= rel_parts[depth]
        return ignored


def _on_walk_error(error: OSError) -> None:
    logger.debug("skipping unreadable entry", path=str(error.filename), error=error.strerror)


def build_file_tree(
    root: Path,
    extra_excludes: Iterable[str] = (),
    extra_extensions: Iterable[str] = (),
) -> FileNode:
    """Walk ``root`` once and build the tree of source files.

    Hidden entries, gitignored entries and excluded directories are pruned.
    Files are kept only if they are source files. Directories with no
    surviving descendant are dropped.

    Args:
        root (Path): the project root
        extra_excludes (Iterable[str]): additional directory names to prune
        extra_extensions (Iterable[str]): additional source extensions

    Returns:
        FileNode: the root node; children sorted directories first, then by
            case-insensitive name
    """
    root = Path(root).resolve()
    excludes = list(extra_excludes)
    extensions = list(extra_extensions)
    matcher = GitIgnoreMatcher(root)

    dir_children: dict[Path, list[FileNode]] = {}
    seen_dirs: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        current = Path(dirpath)
        kept_dirs: list[str] = []
        for d in sorted(dirnames):
            sub = current / d
            if is_hidden(d) or is_excluded_dir(d, excludes) or matcher.is_ignored(sub, is_dir=True):
                continue
            kept_dirs.append(d)
            seen_dirs.append(sub)
        dirnames[:] = kept_dirs

        for f in sorted(filenames):
            file_path = current / f
            if is_hidden(f) or not is_source_file(f, extensions):
                continue
            if matcher.is_ignored(file_path, is_dir=False):
                continue
            dir_children.setdefault(current, []).append(
                FileNode(name=f, path=str(file_path), is_dir=False),
            )

    seen_dirs.sort(key=lambda p: len(p.parts), reverse=True)
    for dir_path in seen_dirs:
        children = dir_children.pop(dir_path, [])
        if not children:
            continue
        node = FileNode(name=dir_path.name, path=str(dir_path), is_dir=True, children=children)
        dir_children.setdefault(dir_path.parent, []).append(node)

    tree = FileNode(
        name=root.name or str(root),
        path=str(root),
        is_dir=True,
        children=dir_children.pop(root, []),
    )
    sort_tree(tree)
    return tree


def sort_tree(node: FileNode) -> None:
    """Sort children in place: directories first, then case-insensitive name."""
    node.children.sort(key=lambda child: (not child.is_dir, child.name.lower()))
    for child in node.children:
        if child.is_dir:
            sort_tree(child)


def count_files(node: FileNode) -> int:
    """Count the file (non-directory) nodes of a tree."""
    own = 0 if node.is_dir else 1
    return own + sum(count_files(child) for child in node.children)


def leaf_paths(node: FileNode) -> list[str]:
    """List the absolute paths of all file nodes in tree order."""
    if not node.is_dir:
        return [node.path]
    paths: list[str] = []
    for child in node.children:
        paths.extend(leaf_paths(child))
    return paths
