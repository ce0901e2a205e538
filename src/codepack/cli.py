"""
codepack: turn a project directory into one LLM-ready document.

Overview
--------
1) ``scan``: detect the ecosystem and print the filtered source tree.
2) ``pack``: bundle every scanned source file (optionally narrowed with globs)
   into a plain, markdown or XML document with a metadata header, a tree
   overview, file bodies and optional diff / instruction sections.
3) ``stats``: per-language file, line and byte counts of the scanned files.

Usage
-----
Run ``codepack --help`` for full options. Common examples:
    - Markdown bundle on stdout:
        codepack pack . --format markdown

    - XML bundle with review instructions, large files capped at 256 KiB:
        codepack pack ~/src/app --format xml --max-file-kb 256 \\
            --instruction "Review error handling" --output bundle.xml

    - Attach a working-tree diff for one file:
        codepack pack . --diff src/main.rs=/tmp/main.diff --output out.txt

Exit codes: 0 on success, 1 for a malformed ``--diff`` or an unreadable or
unwritable file, 2 when the project root is not a directory.
"""

from __future__ import annotations

import argparse
import fnmatch
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from codepack import __version__
from codepack.config import ExportFormat
from codepack.exceptions import InvalidDiffSpecError, ScanRootError
from codepack.logging import logger, setup_logging
from codepack.packer import pack_files, relpath
from codepack.plugins import load_plugins
from codepack.service import scan_directory
from codepack.settings import Settings, load_env
from codepack.stats import compute_project_stats
from codepack.tokens import format_tokens
from codepack.tree import leaf_paths

if TYPE_CHECKING:
    from collections.abc import Sequence

    from codepack.models import FileNode

EXIT_INVALID_INPUT = 1
EXIT_INVALID_ROOT = 2


def normalize_globs(globs: Sequence[str]) -> list[str]:
    """Strip whitespace, drop empty patterns and use forward slashes.

    Args:
        globs (Sequence[str]): the glob patterns to normalize

    Returns:
        list[str]: the normalized glob patterns
    """
    out: list[str] = []
    for g in globs:
        g2 = (g or "").strip()
        if not g2:
            continue
        out.append(g2.replace("\\", "/"))
    return out


def apply_glob_filters(
    files: Sequence[str],
    root: Path,
    includes: Sequence[str],
    excludes: Sequence[str],
) -> list[str]:
    """Apply include/exclude globbing to files, matched on their path relative to ``root``.

    - If ``includes`` is non-empty, a file must match at least one include pattern.
    - A file matching any ``excludes`` pattern is removed.

    Args:
        files (Sequence[str]): absolute file paths, order preserved
        root (Path): the root used to relativize paths
        includes (Sequence[str]): glob patterns to include
        excludes (Sequence[str]): glob patterns to exclude

    Returns:
        list[str]: the kept paths
    """
    inc = normalize_globs(includes)
    exc = normalize_globs(excludes)
    if not inc and not exc:
        return list(files)
    out: list[str] = []
    for f in files:
        rp = relpath(Path(f), root)
        if inc and not any(fnmatch.fnmatch(rp, pat) for pat in inc):
            continue
        if exc and any(fnmatch.fnmatch(rp, pat) for pat in exc):
            continue
        out.append(f)
    return out


def parse_diff_args(values: Sequence[str]) -> dict[str, str]:
    """Parse repeated ``--diff REL_PATH=DIFF_FILE`` values into a path -> diff text map.

    Args:
        values (Sequence[str]): CLI ``--diff`` values

    Raises:
        InvalidDiffSpecError: if a value is not in ``REL_PATH=DIFF_FILE`` form
        OSError: if a diff file cannot be read

    Returns:
        dict[str, str]: relative path to unified diff text
    """
    out: dict[str, str] = {}
    for value in values:
        rel, sep, diff_file = value.partition("=")
        rel = rel.strip().replace("\\", "/")
        diff_file = diff_file.strip()
        if not sep or not rel or not diff_file:
            raise InvalidDiffSpecError(value=value)
        out[rel] = Path(diff_file).read_text(encoding="utf-8")
    return out


def render_tree(node: FileNode, indent: str = "") -> list[str]:
    lines: list[str] = []
    for child in node.children:
        lines.append(f"{indent}{child.name}{'/' if child.is_dir else ''}")
        if child.is_dir:
            lines.extend(render_tree(child, indent + "  "))
    return lines


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="codepack",
        description="Bundle a project directory into one LLM-ready document.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("repo", nargs="?", default=".", help="Project root (default: current directory).")
    common.add_argument("--plugins-dir", type=Path, default=None, help="Plugin definitions directory.")

    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", parents=[common], help="Detect the project type and print the source tree.")
    scan.add_argument("--json", dest="json_output", action="store_true", help="Print the scan result as JSON.")

    pack = sub.add_parser("pack", parents=[common], help="Pack the project's source files into one document.")
    pack.add_argument("--output", "-o", type=Path, default=None, help="Output file (default: stdout).")
    pack.add_argument(
        "--format",
        "-f",
        type=ExportFormat,
        choices=list(ExportFormat),
        default=ExportFormat.PLAIN,
        help="Bundle format.",
    )
    pack.add_argument("--max-file-kb", type=int, default=None, help="Skip files larger than this (KiB).")
    pack.add_argument("--instruction", type=str, default="", help="Review instructions to append.")
    pack.add_argument(
        "--diff",
        action="append",
        default=[],
        help="Attach a diff as REL_PATH=DIFF_FILE (repeatable).",
    )
    pack.add_argument("--include-glob", action="append", default=[], help="Include glob (repeatable).")
    pack.add_argument("--exclude-glob", action="append", default=[], help="Exclude glob (repeatable).")

    sub.add_parser("stats", parents=[common], help="Print per-language statistics.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    args = vars(build_parser().parse_args(argv))
    args = {k: v for k, v in args.items() if v is not None}
    return Settings(**args)


def run_scan(settings: Settings) -> int:
    result = scan_directory(settings.repo, load_plugins(settings.plugins_dir))
    if settings.json_output:
        print(result.model_dump_json(indent=2))
        return 0
    print(f"{result.tree.name} [{result.project_type}] files={result.total_files}")
    for line in render_tree(result.tree):
        print(f"  {line}")
    return 0


def run_pack(settings: Settings) -> int:
    plugins = load_plugins(settings.plugins_dir)
    scan = scan_directory(settings.repo, plugins)
    root = Path(scan.tree.path)
    files = apply_glob_filters(leaf_paths(scan.tree), root, settings.include_glob, settings.exclude_glob)

    result = pack_files(
        files,
        root,
        scan.project_type,
        settings.format,
        max_file_bytes=settings.max_file_bytes,
        diffs=parse_diff_args(settings.diff),
        instruction=settings.instruction,
    )
    for skipped in result.skipped_files:
        logger.warning("Skipped %s: %s", skipped.path, skipped.reason)

    if settings.output is None:
        sys.stdout.write(result.content)
    else:
        settings.output.write_text(result.content, encoding="utf-8", newline="")
        print(
            f"Wrote {settings.output} format={settings.format} files={result.file_count} "
            f"skipped={len(result.skipped_files)} tokens={format_tokens(result.estimated_tokens)}",
        )
    return 0


def run_stats(settings: Settings) -> int:
    scan = scan_directory(settings.repo, load_plugins(settings.plugins_dir))
    stats = compute_project_stats(leaf_paths(scan.tree))
    print(f"files={stats.total_files} lines={stats.total_lines} bytes={stats.total_bytes}")
    for lang in stats.languages:
        print(f"  {lang.language:<20} files={lang.file_count:<6} lines={lang.line_count:<8} bytes={lang.byte_count}")
    return 0


COMMANDS = {
    "scan": run_scan,
    "pack": run_pack,
    "stats": run_stats,
}


def main(argv: Sequence[str] | None = None) -> int:
    load_env()
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    try:
        return COMMANDS[settings.command](settings)
    except ScanRootError as e:
        logger.error("Invalid project root: %s", e.folder)
        print(str(e), file=sys.stderr)
        return EXIT_INVALID_ROOT
    except (InvalidDiffSpecError, OSError) as e:
        logger.error("Invalid input: %s", e)
        print(str(e), file=sys.stderr)
        return EXIT_INVALID_INPUT


if __name__ == "__main__":
    raise SystemExit(main())
