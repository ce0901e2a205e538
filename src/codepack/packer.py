"""Assemble selected files into a single plain, markdown or XML bundle."""

from __future__ import annotations

import io
from pathlib import Path
from typing import TYPE_CHECKING, Any, assert_never

from codepack.classification import file_extension
from codepack.config import COMMENT_DELIMITERS, DEFAULT_COMMENT, DEFAULT_MAX_FILE_BYTES, MAX_FILE_COUNT, ExportFormat
from codepack.logging import logger
from codepack.metadata import extract_metadata
from codepack.models import PackResult, SkippedFile
from codepack.tokens import TokenEstimator, format_tokens

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from codepack.models import ProjectMetadata

PLAIN_SEPARATOR = "=" * 60


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root, with POSIX separators.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path; if path is not under root, the path itself.
    """
    try:
        rel = path.relative_to(root)
    except ValueError:
        try:
            rel = path.resolve().relative_to(root.resolve())
        except ValueError:
            rel = path
    return str(rel).replace("\\", "/")


def is_under(path: Path, root: Path) -> bool:
    """Check whether ``path`` lies inside ``root``, comparing resolved paths."""
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def comment_delimiter(relative_path: str) -> str:
    """Pick the line-comment token used in plain-format file banners."""
    return COMMENT_DELIMITERS.get(file_extension(relative_path), DEFAULT_COMMENT)


def xml_escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def cdata(text: str) -> str:
    """Wrap text in a CDATA section on its own lines, splitting any ``]]>`` it contains."""
    body = text.replace("]]>", "]]]]><![CDATA[>")
    if not body.endswith("\n"):
        body += "\n"
    return f"<![CDATA[\n{body}]]>\n"


def _ensure_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


# ------------------------------ Tree overview --------------------------------


def build_tree_lines(rel_paths: Sequence[str]) -> list[str]:
    """Build the text lines of a tree overview from flat relative paths.

    Top-level entries carry no connector: leaves print bare and directories
    print ``name/`` followed by their subtree indented by two spaces. Deeper
    levels use box-drawing connectors.

    Args:
        rel_paths (Sequence[str]): relative paths using POSIX separators

    Returns:
        list[str]: one string per rendered line
    """
    tree: dict[str, Any] = {}
    for rp in rel_paths:
        cur = tree
        for part in rp.split("/"):
            cur = cur.setdefault(part, {})

    lines: list[str] = []

    def walk(node: dict[str, Any], prefix: str) -> None:
        names = sorted(node)
        for idx, name in enumerate(names):
            child = node[name]
            last = idx == len(names) - 1
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + name + ("/" if child else ""))
            if child:
                walk(child, prefix + ("    " if last else "│   "))

    for name in sorted(tree):
        child = tree[name]
        if child:
            lines.append(f"{name}/")
            walk(child, "  ")
        else:
            lines.append(name)
    return lines


def render_tree_overview(rel_paths: Sequence[str], fmt: ExportFormat) -> str:
    if not rel_paths:
        return ""
    lines = build_tree_lines(rel_paths)
    match fmt:
        case ExportFormat.PLAIN:
            return "# File Tree:\n" + "".join(f"#   {line}\n" for line in lines) + "#\n\n"
        case ExportFormat.MARKDOWN:
            return "## File Tree\n\n```\n" + "".join(f"{line}\n" for line in lines) + "```\n\n"
        case ExportFormat.XML:
            return "<file_tree>\n" + cdata("\n".join(lines)) + "</file_tree>\n\n"
        case _:
            assert_never(fmt)


# ------------------------------ Header & footer ------------------------------


def _plain_header(meta: ProjectMetadata, file_count: int, tokens: int) -> str:
    out = io.StringIO()
    out.write(f"# Project: {meta.name}\n")
    out.write(f"# Type: {meta.project_type}\n")
    if meta.version:
        out.write(f"# Version: {meta.version}\n")
    if meta.description:
        out.write(f"# Description: {meta.description}\n")
    if meta.entry_point:
        out.write(f"# Entry Point: {meta.entry_point}\n")
    if meta.runtime:
        out.write(f"# Runtime: {', '.join(meta.runtime)}\n")
    if meta.dependencies:
        out.write(f"# Dependencies: {', '.join(meta.dependencies)}\n")
    if meta.dev_dependencies:
        out.write(f"# Dev Dependencies: {', '.join(meta.dev_dependencies)}\n")
    if meta.requirements:
        out.write("# Requirements:\n")
        out.writelines(f"#   {req}\n" for req in meta.requirements)
    out.write(f"# Files: {file_count}\n")
    out.write(f"# Estimated Tokens: {format_tokens(tokens)}\n")
    out.write(f"{PLAIN_SEPARATOR}\n\n")
    return out.getvalue()


def _markdown_header(meta: ProjectMetadata, file_count: int, tokens: int) -> str:
    out = io.StringIO()
    out.write(f"# {meta.name}\n\n")
    out.write(f"- **Type:** {meta.project_type}\n")
    if meta.version:
        out.write(f"- **Version:** {meta.version}\n")
    if meta.description:
        out.write(f"- **Description:** {meta.description}\n")
    if meta.entry_point:
        out.write(f"- **Entry Point:** `{meta.entry_point}`\n")
    if meta.runtime:
        out.write(f"- **Runtime:** {', '.join(meta.runtime)}\n")
    if meta.dependencies:
        out.write(f"- **Dependencies ({len(meta.dependencies)}):** {', '.join(meta.dependencies)}\n")
    if meta.dev_dependencies:
        out.write(f"- **Dev Dependencies ({len(meta.dev_dependencies)}):** {', '.join(meta.dev_dependencies)}\n")
    if meta.requirements:
        out.write("- **Requirements:**\n")
        out.writelines(f"  - `{req}`\n" for req in meta.requirements)
    out.write(f"- **Files:** {file_count}\n")
    out.write(f"- **Estimated Tokens:** {format_tokens(tokens)}\n")
    out.write("\n---\n\n")
    return out.getvalue()


def _xml_header(meta: ProjectMetadata, file_count: int, tokens: int) -> str:
    out = io.StringIO()
    out.write('<?xml version="1.0" encoding="UTF-8"?>\n')
    out.write("<codepack>\n<metadata>\n")
    out.write(f"  <name>{xml_escape(meta.name)}</name>\n")
    out.write(f"  <type>{xml_escape(meta.project_type)}</type>\n")
    if meta.version:
        out.write(f"  <version>{xml_escape(meta.version)}</version>\n")
    if meta.description:
        out.write(f"  <description>{xml_escape(meta.description)}</description>\n")
    if meta.entry_point:
        out.write(f"  <entry_point>{xml_escape(meta.entry_point)}</entry_point>\n")
    if meta.runtime:
        out.write("  <runtime>\n")
        out.writelines(f"    <env>{xml_escape(r)}</env>\n" for r in meta.runtime)
        out.write("  </runtime>\n")
    if meta.dependencies:
        out.write("  <dependencies>\n")
        out.writelines(f"    <dep>{xml_escape(d)}</dep>\n" for d in meta.dependencies)
        out.write("  </dependencies>\n")
    if meta.dev_dependencies:
        out.write("  <dev_dependencies>\n")
        out.writelines(f"    <dep>{xml_escape(d)}</dep>\n" for d in meta.dev_dependencies)
        out.write("  </dev_dependencies>\n")
    if meta.requirements:
        out.write("  <requirements>\n")
        out.writelines(f"    <req>{xml_escape(r)}</req>\n" for r in meta.requirements)
        out.write("  </requirements>\n")
    out.write(f"  <file_count>{file_count}</file_count>\n")
    out.write(f"  <estimated_tokens>{format_tokens(tokens)}</estimated_tokens>\n")
    out.write("</metadata>\n<files>\n\n")
    return out.getvalue()


def render_header(meta: ProjectMetadata, file_count: int, tokens: int, fmt: ExportFormat) -> str:
    match fmt:
        case ExportFormat.PLAIN:
            return _plain_header(meta, file_count, tokens)
        case ExportFormat.MARKDOWN:
            return _markdown_header(meta, file_count, tokens)
        case ExportFormat.XML:
            return _xml_header(meta, file_count, tokens)
        case _:
            assert_never(fmt)


def render_footer(fmt: ExportFormat) -> str:
    match fmt:
        case ExportFormat.XML:
            return "</files>\n</codepack>\n"
        case ExportFormat.PLAIN | ExportFormat.MARKDOWN:
            return ""
        case _:
            assert_never(fmt)


# ------------------------------ File sections --------------------------------


def render_file(rel: str, content: str, fmt: ExportFormat) -> str:
    match fmt:
        case ExportFormat.PLAIN:
            return f"{comment_delimiter(rel)} ===== {rel} =====\n{content}\n\n"
        case ExportFormat.MARKDOWN:
            return f"## {rel}\n\n```{Path(rel).suffix.removeprefix('.')}\n{_ensure_newline(content)}```\n\n"
        case ExportFormat.XML:
            return f'<file path="{xml_escape(rel)}">\n{cdata(content)}</file>\n\n'
        case _:
            assert_never(fmt)


def render_skipped_placeholder(rel: str, size: int, limit: int, fmt: ExportFormat) -> str:
    size_kb = size // 1024
    limit_kb = limit // 1024
    match fmt:
        case ExportFormat.PLAIN:
            return f"{comment_delimiter(rel)} ===== {rel} [SKIPPED: {size_kb}KB > {limit_kb}KB limit] =====\n\n"
        case ExportFormat.MARKDOWN:
            return f"## {rel} *(skipped: {size_kb}KB > {limit_kb}KB limit)*\n\n"
        case ExportFormat.XML:
            return f'<file path="{xml_escape(rel)}" skipped="true" size_kb="{size_kb}" />\n\n'
        case _:
            assert_never(fmt)


def render_diffs(diffs: Mapping[str, str], fmt: ExportFormat) -> str:
    """Render the git diff section, one entry per path in sorted order."""
    if not diffs:
        return ""
    out = io.StringIO()
    match fmt:
        case ExportFormat.PLAIN:
            out.write("# ===== Git Diff (Working Changes) =====\n\n")
            for path in sorted(diffs):
                out.write(f"# --- {path} ---\n{_ensure_newline(diffs[path])}\n")
        case ExportFormat.MARKDOWN:
            out.write("## Git Diff (Working Changes)\n\n")
            for path in sorted(diffs):
                out.write(f"### {path}\n\n```diff\n{_ensure_newline(diffs[path])}```\n\n")
        case ExportFormat.XML:
            out.write("<diffs>\n")
            for path in sorted(diffs):
                out.write(f'<diff path="{xml_escape(path)}">\n{cdata(diffs[path])}</diff>\n')
            out.write("</diffs>\n\n")
        case _:
            assert_never(fmt)
    return out.getvalue()


def render_instruction(instruction: str, fmt: ExportFormat) -> str:
    if not instruction:
        return ""
    match fmt:
        case ExportFormat.PLAIN:
            return f"# ===== Review Instructions =====\n{_ensure_newline(instruction)}\n"
        case ExportFormat.MARKDOWN:
            return f"## Review Instructions\n\n{_ensure_newline(instruction)}\n"
        case ExportFormat.XML:
            return f"<instruction>\n{cdata(instruction)}</instruction>\n\n"
        case _:
            assert_never(fmt)


# ------------------------------ Packing --------------------------------------


def file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def read_utf8(path: Path) -> str | None:
    """Read a file as strict UTF-8 without newline translation; None if binary or unreadable."""
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def pack_files(  # noqa: PLR0913
    paths: Sequence[str | Path],
    root: str | Path,
    project_type: str,
    fmt: ExportFormat = ExportFormat.PLAIN,
    *,
    max_file_bytes: int | None = None,
    diffs: Mapping[str, str] | None = None,
    instruction: str | None = None,
    estimator: TokenEstimator | None = None,
) -> PackResult:
    """Pack the given files into one document.

    Every requested path ends up either in the body or in ``skipped_files``:
    files above the size limit get a placeholder, files that are not valid
    UTF-8 are dropped, and files beyond the count cap are dropped.

    Args:
        paths (Sequence[str | Path]): files to include, in output order
        root (str | Path): project root used for relative paths and metadata
        project_type (str): ecosystem label selecting the metadata reader
        fmt (ExportFormat): output format
        max_file_bytes (int | None): size limit per file; defaults to 1 MiB
        diffs (Mapping[str, str] | None): relative path to unified diff text
        instruction (str | None): free-text review instructions
        estimator (TokenEstimator | None): token counter; defaults to the exact tokenizer

    Returns:
        PackResult: the content and its accounting
    """
    root = Path(root)
    estimator = estimator or TokenEstimator()
    limit = DEFAULT_MAX_FILE_BYTES if max_file_bytes is None else max_file_bytes
    meta = extract_metadata(root, project_type)

    body = io.StringIO()
    file_count = 0
    total_bytes = 0
    included: list[str] = []
    skipped: list[SkippedFile] = []

    for raw in paths:
        path = Path(raw)
        rel = relpath(path, root)
        size = file_size(path)

        if size > limit:
            skipped.append(
                SkippedFile(path=rel, reason=f"exceeds {limit // 1024}KB limit ({size // 1024}KB)", size_bytes=size),
            )
            body.write(render_skipped_placeholder(rel, size, limit, fmt))
            continue

        content = read_utf8(path)
        if content is None:
            skipped.append(SkippedFile(path=rel, reason="binary or unreadable file", size_bytes=size))
            continue

        if file_count >= MAX_FILE_COUNT:
            skipped.append(SkippedFile(path=rel, reason=f"exceeds {MAX_FILE_COUNT} file limit", size_bytes=size))
            continue

        total_bytes += len(content.encode("utf-8"))
        file_count += 1
        if is_under(path, root):
            included.append(rel)
        body.write(render_file(rel, content, fmt))

    body_text = body.getvalue()
    estimated_tokens = estimator.count(body_text)

    content = render_header(meta, file_count, estimated_tokens, fmt) + render_tree_overview(included, fmt) + body_text

    extra = render_diffs(diffs or {}, fmt) + render_instruction(instruction or "", fmt)
    if extra:
        content += extra
        estimated_tokens = estimator.count(content)

    content += render_footer(fmt)

    if skipped:
        logger.info("pack skipped files", skipped=len(skipped), included=file_count)
    logger.debug("pack done", files=file_count, bytes=total_bytes, tokens=estimated_tokens, format=str(fmt))

    return PackResult(
        content=content,
        file_count=file_count,
        total_bytes=total_bytes,
        estimated_tokens=estimated_tokens,
        skipped_files=skipped,
    )
