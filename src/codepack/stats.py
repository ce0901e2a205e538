from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from codepack.classification import file_extension
from codepack.config import EXT2LANGUAGE
from codepack.models import LangStat, ProjectStats

if TYPE_CHECKING:
    from collections.abc import Sequence


def ext_to_language(ext: str) -> str:
    """Map an extension (without dot) to a language name, or echo the extension back."""
    return EXT2LANGUAGE.get(ext.lower(), ext)


def compute_project_stats(paths: Sequence[str | Path]) -> ProjectStats:
    """Aggregate file, line and byte counts per language.

    Only files readable as UTF-8 are counted.

    Args:
        paths (Sequence[str | Path]): files to measure

    Returns:
        ProjectStats: totals plus per-language entries sorted by line count, largest first
    """
    by_language: dict[str, LangStat] = {}
    total_files = total_lines = total_bytes = 0

    for raw in paths:
        path = Path(raw)
        try:
            content = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        n_bytes = len(content.encode("utf-8"))
        n_lines = len(content.splitlines())
        total_files += 1
        total_lines += n_lines
        total_bytes += n_bytes

        ext = file_extension(path.name) or "other"
        language = ext_to_language(ext)
        stat = by_language.setdefault(language, LangStat(language=language, extension=ext))
        stat.file_count += 1
        stat.line_count += n_lines
        stat.byte_count += n_bytes

    languages = sorted(by_language.values(), key=lambda s: s.line_count, reverse=True)
    return ProjectStats(
        total_files=total_files,
        total_lines=total_lines,
        total_bytes=total_bytes,
        languages=languages,
    )
