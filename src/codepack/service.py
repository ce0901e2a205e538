"""High-level operations: scan a project, estimate tokens for a selection."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from codepack.classification import detect_project_type
from codepack.exceptions import ScanRootError
from codepack.logging import logger
from codepack.metadata import extract_metadata
from codepack.models import ScanPhase, ScanProgress, ScanResult, TokenEstimate
from codepack.packer import file_size, read_utf8
from codepack.plugins import load_plugins, plugin_excluded_dirs, plugin_source_extensions
from codepack.tokens import TokenEstimator
from codepack.tree import build_file_tree, count_files

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from codepack.models import PluginDef

    ProgressFn = Callable[[ScanProgress], None]


def _notify(on_progress: ProgressFn | None, phase: ScanPhase, files_found: int, message: str) -> None:
    if on_progress is None:
        return
    try:
        on_progress(ScanProgress(phase=phase, files_found=files_found, message=message))
    except Exception as e:  # noqa: BLE001
        logger.warning("progress callback failed", phase=str(phase), error=str(e))


def scan_directory(
    path: str | Path,
    plugins: Sequence[PluginDef] | None = None,
    on_progress: ProgressFn | None = None,
) -> ScanResult:
    """Detect, walk and describe a project directory.

    Progress is reported once per phase, in order: detecting, scanning,
    metadata, done. Callback failures are logged and otherwise ignored.

    Args:
        path (str | Path): the project root
        plugins (Sequence[PluginDef] | None): plugin definitions; loaded from
            the default plugin directory when None
        on_progress (ProgressFn | None): optional progress callback

    Raises:
        ScanRootError: if ``path`` does not exist or is not a directory

    Returns:
        ScanResult: project type, tree, file count and metadata
    """
    root = Path(path)
    if not root.is_dir():
        raise ScanRootError(folder=root)
    root = root.resolve()
    plugins = load_plugins() if plugins is None else list(plugins)

    _notify(on_progress, ScanPhase.DETECTING, 0, "Detecting project type")
    project_type = detect_project_type(root, plugins)

    _notify(on_progress, ScanPhase.SCANNING, 0, f"Scanning {project_type} project")
    tree = build_file_tree(root, plugin_excluded_dirs(plugins), plugin_source_extensions(plugins))
    total_files = count_files(tree)

    _notify(on_progress, ScanPhase.METADATA, total_files, "Extracting project metadata")
    metadata = extract_metadata(root, project_type)

    _notify(on_progress, ScanPhase.DONE, total_files, f"Found {total_files} files")
    logger.info("scan done", root=str(root), project_type=project_type, files=total_files)
    return ScanResult(project_type=project_type, tree=tree, total_files=total_files, metadata=metadata)


def scan_directory_async(
    path: str | Path,
    plugins: Sequence[PluginDef] | None = None,
    on_progress: ProgressFn | None = None,
) -> Future[ScanResult]:
    """Run :func:`scan_directory` on a worker thread.

    The walk is not interruptible: cancelling the returned future only
    discards the result if the scan has already started.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="codepack-scan")
    try:
        return executor.submit(scan_directory, path, plugins, on_progress)
    finally:
        executor.shutdown(wait=False)


def estimate_tokens(paths: Sequence[str | Path], estimator: TokenEstimator | None = None) -> TokenEstimate:
    """Estimate the token cost of a selection before packing it.

    Sizes of all files are summed; tokens are counted with the same exact
    tokenizer the packer uses, over the files readable as UTF-8.

    Args:
        paths (Sequence[str | Path]): the selected files
        estimator (TokenEstimator | None): token counter; defaults to the exact tokenizer

    Returns:
        TokenEstimate: token count and total size in bytes
    """
    estimator = estimator or TokenEstimator()
    tokens = 0
    total_bytes = 0
    for raw in paths:
        path = Path(raw)
        total_bytes += file_size(path)
        content = read_utf8(path)
        if content is not None:
            tokens += estimator.count(content)
    return TokenEstimate(tokens=tokens, total_bytes=total_bytes)
