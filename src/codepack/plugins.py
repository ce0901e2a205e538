"""Read-only access to user plugin definitions.

Plugins are JSON or YAML files in a single directory. They are loaded in
alphabetical filename order, which is also the order in which project type
detection tries them: the first matching plugin wins.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from platformdirs import user_config_dir
from pydantic import ValidationError

from codepack.config import PLUGIN_FILE_SUFFIXES
from codepack.exceptions import PluginLoadError
from codepack.logging import logger
from codepack.models import PluginDef

if TYPE_CHECKING:
    from collections.abc import Sequence

APP_NAME = "codepack"
PLUGINS_DIR_ENV = "CODEPACK_PLUGINS_DIR"


def default_plugins_dir() -> Path:
    """Return ``$CODEPACK_PLUGINS_DIR`` or ``<user config dir>/codepack/plugins``."""
    override = os.environ.get(PLUGINS_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path(user_config_dir(APP_NAME, appauthor=False)) / "plugins"


def load_plugin_file(path: Path) -> PluginDef:
    """Parse and validate one plugin definition file.

    Args:
        path (Path): a ``.json``, ``.yaml`` or ``.yml`` file

    Raises:
        PluginLoadError: if the file cannot be read, parsed or validated

    Returns:
        PluginDef: the validated plugin
    """
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
        return PluginDef.model_validate(data)
    except (OSError, ValueError, yaml.YAMLError, ValidationError) as e:
        raise PluginLoadError(file=path, reason=str(e)) from e


def load_plugins(directory: Path | None = None) -> list[PluginDef]:
    """Load every plugin definition of a directory, skipping invalid files.

    Args:
        directory (Path | None): plugin directory; defaults to :func:`default_plugins_dir`

    Returns:
        list[PluginDef]: plugins in alphabetical filename order
    """
    directory = directory if directory is not None else default_plugins_dir()
    if not directory.is_dir():
        return []
    plugins: list[PluginDef] = []
    files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in PLUGIN_FILE_SUFFIXES)
    for path in files:
        try:
            plugins.append(load_plugin_file(path))
        except PluginLoadError as e:
            logger.warning("Skipping plugin %s: %s", path.name, e.reason)
    return plugins


def plugin_excluded_dirs(plugins: Sequence[PluginDef]) -> list[str]:
    """Flatten the extra directory excludes contributed by plugins, in load order."""
    return [d for p in plugins for d in p.exclude_dirs]


def plugin_source_extensions(plugins: Sequence[PluginDef]) -> list[str]:
    """Flatten the extra source extensions contributed by plugins, in load order."""
    return [ext for p in plugins for ext in p.source_extensions]
