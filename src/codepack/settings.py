from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from codepack.config import DEFAULT_MAX_FILE_BYTES, ExportFormat

MAX_FILE_KB_ENV = "CODEPACK_MAX_FILE_KB"


def load_env() -> str:
    """Load the nearest ``.env`` (searched from the working directory) into ``os.environ``.

    Returns:
        str: the path of the loaded file, or "" when none was found
    """
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file, override=False)
    return env_file


def default_max_file_kb() -> int:
    raw = os.environ.get(MAX_FILE_KB_ENV, "").strip()
    return int(raw) if raw.isdigit() else DEFAULT_MAX_FILE_BYTES // 1024


class Settings(BaseModel):
    """Configuration settings for one codepack command."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    command: str = Field(..., description="Subcommand: scan, pack or stats.")
    repo: Path = Field(default_factory=Path.cwd, description="Project root.")
    log_file: str = Field(default="", description="Log file path.")
    plugins_dir: Path | None = Field(default=None, description="Plugin definitions directory.")

    json_output: bool = Field(default=False, description="Print scan result as JSON.")

    output: Path | None = Field(default=None, description="Output file; stdout when unset.")
    format: ExportFormat = Field(default=ExportFormat.PLAIN, description="Bundle format.")
    max_file_kb: int = Field(
        default_factory=default_max_file_kb,
        ge=0,
        description="Files above this size (KiB) are replaced by a placeholder.",
    )
    instruction: str = Field(default="", description="Review instructions appended to the bundle.")
    diff: list[str] = Field(default_factory=list, description="REL_PATH=DIFF_FILE pairs.")
    include_glob: list[str] = Field(default_factory=list, description="Include glob.")
    exclude_glob: list[str] = Field(default_factory=list, description="Exclude glob.")

    @property
    def max_file_bytes(self) -> int:
        return self.max_file_kb * 1024
