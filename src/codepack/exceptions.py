from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CodepackError(Exception):
    """Base exception for errors in the codepack package."""


@dataclass(frozen=True)
class ScanRootError(CodepackError):
    """Raised when the directory to scan does not exist or is not a directory."""

    folder: Path
    message: str = "Path does not exist or is not a directory."

    def __str__(self) -> str:
        return f"{self.message} ({self.folder})"


@dataclass(frozen=True)
class PluginLoadError(CodepackError):
    """Raised when a plugin definition file cannot be read or validated."""

    file: Path
    reason: str

    def __str__(self) -> str:
        return f"Invalid plugin definition {self.file}: {self.reason}"


@dataclass(frozen=True)
class InvalidDiffSpecError(CodepackError):
    """Raised when a ``--diff`` value is not in ``REL_PATH=DIFF_FILE`` form."""

    value: str

    def __str__(self) -> str:
        return f"--diff must be REL_PATH=DIFF_FILE, got: {self.value}"
