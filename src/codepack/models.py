from __future__ import annotations

from enum import StrEnum, auto

from pydantic import BaseModel, ConfigDict, Field


class FileNode(BaseModel):
    """A node of the browsable project tree.

    Attributes:
        name: Last path segment.
        path: Absolute path on disk.
        is_dir: Whether the node is a directory.
        children: Ordered children, always empty for files.
        checked: Selection flag owned by the caller's UI.
        indeterminate: Partial-selection flag owned by the caller's UI.
    """

    name: str = Field(..., description="Leaf path segment")
    path: str = Field(..., description="Absolute path")
    is_dir: bool = Field(default=False, description="Directory flag")
    children: list[FileNode] = Field(default_factory=list, description="Ordered children")
    checked: bool = Field(default=True, description="UI selection state")
    indeterminate: bool = Field(default=False, description="UI partial selection state")


class ProjectMetadata(BaseModel):
    """Manifest-derived facts about a project, used for the bundle header."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Project name (defaults to the root directory name)")
    project_type: str = Field(..., description="Detected ecosystem label")
    version: str | None = Field(default=None, description="Project or toolchain version")
    description: str | None = Field(default=None, description="Non-empty project description")
    dependencies: list[str] = Field(default_factory=list, description="Dependency names, manifest order")
    dev_dependencies: list[str] = Field(default_factory=list, description="Development dependency names")
    entry_point: str | None = Field(default=None, description="Main file of the project")
    runtime: list[str] = Field(default_factory=list, description="Free-form 'tool version' hints")
    requirements: list[str] = Field(
        default_factory=list,
        description="Dependency descriptors such as 'name@version' or 'group:artifact:version'",
    )


class SkippedFile(BaseModel):
    """A requested file that was left out of the packed body."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the project root")
    reason: str = Field(..., description="Why the file was skipped")
    size_bytes: int = Field(..., ge=0, description="File size on disk")


class PackResult(BaseModel):
    """The assembled bundle and its accounting."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Final rendered document")
    file_count: int = Field(..., ge=0, description="Number of files whose body was included")
    total_bytes: int = Field(..., ge=0, description="Sum of included file sizes (UTF-8 bytes)")
    estimated_tokens: int = Field(..., ge=0, description="Token count of the rendered text")
    skipped_files: list[SkippedFile] = Field(default_factory=list, description="Omitted files")


class ScanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_type: str
    tree: FileNode
    total_files: int = Field(..., ge=0)
    metadata: ProjectMetadata


class ScanPhase(StrEnum):
    """Ordered phases reported while scanning a project."""

    DETECTING = auto()
    SCANNING = auto()
    METADATA = auto()
    DONE = auto()


class ScanProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: ScanPhase
    files_found: int = Field(default=0, ge=0)
    message: str = ""


class TokenEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    tokens: int = Field(..., ge=0, description="Token count of all readable files")
    total_bytes: int = Field(..., ge=0, description="Sum of file sizes on disk")


class PluginDef(BaseModel):
    """A user-defined ecosystem: how to detect it and what it adds to the scan."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Label returned when the plugin matches")
    version: str = Field(default="", description="Free-form plugin version")
    detect_files: list[str] = Field(default_factory=list, description="Files that must all exist")
    detect_dirs: list[str] = Field(default_factory=list, description="Directories that must all exist")
    exclude_dirs: list[str] = Field(default_factory=list, description="Extra directory names to skip")
    source_extensions: list[str] = Field(default_factory=list, description="Extra source extensions")


class LangStat(BaseModel):
    language: str
    extension: str
    file_count: int = 0
    line_count: int = 0
    byte_count: int = 0


class ProjectStats(BaseModel):
    total_files: int = 0
    total_lines: int = 0
    total_bytes: int = 0
    languages: list[LangStat] = Field(default_factory=list)
