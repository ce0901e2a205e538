from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from codepack.config import ExportFormat
from codepack.settings import Settings, default_max_file_kb, load_env


@pytest.mark.unit
def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CODEPACK_MAX_FILE_KB", raising=False)

    settings = Settings(command="pack")

    assert settings.format is ExportFormat.PLAIN
    assert settings.output is None
    assert settings.max_file_kb == 1024
    assert settings.max_file_bytes == 1_048_576
    assert settings.diff == []


@pytest.mark.unit
def test_max_file_kb_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CODEPACK_MAX_FILE_KB", "64")

    assert default_max_file_kb() == 64
    assert Settings(command="pack").max_file_bytes == 64 * 1024


@pytest.mark.unit
def test_invalid_max_file_kb_env_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CODEPACK_MAX_FILE_KB", "lots")

    assert default_max_file_kb() == 1024


@pytest.mark.unit
def test_settings_rejects_negative_limit() -> None:
    with pytest.raises(ValidationError):
        Settings(command="pack", max_file_kb=-1)


@pytest.mark.unit
def test_settings_coerces_strings() -> None:
    settings = Settings(command="pack", repo="proj", output="out.xml", format="xml")

    assert settings.repo == Path("proj")
    assert settings.output == Path("out.xml")
    assert settings.format is ExportFormat.XML


@pytest.mark.unit
def test_load_env_reads_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("CODEPACK_MAX_FILE_KB=12\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CODEPACK_MAX_FILE_KB", raising=False)

    loaded = load_env()

    assert Path(loaded) == tmp_path / ".env"
    assert default_max_file_kb() == 12
