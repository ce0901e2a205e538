from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from codepack.config import GENERIC_PROJECT_TYPE
from codepack.metadata import extract_metadata, extract_xml_tag, requirement_name

if TYPE_CHECKING:
    from pathlib import Path


def write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.mark.unit
def test_extract_xml_tag() -> None:
    assert extract_xml_tag("<a> x </a>", "a") == "x"
    assert extract_xml_tag("<a>x", "a") is None
    assert extract_xml_tag("<b>x</b>", "a") is None
    assert extract_xml_tag("<a>1</a><a>2</a>", "a") == "1"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("req", "expected"),
    [
        ("requests>=2.0", "requests"),
        ("uvicorn[standard]~=0.30", "uvicorn"),
        ("numpy ; python_version < '3.13'", "numpy"),
        ("flask", "flask"),
    ],
)
def test_requirement_name(req: str, expected: str) -> None:
    assert requirement_name(req) == expected


@pytest.mark.unit
def test_unknown_type_yields_name_and_type_only(tmp_path: Path) -> None:
    meta = extract_metadata(tmp_path, GENERIC_PROJECT_TYPE)

    assert meta.name == tmp_path.name
    assert meta.project_type == GENERIC_PROJECT_TYPE
    assert meta.version is None
    assert meta.dependencies == []
    assert meta.requirements == []


@pytest.mark.unit
def test_cargo_dependencies_and_requirements(tmp_path: Path) -> None:
    write(
        tmp_path / "Cargo.toml",
        '[package]\nname = "demo"\nversion = "0.2.0"\nedition = "2021"\n\n'
        '[dependencies]\nserde = "1"\ntokio = { version = "1.37", features = ["full"] }\nlocal = { path = "../x" }\n\n'
        '[dev-dependencies]\ncriterion = "0.5"\n',
    )

    meta = extract_metadata(tmp_path, "Rust")

    assert meta.name == "demo"
    assert meta.version == "0.2.0"
    assert meta.dependencies == ["serde", "tokio", "local"]
    assert meta.requirements == ["serde@1", "tokio@1.37", "local@*"]
    assert meta.dev_dependencies == ["criterion"]
    assert "rust edition 2021" in meta.runtime


@pytest.mark.unit
def test_malformed_cargo_keeps_defaults(tmp_path: Path) -> None:
    write(tmp_path / "Cargo.toml", "[package\nname = ")

    meta = extract_metadata(tmp_path, "Rust")

    assert meta.name == tmp_path.name
    assert meta.dependencies == []


@pytest.mark.unit
def test_node_metadata(tmp_path: Path) -> None:
    write(
        tmp_path / "package.json",
        json.dumps(
            {
                "name": "web",
                "version": "1.0.0",
                "description": "",
                "main": "index.js",
                "dependencies": {"react": "^18.2.0", "zod": "^3"},
                "devDependencies": {"vitest": "^1"},
            },
        ),
    )
    write(tmp_path / ".nvmrc", "20.11.0\n")
    write(tmp_path / "tsconfig.json", json.dumps({"compilerOptions": {"target": "ES2022"}}))

    meta = extract_metadata(tmp_path, "Next.js")

    assert meta.name == "web"
    assert meta.description is None
    assert meta.entry_point == "index.js"
    assert meta.dependencies == ["react", "zod"]
    assert meta.requirements == ["react@^18.2.0", "zod@^3"]
    assert meta.dev_dependencies == ["vitest"]
    assert meta.runtime == ["node 20.11.0", "ts target: ES2022"]


@pytest.mark.unit
def test_node_version_file_first_line_only(tmp_path: Path) -> None:
    write(tmp_path / ".nvmrc", "\n  18.19.0  \n# pinned for CI\n")

    meta = extract_metadata(tmp_path, "Node.js")

    assert meta.runtime == ["node 18.19.0"]


@pytest.mark.unit
def test_python_pyproject_then_requirements_fallback(tmp_path: Path) -> None:
    write(
        tmp_path / "pyproject.toml",
        '[project]\nname = "tool"\nversion = "0.3.1"\nrequires-python = ">=3.11"\n'
        'dependencies = ["requests>=2", "rich"]\n',
    )
    write(tmp_path / "main.py", "print('x')\n")

    meta = extract_metadata(tmp_path, "Python")

    assert meta.name == "tool"
    assert meta.dependencies == ["requests", "rich"]
    assert meta.requirements == ["requests>=2", "rich"]
    assert meta.runtime == ["python >=3.11"]
    assert meta.entry_point == "main.py"


@pytest.mark.unit
def test_python_requirements_txt_and_python_version(tmp_path: Path) -> None:
    write(tmp_path / "requirements.txt", "# pinned\nflask==3.0.0\n-r other.txt\n\ngunicorn\n")
    write(tmp_path / ".python-version", "3.12.2\n")

    meta = extract_metadata(tmp_path, "Python")

    assert meta.dependencies == ["flask", "gunicorn"]
    assert meta.requirements == ["flask==3.0.0", "gunicorn"]
    assert meta.runtime == ["python 3.12.2"]
    assert meta.entry_point is None


@pytest.mark.unit
def test_go_mod(tmp_path: Path) -> None:
    write(
        tmp_path / "go.mod",
        "module example.com/svc\n\ngo 1.22\n\nrequire (\n"
        "\tgithub.com/gin-gonic/gin v1.9.1\n\t// indirect below\n\tgolang.org/x/text v0.14.0 // indirect\n)\n",
    )
    write(tmp_path / "main.go", "package main\n")

    meta = extract_metadata(tmp_path, "Go")

    assert meta.name == "example.com/svc"
    assert meta.version == "1.22"
    assert meta.runtime == ["go 1.22"]
    assert meta.dependencies == ["github.com/gin-gonic/gin", "golang.org/x/text"]
    assert meta.requirements == ["github.com/gin-gonic/gin@v1.9.1", "golang.org/x/text@v0.14.0"]
    assert meta.entry_point == "main.go"


@pytest.mark.unit
def test_pubspec_scanner(tmp_path: Path) -> None:
    write(
        tmp_path / "pubspec.yaml",
        "name: my_app\n"
        'description: "A Flutter app"\n'
        "version: 1.2.3+4\n\n"
        "environment:\n  sdk: '>=3.0.0 <4.0.0'\n\n"
        "dependencies:\n  flutter:\n    sdk: flutter\n  # comment\n  http: ^1.2.0\n\n"
        "dev_dependencies:\n  flutter_test:\n    sdk: flutter\n",
    )
    write(tmp_path / "lib" / "main.dart", "void main() {}\n")

    meta = extract_metadata(tmp_path, "Flutter / Dart")

    assert meta.name == "my_app"
    assert meta.description == "A Flutter app"
    assert meta.version == "1.2.3+4"
    assert meta.runtime == ["sdk >=3.0.0 <4.0.0"]
    assert meta.dependencies == ["flutter", "http"]
    assert meta.requirements == ["http@^1.2.0"]
    assert meta.dev_dependencies == ["flutter_test"]
    assert meta.entry_point == "lib/main.dart"


@pytest.mark.unit
def test_pubspec_nested_source_keys_count_as_dependencies(tmp_path: Path) -> None:
    write(
        tmp_path / "pubspec.yaml",
        "name: app\ndependencies:\n  shared:\n    git:\n      url: https://example.com/shared.git\n",
    )

    meta = extract_metadata(tmp_path, "Flutter / Dart")

    assert meta.dependencies == ["shared", "git", "url"]
    assert meta.requirements == ["url@https://example.com/shared.git"]


@pytest.mark.unit
def test_pom_ignores_parent_coordinates(tmp_path: Path) -> None:
    write(
        tmp_path / "pom.xml",
        """<project>
  <parent>
    <groupId>org.springframework.boot</groupId>
    <artifactId>spring-boot-starter-parent</artifactId>
    <version>3.2.0</version>
  </parent>
  <artifactId>orders</artifactId>
  <version>0.0.1</version>
  <properties>
    <java.version>21</java.version>
  </properties>
  <dependencies>
    <dependency>
      <groupId>org.springframework.boot</groupId>
      <artifactId>spring-boot-starter-web</artifactId>
    </dependency>
    <dependency>
      <groupId>com.google.guava</groupId>
      <artifactId>guava</artifactId>
      <version>33.0.0-jre</version>
    </dependency>
  </dependencies>
</project>
""",
    )

    meta = extract_metadata(tmp_path, "Java / Maven")

    assert meta.name == "orders"
    assert meta.version == "0.0.1"
    assert meta.runtime == ["java 21"]
    assert meta.dependencies == ["spring-boot-starter-web", "guava"]
    assert meta.requirements == [
        "org.springframework.boot:spring-boot-starter-web",
        "com.google.guava:guava:33.0.0-jre",
    ]


@pytest.mark.unit
@pytest.mark.parametrize("settings_file", ["settings.gradle.kts", "settings.gradle"])
def test_gradle_root_project_name(tmp_path: Path, settings_file: str) -> None:
    write(tmp_path / settings_file, 'pluginManagement {}\nrootProject.name = "MyApp"\ninclude(":app")\n')

    meta = extract_metadata(tmp_path, "Android / Gradle")

    assert meta.name == "MyApp"


@pytest.mark.unit
def test_metadata_is_fresh_per_call(tmp_path: Path) -> None:
    write(tmp_path / "requirements.txt", "flask\n")

    first = extract_metadata(tmp_path, "Python")
    second = extract_metadata(tmp_path, "Python")

    assert first == second
    assert first.dependencies is not second.dependencies
