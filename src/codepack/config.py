from __future__ import annotations

from enum import StrEnum, auto


class ExportFormat(StrEnum):
    """Output flavour of a packed bundle.

    Each value selects one rendering strategy for the header, the file
    bodies, the tree overview and the footer.
    """

    PLAIN = auto()
    MARKDOWN = auto()
    XML = auto()


GENERIC_PROJECT_TYPE = "Generic"

DEFAULT_MAX_FILE_BYTES = 1_048_576  # 1 MiB
MAX_FILE_COUNT = 5_000

EXCLUDED_DIRS: tuple[str, ...] = (
    "node_modules",
    "build",
    "dist",
    ".gradle",
    ".idea",
    ".vscode",
    "__pycache__",
    ".git",
    ".svn",
    ".hg",
    "target",
    ".next",
    ".nuxt",
    ".output",
    "venv",
    ".venv",
    "env",
    ".env",
    ".dart_tool",
    ".pub-cache",
    "Pods",
    "DerivedData",
    ".cache",
    "coverage",
    ".turbo",
    "out",
    ".DS_Store",
    "bin",
    "obj",
    ".tox",
    "vendor",
    ".bundle",
    ".swiftpm",
)

SOURCE_EXTENSIONS: frozenset[str] = frozenset({
    "rs", "ts", "tsx", "js", "jsx", "vue", "svelte", "py", "kt", "kts",
    "java", "dart", "go", "rb", "php", "swift", "c", "cpp", "h", "hpp",
    "cs", "m", "mm", "scala", "clj", "ex", "exs", "hs", "lua", "r",
    "jl", "sql", "sh", "bash", "zsh", "fish", "bat", "ps1", "yml", "yaml",
    "toml", "json", "xml", "html", "css", "scss", "sass", "less", "md", "mdx",
    "txt", "cfg", "ini", "conf", "env", "dockerfile", "makefile", "cmake", "gradle", "properties",
    "gitignore", "editorconfig", "eslintrc", "prettierrc", "graphql", "gql", "proto", "tf", "hcl", "nix",
    "astro", "mod", "sum", "lock",
})  # fmt: skip

# Extension-less build files that always count as source.
BUILD_FILE_NAMES: frozenset[str] = frozenset({
    "dockerfile",
    "makefile",
    "cmakelists.txt",
    "rakefile",
    "gemfile",
    "procfile",
    "justfile",
    "taskfile",
    "vagrantfile",
})

DEFAULT_COMMENT = "//"

COMMENT_DELIMITERS: dict[str, str] = {
    "html": "<!--",
    "xml": "<!--",
    "svg": "<!--",
    "vue": "<!--",
    "svelte": "<!--",
    "css": "/*",
    "scss": "/*",
    "sass": "/*",
    "less": "/*",
    "py": "#",
    "rb": "#",
    "sh": "#",
    "bash": "#",
    "zsh": "#",
    "fish": "#",
    "yaml": "#",
    "yml": "#",
    "toml": "#",
    "ini": "#",
    "cfg": "#",
    "conf": "#",
    "r": "#",
    "jl": "#",
    "pl": "#",
    "sql": "--",
    "lua": "--",
    "hs": "--",
    "bat": "REM",
}

EXT2LANGUAGE: dict[str, str] = {
    "rs": "Rust",
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "js": "JavaScript",
    "jsx": "JavaScript",
    "vue": "Vue",
    "svelte": "Svelte",
    "py": "Python",
    "kt": "Kotlin",
    "kts": "Kotlin",
    "java": "Java",
    "dart": "Dart",
    "go": "Go",
    "rb": "Ruby",
    "php": "PHP",
    "swift": "Swift",
    "c": "C",
    "cpp": "C++",
    "cc": "C++",
    "cxx": "C++",
    "h": "C/C++ Header",
    "hpp": "C/C++ Header",
    "cs": "C#",
    "scala": "Scala",
    "html": "HTML",
    "css": "CSS",
    "scss": "CSS (preprocessor)",
    "sass": "CSS (preprocessor)",
    "less": "CSS (preprocessor)",
    "json": "JSON",
    "yaml": "YAML",
    "yml": "YAML",
    "toml": "TOML",
    "xml": "XML",
    "md": "Markdown",
    "mdx": "Markdown",
    "sql": "SQL",
    "sh": "Shell",
    "bash": "Shell",
    "zsh": "Shell",
    "fish": "Shell",
    "bat": "PowerShell/Batch",
    "ps1": "PowerShell/Batch",
    "graphql": "GraphQL",
    "gql": "GraphQL",
    "proto": "Protobuf",
    "tf": "Terraform/HCL",
    "hcl": "Terraform/HCL",
    "lua": "Lua",
    "r": "R",
    "jl": "Julia",
}

NODE_PROJECT_TYPES: frozenset[str] = frozenset({"Node.js", "Next.js", "Vite", "Nuxt.js"})
GRADLE_PROJECT_TYPES: frozenset[str] = frozenset({"Android / Gradle", "Gradle"})

PYTHON_ENTRY_POINTS: tuple[str, ...] = ("main.py", "app.py", "manage.py", "run.py")

# JS framework config prefixes, scanned together over the top-level listing.
FRAMEWORK_CONFIG_PREFIXES: tuple[tuple[str, str], ...] = (
    ("next.config", "Next.js"),
    ("nuxt.config", "Nuxt.js"),
    ("vite.config", "Vite"),
)

PLUGIN_FILE_SUFFIXES: frozenset[str] = frozenset({".json", ".yaml", ".yml"})
