"""codepack: bundle a project directory into a single LLM-ready document."""

__version__ = "0.1.0"
