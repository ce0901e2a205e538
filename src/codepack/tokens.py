from __future__ import annotations

from functools import cache

import tiktoken

DEFAULT_ENCODING = "cl100k_base"


@cache
def _encoding(name: str) -> tiktoken.Encoding:
    return tiktoken.get_encoding(name)


class TokenEstimator:
    """Count tokens with an exact sub-word tokenizer.

    This is the only token-counting algorithm in codepack: pack results,
    headers and selection estimates all go through it.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING) -> None:
        self.encoding_name = encoding_name

    def count(self, text: str) -> int:
        """Count the tokens of ``text``, treating special-token markers as plain text."""
        if not text:
            return 0
        return len(_encoding(self.encoding_name).encode_ordinary(text))


def format_tokens(tokens: int | float) -> str:
    """Render a token count compactly, e.g. ``500``, ``1.5K`` or ``1.5M``.

    Args:
        tokens (int | float): the count to render

    Returns:
        str: the human-readable count
    """
    if tokens >= 1_000_000:  # noqa: PLR2004
        return f"{tokens / 1_000_000:.1f}M"
    if tokens >= 1_000:  # noqa: PLR2004
        return f"{tokens / 1_000:.1f}K"
    return f"{tokens:.0f}"
