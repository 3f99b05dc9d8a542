"""featurescope display: token and context formatting for feature views.

Usage:
    from featurescope.display import format_token, parse_context

    format_token("\\n").display        # "[NEWLINE]"
    parse_context("a**b**c").token     # "b"
"""

from featurescope.display.context import parse_context
from featurescope.display.tokens import (
    GPT2_BYTE_ESCAPES,
    TokenFormatter,
    format_ngram,
    format_percent,
    format_token,
)

__all__ = [
    "GPT2_BYTE_ESCAPES",
    "TokenFormatter",
    "format_ngram",
    "format_percent",
    "format_token",
    "parse_context",
]
