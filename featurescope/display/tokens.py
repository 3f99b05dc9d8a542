"""Display formatting for raw sub-word tokens.

Byte-level BPE tokenizers remap whitespace and control bytes to printable
code points (GPT-2 writes a newline as "Ċ" and a leading space as "Ġ").
The formatter turns both the literal characters and their escape glyphs into
bracketed markers so they stay visible in a listing.
"""

from __future__ import annotations

from featurescope.core.types import FormattedToken


# Escape glyph -> the control character it stands for (GPT-2 byte encoder)
GPT2_BYTE_ESCAPES: dict[str, str] = {
    "\u010a": "\n",  # Ċ
    "\u0109": "\t",  # ĉ
    "\u010d": "\r",  # č
    "\u0120": " ",  # Ġ
}

# Standalone control characters and their display markers
_CONTROL_MARKERS: dict[str, str] = {
    "\n": "[NEWLINE]",
    " ": "[SPACE]",
    "\t": "[TAB]",
    "\r": "[CR]",
}

_LEADING_SPACE_MARKER = "[SP]"
_EMPTY_MARKER = "[EMPTY]"


class TokenFormatter:
    """Format tokens for display using a tokenizer's escape-glyph table.

    Usage:
        formatter = TokenFormatter()  # GPT-2 byte-level BPE
        formatter.format("Ġcat")      # FormattedToken("[SP]cat", False)
    """

    def __init__(self, escapes: dict[str, str] | None = None) -> None:
        self._escapes = dict(GPT2_BYTE_ESCAPES if escapes is None else escapes)
        self._space_glyphs = tuple(g for g, ch in self._escapes.items() if ch == " ")

    def format(self, token: str) -> FormattedToken:
        """Map a raw token to its display form and flag non-printable tokens."""
        # Newline, tab and CR (literal or escaped); a bare space is literal only
        control = token if token in _CONTROL_MARKERS else None
        if control is None and self._escapes.get(token) in ("\n", "\t", "\r"):
            control = self._escapes[token]
        if control is not None:
            return FormattedToken(_CONTROL_MARKERS[control], True)

        if token == "":
            return FormattedToken(_EMPTY_MARKER, True)

        for glyph in self._space_glyphs:
            if token.startswith(glyph) and len(token) > len(glyph):
                return FormattedToken(_LEADING_SPACE_MARKER + token[len(glyph) :], False)
        if token.startswith(" ") and len(token) > 1:
            return FormattedToken(_LEADING_SPACE_MARKER + token[1:], False)

        if token in self._space_glyphs:
            return FormattedToken(_CONTROL_MARKERS[" "], True)

        return FormattedToken(token, False)

    def format_ngram(self, ngram_str: str) -> str:
        """Format each whitespace-separated token of an n-gram string."""
        return " ".join(self.format(part).display for part in ngram_str.split())


_default_formatter = TokenFormatter()


def format_token(token: str) -> FormattedToken:
    """Format a token using the GPT-2 escape table."""
    return _default_formatter.format(token)


def format_ngram(ngram_str: str) -> str:
    """Format an n-gram string using the GPT-2 escape table."""
    return _default_formatter.format_ngram(ngram_str)


def format_percent(value: float) -> str:
    """Render a percentage value with one decimal place."""
    return f"{value:.1f}%"
