"""Split activation contexts around their highlighted token.

Contexts mark the active token inline: "...text**highlighted**more text...".
"""

from __future__ import annotations

import re

from featurescope.core.types import ContextSpan

_HIGHLIGHT_RE = re.compile(r"^(.*?)\*\*(.*?)\*\*(.*)$", re.DOTALL)


def parse_context(context: str) -> ContextSpan:
    """Return the text before, inside, and after the first highlighted span.

    Without a delimited span the whole input is returned as ``before``.
    """
    match = _HIGHLIGHT_RE.match(context)
    if match is None:
        return ContextSpan(before=context, token="", after="")
    return ContextSpan(before=match.group(1), token=match.group(2), after=match.group(3))
