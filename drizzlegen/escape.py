# File: drizzlegen/escape.py
"""
String escaping for text embedded inside generated TypeScript literals.

Single-quoted literals hold physical names, index names and relation names;
backtick literals hold raw SQL passed to Drizzle's ``sql`` tag.
"""

from __future__ import annotations

import re
from typing import List, Literal

StringContainer = Literal["'", '"', "`"]

_BACKSLASH_RE: re.Pattern[str] = re.compile(r"\\")


def escape(src: str, container: StringContainer = "'") -> str:
    """
    Escape *src* so it can sit between two *container* characters.

    Backslashes are doubled first, then every occurrence of the container
    character is prefixed with a backslash.

    Examples:
        >>> escape("it's")
        "it\\\\'s"
        >>> escape("now() `x`", "`")
        'now() \\\\`x\\\\`'
    """
    doubled: str = _BACKSLASH_RE.sub(r"\\\\", src)
    return doubled.replace(container, f"\\{container}")


def quote(src: str, container: StringContainer = "'") -> str:
    """Escape *src* and wrap it in *container*."""
    return f"{container}{escape(src, container)}{container}"


__all__: List[str] = ["StringContainer", "escape", "quote"]
