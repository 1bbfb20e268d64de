"""JSDoc comment reader."""
import re
from typing import Optional

from .ast_nodes import JSDocInfo


# @tag, optionally followed by a {type expression} on the same line
_TAG_PATTERN = re.compile(r"@([A-Za-z_][A-Za-z0-9_]*)[ \t]*(?:\{([^{}\n]*(?:\{[^{}\n]*\}[^{}\n]*)*)\})?")
# Closure also accepts `@extends Base` without braces
_BARE_TYPE_PATTERN = re.compile(r"[ \t]*([A-Za-z_$][\w$.]*)")

_RETURN_TAGS = {"return", "returns"}
_EXTENDS_TAGS = {"extends", "augments"}


def is_jsdoc(comment: str) -> bool:
    """True for /** ... */ comments, excluding the degenerate /**/."""
    return comment.startswith("/**") and comment.endswith("*/") and comment != "/**/"


def parse_jsdoc(comment: str, start: int = 0) -> Optional[JSDocInfo]:
    """Read the tags of a JSDoc comment.

    Args:
        comment: Full comment text, including the delimiters
        start: Source offset of the comment opener

    Returns:
        JSDocInfo, or None if the comment is not a JSDoc comment
    """
    if not is_jsdoc(comment):
        return None

    tags = set()
    return_type = None
    extends = None

    for match in _TAG_PATTERN.finditer(comment):
        tag = match.group(1)
        type_expr = match.group(2)
        tags.add(tag)

        if tag in _RETURN_TAGS and return_type is None:
            return_type = type_expr.strip() if type_expr is not None else None
        elif tag in _EXTENDS_TAGS and extends is None:
            if type_expr is not None:
                extends = type_expr.strip()
            else:
                bare = _BARE_TYPE_PATTERN.match(comment, match.end())
                if bare:
                    extends = bare.group(1)

    if extends is not None:
        # {!ns.Base} and {ns.Base} name the same class
        extends = extends.lstrip("!") or None

    return JSDocInfo(
        tags=frozenset(tags),
        return_type=return_type or None,
        extends=extends,
        start=start,
    )
