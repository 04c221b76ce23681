"""
Argoshell token helpers.

Every token handed to the parser is classified exactly once, by classify(), into one
of three shapes; both the short-flag expansion pass and the flag matcher consume that
classification so their prefix checks can never drift apart.

Shapes
- LONG  : two dashes and at least one more character ("--name").
- SHORT : one dash and at least one more character, not LONG ("-x", "-xyz", "-5").
- BARE  : anything else, including the lone dash ("-") and the empty string.

Expansion
- a SHORT token longer than two characters is a cluster of short flags and is
  rewritten in place, one flag per character ("-yz" → "-y", "-z").
"""
import re
from enum import Enum


class TokenKind(Enum):
    """
    shape of a single token, as seen by the flag matcher.
    """
    LONG = "long"
    SHORT = "short"
    BARE = "bare"


def classify(token, /):
    """
    classify a token as LONG, SHORT or BARE.

    examples
    - classify("--test1") → TokenKind.LONG
    - classify("-x")      → TokenKind.SHORT
    - classify("-xyz")    → TokenKind.SHORT
    - classify("-")       → TokenKind.BARE
    - classify("value")   → TokenKind.BARE
    """
    if not isinstance(token, str):
        raise TypeError("classify() argument must be a string")
    if len(token) > 2 and token.startswith("--"):
        return TokenKind.LONG
    if len(token) > 1 and token.startswith("-"):
        return TokenKind.SHORT
    return TokenKind.BARE


def expand(tokens, /):
    """
    split combined short flags into single-character flags, preserving order.

    >>> expand(["-x", "1", "-yz", "test"])
    ('-x', '1', '-y', '-z', 'test')
    """
    expanded = []
    for token in tokens:
        if classify(token) is TokenKind.SHORT and len(token) > 2:
            expanded.extend("-" + char for char in token[1:])
        else:
            expanded.append(token)
    return tuple(expanded)


INTEGER_RANGE = range(-2 ** 63, 2 ** 63)


def is_integer(text, /):
    """
    return True when text is a base-10 integer: optional sign, ascii digits only,
    within the signed 64-bit range (INTEGER_RANGE).
    """
    if (match := re.fullmatch(r"[+-]?0*([0-9]+)", text)) is None:
        return False
    # int() refuses very long digit strings
    return len(match[1]) <= 19 and int(text) in INTEGER_RANGE


__all__ = (
    "TokenKind",
    "classify",
    "expand",
    "is_integer",
    "INTEGER_RANGE",
)
