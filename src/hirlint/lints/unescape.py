"""
Conservative conversion of escaped string text to raw-literal text.

Used when a cooked string or character literal is inlined into a raw format
string. Only escapes with an exact raw-literal equivalent are converted;
anything else either keeps the diagnostic without a fix or drops it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class UnescapeStatus(Enum):
    """
    FIXABLE: The text can be inlined as is
    LINT_ONLY: Report the lint, but offer no fix
    ABSTAIN: Do not report the lint at all
    """

    FIXABLE = auto()
    LINT_ONLY = auto()
    ABSTAIN = auto()


@dataclass(frozen=True, slots=True)
class UnescapeResult:
    status: UnescapeStatus
    text: Optional[str] = None

    @property
    def is_fixable(self) -> bool:
        return self.status is UnescapeStatus.FIXABLE


_LINT_ONLY = UnescapeResult(UnescapeStatus.LINT_ONLY)
_ABSTAIN = UnescapeResult(UnescapeStatus.ABSTAIN)


def unescape(text: str) -> UnescapeResult:
    """
    Unescape ``text`` (the inside of a cooked literal) for a raw literal.

    Scans left to right without backtracking:
    - ``#`` cannot be placed in a ``r"..."`` literal safely: LINT_ONLY
    - ``\\\\`` becomes a single backslash
    - ``\\"`` has no raw spelling: LINT_ONLY
    - any other escape, or a trailing backslash, has no raw form: ABSTAIN

    Examples:
        unescape(r"a\\\\b")  -> FIXABLE("a\\b")
        unescape(r'say \\"hi\\"') -> LINT_ONLY
        unescape(r"a\\rb")  -> ABSTAIN
    """
    out: list[str] = []
    lint_only = False
    chars = iter(text)
    for ch in chars:
        if ch == "#":
            lint_only = True
        elif ch == "\\":
            escaped = next(chars, None)
            if escaped == "\\":
                out.append("\\")
            elif escaped == '"':
                lint_only = True
            else:
                return _ABSTAIN
        else:
            out.append(ch)

    if lint_only:
        return _LINT_ONLY
    return UnescapeResult(UnescapeStatus.FIXABLE, "".join(out))
