"""Text helpers shared by the room index and the trigger layer."""
import re

_WHITESPACE_RE = re.compile(r'\s+')


def normalize(text) -> str:
    """Collapse whitespace runs, trim and lower-case. None becomes ''."""
    if text is None:
        return ""
    return _WHITESPACE_RE.sub(' ', text).strip().lower()


class Direction:
    N = "N"; E = "E"; S = "S"; W = "W"; U = "U"; D = "D"

    # Order the game prints exits in
    CANONICAL = (N, E, S, W, U, D)
