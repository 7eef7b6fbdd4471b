"""SGR (ESC[...m) parsing with style that persists between calls.

The game does not repeat color codes on every line, so the renderer keeps the
current style for its whole lifetime instead of starting fresh per message.
"""
import re
from dataclasses import dataclass, replace
from typing import List, Optional

SGR_RE = re.compile(r'\x1b\[([0-9;]+)m')

FG_COLORS = {
    '30': '#000', '31': '#ff5555', '32': '#50fa7b', '33': '#f1fa8c',
    '34': '#bd93f9', '35': '#ff79c6', '36': '#8be9fd', '37': '#f8f8f2',
    '90': '#6272a4', '91': '#ff6e6e', '92': '#69ff94', '93': '#ffffa5',
    '94': '#d6acff', '95': '#ff92df', '96': '#a4ffff', '97': '#ffffff',
}

BG_COLORS = {
    '40': '#000', '41': '#ff5555', '42': '#50fa7b', '43': '#f1fa8c',
    '44': '#bd93f9', '45': '#ff79c6', '46': '#8be9fd', '47': '#f8f8f2',
    '100': '#6272a4', '101': '#ff6e6e', '102': '#69ff94', '103': '#ffffa5',
    '104': '#d6acff', '105': '#ff92df', '106': '#a4ffff', '107': '#ffffff',
}


@dataclass(frozen=True)
class StyleState:
    fg: Optional[str] = None
    bg: Optional[str] = None
    bold: bool = False
    underline: bool = False


DEFAULT_STYLE = StyleState()


@dataclass(frozen=True)
class StyledSegment:
    text: str
    style: StyleState = DEFAULT_STYLE


def apply_code(style: StyleState, code: str) -> StyleState:
    """Return ``style`` updated by one SGR parameter. Unknown codes are no-ops."""
    if code == '0':
        return DEFAULT_STYLE
    if code == '1':
        return replace(style, bold=True)
    if code == '4':
        return replace(style, underline=True)
    if code in FG_COLORS:
        return replace(style, fg=FG_COLORS[code])
    if code in BG_COLORS:
        return replace(style, bg=BG_COLORS[code])
    if code == '39':
        return replace(style, fg=None)
    if code == '49':
        return replace(style, bg=None)
    return style


def strip_ansi(text: str) -> str:
    return SGR_RE.sub('', text)


class AnsiRenderer:
    """Converts escape-coded text into StyledSegments."""

    def __init__(self):
        self.state = DEFAULT_STYLE

    def render(self, text: str) -> List[StyledSegment]:
        segments = []
        last = 0
        for match in SGR_RE.finditer(text):
            if match.start() > last:
                segments.append(StyledSegment(text[last:match.start()], self.state))
            for code in match.group(1).split(';'):
                self.state = apply_code(self.state, code)
            last = match.end()
        if last < len(text):
            segments.append(StyledSegment(text[last:], self.state))
        return segments

    def reset(self) -> None:
        self.state = DEFAULT_STYLE
