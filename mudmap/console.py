"""Scrollback buffer of styled lines, one per output pane."""
from collections import deque
from typing import Callable, Deque, List, Optional

from .ansi import AnsiRenderer, StyledSegment, StyleState

Line = List[StyledSegment]


def _hex_to_rgb(color: str) -> tuple:
    digits = color.lstrip('#')
    if len(digits) == 3:
        digits = ''.join(ch * 2 for ch in digits)
    return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))


def _sgr(style: StyleState) -> str:
    codes = ['0']
    if style.bold:
        codes.append('1')
    if style.underline:
        codes.append('4')
    if style.fg:
        codes.append('38;2;%d;%d;%d' % _hex_to_rgb(style.fg))
    if style.bg:
        codes.append('48;2;%d;%d;%d' % _hex_to_rgb(style.bg))
    return '\x1b[' + ';'.join(codes) + 'm'


def to_ansi(segments: Line) -> str:
    """Re-encode segments for a truecolor terminal."""
    if not segments:
        return ''
    return ''.join(_sgr(seg.style) + seg.text for seg in segments) + '\x1b[0m'


def plain_text(segments: Line) -> str:
    return ''.join(seg.text for seg in segments)


class Console:
    """Keeps the last ``max_lines`` lines of styled output.

    ``write`` appends to the current line and starts a new one at every
    ``\\n``, so a spinner frame written without a newline stays on the line
    it was drawn on. ``on_output`` receives the same writes re-encoded as
    terminal text.
    """

    def __init__(self, max_lines: int = 1000, on_output: Optional[Callable[[str], None]] = None):
        self.max_lines = max_lines
        self.on_output = on_output
        self.renderer = AnsiRenderer()
        self.lines: Deque[Line] = deque(maxlen=max_lines)

    def write(self, content: str = '') -> None:
        out = []
        for i, line in enumerate(str(content).split('\n')):
            if not self.lines or i > 0:
                self.lines.append([])
                if i > 0:
                    out.append('\n')
            if line:
                segments = self.renderer.render(line)
                self.lines[-1].extend(segments)
                out.append(to_ansi(segments))
        if self.on_output:
            self.on_output(''.join(out))

    def writeln(self, content: str = '') -> None:
        self.write(f"{content}\n")

    def clear(self) -> None:
        self.lines.clear()

    def text(self) -> List[str]:
        """Plain text of every line, oldest first."""
        return [plain_text(line) for line in self.lines]
