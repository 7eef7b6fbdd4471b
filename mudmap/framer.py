"""Reassembles chunked MUD output into display lines.

The gateway forwards whatever the game wrote, so one websocket message can
hold half a line, several lines, or a bare prompt that will never be followed
by a newline. The framer splits on every line-ending style the game uses and
bounds the latency of unterminated text with a short debounce.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Tried left to right at each position, so two-char endings win over lone ones
DELIMITER_RE = re.compile(r'\r\n|\n\r|\r\x00|\r|\n|\x00')

# Single-character frames of the server's spinner animations
TICK_GLYPHS = frozenset({' ', '-', '=', '+', '*'})

# Login prompts that never get a line ending
PROMPTS = frozenset({
    'By what name do you wish to be known? ',
    'Passphrase: ',
})

PROMPT_SUFFIX = '> '
FLUSH_DELAY = 0.25


@dataclass(frozen=True)
class LineEvent:
    text: str
    delimiter: str = ""
    is_prompt: bool = False
    is_timer_tick: bool = False

    @classmethod
    def from_text(cls, text: str, delimiter: str = "") -> "LineEvent":
        return cls(
            text=text,
            delimiter=delimiter,
            is_prompt=text.endswith(PROMPT_SUFFIX),
            is_timer_tick=text in TICK_GLYPHS,
        )


def split_lines(buffer: str) -> Tuple[List[Tuple[str, str]], str]:
    """Split ``buffer`` into (text, delimiter) pairs and the unterminated tail.

    Whitespace-only text ended by a bare carriage return or NUL is dropped;
    blank lines ended by a real newline are kept.
    """
    pairs = []
    cursor = 0
    for match in DELIMITER_RE.finditer(buffer):
        text = buffer[cursor:match.start()]
        delimiter = match.group()
        cursor = match.end()
        if text.strip() or '\n' in delimiter:
            pairs.append((text, delimiter))
    return pairs, buffer[cursor:]


def is_fast_path(tail: str) -> bool:
    """True if ``tail`` is known to be complete without a line ending."""
    return tail in PROMPTS or tail.endswith(PROMPT_SUFFIX) or tail in TICK_GLYPHS


class StreamFramer:
    """Turns raw chunks into LineEvents.

    Events are returned from ``feed`` and also passed to ``on_line``. Text
    left without a line ending is flushed ``flush_delay`` seconds after the
    last ``feed``; that flush only reaches ``on_line``. The timer needs a
    running asyncio loop. Without one the tail stays buffered until the next
    ``feed`` or an explicit ``flush()``.
    """

    def __init__(self, on_line: Optional[Callable[[LineEvent], None]] = None,
                 flush_delay: float = FLUSH_DELAY,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.on_line = on_line
        self.flush_delay = flush_delay
        self._loop = loop
        self._buffer = ""
        self._flush_handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> str:
        """Text received but not yet emitted."""
        return self._buffer

    @property
    def flush_scheduled(self) -> bool:
        return self._flush_handle is not None

    def feed(self, chunk: str) -> List[LineEvent]:
        self._cancel_flush()
        self._buffer += chunk

        pairs, self._buffer = split_lines(self._buffer)
        if self._buffer and is_fast_path(self._buffer):
            pairs.append((self._buffer, ""))
            self._buffer = ""

        events = [LineEvent.from_text(text, delimiter) for text, delimiter in pairs]
        for event in events:
            self._emit(event)

        if self._buffer:
            self._schedule_flush()
        return events

    def flush(self) -> Optional[LineEvent]:
        """Emit whatever is buffered as one plain line."""
        self._cancel_flush()
        if not self._buffer:
            return None
        logger.debug(f"Flushing after delay: {self._buffer!r}")
        event = LineEvent(text=self._buffer)
        self._buffer = ""
        self._emit(event)
        return event

    def reset(self) -> None:
        """Drop buffered text and any pending flush (new session)."""
        self._cancel_flush()
        if self._buffer:
            logger.debug(f"Discarding partial line: {self._buffer!r}")
        self._buffer = ""

    def _emit(self, event: LineEvent) -> None:
        if self.on_line:
            self.on_line(event)

    def _schedule_flush(self) -> None:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return
        self._flush_handle = loop.call_later(self.flush_delay, self._on_flush_timer)

    def _on_flush_timer(self) -> None:
        self._flush_handle = None
        self.flush()

    def _cancel_flush(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
