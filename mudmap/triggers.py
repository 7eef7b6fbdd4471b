"""Line classifiers: chat lines and room description blocks."""
import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

COMMS_MARKERS = (
    ' says ', ' tells you ', 'You tell ', 'You say ',
    'whispers', 'shouts', 'yells', ' chats ', ' narrates ',
)

# Room names are the only lines printed entirely in cyan
ROOM_NAME_RE = re.compile(r'^\x1b\[36m(.+)\x1b\[0m$')
EXITS_MARKER = 'obvious exits:'
EXITS_RE = re.compile(r'\[ obvious exits: (.*) \]$')


def is_comms(text: str) -> bool:
    return any(marker in text for marker in COMMS_MARKERS)


@dataclass(frozen=True)
class RoomBlock:
    name: str
    description: str
    exits: str


class RoomBlockTracker:
    """Collects name, description and exits lines into a RoomBlock.

    A cyan name line opens a block; every following line is description
    until the exits line closes it. A new name line restarts the block.
    """

    def __init__(self):
        self.in_room = False
        self.name = ""
        self.description = ""

    def feed(self, text: str) -> Optional[RoomBlock]:
        """Consume one line. Returns the block when its exits line arrives."""
        match = ROOM_NAME_RE.match(text)
        if match:
            self.in_room = True
            self.name = match.group(1)
            self.description = ""
            return None

        if not self.in_room:
            return None

        if EXITS_MARKER in text:
            self.in_room = False
            exits_match = EXITS_RE.search(text)
            block = RoomBlock(
                name=self.name,
                description=self.description,
                exits=exits_match.group(1) if exits_match else "",
            )
            logger.debug(f"Room block: {block}")
            return block

        self.description += text + "\n"
        return None

    def reset(self) -> None:
        self.in_room = False
        self.name = ""
        self.description = ""
