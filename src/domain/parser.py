import logging

from domain.events import GestureEvent, PresenceEvent, RelayEvent

logger = logging.getLogger(__name__)

PRESENCE_PREFIX = "Person: "
GESTURE_PREFIX = "Gesture: "


def parse_line(line: str) -> RelayEvent | None:
    text = line.rstrip("\r\n")

    if text.startswith(PRESENCE_PREFIX):
        return PresenceEvent(text[len(PRESENCE_PREFIX) :])
    if text.startswith(GESTURE_PREFIX):
        return GestureEvent(text[len(GESTURE_PREFIX) :])

    logger.debug("Unrecognized input: %r", text)
    return None
