import json
from dataclasses import dataclass
from typing import Literal

PRESENT = "PRESENT"
AWAY = "AWAY"

KNOWN_GESTURES = frozenset({"UP", "DOWN", "LEFT", "RIGHT", "NEAR", "FAR", PRESENT, AWAY})

NOTIFICATION_NAME = "RETRIEVED_GESTURE"

MessageFormat = Literal["token", "notification"]


@dataclass(frozen=True)
class RelayEvent:
    value: str = ""

    @property
    def token(self) -> str:
        return self.value


@dataclass(frozen=True)
class PresenceEvent(RelayEvent):
    pass


@dataclass(frozen=True)
class GestureEvent(RelayEvent):
    pass


def encode_event(event: RelayEvent, message_format: MessageFormat = "token") -> str:
    """Serialize an event into the text frame pushed to subscribers.

    ``token`` sends the bare payload (``"LEFT"``). ``notification`` wraps it
    in the JSON envelope host integrations listen for.
    """
    if message_format == "notification":
        return json.dumps({"notification": NOTIFICATION_NAME, "payload": event.token})
    return event.token
