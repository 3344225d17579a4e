"""Event vocabulary shared by producers and reaction scripts.

// [LAW:one-source-of-truth] EventKind is the sole contract between "what happened"
// and "what should run". Producers dispatch members, scripts declare names or codes.
"""

from __future__ import annotations

from enum import Enum


# ─── Families ─────────────────────────────────────────────────────────────────

FAMILY_NONE = "none"
FAMILY_TWITCH = "twitch"
FAMILY_HARDWARE = "hardware"
FAMILY_MEDIA = "media"


class EventKind(Enum):
    """Discriminator for events a reaction can be bound to.

    Values are stable integer codes; scripts may declare a kind by code.
    """

    NONE = 0

    # Twitch
    COMMAND = 1
    REWARD = 2
    MESSAGE = 3
    FOLLOW = 4
    SUBSCRIBE = 5
    GIFT_SUBSCRIBE = 6
    CHEER = 7
    STREAM_ON = 8
    STREAM_OFF = 9
    CLIP = 10

    # Hardware
    KEY_DOWN = 11
    KEY_UP = 12
    KEY_TYPE = 13
    MOUSE_DOWN = 14
    MOUSE_UP = 15
    MOUSE_CLICK = 16
    MOUSE_MOVE = 17
    MOUSE_WHEEL = 18

    # Media
    MEDIA_ADD = 19
    MEDIA_START = 20
    MEDIA_SKIP = 21
    MEDIA_PAUSE = 22
    MEDIA_STOP = 23
    MEDIA_END = 24
    MEDIA_QUEUE_FINISH = 25
    MEDIA_ERROR = 26

    @property
    def family(self) -> str:
        if self is EventKind.NONE:
            return FAMILY_NONE
        if self.value <= EventKind.CLIP.value:
            return FAMILY_TWITCH
        if self.value <= EventKind.MOUSE_WHEEL.value:
            return FAMILY_HARDWARE
        return FAMILY_MEDIA

    @property
    def display_name(self) -> str:
        """PascalCase name as scripts write it (e.g. ``GiftSubscribe``)."""
        return "".join(part.capitalize() for part in self.name.split("_"))


def _squash(name: str) -> str:
    return name.replace("_", "").replace("-", "").replace(" ", "").lower()


# Names accepted from older script collections.
_LEGACY_ALIASES: dict[str, EventKind] = {
    "cheers": EventKind.CHEER,
    "onmediaadded": EventKind.MEDIA_ADD,
    "onmediastarted": EventKind.MEDIA_START,
    "onmediaskipped": EventKind.MEDIA_SKIP,
    "onmediapaused": EventKind.MEDIA_PAUSE,
    "onmediastopped": EventKind.MEDIA_STOP,
    "onmediaendreached": EventKind.MEDIA_END,
    "queuefinished": EventKind.MEDIA_QUEUE_FINISH,
    "onerror": EventKind.MEDIA_ERROR,
}

_BY_NAME: dict[str, EventKind] = {
    **{_squash(kind.name): kind for kind in EventKind if kind is not EventKind.NONE},
    **_LEGACY_ALIASES,
}

_BY_CODE: dict[int, EventKind] = {kind.value: kind for kind in EventKind}


def parse_event_kind(value: object) -> EventKind:
    """Resolve a member, integer code, or case-insensitive name to an EventKind.

    Returns EventKind.NONE for anything unrecognised; never raises.
    """
    if isinstance(value, EventKind):
        return value
    # bool is an int subclass; True/False are not codes.
    if isinstance(value, bool):
        return EventKind.NONE
    if isinstance(value, int):
        return _BY_CODE.get(value, EventKind.NONE)
    if isinstance(value, float) and value.is_integer():
        return _BY_CODE.get(int(value), EventKind.NONE)
    if isinstance(value, str):
        raw = value.strip()
        if raw.lstrip("-").isdigit():
            return _BY_CODE.get(int(raw), EventKind.NONE)
        return _BY_NAME.get(_squash(raw), EventKind.NONE)
    return EventKind.NONE


def kinds_in_family(family: str) -> tuple[EventKind, ...]:
    return tuple(kind for kind in EventKind if kind.family == family)
