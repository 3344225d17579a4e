"""Contracts for host services that capability bindings wrap.

The media player, input simulator, text-to-speech engine and chat platform
client live outside the engine. The host hands implementations of these
protocols to ReactionHost; a capability is bound only when its service exists.

// [LAW:locality-or-seam] Bindings talk only to these contracts, never to a concrete backend.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class MediaService(Protocol):
    def channels(self) -> Sequence[str]:
        ...

    def add(self, channel: str, file_path: str) -> None:
        ...

    def start(self, channel: str) -> None:
        ...

    def stop(self, channel: str) -> None:
        ...

    def skip(self, channel: str) -> None:
        ...

    def pause(self, channel: str) -> None:
        ...

    def set_volume(self, channel: str, volume: int) -> None:
        ...

    def set_speed(self, channel: str, speed: float) -> None:
        ...

    def get_volume(self, channel: str) -> int:
        ...

    def get_speed(self, channel: str) -> float:
        ...

    def is_paused(self, channel: str) -> bool:
        ...

    def is_playing(self, channel: str) -> bool:
        ...

    def is_stopped(self, channel: str) -> bool:
        ...


class InputSimulator(Protocol):
    """Synthesizes OS-level input. Codes are the hardwarelib key/button codes."""

    def key_press(self, code: int) -> None:
        ...

    def key_release(self, code: int) -> None:
        ...

    def type_text(self, text: str) -> None:
        ...

    def mouse_press(self, button: int) -> None:
        ...

    def mouse_release(self, button: int) -> None:
        ...

    def mouse_wheel(self, delta: int, vertical: bool) -> None:
        ...

    def mouse_move(self, x: int, y: int) -> None:
        ...

    def mouse_move_relative(self, dx: int, dy: int) -> None:
        ...


class SpeechService(Protocol):
    def speak(self, text: str) -> Awaitable[None] | None:
        ...

    def pause(self) -> None:
        ...

    def resume(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def clear(self) -> None:
        ...

    def skip(self) -> None:
        ...

    def set_volume(self, volume: int) -> None:
        ...

    def get_volume(self) -> int:
        ...

    def set_rate(self, rate: int) -> None:
        ...

    def get_rate(self) -> int:
        ...

    def voices(self) -> Sequence[str]:
        ...

    def select_voice(self, voice: str) -> None:
        ...

    def reload_banned_words(self) -> None:
        ...


@dataclass(frozen=True)
class StreamInfo:
    title: str
    game_name: str
    started_at: datetime
    viewer_count: int


class PlatformClient(Protocol):
    """Chat platform access. Network calls are coroutines."""

    def is_connected(self) -> bool:
        ...

    async def send_message(self, message: str) -> None:
        ...

    async def get_user_id(self, login: str) -> str:
        ...

    async def get_user_name(self, user_id: str) -> str:
        ...

    async def get_broadcaster_id(self) -> str:
        ...

    async def is_moderator(self, user_id: str) -> bool:
        ...

    async def is_subscriber(self, user_id: str) -> bool:
        ...

    async def is_vip(self, user_id: str) -> bool:
        ...

    async def get_follow_date(self, user_id: str) -> datetime | None:
        ...

    async def get_stream(self) -> StreamInfo | None:
        ...


@dataclass(frozen=True)
class HostServices:
    """Optional services supplied by the embedding application."""

    media: MediaService | None = None
    input: InputSimulator | None = None
    speech: SpeechService | None = None
    platform: PlatformClient | None = None
    extra: Mapping[str, object] | None = None
