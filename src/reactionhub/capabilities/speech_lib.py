"""speechlib: text-to-speech queue control."""

from __future__ import annotations

from reactionhub.capabilities.async_bridge import AsyncBridge
from reactionhub.capabilities.services import SpeechService


class SpeechLib:
    def __init__(self, service: SpeechService, bridge: AsyncBridge) -> None:
        self._service = service
        self._bridge = bridge

    def speak(self, text: str) -> None:
        """Blocks until the engine has finished speaking text."""
        self._bridge.run(self._service.speak(str(text)))

    def pause(self) -> None:
        self._service.pause()

    def resume(self) -> None:
        self._service.resume()

    def stop(self) -> None:
        self._service.stop()

    def clear(self) -> None:
        self._service.clear()

    def skip(self) -> None:
        self._service.skip()

    def setvolume(self, volume: int) -> None:
        self._service.set_volume(int(volume))

    def getvolume(self) -> int:
        return self._service.get_volume()

    def setrate(self, rate: int) -> None:
        self._service.set_rate(int(rate))

    def getrate(self) -> int:
        return self._service.get_rate()

    def voices(self) -> list[str]:
        return list(self._service.voices())

    def selectvoice(self, voice: str) -> None:
        self._service.select_voice(voice)

    def reloadbwords(self) -> None:
        self._service.reload_banned_words()
