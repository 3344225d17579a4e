"""medialib: named playback channels."""

from __future__ import annotations

import logging

from reactionhub.capabilities.services import MediaService

logger = logging.getLogger(__name__)


class MediaLib:
    def __init__(self, service: MediaService) -> None:
        self._service = service

    def channels(self) -> list[str]:
        return list(self._service.channels())

    def add(self, channel: str, file_path: str) -> None:
        self._service.add(channel, str(file_path))
        logger.debug("add: %s -> %s", channel, file_path)

    def start(self, channel: str) -> None:
        self._service.start(channel)
        logger.debug("start: %s", channel)

    def stop(self, channel: str) -> None:
        self._service.stop(channel)
        logger.debug("stop: %s", channel)

    def skip(self, channel: str) -> None:
        self._service.skip(channel)
        logger.debug("skip: %s", channel)

    def pause(self, channel: str) -> None:
        self._service.pause(channel)
        logger.debug("pause: %s", channel)

    def setvolume(self, channel: str, volume: int) -> None:
        self._service.set_volume(channel, int(volume))

    def setspeed(self, channel: str, speed: float) -> None:
        self._service.set_speed(channel, float(speed))

    def getvolume(self, channel: str) -> int:
        return self._service.get_volume(channel)

    def getspeed(self, channel: str) -> float:
        return self._service.get_speed(channel)

    def ispaused(self, channel: str) -> bool:
        return self._service.is_paused(channel)

    def isplaying(self, channel: str) -> bool:
        return self._service.is_playing(channel)

    def isstopped(self, channel: str) -> bool:
        return self._service.is_stopped(channel)
