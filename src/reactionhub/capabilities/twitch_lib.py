"""twitchlib: chat and channel queries against the platform client.

Every network call is a coroutine on the client; each script-facing method
drives exactly one coroutine through the bridge.
"""

from __future__ import annotations

import asyncio
import enum
import logging

from reactionhub.capabilities.async_bridge import AsyncBridge
from reactionhub.capabilities.services import PlatformClient
from reactionhub.capabilities.utils_lib import datetime_to_ticks

logger = logging.getLogger(__name__)


class TwitchRank(enum.IntFlag):
    VIEWER = 0
    FOLLOWER = 1
    VIP = 2
    SUBSCRIBER = 4
    MODERATOR = 8
    BROADCASTER = 16


def parse_rank(raw: object) -> TwitchRank | None:
    name = str(raw or "").strip().upper()
    return TwitchRank.__members__.get(name)


class TwitchLib:
    def __init__(self, client: PlatformClient, bridge: AsyncBridge) -> None:
        self._client = client
        self._bridge = bridge

    def isconnected(self) -> bool:
        return bool(self._client.is_connected())

    def sendmessage(self, message: str) -> None:
        if not self._client.is_connected():
            raise RuntimeError("unable to send message, chat client is not connected")
        self._bridge.run(self._client.send_message(str(message)))

    # ─── Users ────────────────────────────────────────────────────────────

    def getuserid(self, login: str) -> str:
        return self._bridge.run(self._client.get_user_id(login))

    def getusername(self, user_id: str) -> str:
        return self._bridge.run(self._client.get_user_name(user_id))

    def isbroadcaster(self, user_id: str) -> bool:
        return self._bridge.run(self._is_broadcaster(str(user_id)))

    def ismoderator(self, user_id: str) -> bool:
        return bool(self._bridge.run(self._client.is_moderator(str(user_id))))

    def issubscriber(self, user_id: str) -> bool:
        return bool(self._bridge.run(self._client.is_subscriber(str(user_id))))

    def isvip(self, user_id: str) -> bool:
        return bool(self._bridge.run(self._client.is_vip(str(user_id))))

    def isfollower(self, user_id: str) -> bool:
        return self._bridge.run(self._client.get_follow_date(str(user_id))) is not None

    def getfollowdate(self, user_id: str) -> int:
        """Follow time in ticks, or -1 when the user does not follow."""
        followed_at = self._bridge.run(self._client.get_follow_date(str(user_id)))
        return -1 if followed_at is None else datetime_to_ticks(followed_at)

    def atleast(self, user_id: str, rank: str) -> bool:
        threshold = parse_rank(rank)
        if threshold is None:
            logger.warning("atleast: unknown rank %r", rank)
            return False
        current = self._bridge.run(self._user_rank(str(user_id)))
        return (current & threshold) == threshold

    # ─── Stream ───────────────────────────────────────────────────────────

    def getstreamtitle(self) -> str | None:
        stream = self._bridge.run(self._client.get_stream())
        return None if stream is None else stream.title

    def getstreamname(self) -> str | None:
        stream = self._bridge.run(self._client.get_stream())
        return None if stream is None else stream.game_name

    def getstreamstartedat(self) -> int:
        stream = self._bridge.run(self._client.get_stream())
        return -1 if stream is None else datetime_to_ticks(stream.started_at)

    def getstreamviewers(self) -> int:
        stream = self._bridge.run(self._client.get_stream())
        return 0 if stream is None else stream.viewer_count

    # ─── Internal ─────────────────────────────────────────────────────────

    async def _is_broadcaster(self, user_id: str) -> bool:
        return user_id == await self._client.get_broadcaster_id()

    async def _user_rank(self, user_id: str) -> TwitchRank:
        followed, vip, sub, mod, broadcaster = await asyncio.gather(
            self._client.get_follow_date(user_id),
            self._client.is_vip(user_id),
            self._client.is_subscriber(user_id),
            self._client.is_moderator(user_id),
            self._is_broadcaster(user_id),
        )
        rank = TwitchRank.VIEWER
        flags = (
            (followed is not None, TwitchRank.FOLLOWER),
            (vip, TwitchRank.VIP),
            (sub, TwitchRank.SUBSCRIBER),
            (mod, TwitchRank.MODERATOR),
            (broadcaster, TwitchRank.BROADCASTER),
        )
        for present, flag in flags:
            if present:
                rank |= flag
        return rank
