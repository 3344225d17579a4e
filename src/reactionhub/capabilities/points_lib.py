"""pointslib: per-user points balances."""

from __future__ import annotations

import logging

from reactionhub.capabilities.async_bridge import AsyncBridge
from reactionhub.io.points_ledger import PointsLedger

logger = logging.getLogger(__name__)


class PointsLib:
    def __init__(self, ledger: PointsLedger, bridge: AsyncBridge) -> None:
        self._ledger = ledger
        self._bridge = bridge

    def get(self, user_id: str) -> int:
        value = self._bridge.run(self._ledger.get_balance(user_id))
        logger.debug("get: %s -> %s", user_id, value)
        return value

    def set(self, user_id: str, amount: int) -> None:
        self._bridge.run(self._ledger.set_balance(user_id, amount))
        logger.debug("set: %s -> %s", user_id, amount)

    def add(self, user_id: str, amount: int) -> None:
        self._bridge.run(self._ledger.add_balance(user_id, amount))
        logger.debug("add: %s -> %s", user_id, amount)

    def take(self, user_id: str, amount: int) -> bool:
        taken = self._bridge.run(self._ledger.take_balance(user_id, amount))
        logger.debug("take: %s, %s -> %s", user_id, amount, taken)
        return taken
