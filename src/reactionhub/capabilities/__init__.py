"""Script-visible capability objects and the table that binds them.

// [LAW:one-source-of-truth] Global names scripts see are defined here only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from reactionhub.capabilities.async_bridge import AsyncBridge
from reactionhub.capabilities.hardware_lib import BlockedInputs, HardwareLib
from reactionhub.capabilities.logger_lib import LoggerLib
from reactionhub.capabilities.media_lib import MediaLib
from reactionhub.capabilities.points_lib import PointsLib
from reactionhub.capabilities.script_lib import ScriptLib
from reactionhub.capabilities.services import HostServices
from reactionhub.capabilities.speech_lib import SpeechLib
from reactionhub.capabilities.storage_lib import StorageLib
from reactionhub.capabilities.twitch_lib import TwitchLib
from reactionhub.capabilities.utils_lib import UtilsLib
from reactionhub.core.catalog import ScriptCatalog
from reactionhub.core.script_runtime import ScriptRuntime
from reactionhub.io.data_container import DataContainer
from reactionhub.io.points_ledger import PointsLedger

logger = logging.getLogger(__name__)

LOGGER_LIB = "loggerlib"
STORAGE_LIB = "storagelib"
MEDIA_LIB = "medialib"
HARDWARE_LIB = "hardwarelib"
POINTS_LIB = "pointslib"
SPEECH_LIB = "speechlib"
UTILS_LIB = "utilslib"
TWITCH_LIB = "twitchlib"
SCRIPT_LIB = "scriptlib"


@dataclass(frozen=True)
class CapabilityDeps:
    """Engine-owned state the always-present bindings wrap."""

    catalog: ScriptCatalog
    storage: DataContainer
    ledger: PointsLedger
    bridge: AsyncBridge
    blocked: BlockedInputs


def build_capabilities(deps: CapabilityDeps, services: HostServices) -> dict[str, object]:
    """Global name → capability object. Service-backed entries only when the service exists."""
    bindings: dict[str, object] = {
        LOGGER_LIB: LoggerLib(),
        STORAGE_LIB: StorageLib(deps.storage),
        POINTS_LIB: PointsLib(deps.ledger, deps.bridge),
        UTILS_LIB: UtilsLib(),
        SCRIPT_LIB: ScriptLib(deps.catalog),
    }
    if services.media is not None:
        bindings[MEDIA_LIB] = MediaLib(services.media)
    if services.input is not None:
        bindings[HARDWARE_LIB] = HardwareLib(services.input, deps.blocked)
    if services.speech is not None:
        bindings[SPEECH_LIB] = SpeechLib(services.speech, deps.bridge)
    if services.platform is not None:
        bindings[TWITCH_LIB] = TwitchLib(services.platform, deps.bridge)
    for name, extra in (services.extra or {}).items():
        bindings.setdefault(name, extra)
    return bindings


def bind_capabilities(runtime: ScriptRuntime, deps: CapabilityDeps, services: HostServices) -> list[str]:
    """Install every capability into runtime. Returns the bound names."""
    bindings = build_capabilities(deps, services)
    for name, capability in bindings.items():
        runtime.bind(name, capability)
    logger.info("bound capabilities: %s", ", ".join(sorted(bindings)))
    return sorted(bindings)
