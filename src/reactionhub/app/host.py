"""Process-wide engine lifecycle.

Construction order is fixed: runtime → capabilities → registry/catalog →
dispatcher → reload pipeline. Capabilities are bound before the first script
is evaluated, so every script sees the same globals.

    with ReactionHost(load_config("configs")) as host:
        host.dispatcher.dispatch(EventKind.FOLLOW, "alice", "1234")

// [LAW:single-enforcer] The only owner of engine singletons; nothing else constructs them.
"""

from __future__ import annotations

import asyncio
import logging

from reactionhub.app.input_router import InputRouter
from reactionhub.app.reload_pipeline import ReloadPipeline
from reactionhub.capabilities import CapabilityDeps, bind_capabilities
from reactionhub.capabilities.async_bridge import AsyncBridge
from reactionhub.capabilities.hardware_lib import BlockedInputs
from reactionhub.capabilities.services import HostServices
from reactionhub.core.catalog import ScriptCatalog
from reactionhub.core.dispatcher import Dispatcher
from reactionhub.core.registry import ReactionRegistry
from reactionhub.core.script_runtime import ScriptRuntime
from reactionhub.io.data_container import DataContainer
from reactionhub.io.points_ledger import PointsLedger
from reactionhub.io.settings import HostConfig

logger = logging.getLogger(__name__)


class ReactionHost:
    def __init__(self, config: HostConfig, services: HostServices | None = None) -> None:
        self.config = config
        self.services = services or HostServices()

        self.runtime = ScriptRuntime()
        self.bridge = AsyncBridge()
        self.blocked_inputs = BlockedInputs()
        self.storage = DataContainer(config.storage_path)
        self.ledger = PointsLedger(str(config.points_db_path))

        self.registry = ReactionRegistry(self.runtime, max_workers=config.dispatch_workers)
        self.catalog = ScriptCatalog(self.runtime)
        self.dispatcher = Dispatcher(self.registry, self.catalog)

        self.bound_capabilities = bind_capabilities(
            self.runtime,
            CapabilityDeps(
                catalog=self.catalog,
                storage=self.storage,
                ledger=self.ledger,
                bridge=self.bridge,
                blocked=self.blocked_inputs,
            ),
            self.services,
        )
        self.pipeline = ReloadPipeline.from_config(config, self.runtime, self.registry, self.catalog)
        self.input_router = InputRouter(self.dispatcher, self.blocked_inputs)
        self._started = False
        self._stopped = False

    @property
    def started(self) -> bool:
        return self._started and not self._stopped

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Run script calls to async services on the host's event loop."""
        self.bridge.attach(loop)

    def start(self, watch: bool = True) -> None:
        if self._started:
            return
        self._started = True
        logger.info("starting reaction host in %s", self.config.configs_dir)
        self.pipeline.start(watch=watch)
        logger.info(
            "host ready: %d reaction(s), %d script(s)",
            len(self.registry),
            len(self.catalog),
        )

    def stop(self) -> None:
        """Stop watching, drain workers, persist storage, close the ledger. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        self.pipeline.stop()
        self.input_router.shutdown()
        self.registry.shutdown()
        try:
            self.storage.save()
        except (OSError, ValueError):
            logger.exception("failed to save storage on shutdown")
        self.ledger.close()
        self.bridge.detach()
        logger.info("reaction host stopped")

    def __enter__(self) -> ReactionHost:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
