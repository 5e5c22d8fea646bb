"""AppContext: wires DB, coordination store, config, and services together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentsupervisor.config import AppConfig, load_config
from agentsupervisor.infra.db.client import MongoClient

if TYPE_CHECKING:
    from pathlib import Path

    from agentsupervisor.infra.activity.base import ActivityLogger, PlatformSession
    from agentsupervisor.infra.db.memory import MemoryRepo
    from agentsupervisor.infra.store.base import CoordinationStore
    from agentsupervisor.services.finalizer import SessionFinalizer
    from agentsupervisor.services.memory_service import MemoryService
    from agentsupervisor.services.message_queue import MessageQueue
    from agentsupervisor.services.run_service import RunService
    from agentsupervisor.services.session_service import SessionService
    from agentsupervisor.services.supervisor import ToolSupervisor
    from agentsupervisor.services.tool_catalog import ToolCatalog

logger = logging.getLogger(__name__)


class AppContext:
    """Central wiring for all application dependencies.

    Lazily initializes services on first access. Call `initialize()` to
    set up the database connection and run migrations.
    """

    def __init__(self, config: AppConfig | None = None, config_path: Path | None = None) -> None:
        self.config = config or load_config(config_path)
        self._mongo: MongoClient | None = None
        self._store: CoordinationStore | None = None
        self._memory_repo: MemoryRepo | None = None
        self._session_service: SessionService | None = None
        self._message_queue: MessageQueue | None = None
        self._memory_service: MemoryService | None = None
        self._activity: ActivityLogger | None = None
        self._platform_session: PlatformSession | None = None
        self._finalizer: SessionFinalizer | None = None
        self._catalog: ToolCatalog | None = None
        self._supervisor: ToolSupervisor | None = None
        self._run_service: RunService | None = None

    async def initialize(self) -> None:
        """Initialize the database connection and run migrations."""
        from agentsupervisor.infra.db.migrations import run_migrations

        self._mongo = MongoClient(
            uri=self.config.mongodb.uri,
            database=self.config.mongodb.database,
        )
        await run_migrations(self._mongo.db, self.config.store.collection)
        logger.info("AppContext initialized (store backend: %s)", self.config.store.backend)

    async def close(self) -> None:
        """Close all connections."""
        close_activity = getattr(self._activity, "close", None)
        if close_activity is not None:
            await close_activity()
        if self._mongo:
            self._mongo.close()
        logger.info("AppContext closed")

    @property
    def mongo(self) -> MongoClient:
        if self._mongo is None:
            raise RuntimeError("AppContext not initialized. Call initialize() first.")
        return self._mongo

    @property
    def store(self) -> CoordinationStore:
        if self._store is None:
            backend = self.config.store.backend
            if backend == "memory":
                from agentsupervisor.infra.store.memory import InMemoryCoordinationStore

                self._store = InMemoryCoordinationStore()
            elif backend == "mongo":
                from agentsupervisor.infra.store.mongo import MongoCoordinationStore

                self._store = MongoCoordinationStore(
                    self.mongo.db, collection=self.config.store.collection,
                )
            else:
                raise ValueError(f"Unknown coordination store backend: {backend}")
        return self._store

    @property
    def memory_repo(self) -> MemoryRepo:
        if self._memory_repo is None:
            from agentsupervisor.infra.db.memory import MemoryRepo

            self._memory_repo = MemoryRepo(self.mongo.db)
        return self._memory_repo

    @property
    def session_service(self) -> SessionService:
        if self._session_service is None:
            from agentsupervisor.services.session_service import SessionService

            self._session_service = SessionService(self.store, config=self.config.supervisor)
        return self._session_service

    @property
    def message_queue(self) -> MessageQueue:
        if self._message_queue is None:
            from agentsupervisor.services.message_queue import MessageQueue

            self._message_queue = MessageQueue(
                self.store, ttl=self.config.supervisor.message_queue_ttl,
            )
        return self._message_queue

    @property
    def memory_service(self) -> MemoryService:
        if self._memory_service is None:
            from agentsupervisor.services.memory_service import MemoryService

            self._memory_service = MemoryService(self.memory_repo, config=self.config.memory)
        return self._memory_service

    def _init_activity(self) -> None:
        """Webhook client when configured (it is also the platform session), else the log."""
        activity = self.config.activity
        if activity.enabled and activity.base_url:
            from agentsupervisor.infra.activity.webhook import WebhookActivityClient

            client = WebhookActivityClient(
                activity.base_url, token=activity.token, timeout=activity.timeout,
            )
            self._activity = client
            self._platform_session = client
        else:
            from agentsupervisor.infra.activity.log import LogActivityLogger

            self._activity = LogActivityLogger()

    @property
    def activity(self) -> ActivityLogger:
        if self._activity is None:
            self._init_activity()
        return self._activity

    @property
    def platform_session(self) -> PlatformSession | None:
        if self._activity is None:
            self._init_activity()
        return self._platform_session

    @property
    def finalizer(self) -> SessionFinalizer:
        if self._finalizer is None:
            from agentsupervisor.services.finalizer import SessionFinalizer

            self._finalizer = SessionFinalizer(
                self.session_service,
                activity=self.activity,
                platform_session=self.platform_session,
            )
        return self._finalizer

    @property
    def catalog(self) -> ToolCatalog:
        if self._catalog is None:
            from agentsupervisor.services.tool_catalog import ToolCatalog

            self._catalog = ToolCatalog()
        return self._catalog

    @property
    def supervisor(self) -> ToolSupervisor:
        if self._supervisor is None:
            from agentsupervisor.services.supervisor import ToolSupervisor

            self._supervisor = ToolSupervisor(
                session_service=self.session_service,
                message_queue=self.message_queue,
                finalizer=self.finalizer,
                memory=self.memory_service,
                catalog=self.catalog,
                config=self.config.supervisor,
            )
        return self._supervisor

    @property
    def run_service(self) -> RunService:
        if self._run_service is None:
            from agentsupervisor.services.run_service import RunService

            self._run_service = RunService(
                session_service=self.session_service,
                supervisor=self.supervisor,
                finalizer=self.finalizer,
                activity=self.activity,
                platform_session=self.platform_session,
            )
        return self._run_service
