"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .config import Settings, resolve_db_path
from .generation import GenerationDriver
from .lifecycle import ConversationManager
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .models import AIStatus
from .registry import AgentRegistry
from .scheduler import BackgroundScheduler
from .storage import IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Clear all agents and conversations."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        settings: Settings | None = None,
        llm_provider: ILLMProvider | None = None,
        run_scheduler: bool = True,
    ):
        self._settings = settings or Settings.from_env()
        self._db_path = resolve_db_path(db_path or self._settings.database_url)
        self._injected_llm = llm_provider
        self._run_scheduler = run_scheduler

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._registry: AgentRegistry | None = None
        self._conversations: ConversationManager | None = None
        self._llm: ILLMProvider | None = None
        self._driver: GenerationDriver | None = None
        self._scheduler: BackgroundScheduler | None = None

    def _build_llm(self) -> tuple[ILLMProvider | None, str | None]:
        if self._injected_llm is not None:
            return self._injected_llm, None
        try:
            return (
                LLMProvider(
                    api_key=self._settings.anthropic_api_key,
                    model=self._settings.llm_model,
                ),
                None,
            )
        except ValueError as e:
            logger.warning("LLM provider unavailable: %s", e)
            return None, None
        except Exception as e:
            logger.error("Failed to initialize LLM client: %s", e, exc_info=True)
            return None, (
                "Failed to initialize LLM client. Agents cannot communicate. "
                "Please check your API key configuration."
            )

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Registry and lifecycle manager (depend on Storage)
        self._registry = AgentRegistry(self._storage)
        self._conversations = ConversationManager(self._storage, self._registry)

        # 3. LLM provider (optional; absent means generation is disabled)
        self._llm, reason = self._build_llm()

        # 4. GenerationDriver (depends on lifecycle manager, registry, LLM)
        self._driver = GenerationDriver(
            conversations=self._conversations,
            registry=self._registry,
            llm_provider=self._llm,
            goal_check_interval=self._settings.goal_check_interval,
            max_consecutive_errors=self._settings.max_consecutive_errors,
            disabled_reason=reason,
        )
        logger.info("Generation driver initialized (enabled=%s)", self._driver.is_enabled)

        # 5. Scheduler (depends on lifecycle manager and driver)
        self._scheduler = BackgroundScheduler(
            conversations=self._conversations,
            driver=self._driver,
            response_interval_ms=self._settings.response_interval_ms,
        )
        if self._run_scheduler:
            self._scheduler.start()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._scheduler:
            await self._scheduler.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Clear all agents and conversations; generation state is kept."""
        was_running = bool(self._scheduler and self._scheduler.is_running)
        if self._scheduler:
            await self._scheduler.stop()

        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

        if self._driver:
            self._driver.clear()

        if self._scheduler and was_running:
            self._scheduler.start()
        logger.info("Reset complete")

    def ai_status(self) -> AIStatus:
        """Whether generation is enabled, and why not."""
        if not self._driver:
            return AIStatus(is_enabled=False, reason="Application not started")
        return self._driver.status()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def agents(self) -> AgentRegistry:
        """Get agent registry instance."""
        if not self._registry:
            raise RuntimeError("Application not started")
        return self._registry

    @property
    def conversations(self) -> ConversationManager:
        """Get conversation manager instance."""
        if not self._conversations:
            raise RuntimeError("Application not started")
        return self._conversations

    @property
    def driver(self) -> GenerationDriver:
        """Get generation driver instance."""
        if not self._driver:
            raise RuntimeError("Application not started")
        return self._driver

    @property
    def scheduler(self) -> BackgroundScheduler:
        """Get scheduler instance."""
        if not self._scheduler:
            raise RuntimeError("Application not started")
        return self._scheduler
