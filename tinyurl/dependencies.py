"""Dependency injection with an explicitly constructed service manager.

The ServiceManager owns the process-wide resources (settings, logger, store,
id generator). It is built once by the application lifespan, stored on
``app.state`` and handed to each request through FastAPI dependencies. Tests
replace it with ``app.dependency_overrides[get_service_manager]``.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, MutableMapping, Optional

from fastapi import Depends, Request

from tinyurl.config import Settings, get_settings
from tinyurl.database import create_engine
from tinyurl.id_generator import IdGenerator, NanoIdGenerator
from tinyurl.store import SqlUrlStore, UrlStore
from tinyurl.url_service import URLShorteningService

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# ============================================================================
# SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Holder for resources shared across requests.

    Attributes:
        settings: Application settings
        store: URL store (SQL by default, injectable for tests)
        generator: Short id generator
        logger: Configured application logger
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[UrlStore] = None,
        generator: Optional[IdGenerator] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.logger = self._setup_logger()
        self.generator = generator if generator is not None else NanoIdGenerator.from_settings(self.settings)
        self.store = store if store is not None else SqlUrlStore(create_engine(self.settings), logger=self.logger)
        self._initialized = False

    async def initialize(self) -> None:
        """Create the schema once at startup."""
        if not self._initialized:
            await self.store.ensure_schema()
            self._initialized = True
            self.logger.info(f"{self.settings.APP_NAME} ready ({type(self.store).__name__})")

    def _setup_logger(self) -> logging.Logger:
        """Setup logger once."""
        logger = logging.getLogger(self.settings.APP_NAME)
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        logger.setLevel(self.settings.LOG_LEVEL.upper())
        return logger

    async def cleanup(self) -> None:
        """Release shared resources at shutdown."""
        await self.store.close()
        self._initialized = False


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the request id."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['request_id']}] {msg}", kwargs


@dataclass
class RequestContext:
    """Per-request view over the shared resources.

    Attributes:
        service_manager: Shared resources
        request_id: Taken from X-Request-ID or generated
        client_ip: Client IP address
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    client_ip: Optional[str] = None
    start_time: float = field(default_factory=time.perf_counter)

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def store(self) -> UrlStore:
        return self.service_manager.store

    @property
    def generator(self) -> IdGenerator:
        return self.service_manager.generator

    @property
    def logger(self) -> RequestLoggerAdapter:
        return RequestLoggerAdapter(self.service_manager.logger, {"request_id": self.request_id})

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_service_manager(request: Request) -> ServiceManager:
    return request.app.state.service_manager


def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    return RequestContext(
        service_manager=manager,
        request_id=request_id,
        client_ip=request.client.host if request.client else None,
    )


def get_url_service(ctx: RequestContext = Depends(get_request_context)) -> URLShorteningService:
    return URLShorteningService.from_context(ctx)
