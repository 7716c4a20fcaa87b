"""Wiring of stores, monitor, service and resolver from a Config."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from .database.postgres import PrimaryStore
from .database.fallback import FallbackStore
from .database.availability import AvailabilityMonitor, PrimaryConnectionManager, StoreSelector
from .database.cache import RecordCache
from .shortcode import ShortCodeGenerator
from .service import ShorteningService
from .resolver import Resolver


@dataclass
class ServiceBundle:
    """Everything a process needs, with one start/stop lifecycle."""

    monitor: AvailabilityMonitor
    selector: StoreSelector
    connection_manager: Optional[PrimaryConnectionManager]
    cache: Optional[RecordCache]
    service: ShorteningService
    resolver: Resolver
    logger: logging.Logger
    _connect_task: Optional[asyncio.Task] = field(default=None, init=False, repr=False)

    async def start(self, wait_for_primary: bool = True) -> None:
        """Connect the cache and the primary store.

        Args:
            wait_for_primary: False connects in the background so a server
                can accept requests (on the fallback store) immediately
        """
        if self.cache:
            await self.cache.connect()
        if self.connection_manager:
            if wait_for_primary:
                await self.connection_manager.start()
            else:
                self._connect_task = asyncio.create_task(self.connection_manager.start())
        self.logger.info(f"Serving from {self.selector.active_kind} storage")

    async def close(self) -> None:
        await self.resolver.drain()
        connect_task = self._connect_task
        if connect_task is not None:
            if not connect_task.done():
                connect_task.cancel()
            try:
                await connect_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                self.logger.error(f"Background primary store connection failed: {e!r}")
        if self.connection_manager:
            await self.connection_manager.stop()
        await self.selector.fallback.close()
        if self.cache:
            await self.cache.close()


def build_services(config, logger: Optional[logging.Logger] = None, use_primary: bool = True) -> ServiceBundle:
    """Build the object graph described by ``config``.

    Args:
        config: ``config.Config`` instance
        logger: Logger shared by every component
        use_primary: False runs on the fallback store only

    Returns:
        An unstarted ServiceBundle
    """
    logger = logger or logging.getLogger("tinyurl")
    monitor = AvailabilityMonitor(logger=logger)

    primary = None
    connection_manager = None
    if use_primary:
        primary = PrimaryStore(
            dsn=config.database_url,
            pool_min_size=config.pool_min_size,
            pool_max_size=config.pool_max_size,
            pool_max_inactive_seconds=config.pool_max_inactive_seconds,
            connect_timeout_seconds=config.connect_timeout_seconds,
            command_timeout_seconds=config.command_timeout_seconds,
            acquire_timeout_seconds=config.acquire_timeout_seconds,
            create_tables=config.database_create_tables,
            on_connection_lost=monitor.mark_disconnected,
            logger=logger,
        )
        connection_manager = PrimaryConnectionManager(
            primary,
            monitor,
            max_retries=config.connect_retries,
            retry_delay=config.connect_retry_delay_seconds,
            heartbeat_seconds=config.heartbeat_seconds,
            logger=logger,
        )

    fallback = FallbackStore(config.fallback_data_file, logger=logger)
    selector = StoreSelector(primary, fallback, monitor, logger=logger)

    cache = None
    if config.redis_url:
        cache = RecordCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )

    generator = ShortCodeGenerator(
        min_length=config.short_code_min_length,
        max_attempts=config.short_code_max_attempts,
        check_timeout=config.existence_check_timeout_seconds,
        logger=logger,
    )
    service = ShorteningService(
        selector,
        base_url=config.base_url,
        short_code_generator=generator,
        cache=cache,
        path_prefix=config.path_prefix,
        logger=logger,
    )
    resolver = Resolver(selector, cache=cache, logger=logger)

    return ServiceBundle(
        monitor=monitor,
        selector=selector,
        connection_manager=connection_manager,
        cache=cache,
        service=service,
        resolver=resolver,
        logger=logger,
    )
