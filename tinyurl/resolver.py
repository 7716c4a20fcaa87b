"""Short code resolution for the redirect path."""

import asyncio
import logging
from typing import Optional, Set, Tuple
from urllib.parse import urlparse

from .database.base import RecordStore
from .database.models import Owner, UrlRecord
from .database.availability import StoreSelector
from .database.cache import RecordCache
from .common.normalizer import normalize_url
from .common.validators import check_resolvable_code
from .exceptions import InvalidCode, MalformedRecord, ShortCodeNotFound


def is_safe_redirect_target(url: str) -> bool:
    """True for absolute http/https URLs with a host."""
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


class Resolver:
    """Resolves short codes and records clicks without delaying the caller.

    Click statistics are written by a detached task scheduled after the
    record is in hand. Its failure is only logged. Pending tasks are kept
    so ``drain()`` can await them (shutdown and tests).
    """

    def __init__(
        self,
        selector: StoreSelector,
        cache: Optional[RecordCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.selector = selector
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self._pending: Set[asyncio.Task] = set()

    async def resolve(self, short_code: str) -> UrlRecord:
        """Resolve a short code to its record.

        Args:
            short_code: Code taken from the request path

        Returns:
            The record, ``original_url`` normalized

        Raises:
            InvalidCode: If the code cannot possibly exist
            ShortCodeNotFound: If no record holds the code
            MalformedRecord: If the stored URL is not a safe redirect target
        """
        is_valid, error = check_resolvable_code(short_code)
        if not is_valid:
            raise InvalidCode(error)

        record = await self.cache.get(short_code) if self.cache else None
        if record is not None:
            self.logger.debug(f"Cache hit for {short_code}")
            store = self.selector.select()
        else:
            store, found = await self.selector.run(
                lambda s: self._lookup(s, short_code)
            )
            if found is None:
                self.logger.info(f"Short code not found: {short_code} ({store.kind})")
                raise ShortCodeNotFound(f"Short URL not found: {short_code}")
            record = found[1]

        original_url = normalize_url(record.original_url)
        if not is_safe_redirect_target(original_url):
            self.logger.error(f"Refusing to redirect {short_code} to {original_url!r}")
            raise MalformedRecord(f"Invalid URL stored for {short_code}")
        record.original_url = original_url

        if self.cache:
            await self.cache.set(record)

        self._schedule_stats(store, short_code)
        return record

    @staticmethod
    async def _lookup(
        store: RecordStore,
        short_code: str,
    ) -> Tuple[RecordStore, Optional[Tuple[Owner, UrlRecord]]]:
        return store, await store.find_by_short_code(short_code)

    def _schedule_stats(self, store: RecordStore, short_code: str) -> None:
        task = asyncio.create_task(self._record_click(store, short_code))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record_click(self, store: RecordStore, short_code: str) -> None:
        try:
            await store.increment_stats(short_code)
            self.logger.debug(f"Click recorded for {short_code}")
        except Exception as e:
            self.logger.warning(f"Failed to update click analytics for {short_code}: {e!r}")

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled statistics update to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
