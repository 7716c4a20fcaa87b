"""Business logic service for URL shortener."""

import logging
import random
import string
import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Tuple

from .shortcode import ShortCodeGenerator
from .database.base import RecordStore
from .database.models import Owner, UrlRecord
from .database.availability import StoreSelector
from .database.cache import RecordCache
from .common.normalizer import normalize_url
from .common.validators import is_valid_url
from .common.url_builder import build_short_url
from .exceptions import CodeCollision, DuplicateShortCode, OwnerNotFound, ShortCodeNotFound


def anonymous_owner_tag() -> str:
    """A one-off identifier for an anonymous owner bucket."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"anonymous_{int(time.time() * 1000)}_{suffix}"


class ShorteningService:
    """Creates short URLs and serves owner-facing reads.

    The store is chosen once per call through the ``StoreSelector``; the
    rest of the service only sees the ``RecordStore`` interface.
    """

    def __init__(
        self,
        selector: StoreSelector,
        base_url: str,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        cache: Optional[RecordCache] = None,
        path_prefix: str = "",
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize shortening service.

        Args:
            selector: Chooses primary or fallback store per call
            base_url: Public base URL used to compose ``short_url``
            short_code_generator: Optional short code generator
            cache: Optional record cache (invalidated by URL repairs)
            path_prefix: Optional path prefix for short URLs
            logger: Optional logger
        """
        self.selector = selector
        self.base_url = base_url
        self.path_prefix = path_prefix
        self.generator = short_code_generator or ShortCodeGenerator()
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)

    async def shorten(self, raw_url: str, owner_id: Optional[int] = None) -> UrlRecord:
        """Create a short URL for ``raw_url``.

        Args:
            raw_url: Structurally validated URL
            owner_id: Registered owner, or None for an anonymous submission

        Returns:
            The stored record

        Raises:
            ValueError: If the normalized URL is not an absolute http(s) URL
            OwnerNotFound: If ``owner_id`` does not exist
            GenerationExhausted: If no free code was found
            CodeCollision: If another writer stored the same code first;
                call ``shorten`` again
        """
        original_url = normalize_url(raw_url)
        is_valid, error = is_valid_url(original_url)
        if not is_valid:
            raise ValueError(f"Invalid URL: {error}")

        record = await self.selector.run(
            lambda store: self._shorten_on(store, original_url, owner_id)
        )

        self.logger.info(
            f"Created short URL: {record.short_code} -> {record.original_url} "
            f"(owner={owner_id or 'anonymous'})"
        )
        return record

    async def _shorten_on(
        self,
        store: RecordStore,
        original_url: str,
        owner_id: Optional[int],
    ) -> UrlRecord:
        short_code = await self.generator.generate(store)

        record = UrlRecord(
            original_url=original_url,
            short_code=short_code,
            short_url=build_short_url(short_code, self.base_url, self.path_prefix),
            created_at=datetime.now(timezone.utc),
            click_count=0,
            last_accessed=None,
        )

        if owner_id is not None:
            owner = await store.find_owner_by_id(owner_id)
            if owner is None:
                raise OwnerNotFound(f"Owner {owner_id} not found")
        else:
            owner = await store.create_owner({
                "email": anonymous_owner_tag(),
                "first_name": "Anonymous",
                "last_name": "User",
                "is_anonymous": True,
            })

        try:
            await store.append_record(owner.id, record)
        except DuplicateShortCode as e:
            self.logger.error(f"Duplicate short code detected during save: {short_code}")
            raise CodeCollision(
                "Short code collision detected, please try again"
            ) from e

        return record

    async def register_owner(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Owner:
        """Create an account owner (the signup flow's entry into the core).

        Raises:
            DuplicateOwner: If the email is already registered
        """
        owner = await self.selector.run(lambda store: store.create_owner({
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
            "is_anonymous": False,
        }))
        self.logger.info(f"Registered owner {owner.id} ({email})")
        return owner

    async def get_owner(self, owner_id: int) -> Owner:
        owner = await self.selector.run(lambda store: store.find_owner_by_id(owner_id))
        if owner is None:
            raise OwnerNotFound(f"Owner {owner_id} not found")
        return owner

    async def list_records(self, owner_id: int) -> List[UrlRecord]:
        """An owner's records in insertion order, for history views."""
        return await self.selector.run(lambda store: store.list_records(owner_id))

    async def get_record(self, short_code: str) -> Tuple[Owner, UrlRecord]:
        """Look up a record without counting a click.

        Raises:
            ShortCodeNotFound: If no owner holds the code
        """
        found = await self.selector.run(lambda store: store.find_by_short_code(short_code))
        if found is None:
            raise ShortCodeNotFound(f"Short code '{short_code}' not found")
        return found

    async def collision_statistics(self) -> Dict[str, Any]:
        """Total records against distinct codes; collisions should always be 0."""
        counts = await self.selector.run(lambda store: store.collision_statistics())
        total = counts["total_urls"]
        unique = counts["unique_short_codes"]

        return {
            "total_urls": total,
            "unique_short_codes": unique,
            "collisions": total - unique,
            "collision_rate": round((total - unique) / total * 100, 2) if total else 0.0,
            "storage": self.selector.active_kind,
            "timestamp": datetime.now(timezone.utc),
        }

    async def repair_stored_urls(self) -> int:
        """Rewrite stored URLs that predate normalization.

        Returns:
            Number of records changed
        """
        async def repair(store: RecordStore) -> int:
            fixed = 0
            for owner_id, record in await store.iter_all_records():
                cleaned = normalize_url(record.original_url)
                if cleaned == record.original_url:
                    continue

                self.logger.info(
                    f"Fixing URL for owner {owner_id}: {record.original_url!r} -> {cleaned!r}"
                )
                if await store.update_original_url(record.short_code, cleaned):
                    fixed += 1
                    if self.cache:
                        await self.cache.delete(record.short_code)
            return fixed

        fixed = await self.selector.run(repair)
        self.logger.info(f"Cleanup complete, fixed {fixed} URLs")
        return fixed

    async def health_check(self) -> Dict[str, Any]:
        """Report storage and cache health.

        Returns:
            Dictionary with per-component status and the active storage
        """
        primary_healthy = False
        if self.selector.primary is not None:
            primary_healthy = await self.selector.primary.health_check()
        fallback_healthy = await self.selector.fallback.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "primary": primary_healthy,
            "fallback": fallback_healthy,
            "cache": cache_healthy,
            "storage": self.selector.active_kind,
            "overall": (primary_healthy or fallback_healthy) and cache_healthy,
        }
