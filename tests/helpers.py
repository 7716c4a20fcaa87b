"""Store stubs and record builders shared by the tests."""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from tinyurl.database.fallback import FallbackStore
from tinyurl.database.models import Owner, UrlRecord
from tinyurl.exceptions import StoreUnavailable

BASE_URL = "http://testserver"


def make_record(short_code: str, original_url: str = "https://example.com/a", **kwargs) -> UrlRecord:
    return UrlRecord(
        original_url=original_url,
        short_code=short_code,
        short_url=f"{BASE_URL}/{short_code}",
        created_at=kwargs.pop("created_at", datetime.now(timezone.utc)),
        **kwargs,
    )


class DownStore(FallbackStore):
    """A store whose every data operation reports an outage."""

    kind = "primary"

    def __init__(self, logger=None):
        super().__init__("/nonexistent/never-written.json", logger=logger)
        self.calls = 0

    async def load(self):
        self.calls += 1
        raise StoreUnavailable("connection refused")

    async def short_code_exists(self, short_code: str) -> bool:
        # Same masking as the real stores
        return False


class SlowStatsStore(FallbackStore):
    """Fallback store whose click updates block until released."""

    def __init__(self, data_file, logger=None):
        super().__init__(data_file, logger=logger)
        self.release = asyncio.Event()
        self.started = asyncio.Event()

    async def increment_stats(self, short_code: str) -> None:
        self.started.set()
        await self.release.wait()
        await super().increment_stats(short_code)


async def seed_owner(store: FallbackStore, email: Optional[str] = "owner@example.com") -> Owner:
    return await store.create_owner({
        "email": email,
        "first_name": "Test",
        "last_name": "Owner",
        "is_anonymous": False,
    })
