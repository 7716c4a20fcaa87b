"""File-snapshot record store used while the primary database is unreachable."""

import asyncio
import json
import logging
import os
import random
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple, Union

from .base import RecordStore
from .models import Owner, UrlRecord
from ..exceptions import DuplicateOwner, DuplicateShortCode, OwnerNotFound, StoreUnavailable


class FallbackStore(RecordStore):
    """Record store persisting every owner in one JSON snapshot file.

    Every mutation reads the whole snapshot, changes it and writes it back
    (temp file + ``os.replace``). Mutations inside one process are
    serialized by an ``asyncio.Lock``; two processes sharing the same file
    can still lose each other's updates, so this store is only meant for
    single-process degraded operation.
    """

    kind = "fallback"

    def __init__(
        self,
        data_file: Union[str, Path] = "data/users.json",
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize fallback store.

        Args:
            data_file: Snapshot path, parent directories are created on write
            logger: Optional logger instance
        """
        self.data_file = Path(data_file)
        self.logger = logger or logging.getLogger(__name__)
        self._write_lock = asyncio.Lock()

    # -- snapshot I/O -------------------------------------------------------

    def _read_snapshot(self) -> List[Owner]:
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except ValueError as e:
            self.logger.error(f"Fallback snapshot {self.data_file} is unreadable, treating as empty: {e}")
            return []
        except OSError as e:
            raise StoreUnavailable(f"Cannot read fallback snapshot {self.data_file}: {e}") from e

        return [Owner.from_dict(item) for item in data]

    def _write_snapshot(self, owners: List[Owner]) -> None:
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.data_file.parent,
            prefix=f".{self.data_file.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([owner.to_dict() for owner in owners], f, indent=2)
            os.replace(tmp_path, self.data_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def load(self) -> List[Owner]:
        """Read the full snapshot."""
        return await asyncio.to_thread(self._read_snapshot)

    async def _save(self, owners: List[Owner]) -> None:
        try:
            await asyncio.to_thread(self._write_snapshot, owners)
        except OSError as e:
            self.logger.error(f"Failed to save fallback snapshot: {e}")
            raise StoreUnavailable(f"Cannot write fallback snapshot {self.data_file}: {e}") from e

    @staticmethod
    def _locate(owners: List[Owner], short_code: str) -> Optional[Tuple[Owner, UrlRecord]]:
        for owner in owners:
            record = owner.find_record(short_code)
            if record is not None:
                return owner, record
        return None

    @staticmethod
    def _new_owner_id(owners: List[Owner]) -> int:
        taken = {owner.id for owner in owners}
        while True:
            owner_id = int(time.time() * 1000) + random.randint(0, 999)
            if owner_id not in taken:
                return owner_id

    # -- RecordStore --------------------------------------------------------

    async def create_owner(self, attrs: Dict[str, Any]) -> Owner:
        is_anonymous = bool(attrs.get("is_anonymous", False))
        email = attrs.get("email")

        async with self._write_lock:
            owners = await self.load()

            if not is_anonymous and any(
                o.email == email and not o.is_anonymous for o in owners
            ):
                raise DuplicateOwner(f"Owner already exists with email {email}")

            owner = Owner(
                id=self._new_owner_id(owners),
                email=email,
                first_name=attrs.get("first_name"),
                last_name=attrs.get("last_name"),
                is_anonymous=is_anonymous,
                created_at=datetime.now(timezone.utc),
            )
            owners.append(owner)
            await self._save(owners)

        self.logger.debug(f"Created owner {owner.id} in fallback store")
        return owner

    async def find_owner_by_email(self, email: str) -> Optional[Owner]:
        owners = await self.load()
        return next((o for o in owners if o.email == email), None)

    async def find_owner_by_id(self, owner_id: int) -> Optional[Owner]:
        owners = await self.load()
        return next((o for o in owners if o.id == int(owner_id)), None)

    async def find_by_short_code(self, short_code: str) -> Optional[Tuple[Owner, UrlRecord]]:
        owners = await self.load()
        return self._locate(owners, short_code)

    async def short_code_exists(self, short_code: str) -> bool:
        try:
            return await self.find_by_short_code(short_code) is not None
        except StoreUnavailable as e:
            self.logger.error(f"Error checking short code existence: {e}")
            return False

    async def append_record(self, owner_id: int, record: UrlRecord) -> None:
        async with self._write_lock:
            owners = await self.load()

            if self._locate(owners, record.short_code) is not None:
                raise DuplicateShortCode(f"Short code already stored: {record.short_code}")

            owner = next((o for o in owners if o.id == int(owner_id)), None)
            if owner is None:
                raise OwnerNotFound(f"Owner {owner_id} not found")

            owner.urls.append(record)
            await self._save(owners)

        self.logger.info(f"Stored {record.short_code} -> {record.original_url} (fallback)")

    async def increment_stats(self, short_code: str) -> None:
        async with self._write_lock:
            owners = await self.load()
            found = self._locate(owners, short_code)
            if found is None:
                return

            _, record = found
            record.click_count += 1
            record.last_accessed = datetime.now(timezone.utc)
            await self._save(owners)

        self.logger.debug(f"Incremented click count for {short_code}: {record.click_count}")

    async def list_records(self, owner_id: int) -> List[UrlRecord]:
        owner = await self.find_owner_by_id(owner_id)
        if owner is None:
            raise OwnerNotFound(f"Owner {owner_id} not found")
        return list(owner.urls)

    async def iter_all_records(self) -> List[Tuple[int, UrlRecord]]:
        owners = await self.load()
        return [(owner.id, record) for owner in owners for record in owner.urls]

    async def update_original_url(self, short_code: str, original_url: str) -> bool:
        async with self._write_lock:
            owners = await self.load()
            found = self._locate(owners, short_code)
            if found is None:
                return False
            found[1].original_url = original_url
            await self._save(owners)
        return True

    async def collision_statistics(self) -> Dict[str, int]:
        codes = [record.short_code for _, record in await self.iter_all_records()]
        return {"total_urls": len(codes), "unique_short_codes": len(set(codes))}

    async def health_check(self) -> bool:
        try:
            await self.load()
            return True
        except StoreUnavailable as e:
            self.logger.error(f"Fallback health check failed: {e}")
            return False

    async def close(self) -> None:
        # Nothing is held open between operations
        pass
