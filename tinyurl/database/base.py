"""Abstract base class for record store implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Tuple

from .models import Owner, UrlRecord


class RecordStore(ABC):
    """Durable short code -> URL record association, grouped by owner.

    Two implementations share this contract: the primary (PostgreSQL) store
    and the fallback (local snapshot file) store. ``kind`` tags which one a
    caller is talking to.
    """

    kind: str = "abstract"

    @abstractmethod
    async def create_owner(self, attrs: Dict[str, Any]) -> Owner:
        """Create an owner.

        Args:
            attrs: ``email``, ``first_name``, ``last_name``, ``is_anonymous``

        Returns:
            The stored owner, with its assigned id

        Raises:
            DuplicateOwner: If a non-anonymous owner already uses the email
            StoreUnavailable: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def find_owner_by_email(self, email: str) -> Optional[Owner]:
        """Look up an owner by email."""
        pass

    @abstractmethod
    async def find_owner_by_id(self, owner_id: int) -> Optional[Owner]:
        """Look up an owner by id."""
        pass

    @abstractmethod
    async def find_by_short_code(self, short_code: str) -> Optional[Tuple[Owner, UrlRecord]]:
        """Find a record across all owners.

        Args:
            short_code: The short code to lookup

        Returns:
            ``(owner, record)`` or None if no owner holds the code
        """
        pass

    @abstractmethod
    async def short_code_exists(self, short_code: str) -> bool:
        """Check if a short code is already taken.

        A storage error is reported as ``False`` (unknown counts as free) so
        that generation can proceed in degraded conditions. The uniqueness
        constraint enforced by ``append_record`` is the real guarantee.

        Args:
            short_code: The short code to check

        Returns:
            True if taken, False if free or unknown
        """
        pass

    @abstractmethod
    async def append_record(self, owner_id: int, record: UrlRecord) -> None:
        """Append a record to an owner's collection.

        Raises:
            DuplicateShortCode: If the code is already stored under any owner
            OwnerNotFound: If the owner disappeared
            StoreUnavailable: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def increment_stats(self, short_code: str) -> None:
        """Bump ``click_count`` and set ``last_accessed`` to now.

        An absent code is a silent no-op.
        """
        pass

    @abstractmethod
    async def list_records(self, owner_id: int) -> List[UrlRecord]:
        """Return an owner's records in insertion order.

        Raises:
            OwnerNotFound: If the owner does not exist
        """
        pass

    @abstractmethod
    async def iter_all_records(self) -> List[Tuple[int, UrlRecord]]:
        """Return every ``(owner_id, record)`` pair, for maintenance jobs."""
        pass

    @abstractmethod
    async def update_original_url(self, short_code: str, original_url: str) -> bool:
        """Rewrite a record's ``original_url`` in place.

        Returns:
            True if a record was updated
        """
        pass

    @abstractmethod
    async def collision_statistics(self) -> Dict[str, int]:
        """Count stored records and distinct short codes.

        Returns:
            ``{"total_urls": int, "unique_short_codes": int}``
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is usable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release store resources."""
        pass
