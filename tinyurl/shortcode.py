"""Short code generation with collision detection."""

import asyncio
import logging
import random
import string
from typing import Optional

from .database.base import RecordStore
from .exceptions import GenerationExhausted, StoreUnavailable


class ShortCodeGenerator:
    """Generate short codes that are not yet taken in a record store.

    Attempt ``n`` (1-based) draws a code of ``min_length + n // 3``
    characters, so the code space widens by one character every three
    collisions. The existence check is an optimization: the store's
    uniqueness constraint at write time is what actually prevents
    duplicates.
    """

    # URL-safe alphabet: a-zA-Z0-9 plus "-" and "_"
    ALPHABET = string.ascii_letters + string.digits + "-_"

    def __init__(
        self,
        min_length: int = 5,
        max_attempts: int = 10,
        check_timeout: Optional[float] = 5.0,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize short code generator.

        Args:
            min_length: Code length for the first attempts
            max_attempts: Attempts before giving up
            check_timeout: Bound on a single existence check, None for no bound
            rng: Random source (defaults to the OS CSPRNG)
            logger: Optional logger
        """
        self.min_length = min_length
        self.max_attempts = max_attempts
        self.check_timeout = check_timeout
        self.rng = rng or random.SystemRandom()
        self.logger = logger or logging.getLogger(__name__)

    def length_for_attempt(self, attempt: int, min_length: Optional[int] = None) -> int:
        """Code length used on the given 1-based attempt."""
        return (min_length or self.min_length) + attempt // 3

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random code without checking any store."""
        length = length or self.min_length
        return "".join(self.rng.choices(self.ALPHABET, k=length))

    async def _exists(self, store: RecordStore, code: str) -> bool:
        if self.check_timeout is None:
            return await store.short_code_exists(code)
        return await asyncio.wait_for(store.short_code_exists(code), timeout=self.check_timeout)

    async def generate(
        self,
        store: RecordStore,
        min_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ) -> str:
        """Generate a code that ``store`` reports as unused.

        If the existence check itself fails (store error or timeout), the
        attempt is retried; on the final attempt the unverified code is
        returned instead of failing the request.

        Args:
            store: The store active for this request
            min_length: Overrides the configured minimum length
            max_attempts: Overrides the configured attempt budget

        Returns:
            A short code

        Raises:
            GenerationExhausted: If every attempt hit an existing code
        """
        max_attempts = max_attempts or self.max_attempts

        for attempt in range(1, max_attempts + 1):
            code = self.generate_random(self.length_for_attempt(attempt, min_length))

            try:
                if not await self._exists(store, code):
                    self.logger.debug(f"Generated unique short code: {code} (attempt {attempt})")
                    return code
                self.logger.info(f"Collision detected for {code}, retrying... (attempt {attempt})")

            except (StoreUnavailable, asyncio.TimeoutError, OSError) as e:
                self.logger.error(f"Store error during collision check (attempt {attempt}): {e!r}")
                if attempt == max_attempts:
                    self.logger.error(f"Store unavailable, returning unverified short code {code}")
                    return code

        raise GenerationExhausted(
            f"Failed to generate unique short code after {max_attempts} attempts"
        )
