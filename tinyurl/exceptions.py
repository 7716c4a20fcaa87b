"""Error taxonomy for the URL shortener core."""


class TinyURLError(Exception):
    """Base exception for all application-specific errors."""

    error_code = "app:tinyurl_error"
    retryable = False


class DuplicateOwner(TinyURLError):
    """Raised when registering an owner whose email is already taken."""

    error_code = "owner:duplicate_owner"


class OwnerNotFound(TinyURLError):
    """Raised when a referenced owner does not exist in the active store."""

    error_code = "owner:owner_not_found"


class DuplicateShortCode(TinyURLError):
    """Raised by a store when its uniqueness constraint rejects a short code."""

    error_code = "store:duplicate_short_code"


class StoreUnavailable(TinyURLError):
    """Raised when a store cannot be reached.

    Examples include connection refusals, timeouts and disk write failures.
    The store selector absorbs it by failing over to the fallback store.
    """

    error_code = "store:store_unavailable"
    retryable = True


class GenerationExhausted(TinyURLError):
    """Raised when no unused short code was found within the attempt budget."""

    error_code = "shortcode:generation_exhausted"


class CodeCollision(TinyURLError):
    """Raised when another writer claimed the generated code first.

    The caller is expected to re-invoke ``shorten``.
    """

    error_code = "shortcode:code_collision"
    retryable = True


class InvalidCode(TinyURLError):
    """Raised when a presented short code has an impossible shape."""

    error_code = "resolve:invalid_code"


class ShortCodeNotFound(TinyURLError):
    """Raised when no record exists for a short code."""

    error_code = "resolve:short_code_not_found"


class MalformedRecord(TinyURLError):
    """Raised when a stored URL is not a safe absolute http(s) target."""

    error_code = "resolve:malformed_record"
