"""URL normalization shared by the write and read paths.

Repairs two kinds of damage seen in stored URLs: HTML entity escaping left
behind by an over-eager input sanitizer, and duplicated protocol prefixes
(``https://https://example.com``). It never adds a missing protocol; that
belongs to submission-time validation.
"""

import re
from typing import Any, Tuple

# Order matters: "&#x2F;" and friends before "&amp;" matches what the
# sanitizer produced, "&amp;" before the rest unwraps one escaping level.
HTML_ENTITIES: Tuple[Tuple[str, str], ...] = (
    ("&#x2F;", "/"),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#x27;", "'"),
)

DUPLICATED_PROTOCOLS: Tuple[str, ...] = (
    "https://https://",
    "http://https://",
    "https://http://",
    "http://http://",
)

_LEADING_PROTOCOL = re.compile(r"^https?://")


def decode_entities(value: str) -> str:
    """Decode the fixed entity set until the string stops changing."""
    while True:
        decoded = value
        for entity, literal in HTML_ENTITIES:
            decoded = decoded.replace(entity, literal)
        if decoded == value:
            return decoded
        value = decoded


def strip_duplicated_protocol(value: str) -> str:
    """Drop leading protocols while a duplicated prefix remains."""
    while value.startswith(DUPLICATED_PROTOCOLS):
        value = _LEADING_PROTOCOL.sub("", value, count=1)
    return value


def normalize_url(raw: Any) -> Any:
    """Normalize a URL string.
    
    Pure and idempotent: ``normalize_url(normalize_url(x)) == normalize_url(x)``.
    Anything that is not a ``str`` is returned unchanged.
    
    Args:
        raw: The URL as submitted or as stored
        
    Returns:
        The repaired URL
    """
    if not isinstance(raw, str):
        return raw
    return strip_duplicated_protocol(decode_entities(raw))
