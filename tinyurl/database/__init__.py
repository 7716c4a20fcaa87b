"""Storage layer for URL shortener."""

from .base import RecordStore
from .models import Owner, UrlRecord
from .postgres import PrimaryStore
from .fallback import FallbackStore
from .availability import AvailabilityMonitor, PrimaryConnectionManager, StoreSelector
from .cache import RecordCache

__all__ = [
    "RecordStore",
    "Owner",
    "UrlRecord",
    "PrimaryStore",
    "FallbackStore",
    "AvailabilityMonitor",
    "PrimaryConnectionManager",
    "StoreSelector",
    "RecordCache",
]
