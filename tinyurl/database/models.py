"""Data models for URL shortener."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Any


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept datetimes or ISO 8601 strings; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class UrlRecord:
    """One short code -> URL association."""
    
    original_url: str
    short_code: str
    short_url: str
    created_at: datetime
    click_count: int = 0
    last_accessed: Optional[datetime] = None
    
    def to_dict(self) -> dict:
        """Convert to dictionary using the snapshot file's field names."""
        return {
            "originalUrl": self.original_url,
            "shortCode": self.short_code,
            "shortUrl": self.short_url,
            "createdAt": _format_timestamp(self.created_at),
            "clickCount": self.click_count,
            "lastAccessed": _format_timestamp(self.last_accessed),
        }
    
    @classmethod
    def from_dict(cls, data: dict) -> "UrlRecord":
        """Create from dictionary (snapshot names or column names)."""
        return cls(
            original_url=data.get("originalUrl", data.get("original_url")),
            short_code=data.get("shortCode", data.get("short_code")),
            short_url=data.get("shortUrl", data.get("short_url")) or "",
            created_at=_parse_timestamp(data.get("createdAt", data.get("created_at"))),
            click_count=int(data.get("clickCount", data.get("click_count")) or 0),
            last_accessed=_parse_timestamp(data.get("lastAccessed", data.get("last_accessed"))),
        )


@dataclass
class Owner:
    """A registered account or a single-use anonymous bucket."""
    
    id: int
    email: Optional[str]
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_anonymous: bool = False
    created_at: Optional[datetime] = None
    urls: List[UrlRecord] = field(default_factory=list)
    
    def to_dict(self) -> dict:
        """Convert to dictionary, records embedded in insertion order."""
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "is_anonymous": self.is_anonymous,
            "createdAt": _format_timestamp(self.created_at),
            "urls": [record.to_dict() for record in self.urls],
        }
    
    @classmethod
    def from_dict(cls, data: dict) -> "Owner":
        """Create from dictionary."""
        return cls(
            id=int(data["id"]),
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            is_anonymous=bool(data.get("is_anonymous", False)),
            created_at=_parse_timestamp(data.get("createdAt", data.get("created_at"))),
            urls=[UrlRecord.from_dict(u) for u in data.get("urls") or []],
        )
    
    def find_record(self, short_code: str) -> Optional[UrlRecord]:
        """Return this owner's record for ``short_code``, if any."""
        for record in self.urls:
            if record.short_code == short_code:
                return record
        return None
