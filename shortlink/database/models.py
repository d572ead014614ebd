"""Data models for the URL mapping store."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class URLMapping:
    """Represents a short code -> original URL mapping in the store."""

    short_code: str
    original_url: str
    domain: str
    created_at: datetime
    expires_at: datetime
    click_count: int = 0

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "short_code": self.short_code,
            "original_url": self.original_url,
            "domain": self.domain,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "click_count": self.click_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "URLMapping":
        """Create from dictionary."""
        return cls(
            short_code=data["short_code"],
            original_url=data["original_url"],
            domain=data.get("domain", ""),
            created_at=_as_datetime(data["created_at"]),
            expires_at=_as_datetime(data["expires_at"]),
            click_count=data.get("click_count", 0),
        )


@dataclass(frozen=True)
class MappingAggregate:
    """Store-wide counts taken from one consistent pass."""

    total: int
    active: int
    expired: int
    total_clicks: int


def _as_datetime(value) -> datetime:
    return value if isinstance(value, datetime) else datetime.fromisoformat(value)
