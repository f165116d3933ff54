"""Data models for Drive API responses"""

import datetime
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class UploadResult:
    """Outcome of a successful upload

    Attributes:
        file_id: Drive file ID
        share_url: Public direct-download link
    """
    file_id: str
    share_url: str


@dataclass(frozen=True)
class DriveFile:
    """A file in the user's Drive

    Attributes:
        id: Drive file ID
        name: File name
        size_bytes: Size in bytes (0 when Drive reports none)
        created_at: Creation time (UTC)
        view_link: Browser link, if any
        thumbnail_link: Thumbnail link, if any
    """
    id: str
    name: str
    size_bytes: int
    created_at: datetime.datetime
    view_link: Optional[str] = None
    thumbnail_link: Optional[str] = None

    @property
    def filename(self) -> str:
        return self.name

    @classmethod
    def from_api(cls, item: Dict[str, Any], now: Optional[datetime.datetime] = None) -> "DriveFile":
        """Build from one entry of a files.list response"""
        return cls(
            id=item["id"],
            name=item.get("name", ""),
            size_bytes=parse_size(item.get("size")),
            created_at=parse_timestamp(item.get("createdTime"), now),
            view_link=item.get("webViewLink"),
            thumbnail_link=item.get("thumbnailLink"),
        )


def parse_size(value: Any) -> int:
    """Drive sends sizes as strings; anything unparsable counts as 0"""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_timestamp(value: Optional[str], now: Optional[datetime.datetime] = None) -> datetime.datetime:
    """Parse an RFC 3339 timestamp with or without fractional seconds

    Returns `now` (default: current UTC time) when the value is missing or
    malformed.
    """
    fallback = now or datetime.datetime.now(datetime.timezone.utc)
    if not isinstance(value, str) or not value:
        return fallback

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            parsed = datetime.datetime.strptime(text, fmt)
            break
        except ValueError:
            continue
    else:
        return fallback

    return parsed.astimezone(datetime.timezone.utc)
