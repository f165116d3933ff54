"""Google Drive API package"""

from .client import DriveClient, share_url_for
from .mime_types import DEFAULT_MIME_TYPE, mime_type_for
from .models import DriveFile, UploadResult, parse_size, parse_timestamp
from .multipart import MultipartRelated, ProgressCallback

__all__ = [
    "DriveClient",
    "share_url_for",
    "DEFAULT_MIME_TYPE",
    "mime_type_for",
    "DriveFile",
    "UploadResult",
    "parse_size",
    "parse_timestamp",
    "MultipartRelated",
    "ProgressCallback",
]
