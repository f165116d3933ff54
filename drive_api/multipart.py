"""multipart/related request bodies for Drive uploads"""

import json
import uuid
from typing import Any, AsyncIterator, Callable, Dict, Optional

import settings

ProgressCallback = Callable[[float], None]


class MultipartRelated:
    """A metadata part followed by a media part

    The body is never concatenated in memory; `stream()` yields the headers,
    the media in chunks, and the closing boundary, reporting progress as each
    chunk is handed to the transport.
    """

    def __init__(
        self,
        metadata: Dict[str, Any],
        data: bytes,
        media_type: str,
        boundary: Optional[str] = None,
    ):
        self.boundary = boundary or uuid.uuid4().hex
        self.data = data
        self.media_type = media_type

        self.head = (
            f"--{self.boundary}\r\n"
            "Content-Type: application/json; charset=UTF-8\r\n\r\n"
            f"{json.dumps(metadata)}\r\n"
            f"--{self.boundary}\r\n"
            f"Content-Type: {media_type}\r\n\r\n"
        ).encode("utf-8")
        self.tail = f"\r\n--{self.boundary}--\r\n".encode("utf-8")

    @property
    def content_type(self) -> str:
        return f"multipart/related; boundary={self.boundary}"

    def __len__(self) -> int:
        return len(self.head) + len(self.data) + len(self.tail)

    async def stream(
        self,
        on_progress: Optional[ProgressCallback] = None,
        chunk_size: int = settings.PROGRESS_INTERVAL_BYTES,
    ) -> AsyncIterator[bytes]:
        """Yield the body in chunks

        Progress is `sent / len(self)`, reported each time the consumer asks
        for the next chunk, i.e. after the previous one was written.
        """
        total = len(self)
        sent = 0
        view = memoryview(self.data)

        chunks = [self.head]
        chunks.extend(view[offset:offset + chunk_size] for offset in range(0, len(view), chunk_size))
        chunks.append(self.tail)

        for chunk in chunks:
            yield bytes(chunk)
            sent += len(chunk)
            if on_progress is not None and total > 0:
                on_progress(min(1.0, sent / total))
