"""Tests for the Drive API client."""

import asyncio
import datetime

import httpx
import pytest

from drive_api import DriveClient, DriveFile, MultipartRelated, mime_type_for, parse_size, parse_timestamp
from drive_oauth import TokenManager, UserInfo
from utils.errors import (
    DeleteFailedError,
    DownloadFailedError,
    ListFailedError,
    NotSignedInError,
    PermissionFailedError,
    UploadFailedError,
    UserInfoFailedError,
)

from .conftest import NOW, json_of

FILES_PATH = "/drive/v3/files"
UPLOAD_PATH = "/upload/drive/v3/files"
USERINFO_PATH = "/oauth2/v2/userinfo"


@pytest.fixture
def drive(profile, store, http_client, clock):
    tokens = TokenManager(profile, store, http_client=http_client, clock=clock)
    return DriveClient(tokens, http_client=http_client)


@pytest.fixture
def uploaded(google):
    """Backend that accepts an upload as F1 and its permission change."""
    google.on("POST", UPLOAD_PATH, httpx.Response(200, json={"id": "F1", "name": "photo.png"}))
    google.on("POST", f"{FILES_PATH}/F1/permissions", httpx.Response(200, json={"id": "anyoneWithLink"}))
    return google


class TestNotSignedIn:
    """Every operation fails before touching the network."""

    @pytest.mark.asyncio
    async def test_operations_require_session(self, drive, google, tmp_path):
        with pytest.raises(NotSignedInError):
            await drive.list_files()
        with pytest.raises(NotSignedInError):
            await drive.upload(b"data", "a.txt")
        with pytest.raises(NotSignedInError):
            await drive.upload_file(tmp_path / "missing.txt")
        with pytest.raises(NotSignedInError):
            await drive.download("F1", tmp_path / "out")
        with pytest.raises(NotSignedInError):
            await drive.delete_file("F1")

        assert google.requests == []

    def test_message(self):
        assert str(NotSignedInError()) == "Not signed in. Please sign in with Google."


class TestUpload:
    """Test multipart upload and sharing."""

    @pytest.mark.asyncio
    async def test_upload_shares_file(self, drive, signed_in_store, uploaded):
        data = b"\x89PNG" + b"\0" * (2_000_000 - 4)
        progress = []

        result = await drive.upload(data, "photo.png", on_progress=progress.append)

        assert result.file_id == "F1"
        assert result.share_url == "https://drive.google.com/uc?id=F1&export=download"

        upload = uploaded.calls("POST", UPLOAD_PATH)[0]
        assert upload.url.params["uploadType"] == "multipart"
        assert upload.headers["Authorization"] == "Bearer access-1"
        assert upload.headers["Content-Type"].startswith("multipart/related; boundary=")
        assert int(upload.headers["Content-Length"]) == len(upload.content)
        assert "Transfer-Encoding" not in upload.headers
        assert b"Content-Type: image/png" in upload.content
        assert b'{"name": "photo.png"}' in upload.content
        assert data in upload.content

        permission = uploaded.calls("POST", f"{FILES_PATH}/F1/permissions")
        assert len(permission) == 1
        assert json_of(permission[0]) == {"role": "reader", "type": "anyone"}

        assert progress[-1] == 1.0
        assert progress == sorted(progress)
        assert all(0.0 <= value <= 1.0 for value in progress)
        assert len(progress) > 2

    @pytest.mark.asyncio
    async def test_upload_rejected(self, drive, signed_in_store, google):
        google.on("POST", UPLOAD_PATH, httpx.Response(403, text="quota exceeded"))

        with pytest.raises(UploadFailedError) as exc_info:
            await drive.upload(b"x", "a.txt")

        assert exc_info.value.status_code == 403
        assert exc_info.value.body == "quota exceeded"
        assert google.calls("POST", f"{FILES_PATH}/F1/permissions") == []

    @pytest.mark.asyncio
    async def test_permission_failure(self, drive, signed_in_store, google):
        google.on("POST", UPLOAD_PATH, httpx.Response(200, json={"id": "F1"}))
        google.on("POST", f"{FILES_PATH}/F1/permissions", httpx.Response(500, text="oops"))
        with pytest.raises(UploadFailedError) as exc_info:
            await drive.upload(b"x", "a.txt")

        assert isinstance(exc_info.value, PermissionFailedError)
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_upload_file_uses_file_name(self, drive, signed_in_store, uploaded, tmp_path):
        path = tmp_path / "Report.PDF"
        path.write_bytes(b"%PDF-1.7")

        result = await drive.upload_file(path)

        upload = uploaded.calls("POST", UPLOAD_PATH)[0]
        assert b'{"name": "Report.PDF"}' in upload.content
        assert b"Content-Type: application/pdf" in upload.content
        assert result.file_id == "F1"


class TestMultipartBody:
    """Test the request body layout."""

    @pytest.mark.asyncio
    async def test_layout(self):
        body = MultipartRelated({"name": "a.txt"}, b"hello", "text/plain", boundary="b0")
        sent = b"".join([chunk async for chunk in body.stream()])

        assert sent == (
            b"--b0\r\n"
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n"
            b'{"name": "a.txt"}\r\n'
            b"--b0\r\n"
            b"Content-Type: text/plain\r\n\r\n"
            b"hello"
            b"\r\n--b0--\r\n"
        )
        assert len(body) == len(sent)
        assert body.content_type == "multipart/related; boundary=b0"

    @pytest.mark.asyncio
    async def test_large_body_is_chunked(self):
        data = b"x" * 200_000
        body = MultipartRelated({"name": "a.bin"}, data, "application/octet-stream")
        progress = []

        chunks = [chunk async for chunk in body.stream(progress.append)]

        assert len(chunks) == 6  # head, four data chunks, tail
        assert max(len(chunk) for chunk in chunks) == 65536
        assert sum(len(chunk) for chunk in chunks) == len(body)
        assert data in b"".join(chunks)
        assert progress[-1] == 1.0


class TestMimeTypes:
    """Test extension lookup."""

    def test_known_extensions(self):
        assert mime_type_for("photo.png") == "image/png"
        assert mime_type_for("clip.MOV") == "video/quicktime"
        assert mime_type_for("song.mp3") == "audio/mpeg"

    def test_unknown_extension(self):
        assert mime_type_for("archive.tar.xz") == "application/octet-stream"
        assert mime_type_for("README") == "application/octet-stream"


class TestListFiles:
    """Test listing and record parsing."""

    @pytest.mark.asyncio
    async def test_list_parses_records(self, drive, signed_in_store, google):
        google.on("GET", FILES_PATH, httpx.Response(200, json={"files": [
            {
                "id": "F2",
                "name": "new.png",
                "size": "2048",
                "createdTime": "2024-05-02T10:00:00.123Z",
                "webViewLink": "https://drive.google.com/file/d/F2/view",
                "thumbnailLink": "https://lh3.googleusercontent.com/F2",
            },
            {"id": "F1", "name": "empty.txt", "size": "0", "createdTime": "2024-05-01T09:30:00Z"},
            {"id": "F0", "name": "doc", "createdTime": "yesterday"},
        ]}))

        files = await drive.list_files()

        request = google.calls("GET", FILES_PATH)[0]
        assert request.url.params["pageSize"] == "50"
        assert request.url.params["orderBy"] == "createdTime desc"
        assert request.url.params["q"] == "'me' in owners and trashed = false"

        assert [f.id for f in files] == ["F2", "F1", "F0"]
        assert files[0].size_bytes == 2048
        assert files[0].created_at == datetime.datetime(2024, 5, 2, 10, 0, 0, 123000, tzinfo=datetime.timezone.utc)
        assert files[0].thumbnail_link == "https://lh3.googleusercontent.com/F2"
        assert files[1].size_bytes == 0
        assert files[1].created_at == datetime.datetime(2024, 5, 1, 9, 30, tzinfo=datetime.timezone.utc)
        assert files[2].size_bytes == 0
        assert files[2].view_link is None

    @pytest.mark.asyncio
    async def test_empty_listing(self, drive, signed_in_store, google):
        google.on("GET", FILES_PATH, httpx.Response(200, json={}))
        assert await drive.list_files() == []

    @pytest.mark.asyncio
    async def test_list_failure(self, drive, signed_in_store, google):
        google.on("GET", FILES_PATH, httpx.Response(500, text="backend error"))
        with pytest.raises(ListFailedError) as exc_info:
            await drive.list_files()
        assert exc_info.value.status_code == 500


class TestRecordParsing:
    """Test size and timestamp fallbacks."""

    def test_sizes(self):
        assert parse_size("0") == 0
        assert parse_size(None) == 0
        assert parse_size("12x") == 0
        assert parse_size("1024") == 1024

    def test_malformed_timestamp_is_now(self):
        now = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
        assert parse_timestamp("not a date", now) == now
        assert parse_timestamp(None, now) == now

    def test_offset_is_normalized_to_utc(self):
        parsed = parse_timestamp("2024-05-01T11:30:00+02:00")
        assert parsed == datetime.datetime(2024, 5, 1, 9, 30, tzinfo=datetime.timezone.utc)

    def test_from_api_uses_name_as_filename(self):
        item = {"id": "F1", "name": "a.txt"}
        drive_file = DriveFile.from_api(item, datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc))
        assert drive_file.filename == "a.txt"
        assert drive_file.size_bytes == 0


class TestDownload:
    """Test streamed downloads."""

    @pytest.mark.asyncio
    async def test_download_writes_file(self, drive, signed_in_store, google, tmp_path):
        payload = b"z" * 300_000
        google.on("GET", f"{FILES_PATH}/F1", httpx.Response(200, content=payload))
        destination = tmp_path / "out.bin"
        progress = []

        result = await drive.download("F1", destination, on_progress=progress.append)

        assert result == destination
        assert destination.read_bytes() == payload
        assert google.calls("GET", f"{FILES_PATH}/F1")[0].url.params["alt"] == "media"
        assert progress[-1] == 1.0
        assert list(tmp_path.iterdir()) == [destination]

    @pytest.mark.asyncio
    async def test_download_not_found(self, drive, signed_in_store, google, tmp_path):
        google.on("GET", f"{FILES_PATH}/F1", httpx.Response(404, text="File not found: F1"))
        destination = tmp_path / "out.bin"

        with pytest.raises(DownloadFailedError) as exc_info:
            await drive.download("F1", destination)

        assert exc_info.value.status_code == 404
        assert not destination.exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_interrupted_download_leaves_nothing(self, drive, signed_in_store, google, tmp_path):
        async def broken_body():
            yield b"partial"
            raise httpx.ReadError("connection reset")

        google.on("GET", f"{FILES_PATH}/F1", lambda request: httpx.Response(200, content=broken_body()))
        destination = tmp_path / "out.bin"

        with pytest.raises(DownloadFailedError):
            await drive.download("F1", destination)

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_existing_destination_replaced_only_on_success(self, drive, signed_in_store, google, tmp_path):
        destination = tmp_path / "out.bin"
        destination.write_bytes(b"old contents")

        google.on("GET", f"{FILES_PATH}/F1", httpx.Response(404, text="File not found: F1"))
        with pytest.raises(DownloadFailedError):
            await drive.download("F1", destination)
        assert destination.read_bytes() == b"old contents"

        google.on("GET", f"{FILES_PATH}/F1", httpx.Response(200, content=b"new contents"))
        await drive.download("F1", destination)
        assert destination.read_bytes() == b"new contents"
        assert list(tmp_path.iterdir()) == [destination]

    @pytest.mark.asyncio
    async def test_cancelled_download_removes_partial_file(self, drive, signed_in_store, google, tmp_path):
        first_chunk_written = asyncio.Event()

        async def stalled_body():
            yield b"partial"
            first_chunk_written.set()
            await asyncio.Event().wait()

        google.on("GET", f"{FILES_PATH}/F1", lambda request: httpx.Response(200, content=stalled_body()))
        destination = tmp_path / "out.bin"

        task = asyncio.create_task(drive.download("F1", destination))
        await asyncio.wait_for(first_chunk_written.wait(), timeout=5)
        assert [p.suffix for p in tmp_path.iterdir()] == [".part"]

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_writes_run_in_worker_thread(self, drive, signed_in_store, google, tmp_path, monkeypatch):
        offloaded = []
        real_to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            offloaded.append(func)
            return await real_to_thread(func, *args, **kwargs)

        monkeypatch.setattr("drive_api.client.asyncio.to_thread", recording_to_thread)
        google.on("GET", f"{FILES_PATH}/F1", httpx.Response(200, content=b"z" * 1000))

        await drive.download("F1", tmp_path / "out.bin")

        assert offloaded
        assert all(getattr(func, "__name__", "") == "write" for func in offloaded)


class TestDelete:
    """Test file deletion."""

    @pytest.mark.asyncio
    async def test_delete(self, drive, signed_in_store, google):
        google.on("DELETE", f"{FILES_PATH}/F1", httpx.Response(204))
        await drive.delete_file("F1")
        assert len(google.calls("DELETE", f"{FILES_PATH}/F1")) == 1

    @pytest.mark.asyncio
    async def test_delete_forbidden(self, drive, signed_in_store, google):
        google.on("DELETE", f"{FILES_PATH}/F1", httpx.Response(403, text="forbidden"))
        with pytest.raises(DeleteFailedError) as exc_info:
            await drive.delete_file("F1")
        assert exc_info.value.status_code == 403


class TestUserInfo:
    """Test the profile request."""

    @pytest.mark.asyncio
    async def test_fetch_user_info(self, drive, signed_in_store, google):
        google.on("GET", USERINFO_PATH, httpx.Response(200, json={
            "email": "ada@example.com",
            "name": "Ada",
            "picture": "https://example.com/ada.png",
        }))
        assert await drive.fetch_user_info() == UserInfo("ada@example.com", "Ada", "https://example.com/ada.png")

    @pytest.mark.asyncio
    async def test_name_falls_back_to_email(self, drive, signed_in_store, google):
        google.on("GET", USERINFO_PATH, httpx.Response(200, json={"email": "ada@example.com"}))
        user = await drive.fetch_user_info()
        assert user.name == "ada@example.com"
        assert user.picture_url == ""

    @pytest.mark.asyncio
    async def test_user_info_failure(self, drive, signed_in_store, google):
        google.on("GET", USERINFO_PATH, httpx.Response(401))
        with pytest.raises(UserInfoFailedError):
            await drive.fetch_user_info()
