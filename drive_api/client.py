"""Authenticated Google Drive API client"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import httpx

import settings
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
from utils.http import default_timeout, open_client
from .mime_types import mime_type_for
from .models import DriveFile, UploadResult
from .multipart import MultipartRelated, ProgressCallback

logger = logging.getLogger(__name__)

# Only files this app created and the user still owns, newest first
LIST_QUERY = "'me' in owners and trashed = false"
LIST_FIELDS = "files(id,name,size,createdTime,webViewLink,thumbnailLink)"
UPLOAD_FIELDS = "id,name,webViewLink"


def share_url_for(file_id: str) -> str:
    """Public direct-download link for a file made readable by anyone"""
    return settings.DIRECT_DOWNLOAD_URL.format(file_id=file_id)


class DriveClient:
    """Drive v3 operations on behalf of the signed-in user

    Every operation fails with NotSignedInError before any network access
    when there is no session, and asks the TokenManager for a valid token
    before each request.
    """

    def __init__(
        self,
        tokens: TokenManager,
        http_client: Optional[httpx.AsyncClient] = None,
        drive_api_base: str = settings.DRIVE_API_BASE,
        upload_api_base: str = settings.UPLOAD_API_BASE,
        userinfo_url: str = settings.USERINFO_URL,
    ):
        """
        Args:
            tokens: Token manager for the session
            http_client: Shared HTTP client (a short-lived one per call if None)
        """
        self.tokens = tokens
        self.http_client = http_client
        self.drive_api_base = drive_api_base
        self.upload_api_base = upload_api_base
        self.userinfo_url = userinfo_url

    async def _auth_headers(self) -> dict:
        if not self.tokens.is_signed_in:
            raise NotSignedInError()
        token = await self.tokens.valid_access_token()
        return {"Authorization": f"Bearer {token}"}

    # Listing

    async def list_files(self) -> list[DriveFile]:
        """List the user's files, newest first

        Only the first page (settings.LIST_PAGE_SIZE files) is returned.
        """
        headers = await self._auth_headers()
        params = {
            "pageSize": str(settings.LIST_PAGE_SIZE),
            "orderBy": "createdTime desc",
            "fields": LIST_FIELDS,
            "q": LIST_QUERY,
        }

        async with open_client(self.http_client) as client:
            try:
                response = await client.get(f"{self.drive_api_base}/files", params=params, headers=headers)
            except httpx.RequestError as e:
                raise ListFailedError(f"List request failed: {e}") from e

        if not response.is_success:
            logger.error(f"List failed with status {response.status_code}: {response.text}")
            raise ListFailedError("List failed", status_code=response.status_code, body=response.text)

        try:
            items = response.json().get("files", [])
            files = [DriveFile.from_api(item) for item in items]
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as e:
            raise ListFailedError(f"List returned an invalid response: {e}", body=response.text) from e

        logger.debug(f"Listed {len(files)} files")
        return files

    # Upload

    async def upload(
        self,
        data: bytes,
        filename: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Upload bytes as a new file and make it readable by anyone with the link

        Args:
            data: File contents
            filename: Name to give the file in Drive; also selects the MIME type
            on_progress: Called with the fraction of the request body sent;
                receives 1.0 once the file is shared

        Returns:
            UploadResult with the file ID and direct-download URL
        """
        headers = await self._auth_headers()
        body = MultipartRelated({"name": filename}, data, mime_type_for(filename))
        headers.update({
            "Content-Type": body.content_type,
            "Content-Length": str(len(body)),
        })

        logger.info(f"Uploading {filename} ({len(data)} bytes)")
        async with open_client(self.http_client, timeout=settings.TRANSFER_TIMEOUT) as client:
            try:
                response = await client.post(
                    f"{self.upload_api_base}/files",
                    params={"uploadType": "multipart", "fields": UPLOAD_FIELDS},
                    headers=headers,
                    content=body.stream(on_progress),
                    timeout=default_timeout(settings.TRANSFER_TIMEOUT),
                )
            except httpx.RequestError as e:
                raise UploadFailedError(f"Upload request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Upload failed with status {response.status_code}: {response.text}")
            raise UploadFailedError("Upload failed", status_code=response.status_code, body=response.text)

        try:
            file_id = response.json()["id"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise UploadFailedError(f"Upload returned an invalid response: {e}", body=response.text) from e

        # Without the public permission the share link does not work
        await self.set_public_permission(file_id)

        if on_progress is not None:
            on_progress(1.0)

        logger.info(f"Uploaded {filename} as {file_id}")
        return UploadResult(file_id=file_id, share_url=share_url_for(file_id))

    async def upload_file(
        self,
        path: Union[str, Path],
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Upload a local file under its own name"""
        path = Path(path)
        if not self.tokens.is_signed_in:
            raise NotSignedInError()
        data = await asyncio.to_thread(path.read_bytes)
        return await self.upload(data, path.name, on_progress)

    async def set_public_permission(self, file_id: str) -> None:
        """Grant 'anyone with the link' reader access"""
        headers = await self._auth_headers()
        async with open_client(self.http_client) as client:
            try:
                response = await client.post(
                    f"{self.drive_api_base}/files/{file_id}/permissions",
                    json={"role": "reader", "type": "anyone"},
                    headers=headers,
                )
            except httpx.RequestError as e:
                raise PermissionFailedError(f"Permission request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Setting public permission on {file_id} failed: {response.status_code}")
            raise PermissionFailedError(
                "Failed to set public permission",
                status_code=response.status_code,
                body=response.text,
            )

    # Download

    async def download(
        self,
        file_id: str,
        destination: Union[str, Path],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Path:
        """Stream a file's contents to `destination`

        The bytes go to a temporary file next to the destination, which
        replaces the destination only once the download completed. On
        failure or cancellation nothing is left behind.

        Returns:
            The destination path
        """
        destination = Path(destination)
        headers = await self._auth_headers()

        async with open_client(self.http_client, timeout=settings.TRANSFER_TIMEOUT) as client:
            try:
                async with client.stream(
                    "GET",
                    f"{self.drive_api_base}/files/{file_id}",
                    params={"alt": "media"},
                    headers=headers,
                    timeout=default_timeout(settings.TRANSFER_TIMEOUT),
                ) as response:
                    if not response.is_success:
                        await response.aread()
                        logger.error(f"Download of {file_id} failed with status {response.status_code}")
                        raise DownloadFailedError(
                            "Download failed",
                            status_code=response.status_code,
                            body=response.text,
                        )
                    await self._write_stream(response, destination, on_progress)
            except httpx.RequestError as e:
                raise DownloadFailedError(f"Download request failed: {e}") from e

        if on_progress is not None:
            on_progress(1.0)

        logger.info(f"Downloaded {file_id} to {destination}")
        return destination

    async def _write_stream(
        self,
        response: httpx.Response,
        destination: Path,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        try:
            expected = int(response.headers.get("Content-Length", 0))
        except ValueError:
            expected = 0

        fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as out:
                received = 0
                next_report = settings.PROGRESS_INTERVAL_BYTES
                async for chunk in response.aiter_bytes():
                    await asyncio.to_thread(out.write, chunk)
                    received += len(chunk)
                    if on_progress is not None and expected > 0 and received >= next_report:
                        on_progress(min(1.0, received / expected))
                        next_report = received + settings.PROGRESS_INTERVAL_BYTES
            os.replace(tmp_name, destination)
        except BaseException:
            # Includes CancelledError
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # Delete

    async def delete_file(self, file_id: str) -> None:
        """Permanently delete a file"""
        headers = await self._auth_headers()
        async with open_client(self.http_client) as client:
            try:
                response = await client.delete(f"{self.drive_api_base}/files/{file_id}", headers=headers)
            except httpx.RequestError as e:
                raise DeleteFailedError(f"Delete request failed: {e}") from e

        if response.status_code not in (200, 204):
            logger.error(f"Delete of {file_id} failed with status {response.status_code}")
            raise DeleteFailedError("Delete failed", status_code=response.status_code, body=response.text)

        logger.info(f"Deleted {file_id}")

    # Profile

    async def fetch_user_info(self) -> UserInfo:
        """Fetch the signed-in account's profile"""
        headers = await self._auth_headers()
        async with open_client(self.http_client) as client:
            try:
                response = await client.get(self.userinfo_url, headers=headers)
            except httpx.RequestError as e:
                raise UserInfoFailedError(f"User info request failed: {e}") from e

        if response.status_code != 200:
            raise UserInfoFailedError(
                "Failed to fetch user info",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return UserInfo.from_response(response.json())
        except (json.JSONDecodeError, AttributeError) as e:
            raise UserInfoFailedError(f"User info returned an invalid response: {e}") from e
