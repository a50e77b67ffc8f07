"""Fetch input file bytes from the artifact store or a cloud share link."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

import httpx

from csv_replace.common.logging import log_context
from csv_replace.core.errors import AcquisitionError

from .cloud_links import CloudLink, CloudProvider, google_drive_download_url, parse_cloud_link
from .storage import ArtifactNotFoundError, ArtifactStorage, StorageError

logger = logging.getLogger(__name__)

_CSV_ACCEPT = "text/csv,application/csv,text/plain,*/*"
_ZIP_ACCEPT = "application/zip,application/octet-stream,*/*"


class FileAcquirer:
    """Resolve a file location to bytes.

    * download locators (``<download_path>?file=...``) are read from the store,
    * ``http(s)`` URLs are treated as cloud share links and downloaded,
    * anything else is taken as the basename of a stored artifact.
    """

    def __init__(
        self,
        storage: ArtifactStorage,
        *,
        timeout: float = 60.0,
        max_bytes: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._storage = storage
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._transport = transport

    async def fetch(self, location: str | None) -> bytes:
        if not location:
            raise AcquisitionError("File must have a url")

        if location.startswith(("http://", "https://")):
            return await self.fetch_remote(location)

        try:
            name = self._storage.name_from_locator(location)
        except StorageError as exc:
            raise AcquisitionError(str(exc)) from exc
        if name is None:
            name = PurePosixPath(location.replace("\\", "/")).name

        try:
            return await self._storage.read(name)
        except ArtifactNotFoundError as exc:
            raise AcquisitionError(f"File not found: {name}") from exc
        except StorageError as exc:
            raise AcquisitionError(str(exc)) from exc

    async def fetch_remote(self, url: str) -> bytes:
        link = parse_cloud_link(url)
        logger.debug(
            "acquire.remote.start",
            extra=log_context(url=link.direct_url, provider=link.provider.value),
        )
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
                follow_redirects=True,
            ) as client:
                if link.provider is CloudProvider.GOOGLE_DRIVE and link.file_id:
                    return await self._fetch_google_drive(client, link.file_id)
                return await self._fetch_link(client, link)
        except AcquisitionError as exc:
            raise AcquisitionError(
                f"Error downloading from {link.provider.value}: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AcquisitionError(
                f"Error downloading from {link.provider.value}: {exc}"
            ) from exc

    async def _fetch_link(self, client: httpx.AsyncClient, link: CloudLink) -> bytes:
        accept = _ZIP_ACCEPT if link.is_zip else _CSV_ACCEPT
        response, body = await self._download(client, link.direct_url, accept)
        provider = link.provider.value

        if response.status_code == 403:
            raise AcquisitionError(
                f"Access denied. Please ensure the file is publicly accessible ({provider})."
            )
        if response.status_code == 404:
            raise AcquisitionError(f"File not found. Please check the link ({provider}).")
        if not response.is_success:
            raise AcquisitionError(
                f"Failed to download from {provider}: "
                f"{response.status_code} {response.reason_phrase}"
            )
        if not body:
            raise AcquisitionError(f"Empty file received from {provider}. Please check the link.")
        return body

    async def _fetch_google_drive(self, client: httpx.AsyncClient, file_id: str) -> bytes:
        confirmed = google_drive_download_url(file_id, confirm=True)
        response, body = await self._download(client, confirmed, _CSV_ACCEPT)

        if _is_html(response):
            # Interstitial page; retry the plain export URL once.
            plain = google_drive_download_url(file_id)
            response, body = await self._download(client, plain, _CSV_ACCEPT)
            if not response.is_success:
                raise AcquisitionError(
                    "Failed to download from Google Drive: "
                    f"{response.status_code} {response.reason_phrase}. "
                    "Make sure the file is publicly accessible."
                )
            if _is_html(response):
                raise AcquisitionError(
                    "Google Drive file requires confirmation. Please ensure the file is "
                    'set to "Anyone with the link can view" and try again.'
                )
            if not body:
                raise AcquisitionError(
                    "Empty file received from Google Drive. Please check the link."
                )
            return body

        if response.status_code == 403:
            raise AcquisitionError(
                "Access denied. Please ensure the file is publicly accessible (google-drive)."
            )
        if response.status_code == 404:
            raise AcquisitionError("File not found. Please check the link (google-drive).")
        if not response.is_success:
            raise AcquisitionError(
                "Failed to download from google-drive: "
                f"{response.status_code} {response.reason_phrase}"
            )
        if not body:
            raise AcquisitionError("Empty file received from google-drive. Please check the link.")
        return body

    async def _download(
        self,
        client: httpx.AsyncClient,
        url: str,
        accept: str,
    ) -> tuple[httpx.Response, bytes]:
        chunks: list[bytes] = []
        size = 0
        async with client.stream("GET", url, headers={"Accept": accept}) as response:
            async for chunk in response.aiter_bytes():
                size += len(chunk)
                if self._max_bytes is not None and size > self._max_bytes:
                    raise AcquisitionError(
                        f"Remote file exceeds the {self._max_bytes} byte limit."
                    )
                chunks.append(chunk)
        return response, b"".join(chunks)


def _is_html(response: httpx.Response) -> bool:
    return "text/html" in response.headers.get("content-type", "")


__all__ = ["FileAcquirer"]
