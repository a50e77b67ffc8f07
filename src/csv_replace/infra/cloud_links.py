"""Cloud-storage share link detection and direct-download conversion."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class CloudProvider(str, Enum):
    GOOGLE_DRIVE = "google-drive"
    DROPBOX = "dropbox"
    MEGA = "mega"
    TERABOX = "terabox"
    ONEDRIVE = "onedrive"
    BOX = "box"
    PCLOUD = "pcloud"
    DIRECT = "direct"
    UNKNOWN = "unknown"


_PROVIDER_HOSTS: tuple[tuple[CloudProvider, tuple[str, ...]], ...] = (
    (CloudProvider.GOOGLE_DRIVE, ("drive.google.com", "docs.google.com")),
    (CloudProvider.DROPBOX, ("dropbox.com",)),
    (CloudProvider.MEGA, ("mega.nz",)),
    (CloudProvider.TERABOX, ("terrabox.com", "terabox.com")),
    (CloudProvider.ONEDRIVE, ("onedrive.live.com", "1drv.ms")),
    (CloudProvider.BOX, ("box.com",)),
    (CloudProvider.PCLOUD, ("pcloud.com",)),
)

_GOOGLE_ID_PATTERNS = (
    re.compile(r"/d/([A-Za-z0-9_-]+)"),
    re.compile(r"id=([A-Za-z0-9_-]+)"),
    re.compile(r"/([A-Za-z0-9_-]{25,})"),
)
_SHARE_ID = re.compile(r"/s/([A-Za-z0-9]+)")
_MEGA_ID = re.compile(r"/file/([A-Za-z0-9_-]+)")
_ONEDRIVE_ID = (re.compile(r"resid=([A-Za-z0-9!_-]+)"), re.compile(r"/id=([A-Za-z0-9!_-]+)"))
_PCLOUD_ID = re.compile(r"code=([A-Za-z0-9_-]+)")
_FILENAME = re.compile(r"[^/?#&=]+\.(?:csv|zip)", re.IGNORECASE)
_FOLDER_MARKERS = ("/folders/", "/folder/", "?folder=")


@dataclass(slots=True)
class CloudLink:
    provider: CloudProvider
    original_url: str
    direct_url: str
    filename: str
    file_id: str | None = None
    is_directory: bool = False

    @property
    def is_zip(self) -> bool:
        return self.filename.lower().endswith(".zip")


def detect_provider(url: str) -> CloudProvider:
    normalized = url.strip().lower()
    for provider, hosts in _PROVIDER_HOSTS:
        if any(host in normalized for host in hosts):
            return provider
    if ".csv" in normalized:
        return CloudProvider.DIRECT
    return CloudProvider.UNKNOWN


def google_drive_file_id(url: str) -> str | None:
    for pattern in _GOOGLE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def google_drive_download_url(file_id: str, *, confirm: bool = False) -> str:
    url = f"https://drive.google.com/uc?export=download&id={file_id}"
    return f"{url}&confirm=t" if confirm else url


def convert_dropbox(url: str) -> str:
    if "?dl=0" in url:
        return url.replace("?dl=0", "?dl=1")
    if "?dl=" not in url:
        return f"{url}&dl=1" if "?" in url else f"{url}?dl=1"
    return url


def convert_onedrive(url: str) -> str:
    if "1drv.ms" in url:
        return url.replace("1drv.ms", "onedrive.live.com/download")
    if "download" not in url:
        return f"{url}&download=1" if "?" in url else f"{url}?download=1"
    return url


def convert_box(url: str) -> str:
    if "box.com/s/" in url:
        return url.rstrip("/") + "/download"
    return url


def convert_pcloud(url: str) -> str:
    if "download" not in url:
        return f"{url}&download=1" if "?" in url else f"{url}?download=1"
    return url


def _first(patterns: tuple[re.Pattern[str], ...], url: str, *, limit: int | None = None) -> str | None:
    for pattern in patterns:
        match = pattern.search(url)
        if match:
            return match.group(1)[:limit] if limit else match.group(1)
    return None


def parse_cloud_link(url: str) -> CloudLink:
    """Detect the provider of ``url`` and compute its direct-download form."""
    provider = detect_provider(url)
    direct_url = url
    file_id: str | None = None

    if provider is CloudProvider.GOOGLE_DRIVE:
        file_id = google_drive_file_id(url)
        if file_id:
            direct_url = google_drive_download_url(file_id)
    elif provider is CloudProvider.DROPBOX:
        direct_url = convert_dropbox(url)
        file_id = _first((_SHARE_ID,), url)
    elif provider is CloudProvider.MEGA:
        file_id = _first((_MEGA_ID,), url)
    elif provider is CloudProvider.TERABOX:
        file_id = _first((_SHARE_ID,), url)
    elif provider is CloudProvider.ONEDRIVE:
        direct_url = convert_onedrive(url)
        file_id = _first(_ONEDRIVE_ID, url, limit=20)
    elif provider is CloudProvider.BOX:
        direct_url = convert_box(url)
        file_id = _first((_SHARE_ID,), url)
    elif provider is CloudProvider.PCLOUD:
        direct_url = convert_pcloud(url)
        file_id = _first((_PCLOUD_ID,), url, limit=20)

    if provider is CloudProvider.GOOGLE_DRIVE:
        filename = f"{file_id}.csv" if file_id else "file.csv"
    else:
        match = _FILENAME.search(url)
        filename = match.group(0) if match else (f"{file_id}.csv" if file_id else "file.csv")

    return CloudLink(
        provider=provider,
        original_url=url,
        direct_url=direct_url,
        filename=filename,
        file_id=file_id,
        is_directory=any(marker in url for marker in _FOLDER_MARKERS),
    )


__all__ = [
    "CloudLink",
    "CloudProvider",
    "convert_box",
    "convert_dropbox",
    "convert_onedrive",
    "convert_pcloud",
    "detect_provider",
    "google_drive_download_url",
    "google_drive_file_id",
    "parse_cloud_link",
]
