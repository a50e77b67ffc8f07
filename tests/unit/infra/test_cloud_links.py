from __future__ import annotations

import pytest

from csv_replace.infra.cloud_links import (
    CloudProvider,
    convert_dropbox,
    convert_onedrive,
    detect_provider,
    google_drive_download_url,
    google_drive_file_id,
    parse_cloud_link,
)


@pytest.mark.parametrize(
    ("url", "provider"),
    [
        ("https://drive.google.com/file/d/abc/view", CloudProvider.GOOGLE_DRIVE),
        ("https://docs.google.com/spreadsheets/d/abc", CloudProvider.GOOGLE_DRIVE),
        ("https://www.dropbox.com/s/abc/a.csv?dl=0", CloudProvider.DROPBOX),
        ("https://mega.nz/file/abc", CloudProvider.MEGA),
        ("https://www.terabox.com/s/abc", CloudProvider.TERABOX),
        ("https://1drv.ms/u/s!abc", CloudProvider.ONEDRIVE),
        ("https://app.box.com/s/abc", CloudProvider.BOX),
        ("https://my.pcloud.com/publink/show?code=abc", CloudProvider.PCLOUD),
        ("https://example.com/exports/report.CSV", CloudProvider.DIRECT),
        ("https://example.com/exports/report", CloudProvider.UNKNOWN),
    ],
)
def test_detect_provider(url: str, provider: CloudProvider) -> None:
    assert detect_provider(url) is provider


def test_google_drive_ids_and_urls() -> None:
    assert google_drive_file_id("https://drive.google.com/file/d/1AbC_d-E/view?usp=sharing") == "1AbC_d-E"
    assert google_drive_file_id("https://drive.google.com/open?id=XYZ") == "XYZ"
    assert google_drive_file_id("https://drive.google.com/") is None

    assert google_drive_download_url("XYZ") == "https://drive.google.com/uc?export=download&id=XYZ"
    assert google_drive_download_url("XYZ", confirm=True).endswith("&confirm=t")


def test_google_drive_link() -> None:
    link = parse_cloud_link("https://drive.google.com/file/d/FILEID/view")

    assert link.provider is CloudProvider.GOOGLE_DRIVE
    assert link.file_id == "FILEID"
    assert link.direct_url == "https://drive.google.com/uc?export=download&id=FILEID"
    assert link.filename == "FILEID.csv"
    assert link.is_directory is False


def test_dropbox_conversion() -> None:
    assert convert_dropbox("https://www.dropbox.com/s/k/a.csv?dl=0") == "https://www.dropbox.com/s/k/a.csv?dl=1"
    assert convert_dropbox("https://www.dropbox.com/s/k/a.csv") == "https://www.dropbox.com/s/k/a.csv?dl=1"
    assert convert_dropbox("https://www.dropbox.com/s/k/a.csv?rlkey=x") == (
        "https://www.dropbox.com/s/k/a.csv?rlkey=x&dl=1"
    )

    link = parse_cloud_link("https://www.dropbox.com/s/k3y/sales.csv?dl=0")
    assert link.file_id == "k3y"
    assert link.filename == "sales.csv"


def test_onedrive_box_and_pcloud_links() -> None:
    assert convert_onedrive("https://1drv.ms/u/s!abc") == "https://onedrive.live.com/download/u/s!abc"

    box = parse_cloud_link("https://app.box.com/s/shared123/")
    assert box.direct_url == "https://app.box.com/s/shared123/download"
    assert box.file_id == "shared123"

    pcloud = parse_cloud_link("https://my.pcloud.com/publink/show?code=XZcode")
    assert pcloud.direct_url == "https://my.pcloud.com/publink/show?code=XZcode&download=1"
    assert pcloud.file_id == "XZcode"


def test_direct_and_unknown_links_keep_their_url() -> None:
    direct = parse_cloud_link("https://example.com/exports/report.csv")
    assert direct.provider is CloudProvider.DIRECT
    assert direct.direct_url == "https://example.com/exports/report.csv"
    assert direct.filename == "report.csv"

    archive = parse_cloud_link("https://example.com/exports/bundle.zip")
    assert archive.provider is CloudProvider.UNKNOWN
    assert archive.is_zip is True

    unknown = parse_cloud_link("https://example.com/exports/latest")
    assert unknown.filename == "file.csv"


def test_folder_links_are_flagged() -> None:
    assert parse_cloud_link("https://drive.google.com/drive/folders/abc").is_directory is True
