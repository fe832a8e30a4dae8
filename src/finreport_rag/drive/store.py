"""Document store clients: where report files are listed and downloaded from.

Two implementations share the DocumentStore protocol:

  LocalFolderStore  -- a directory on disk (development, batch scripts, tests)
  GoogleDriveStore  -- Google Drive v3 REST API over httpx with a bearer token

Neither raises on I/O failure: listing returns [] and downloading returns
None, with the cause logged.  Retry policy, if any, belongs here and not in
the ingestion core.
"""

import logging
import mimetypes
from pathlib import Path
from typing import Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field

from finreport_rag import config
from finreport_rag.ingestion.adapters.sources import resolve_format

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
DRIVE_LIST_FIELDS = "files(id, name, mimeType, modifiedTime, size, webViewLink)"
DRIVE_PAGE_SIZE = 100
DRIVE_TIMEOUT_SECONDS = 30.0


class DriveFile(BaseModel):
    """Metadata of one file in the knowledge-base folder."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    mime_type: str = Field(default="application/octet-stream", alias="mimeType")
    modified_time: str | None = Field(default=None, alias="modifiedTime")


class DocumentStore(Protocol):
    """Lists and downloads report files."""

    def list_files(self, folder_id: str) -> list[DriveFile]:
        """Return the files in *folder_id*, newest first."""

    def download_file(self, file_id: str, mime_type: str, name: str | None = None) -> bytes | None:
        """Return the file's bytes, or None if unsupported or unavailable."""


def is_supported(mime_type: str, name: str | None = None) -> bool:
    """Return True if the pipeline can read a file of this MIME type / name."""
    return resolve_format(mime_type=mime_type, file_name=name) is not None


# ─── Local Folder ────────────────────────────────────────────────────────────


class LocalFolderStore:
    """Serve report files from a directory; file ids are paths relative to *root*."""

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()

    def _folder(self, folder_id: str) -> Path:
        return (self.root / folder_id).resolve() if folder_id else self.root

    def check_connection(self) -> tuple[bool, str]:
        """Return (connected, detail)."""
        if self.root.is_dir():
            return True, f"Local folder {self.root}"
        return False, f"Folder not found: {self.root}"

    def list_files(self, folder_id: str = "") -> list[DriveFile]:
        folder = self._folder(folder_id)
        if not folder.is_dir() or not folder.is_relative_to(self.root):
            logger.error("Cannot list %s: not a folder under %s", folder, self.root)
            return []
        paths = sorted((p for p in folder.iterdir() if p.is_file()), key=lambda p: p.stat().st_mtime, reverse=True)
        return [
            DriveFile(
                id=str(p.relative_to(self.root)),
                name=p.name,
                mime_type=mimetypes.guess_type(p.name)[0] or "application/octet-stream",
                modified_time=str(p.stat().st_mtime),
            )
            for p in paths
        ]

    def download_file(self, file_id: str, mime_type: str, name: str | None = None) -> bytes | None:
        if not is_supported(mime_type, name or file_id):
            logger.info("Skipping unsupported type: %s (%s)", mime_type, name or file_id)
            return None
        path = (self.root / file_id).resolve()
        if not path.is_relative_to(self.root) or not path.is_file():
            logger.error("Error downloading file: %s not found", file_id)
            return None
        return path.read_bytes()


# ─── Google Drive ────────────────────────────────────────────────────────────


class GoogleDriveStore:
    """Google Drive v3 client authenticated with an OAuth access token."""

    def __init__(self, access_token: str, client: httpx.Client | None = None):
        self._client = client or httpx.Client(
            base_url=DRIVE_API_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=DRIVE_TIMEOUT_SECONDS,
        )

    def check_connection(self) -> tuple[bool, str]:
        """Return (connected, user email or error message)."""
        try:
            resp = self._client.get("/about", params={"fields": "user"})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            return False, str(exc)
        return True, resp.json().get("user", {}).get("emailAddress", "Connected with OAuth")

    def list_files(self, folder_id: str) -> list[DriveFile]:
        params = {
            "q": f"'{folder_id}' in parents and trashed = false",
            "fields": DRIVE_LIST_FIELDS,
            "orderBy": "modifiedTime desc",
            "pageSize": DRIVE_PAGE_SIZE,
        }
        try:
            resp = self._client.get("/files", params=params)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Error listing files: %s", exc)
            return []
        return [DriveFile.model_validate(f) for f in resp.json().get("files", [])]

    def download_file(self, file_id: str, mime_type: str, name: str | None = None) -> bytes | None:
        if not is_supported(mime_type, name):
            logger.info("Skipping unsupported type: %s (%s)", mime_type, name or file_id)
            return None
        try:
            resp = self._client.get(f"/files/{file_id}", params={"alt": "media"})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Error downloading file %s: %s", file_id, exc)
            return None
        return resp.content


def get_store() -> LocalFolderStore | GoogleDriveStore:
    """Return the configured store: a local folder if LOCAL_REPORTS_DIR is set, else Google Drive."""
    if config.LOCAL_REPORTS_DIR:
        return LocalFolderStore(config.LOCAL_REPORTS_DIR)
    return GoogleDriveStore(config.GOOGLE_ACCESS_TOKEN)
