from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

import requests


class PhotoStoreError(RuntimeError):
    pass


class PhotoStore(Protocol):
    def save(self, owner_id: str, image_bytes: bytes) -> str: ...

    def fetch(self, record_id: str) -> bytes: ...


@dataclass(frozen=True)
class PhotoUploadResult:
    ok: bool
    photo_id: Optional[str] = None
    message: str = ""


class HttpPhotoStore:
    """Blob store reached over HTTP.

    ``POST {base_url}/photos`` with a multipart ``photo`` part and an ``owner_id``
    field answers ``{"id": ...}``; ``GET {base_url}/photos/{id}`` returns the bytes.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 15.0,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers: Dict[str, str] = {}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def save(self, owner_id: str, image_bytes: bytes) -> str:
        if not image_bytes:
            raise PhotoStoreError("Image is empty.")
        try:
            resp = self._session.post(
                f"{self.base_url}/photos",
                data={"owner_id": owner_id},
                files={"photo": (f"{owner_id}.jpg", image_bytes, "image/jpeg")},
                headers=self._headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise PhotoStoreError(f"Failed to save photo: {exc}") from exc
        record_id = payload.get("id") if isinstance(payload, dict) else None
        if not record_id:
            raise PhotoStoreError("Photo store did not return a record id.")
        return str(record_id)

    def fetch(self, record_id: str) -> bytes:
        try:
            resp = self._session.get(
                f"{self.base_url}/photos/{record_id}",
                headers=self._headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise PhotoStoreError(f"Failed to fetch photo {record_id}: {exc}") from exc
        return resp.content


class MemoryPhotoStore:
    """In-process photo store for tests and offline use."""

    def __init__(self) -> None:
        self.photos: Dict[str, bytes] = {}
        self.owners: Dict[str, str] = {}

    def save(self, owner_id: str, image_bytes: bytes) -> str:
        if not image_bytes:
            raise PhotoStoreError("Image is empty.")
        record_id = uuid.uuid4().hex
        self.photos[record_id] = bytes(image_bytes)
        self.owners[record_id] = owner_id
        return record_id

    def fetch(self, record_id: str) -> bytes:
        try:
            return self.photos[record_id]
        except KeyError:
            raise PhotoStoreError(f"No photo with id {record_id}") from None
