from __future__ import annotations

from typing import Any, Dict, List

import pytest
import requests

from shred.services.photos import HttpPhotoStore, MemoryPhotoStore, PhotoStoreError


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, content: bytes = b"") -> None:
        self.status_code = status
        self._payload = payload
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": "POST", "url": url, **kwargs})
        return self.response

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": "GET", "url": url, **kwargs})
        return self.response


def test_http_save_posts_photo() -> None:
    session = FakeSession(FakeResponse(payload={"id": "rec-1"}))
    store = HttpPhotoStore("https://photos.example.com/", token="t0k", timeout=3, session=session)  # type: ignore[arg-type]

    assert store.save("workout-1", b"jpeg") == "rec-1"
    call = session.calls[0]
    assert call["url"] == "https://photos.example.com/photos"
    assert call["data"] == {"owner_id": "workout-1"}
    assert call["files"]["photo"][1] == b"jpeg"
    assert call["headers"]["Authorization"] == "Bearer t0k"
    assert call["timeout"] == 3


def test_http_fetch_returns_bytes() -> None:
    session = FakeSession(FakeResponse(content=b"\xff\xd8"))
    store = HttpPhotoStore("https://photos.example.com", session=session)  # type: ignore[arg-type]
    assert store.fetch("rec-1") == b"\xff\xd8"
    assert session.calls[0]["url"] == "https://photos.example.com/photos/rec-1"
    assert "Authorization" not in session.calls[0]["headers"]


@pytest.mark.parametrize("response", [
    FakeResponse(status=503),
    FakeResponse(payload=None),
    FakeResponse(payload={"ok": True}),
])
def test_http_save_failures_raise_photo_store_error(response: FakeResponse) -> None:
    store = HttpPhotoStore("https://photos.example.com", session=FakeSession(response))  # type: ignore[arg-type]
    with pytest.raises(PhotoStoreError):
        store.save("workout-1", b"jpeg")


def test_http_fetch_failure() -> None:
    store = HttpPhotoStore("https://photos.example.com", session=FakeSession(FakeResponse(status=404)))  # type: ignore[arg-type]
    with pytest.raises(PhotoStoreError):
        store.fetch("missing")


def test_empty_image_rejected() -> None:
    with pytest.raises(PhotoStoreError):
        HttpPhotoStore("https://photos.example.com", session=FakeSession(FakeResponse())).save("w", b"")  # type: ignore[arg-type]
    with pytest.raises(PhotoStoreError):
        MemoryPhotoStore().save("w", b"")


def test_memory_store_round_trip() -> None:
    store = MemoryPhotoStore()
    rid = store.save("owner", b"abc")
    assert store.fetch(rid) == b"abc"
    with pytest.raises(PhotoStoreError):
        store.fetch("nope")
