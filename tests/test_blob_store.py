import json
import re

import httpx
import pytest

from db.blob_store import BlobStore, parse_public_url, sanitize_filename
from exceptions import UploadError

BASE = "https://project.storage.example"


def make_store(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return BlobStore(BASE, "service-key", "backend-secret", client=client)


def test_sanitize_filename():
    name = sanitize_filename("my cover (1).jpg")
    assert re.fullmatch(r"\d+-\d+-my_cover__1_\.jpg", name)


def test_sanitize_filename_is_unique_per_call():
    assert sanitize_filename("a.pdf") != sanitize_filename("a.pdf")


@pytest.mark.parametrize("url,expected", [
    (f"{BASE}/storage/v1/object/public/books/123-cover.jpg", ("books", "123-cover.jpg")),
    (f"{BASE}/storage/v1/object/public/notes/sub/dir/n.pdf", ("notes", "sub/dir/n.pdf")),
    ("https://elsewhere.example/img.png", None),
    ("/local/path.png", None),
    ("", None),
    (f"{BASE}/storage/v1/object/public/books", None),
])
def test_parse_public_url(url, expected):
    assert parse_public_url(url) == expected


def test_upload_returns_public_url():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"Key": "covers/x"})

    url = make_store(handler).upload("covers", "front page.png", b"\x89PNG", "image/png")

    request = seen[0]
    name = request.url.path.rsplit("/", 1)[1]
    assert request.method == "POST"
    assert request.url.path == f"/storage/v1/object/covers/{name}"
    assert request.headers["x-backend-secret"] == "backend-secret"
    assert request.headers["authorization"] == "Bearer service-key"
    assert request.headers["content-type"] == "image/png"
    assert request.content == b"\x89PNG"
    assert name.endswith("-front_page.png")
    assert url == f"{BASE}/storage/v1/object/public/covers/{name}"


def test_upload_rejects_empty_buffer():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(UploadError, match="empty"):
        make_store(handler).upload("covers", "a.png", b"", "image/png")


def test_upload_error_response():
    def handler(request):
        return httpx.Response(400, json={"message": "Bucket not found"})

    with pytest.raises(UploadError, match="Bucket not found"):
        make_store(handler).upload("missing", "a.png", b"data", "image/png")


def test_upload_transport_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(UploadError, match="Failed to upload"):
        make_store(handler).upload("covers", "a.png", b"data", "image/png")


def test_delete_ignores_foreign_urls():
    def handler(request):
        raise AssertionError("no request expected")

    store = make_store(handler)
    assert store.delete("https://elsewhere.example/img.png") is False
    assert store.delete("") is False


def test_delete_removes_object():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"name": "a/b.pdf"}])

    store = make_store(handler)
    assert store.delete(f"{BASE}/storage/v1/object/public/notes/a/b.pdf") is True

    request = seen[0]
    assert request.method == "DELETE"
    assert request.url.path == "/storage/v1/object/notes"
    assert json.loads(request.content) == {"prefixes": ["a/b.pdf"]}


def test_delete_error_response():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(UploadError, match="boom"):
        make_store(handler).delete(f"{BASE}/storage/v1/object/public/notes/x.pdf")
