"""
db/blob_store.py
----------------
Upload and delete binary assets (cover images, PDFs) in the hosted
object storage, addressed by public URL.

Public URLs have the conventional shape
    {STORAGE_URL}/storage/v1/object/public/{bucket}/{path}
and `delete()` ignores anything that does not.
"""

import random
import re
import time
from typing import Optional

import httpx

import config
from exceptions import UploadError
from utils.logger import get_logger

logger = get_logger(__name__)

PUBLIC_MARKER = "/storage/v1/object/public/"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    """
    Make an uploaded filename safe and collision-resistant.

    Characters outside ``[A-Za-z0-9.-]`` become ``_`` and a
    ``{millis}-{random}-`` prefix is added.
    """
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique}-{_UNSAFE_CHARS.sub('_', name)}"


def parse_public_url(url: str) -> Optional[tuple[str, str]]:
    """
    Split a public URL into ``(bucket, path)``.

    Returns:
        None if the URL is empty, not http(s), or lacks the public marker.
    """
    if not url or not url.startswith("http"):
        return None
    _, sep, rest = url.partition(PUBLIC_MARKER)
    if not sep:
        return None
    bucket, _, path = rest.partition("/")
    if not bucket or not path:
        return None
    return bucket, path


class BlobStore:
    """Client for the storage REST API."""

    def __init__(self, base_url: str, api_key: str, backend_secret: str,
                 client: Optional[httpx.Client] = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "apikey": api_key,
            "x-backend-secret": backend_secret,
        }

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}{PUBLIC_MARKER}{bucket}/{path}"

    def upload(self, bucket: str, filename: str, data: bytes, content_type: str) -> str:
        """
        Upload a file and return its public URL.

        Args:
            bucket: Storage bucket, e.g. ``book-images``.
            filename: Original client filename; sanitized and prefixed.
            data: File contents.
            content_type: MIME type sent with the object.

        Raises:
            UploadError: If the buffer is empty or the store rejects it.
        """
        if not data:
            raise UploadError("File buffer is empty")

        name = sanitize_filename(filename)
        url = f"{self.base_url}/storage/v1/object/{bucket}/{name}"
        headers = {**self._headers, "Content-Type": content_type, "x-upsert": "false"}
        try:
            response = self.client.post(url, content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Upload to bucket '{bucket}' failed: {e}")
            raise UploadError(f"Failed to upload file: {e}") from e

        if response.is_error:
            logger.error(f"Upload to bucket '{bucket}' rejected ({response.status_code}): {response.text}")
            raise UploadError(f"Failed to upload file: {_error_message(response)}")

        public = self.public_url(bucket, name)
        logger.info(f"Uploaded {len(data)} bytes to {bucket}/{name}")
        return public

    def delete(self, public_url: str) -> bool:
        """
        Remove the object behind a public URL.

        Returns:
            False (without contacting the store) if the URL is not a public
            object URL, True once the object is removed.

        Raises:
            UploadError: If the store rejects the removal.
        """
        parsed = parse_public_url(public_url)
        if parsed is None:
            return False
        bucket, path = parsed
        url = f"{self.base_url}/storage/v1/object/{bucket}"
        try:
            response = self.client.request(
                "DELETE", url, json={"prefixes": [path]}, headers=self._headers
            )
        except httpx.HTTPError as e:
            logger.error(f"Delete of {bucket}/{path} failed: {e}")
            raise UploadError(f"Failed to delete file: {e}") from e

        if response.is_error:
            logger.error(f"Delete of {bucket}/{path} rejected ({response.status_code}): {response.text}")
            raise UploadError(f"Failed to delete file: {_error_message(response)}")

        logger.info(f"Deleted {bucket}/{path}")
        return True

    def close(self) -> None:
        self.client.close()


def _error_message(response: httpx.Response) -> str:
    """Best-effort error text from a storage error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """Return the process-wide blob store built from validated config."""
    global _blob_store
    if _blob_store is None:
        config.validate_config()
        _blob_store = BlobStore(config.STORAGE_URL, config.STORAGE_KEY, config.BACKEND_SECRET,
                                timeout=config.STORAGE_TIMEOUT_SECONDS)
    return _blob_store
