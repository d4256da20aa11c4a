from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import quote, unquote, urlencode, urlparse

from app.core.errors import InvalidInput, StorageError
from app.core.ids import gen_blob_name
from app.services.auth import Identity
from app.services.http_client import ServiceHttpClient

log = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_SIGNED_URL_TTL = 3600


@dataclass(frozen=True)
class BlobReference:
    path: str
    url: str


class ObjectStore(Protocol):
    async def put(self, *, path: str, data: bytes, content_type: str) -> None: ...

    async def sign(self, *, path: str, ttl_seconds: int) -> str: ...

    async def delete(self, *, path: str) -> None: ...


class LocalObjectStore:
    """
    Filesystem object store for development and tests.

    Signed URLs point at `/v1/blobs/{path}` and carry an HMAC over the path
    and expiry, so the blob route can serve private files without a session.
    """

    def __init__(self, base_dir: str, *, signing_key: str, public_base_url: str):
        self.base = Path(base_dir)
        self.base.mkdir(parents=True, exist_ok=True)
        self._key = signing_key.encode("utf-8")
        self._public_base_url = public_base_url.rstrip("/")

    async def put(self, *, path: str, data: bytes, content_type: str) -> None:
        target = self.resolve_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def sign(self, *, path: str, ttl_seconds: int) -> str:
        expires = int(time.time()) + ttl_seconds
        query = urlencode({"expires": expires, "sig": self._signature(path, expires)})
        return f"{self._public_base_url}/v1/blobs/{quote(path)}?{query}"

    async def delete(self, *, path: str) -> None:
        self.resolve_path(path).unlink()

    def verify(self, *, path: str, expires: int, sig: str) -> bool:
        if expires < int(time.time()):
            return False
        return hmac.compare_digest(self._signature(path, expires), sig)

    def resolve_path(self, key: str) -> Path:
        """
        Resolve a bucket-relative key to a file under the store root.

        Rejects absolute keys and any key that escapes the root.
        """
        rel = PurePosixPath(key)
        if rel.is_absolute() or ".." in rel.parts:
            raise ValueError(f"Unsupported object key: {key}")
        return self.base / rel

    def _signature(self, path: str, expires: int) -> str:
        msg = f"{path}:{expires}".encode("utf-8")
        return hmac.new(self._key, msg, hashlib.sha256).hexdigest()


class SupabaseObjectStore:
    """Supabase Storage over its REST API, one private bucket."""

    def __init__(self, *, http: ServiceHttpClient, base_url: str, service_key: str, bucket: str):
        self._http = http
        self._base = f"{base_url.rstrip('/')}/storage/v1"
        self._bucket = bucket
        self._headers = {"apikey": service_key, "Authorization": f"Bearer {service_key}"}

    async def put(self, *, path: str, data: bytes, content_type: str) -> None:
        res = await self._http.post_bytes(
            url=f"{self._base}/object/{self._bucket}/{quote(path)}",
            content=data,
            headers={
                **self._headers,
                "content-type": content_type,
                "cache-control": "max-age=3600",
                "x-upsert": "false",
            },
        )
        if not res.ok:
            raise StorageError(f"Failed to upload image: {res.error_message}")

    async def sign(self, *, path: str, ttl_seconds: int) -> str:
        res = await self._http.post_json(
            url=f"{self._base}/object/sign/{self._bucket}/{quote(path)}",
            headers=self._headers,
            json_body={"expiresIn": ttl_seconds},
        )
        signed = (res.detail.get("signedURL") or res.detail.get("signedUrl")) if res.ok else None
        if not signed:
            raise StorageError(f"Failed to sign image URL: {res.error_message or 'empty response'}")
        # Supabase answers with a path relative to /storage/v1
        return f"{self._base}{signed}" if signed.startswith("/") else signed

    async def delete(self, *, path: str) -> None:
        res = await self._http.delete_json(
            url=f"{self._base}/object/{self._bucket}",
            headers=self._headers,
            json_body={"prefixes": [path]},
        )
        if not res.ok:
            raise StorageError(f"Failed to delete image: {res.error_message}")


def _extension(original_name: str | None, mime_type: str) -> str:
    suffix = PurePosixPath(original_name or "").suffix.lstrip(".").lower()
    if not suffix:
        # "image/svg+xml" -> "svg"
        suffix = mime_type.partition("/")[2].split("+")[0].lower()
    suffix = "".join(ch for ch in suffix if ch.isalnum())[:10]
    return suffix or "bin"


class BlobStore:
    """
    Image blobs under a per-identity namespace.

    Stored references are always the bucket-relative path; signed URLs are
    derived on demand and never persisted.
    """

    def __init__(
        self,
        store: ObjectStore,
        *,
        max_bytes: int = DEFAULT_MAX_BYTES,
        signed_url_ttl: int = DEFAULT_SIGNED_URL_TTL,
    ):
        self._store = store
        self.max_bytes = max_bytes
        self.signed_url_ttl = signed_url_ttl

    def validate_image(self, data: bytes, mime_type: str | None) -> str:
        if not mime_type or not mime_type.lower().startswith("image/"):
            raise InvalidInput("File must be an image")
        if not data:
            raise InvalidInput("File is empty")
        if len(data) > self.max_bytes:
            raise InvalidInput(f"File size must be less than {self.max_bytes // (1024 * 1024)}MB")
        return mime_type

    async def upload(
        self,
        identity: Identity,
        data: bytes,
        mime_type: str | None,
        original_name: str | None,
    ) -> BlobReference:
        content_type = self.validate_image(data, mime_type)

        path = f"{identity.id}/{gen_blob_name()}.{_extension(original_name, content_type)}"
        try:
            await self._store.put(path=path, data=data, content_type=content_type)
        except StorageError:
            raise
        except OSError as e:
            raise StorageError(f"Failed to upload image: {e}") from e

        log.info("stored blob %s (%d bytes)", path, len(data))
        return BlobReference(path=path, url=await self.signed_url(path))

    async def signed_url(self, path: str, ttl: int | None = None) -> str:
        ttl_seconds = ttl if ttl is not None else self.signed_url_ttl
        try:
            return await self._store.sign(path=path, ttl_seconds=ttl_seconds)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to sign image URL: {e}") from e

    async def delete(self, path: str) -> None:
        # best-effort: callers have already committed the record that referenced the blob
        try:
            await self._store.delete(path=path)
        except Exception as e:
            log.warning("blob delete failed for %s: %s", path, e)

    @staticmethod
    def normalize_path(identity: Identity, value: str) -> str:
        """
        Turn a client-supplied image reference into a bucket-relative path.

        Accepts the path returned by upload, or a full storage URL (public or
        signed) whose last two segments are `{owner}/{file}`.
        """
        ref = value.strip()
        if "://" in ref:
            segments = [s for s in urlparse(ref).path.split("/") if s]
            ref = "/".join(unquote(s) for s in segments[-2:])
        ref = ref.lstrip("/")

        parts = PurePosixPath(ref).parts
        if len(parts) != 2 or parts[0] != identity.id or ".." in parts:
            raise InvalidInput("Image must reference one of your uploads")
        return ref
