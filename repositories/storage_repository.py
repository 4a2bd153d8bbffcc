"""
Document storage (persistence).

Wraps a private Supabase Storage bucket holding KYC and bank documents.
Every failure is raised as InternalError naming the path involved; callers
decide how to surface it (the registration workflow turns upload failures into
UploadError for the form field).
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Protocol, Sequence

import httpx
from storage3.utils import StorageException

from domain.errors import InternalError
from repositories.client import get_supabase

_MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
_ALLOWED_MIME_TYPES: List[str] = ["application/pdf", "image/jpeg", "image/png", "image/jpg"]


class DocumentStorage(Protocol):
    def upload(self, path: str, content: bytes, content_type: str) -> None: ...

    def create_signed_url(self, path: str, expires_in: int) -> str: ...

    def remove(self, paths: Sequence[str]) -> None: ...


class SupabaseDocumentStorage:
    """DocumentStorage backed by a Supabase Storage bucket."""

    def __init__(self, bucket: str, client: Any = None) -> None:
        self.bucket = bucket
        self._client = client

    def _storage(self):
        client = self._client if self._client is not None else get_supabase()
        return client.storage

    def ensure_bucket(self) -> bool:
        """
        Create the private documents bucket if it does not exist.

        Returns True when the bucket was created, False when it already existed.
        """

        try:
            buckets = self._storage().list_buckets()
            if any(bucket.name == self.bucket for bucket in buckets):
                return False
            self._storage().create_bucket(
                self.bucket,
                options={
                    "public": False,
                    "file_size_limit": _MAX_FILE_SIZE,
                    "allowed_mime_types": _ALLOWED_MIME_TYPES,
                },
            )
        except (StorageException, httpx.HTTPError) as e:
            raise InternalError(f"Failed to create bucket {self.bucket}: {e}") from e
        return True

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        try:
            self._storage().from_(self.bucket).upload(
                path,
                content,
                file_options={"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
        except (StorageException, httpx.HTTPError) as e:
            raise InternalError(f"Failed to upload {path}: {e}") from e

    def create_signed_url(self, path: str, expires_in: int) -> str:
        try:
            result = self._storage().from_(self.bucket).create_signed_url(path, expires_in)
        except (StorageException, httpx.HTTPError) as e:
            raise InternalError(f"Failed to sign {path}: {e}") from e

        # storage3 has returned both spellings across releases.
        url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise InternalError(f"Failed to sign {path}: empty signed URL")
        return url

    def remove(self, paths: Sequence[str]) -> None:
        if not paths:
            return
        try:
            self._storage().from_(self.bucket).remove(list(paths))
        except (StorageException, httpx.HTTPError) as e:
            raise InternalError(f"Failed to remove {', '.join(paths)}: {e}") from e


class InMemoryDocumentStorage:
    """Process-local DocumentStorage for the `memory` backend and tests."""

    def __init__(self, bucket: str = "company-docs") -> None:
        self.bucket = bucket
        self._lock = threading.Lock()
        self.objects: Dict[str, bytes] = {}

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        with self._lock:
            if path in self.objects:
                raise InternalError(f"Failed to upload {path}: object already exists")
            self.objects[path] = bytes(content)

    def create_signed_url(self, path: str, expires_in: int) -> str:
        with self._lock:
            if path not in self.objects:
                raise InternalError(f"Failed to sign {path}: object not found")
        return f"memory://{self.bucket}/{path}?expires_in={expires_in}"

    def remove(self, paths: Sequence[str]) -> None:
        with self._lock:
            for path in paths:
                self.objects.pop(path, None)


__all__ = ["DocumentStorage", "SupabaseDocumentStorage", "InMemoryDocumentStorage"]
