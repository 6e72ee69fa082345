from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Protocol

from artifact_review.core.config import settings
from artifact_review.storage.keys import FS_SCHEME, S3_SCHEME, key_to_uri

logger = logging.getLogger(__name__)


class ObjectNotFound(LookupError):
    pass


class ObjectStore(Protocol):
    def put_bytes(self, key: str, payload: bytes, content_type: str = "application/octet-stream") -> str: ...

    def get_bytes(self, key: str) -> bytes: ...

    def delete(self, key: str) -> None: ...


class FilesystemObjectStore:
    def __init__(self, root: str | Path, bucket: str):
        self.root = Path(root) / bucket
        self.bucket = bucket

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Object key escapes the store root: {key}")
        return path

    def put_bytes(self, key: str, payload: bytes, content_type: str = "application/octet-stream") -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        return key_to_uri(FS_SCHEME, self.bucket, key)

    def get_bytes(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise ObjectNotFound(key)
        return path.read_bytes()

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MinioObjectStore:
    def __init__(self, endpoint: str, access_key: str, secret_key: str, bucket: str, secure: bool = False):
        from minio import Minio

        self.client = Minio(endpoint, access_key=access_key, secret_key=secret_key, secure=secure)
        self.bucket = bucket
        self._bucket_ready = False

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
            logger.info("Created object store bucket %s", self.bucket)
        self._bucket_ready = True

    def put_bytes(self, key: str, payload: bytes, content_type: str = "application/octet-stream") -> str:
        self._ensure_bucket()
        self.client.put_object(self.bucket, key, io.BytesIO(payload), length=len(payload), content_type=content_type)
        return key_to_uri(S3_SCHEME, self.bucket, key)

    def get_bytes(self, key: str) -> bytes:
        from minio.error import S3Error

        try:
            response = self.client.get_object(self.bucket, key)
        except S3Error as exc:
            if exc.code == "NoSuchKey":
                raise ObjectNotFound(key) from exc
            raise
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def delete(self, key: str) -> None:
        self.client.remove_object(self.bucket, key)


def build_object_store(backend: str | None = None) -> ObjectStore:
    backend = (backend or settings.object_store_backend).lower()
    if backend in {"fs", "local"}:
        return FilesystemObjectStore(settings.local_object_store_path, settings.object_store_bucket)
    if backend == "minio":
        return MinioObjectStore(
            settings.minio_endpoint,
            settings.minio_access_key,
            settings.minio_secret_key,
            settings.object_store_bucket,
            secure=settings.minio_secure,
        )
    raise ValueError(f"Unsupported object store backend: {backend}")


object_store: ObjectStore = build_object_store()
