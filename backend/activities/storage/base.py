import os
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional


class StorageError(Exception):
    pass


class ObjectExistsError(StorageError):
    pass


@dataclass(frozen=True)
class BucketPolicy:
    public: bool = True
    max_object_bytes: Optional[int] = None
    allowed_mime_types: List[str] = field(default_factory=list)


def build_storage_key(user_id: str, filename: str, prefix: Optional[str] = None) -> str:
    """`{user_id}/[prefix/]{epoch_ms}-{random}.{ext}`"""
    ext = os.path.splitext(os.path.basename(filename or ""))[1].lstrip(".").lower() or "bin"
    stamp = int(time.time() * 1000)
    token = secrets.token_hex(4)
    parts = [user_id]
    if prefix:
        parts.append(prefix.strip("/"))
    parts.append(f"{stamp}-{token}.{ext}")
    return "/".join(parts)


class StorageBackend(ABC):
    def __init__(self, bucket: str):
        self.bucket = bucket
        self._policy: Optional[BucketPolicy] = None

    @abstractmethod
    def ensure_bucket(self, policy: BucketPolicy) -> None:
        """Create the bucket if missing. Safe to call repeatedly and concurrently."""

    @abstractmethod
    def upload(self, key: str, data: bytes, content_type: str) -> None:
        """Store `data` under `key`; raise ObjectExistsError rather than overwrite."""

    @abstractmethod
    def remove(self, keys: List[str]) -> None:
        pass

    @abstractmethod
    def open(self, key: str) -> BinaryIO:
        pass

    @abstractmethod
    def get_public_url(self, key: str) -> str:
        pass

    def check_policy(self, data: bytes, content_type: str) -> None:
        policy = self._policy
        if policy is None:
            return
        if policy.max_object_bytes is not None and len(data) > policy.max_object_bytes:
            raise StorageError(f"Object exceeds bucket limit of {policy.max_object_bytes} bytes")
        if policy.allowed_mime_types and content_type not in policy.allowed_mime_types:
            raise StorageError(f"Content type {content_type} not allowed in bucket {self.bucket}")
