import logging
import os
import threading
from typing import BinaryIO, List

from .base import BucketPolicy, ObjectExistsError, StorageBackend, StorageError

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """Bucket as a directory under `root`; objects served through /files."""

    def __init__(self, root: str, bucket: str):
        super().__init__(bucket)
        self.root = root
        self._lock = threading.Lock()

    @property
    def bucket_dir(self) -> str:
        return os.path.join(self.root, self.bucket)

    def _path(self, key: str) -> str:
        path = os.path.normpath(os.path.join(self.bucket_dir, key))
        if not path.startswith(os.path.normpath(self.bucket_dir) + os.sep):
            raise StorageError(f"Invalid key: {key}")
        return path

    def ensure_bucket(self, policy: BucketPolicy) -> None:
        with self._lock:
            if self._policy is not None:
                return
            if not os.path.isdir(self.bucket_dir):
                os.makedirs(self.bucket_dir, exist_ok=True)
                logger.info(f"Created storage bucket: {self.bucket}")
            self._policy = policy

    def upload(self, key: str, data: bytes, content_type: str) -> None:
        self.check_policy(data, content_type)
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        try:
            with open(path, "xb") as f:
                f.write(data)
        except FileExistsError:
            raise ObjectExistsError(key)
        except OSError as e:
            raise StorageError(str(e)) from e

    def remove(self, keys: List[str]) -> None:
        failed = []
        for key in keys:
            try:
                os.remove(self._path(key))
            except FileNotFoundError:
                continue
            except (OSError, StorageError) as e:
                logger.warning(f"Failed to remove {key}: {e}")
                failed.append(key)
        if failed:
            raise StorageError(f"Failed to remove {len(failed)} object(s)")

    def open(self, key: str) -> BinaryIO:
        return open(self._path(key), "rb")

    def get_public_url(self, key: str) -> str:
        return f"/files/{key}"
