import json
import logging
import threading
from io import BytesIO
from typing import BinaryIO, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import BucketPolicy, ObjectExistsError, StorageBackend, StorageError

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000


def _error_code(e: ClientError) -> Optional[str]:
    return e.response.get("Error", {}).get("Code")


class S3Storage(StorageBackend):
    def __init__(self, bucket: str, region: str, public_base_url: Optional[str] = None, client=None):
        super().__init__(bucket)
        self.region = region
        self.public_base_url = public_base_url
        self.s3 = client or boto3.client("s3", region_name=region)
        self._lock = threading.Lock()

    def ensure_bucket(self, policy: BucketPolicy) -> None:
        with self._lock:
            if self._policy is not None:
                return
            try:
                self.s3.head_bucket(Bucket=self.bucket)
                exists = True
            except ClientError as e:
                if _error_code(e) not in ("404", "NoSuchBucket", "NotFound"):
                    raise StorageError(f"Failed to check storage bucket: {e}") from e
                exists = False
            except BotoCoreError as e:
                raise StorageError(f"Failed to check storage bucket: {e}") from e
            if not exists:
                self._create_bucket(policy)
            self._policy = policy

    def _create_bucket(self, policy: BucketPolicy) -> None:
        params = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.s3.create_bucket(**params)
            logger.info(f"Created storage bucket: {self.bucket}")
        except ClientError as e:
            # Lost the race to another process
            if _error_code(e) not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise StorageError(f"Failed to create storage bucket: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to create storage bucket: {e}") from e
        if policy.public:
            try:
                self.s3.put_public_access_block(
                    Bucket=self.bucket,
                    PublicAccessBlockConfiguration={
                        "BlockPublicAcls": True,
                        "IgnorePublicAcls": True,
                        "BlockPublicPolicy": False,
                        "RestrictPublicBuckets": False,
                    },
                )
                self.s3.put_bucket_policy(Bucket=self.bucket, Policy=json.dumps(self._public_read_policy()))
            except (ClientError, BotoCoreError) as e:
                raise StorageError(f"Failed to set bucket policy: {e}") from e

    def _public_read_policy(self) -> dict:
        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Sid": "PublicRead",
                    "Effect": "Allow",
                    "Principal": "*",
                    "Action": "s3:GetObject",
                    "Resource": f"arn:aws:s3:::{self.bucket}/*",
                }
            ],
        }

    def upload(self, key: str, data: bytes, content_type: str) -> None:
        self.check_policy(data, content_type)
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=3600",
                IfNoneMatch="*",
            )
        except ClientError as e:
            if _error_code(e) in ("PreconditionFailed", "412"):
                raise ObjectExistsError(key) from e
            raise StorageError(f"Upload failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Upload failed: {e}") from e

    def remove(self, keys: List[str]) -> None:
        objects = [{"Key": key} for key in keys]
        errors = []
        for i in range(0, len(objects), DELETE_BATCH_SIZE):
            chunk = objects[i : i + DELETE_BATCH_SIZE]
            try:
                resp = self.s3.delete_objects(Bucket=self.bucket, Delete={"Objects": chunk, "Quiet": True})
            except (ClientError, BotoCoreError) as e:
                raise StorageError(f"Delete failed: {e}") from e
            errors.extend(resp.get("Errors", []))
        if errors:
            raise StorageError(f"Failed to delete {len(errors)} object(s): {errors}")

    def open(self, key: str) -> BinaryIO:
        try:
            obj = self.s3.get_object(Bucket=self.bucket, Key=key)
            return BytesIO(obj["Body"].read())
        except ClientError as e:
            if _error_code(e) in ("NoSuchKey", "NotFound"):
                raise FileNotFoundError(key)
            raise StorageError(f"Download failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Download failed: {e}") from e

    def get_public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
