import json
import re
import shutil
import tempfile
import unittest
from unittest import mock

from botocore.exceptions import ClientError, EndpointConnectionError

from activities.storage.base import BucketPolicy, ObjectExistsError, StorageError, build_storage_key
from activities.storage.local import LocalStorage
from activities.storage.s3 import S3Storage
from activities.uploads import IMAGE_BUCKET_POLICY


def client_error(code, operation="Operation"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestStorageKey(unittest.TestCase):

    def test_layout(self):
        key = build_storage_key("user-1", "Holiday.JPG")
        self.assertRegex(key, r"^user-1/\d+-[0-9a-f]{8}\.jpg$")

    def test_prefix_and_missing_extension(self):
        key = build_storage_key("user-1", "blob", prefix="food")
        self.assertTrue(re.match(r"^user-1/food/\d+-[0-9a-f]{8}\.bin$", key), key)

    def test_keys_are_unique(self):
        keys = {build_storage_key("u", "a.png") for _ in range(50)}
        self.assertEqual(len(keys), 50)


class TestLocalStorage(unittest.TestCase):

    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.root, True)
        self.storage = LocalStorage(self.root, "photos")
        self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)

    def test_upload_and_open(self):
        self.storage.upload("u/1.png", b"png", "image/png")
        with self.storage.open("u/1.png") as f:
            self.assertEqual(f.read(), b"png")

    def test_never_overwrites(self):
        self.storage.upload("u/1.png", b"one", "image/png")
        with self.assertRaises(ObjectExistsError):
            self.storage.upload("u/1.png", b"two", "image/png")

    def test_bucket_policy_is_enforced(self):
        with self.assertRaises(StorageError):
            self.storage.upload("u/1.txt", b"text", "text/plain")

    def test_ensure_bucket_is_idempotent(self):
        self.storage.ensure_bucket(BucketPolicy(public=False))
        self.assertIs(self.storage._policy, IMAGE_BUCKET_POLICY)

    def test_remove_ignores_missing(self):
        self.storage.upload("u/1.png", b"png", "image/png")
        self.storage.remove(["u/1.png", "u/missing.png"])
        with self.assertRaises(FileNotFoundError):
            self.storage.open("u/1.png")

    def test_keys_cannot_escape_bucket(self):
        with self.assertRaises(StorageError):
            self.storage.upload("../outside.png", b"png", "image/png")


class TestS3Storage(unittest.TestCase):

    def setUp(self):
        self.s3 = mock.MagicMock()
        self.storage = S3Storage("activities-photos", "eu-west-1", client=self.s3)

    def test_existing_bucket_is_left_alone(self):
        self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)
        self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)
        self.s3.head_bucket.assert_called_once_with(Bucket="activities-photos")
        self.s3.create_bucket.assert_not_called()

    def test_missing_bucket_is_created_public(self):
        self.s3.head_bucket.side_effect = client_error("404", "HeadBucket")
        self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)
        self.s3.create_bucket.assert_called_once_with(
            Bucket="activities-photos",
            CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
        )
        policy = json.loads(self.s3.put_bucket_policy.call_args.kwargs["Policy"])
        self.assertEqual(policy["Statement"][0]["Action"], "s3:GetObject")

    def test_concurrent_creation_counts_as_success(self):
        self.s3.head_bucket.side_effect = client_error("404", "HeadBucket")
        self.s3.create_bucket.side_effect = client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)
        self.assertIs(self.storage._policy, IMAGE_BUCKET_POLICY)

    def test_unreachable_endpoint_during_creation_is_a_storage_error(self):
        self.s3.head_bucket.side_effect = client_error("404", "HeadBucket")
        self.s3.create_bucket.side_effect = EndpointConnectionError(endpoint_url="https://s3")
        with self.assertRaises(StorageError):
            self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)
        self.assertIsNone(self.storage._policy)

    def test_unreachable_endpoint_while_setting_policy(self):
        self.s3.head_bucket.side_effect = client_error("404", "HeadBucket")
        self.s3.put_bucket_policy.side_effect = EndpointConnectionError(endpoint_url="https://s3")
        with self.assertRaises(StorageError):
            self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)

    def test_access_denied_is_a_storage_error(self):
        self.s3.head_bucket.side_effect = client_error("403", "HeadBucket")
        with self.assertRaises(StorageError):
            self.storage.ensure_bucket(IMAGE_BUCKET_POLICY)

    def test_upload_refuses_overwrite(self):
        self.s3.put_object.side_effect = client_error("PreconditionFailed", "PutObject")
        with self.assertRaises(ObjectExistsError):
            self.storage.upload("u/1.png", b"png", "image/png")
        self.assertEqual(self.s3.put_object.call_args.kwargs["IfNoneMatch"], "*")

    def test_remove_in_batches(self):
        self.s3.delete_objects.return_value = {}
        self.storage.remove([f"u/{i}.png" for i in range(1500)])
        self.assertEqual(self.s3.delete_objects.call_count, 2)
        sizes = [len(c.kwargs["Delete"]["Objects"]) for c in self.s3.delete_objects.call_args_list]
        self.assertEqual(sizes, [1000, 500])

    def test_remove_reports_failures(self):
        self.s3.delete_objects.return_value = {"Errors": [{"Key": "u/1.png", "Code": "AccessDenied"}]}
        with self.assertRaises(StorageError):
            self.storage.remove(["u/1.png"])

    def test_open_missing_and_failing_objects(self):
        self.s3.get_object.side_effect = client_error("NoSuchKey", "GetObject")
        with self.assertRaises(FileNotFoundError):
            self.storage.open("u/1.png")
        self.s3.get_object.side_effect = client_error("AccessDenied", "GetObject")
        with self.assertRaises(StorageError):
            self.storage.open("u/1.png")

    def test_public_url(self):
        self.assertEqual(
            self.storage.get_public_url("u/1.png"),
            "https://activities-photos.s3.eu-west-1.amazonaws.com/u/1.png",
        )
        cdn = S3Storage("b", "eu-west-1", public_base_url="https://cdn.test/", client=self.s3)
        self.assertEqual(cdn.get_public_url("u/1.png"), "https://cdn.test/u/1.png")


if __name__ == "__main__":
    unittest.main()
