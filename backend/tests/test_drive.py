import os
import unittest
from unittest import mock

from botocore.exceptions import ClientError, EndpointConnectionError
from sqlalchemy.exc import SQLAlchemyError

from activities.crud import photos
from activities.crud.photos import BLOB_CLEANUP_WARNING
from activities.models import Photo
from activities.results import ErrorKind
from activities.storage.base import StorageError
from activities.storage.s3 import S3Storage
from activities.uploads import UploadedFile
from activities.views import DRIVE_VIEW
from support import PNG_BYTES, ApiTestCase


class TestDrive(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.user, self.headers = self.create_user()

    def stored_files(self):
        found = []
        for dirpath, _, filenames in os.walk(self.media_root):
            found.extend(os.path.join(dirpath, f) for f in filenames)
        return found

    def test_upload_stores_blob_and_row(self):
        response = self.upload("/drive/", self.headers, filename="beach.png", name="Beach day")
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["name"], "Beach day")
        self.assertEqual(body["size"], len(PNG_BYTES))
        self.assertEqual(body["mime_type"], "image/png")
        self.assertTrue(body["storage_path"].startswith(f"{self.user.id}/"))
        self.assertTrue(body["storage_path"].endswith(".png"))
        self.assertEqual(body["url"], f"/files/{body['storage_path']}")
        self.assertEqual(len(self.stored_files()), 1)

        served = self.client.get(body["url"])
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, PNG_BYTES)

    def test_name_defaults_to_filename(self):
        body = self.upload("/drive/", self.headers, filename="sunset.png").json()
        self.assertEqual(body["name"], "sunset.png")

    def test_non_image_is_rejected_before_storage(self):
        response = self.upload("/drive/", self.headers, filename="notes.txt", content=b"hello", content_type="text/plain")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"]["error"], "Only image files are allowed")
        self.assertEqual(self.count(Photo), 0)
        self.assertEqual(self.stored_files(), [])

    def test_oversized_file_is_rejected(self):
        big = b"\x00" * (5 * 1024 * 1024 + 1)
        response = self.upload("/drive/", self.headers, filename="huge.png", content=big)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"]["error"], "File size must be less than 5MB")
        self.assertEqual(self.count(Photo), 0)
        self.assertEqual(self.stored_files(), [])

    def test_missing_file_is_rejected(self):
        response = self.client.post("/drive/", headers=self.headers, data={"name": "nothing"})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"]["error"], "No file provided")

    def test_failed_upload_leaves_no_row(self):
        file = UploadedFile("beach.png", "image/png", PNG_BYTES)
        with mock.patch.object(self.storage, "upload", side_effect=StorageError("disk full")):
            result = photos.upload_photo(self.db, self.user, file, None, self.storage, self.views)
        self.assertFalse(result.success)
        self.assertEqual(result.kind, ErrorKind.UPSTREAM)
        self.assertEqual(result.error, "Failed to upload file")
        self.assertEqual(self.count(Photo), 0)
        self.assertEqual(self.views.version(DRIVE_VIEW), 0)

    def test_failed_bucket_setup_stops_upload(self):
        file = UploadedFile("beach.png", "image/png", PNG_BYTES)
        with mock.patch.object(self.storage, "ensure_bucket", side_effect=StorageError("denied")):
            result = photos.upload_photo(self.db, self.user, file, None, self.storage, self.views)
        self.assertEqual(result.error, "Failed to prepare storage")
        self.assertEqual(self.stored_files(), [])

    def test_unreachable_s3_while_creating_bucket(self):
        s3 = mock.MagicMock()
        s3.head_bucket.side_effect = ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")
        s3.create_bucket.side_effect = EndpointConnectionError(endpoint_url="https://s3")
        storage = S3Storage("activities-photos", "eu-west-1", client=s3)
        file = UploadedFile("beach.png", "image/png", PNG_BYTES)

        result = photos.upload_photo(self.db, self.user, file, None, storage, self.views)

        self.assertFalse(result.success)
        self.assertEqual(result.kind, ErrorKind.UPSTREAM)
        self.assertEqual(result.error, "Failed to prepare storage")
        s3.put_object.assert_not_called()
        self.assertEqual(self.count(Photo), 0)

    def test_failed_insert_keeps_blob_for_sweeper(self):
        file = UploadedFile("beach.png", "image/png", PNG_BYTES)
        with mock.patch.object(self.db, "commit", side_effect=SQLAlchemyError("db down")):
            result = photos.upload_photo(self.db, self.user, file, None, self.storage, self.views)
        self.assertFalse(result.success)
        self.assertEqual(result.kind, ErrorKind.UPSTREAM)
        self.assertEqual(result.error, "Failed to create photo")
        self.assertEqual(self.count(Photo), 0)
        self.assertEqual(len(self.stored_files()), 1)

    def test_rename(self):
        photo_id = self.upload("/drive/", self.headers).json()["id"]
        response = self.client.patch(f"/drive/{photo_id}", json={"name": "  Renamed "}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Renamed")

        response = self.client.patch(f"/drive/{photo_id}", json={"name": ""}, headers=self.headers)
        self.assertEqual(response.status_code, 422)

    def test_delete_removes_blob_and_row(self):
        photo_id = self.upload("/drive/", self.headers).json()["id"]
        response = self.client.delete(f"/drive/{photo_id}", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"deleted": True, "warnings": []})
        self.assertEqual(self.count(Photo), 0)
        self.assertEqual(self.stored_files(), [])

    def test_blob_removal_failure_is_a_warning(self):
        photo_id = self.upload("/drive/", self.headers).json()["id"]
        with mock.patch.object(self.storage, "remove", side_effect=StorageError("denied")):
            response = self.client.delete(f"/drive/{photo_id}", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["warnings"], [BLOB_CLEANUP_WARNING])
        self.assertEqual(self.count(Photo), 0)

    def test_other_users_photos_are_invisible(self):
        photo_id = self.upload("/drive/", self.headers).json()["id"]
        _, other_headers = self.create_user("u2@example.com", "User Two")
        self.assertEqual(self.client.get("/drive/", headers=other_headers).json(), [])
        response = self.client.delete(f"/drive/{photo_id}", headers=other_headers)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"]["error"], "Photo not found")
        self.assertEqual(self.count(Photo), 1)
        self.assertEqual(len(self.stored_files()), 1)

    def test_list_newest_first_and_search(self):
        self.upload("/drive/", self.headers, name="Mountain")
        self.upload("/drive/", self.headers, name="Lake")
        names = [p["name"] for p in self.client.get("/drive/", headers=self.headers).json()]
        self.assertEqual(names, ["Lake", "Mountain"])

        found = self.client.get("/drive/?search=moun", headers=self.headers).json()
        self.assertEqual([p["name"] for p in found], ["Mountain"])

    def test_missing_file_is_not_served(self):
        response = self.client.get(f"/files/{self.user.id}/nope.png")
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
