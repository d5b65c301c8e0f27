import unittest

from activities.models import Note
from support import ApiTestCase


class TestNotes(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.user, self.headers = self.create_user()

    def test_create_with_empty_content(self):
        response = self.client.post("/notes/", json={"title": "Ideas"}, headers=self.headers)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["content"], "")

    def test_title_required(self):
        response = self.client.post("/notes/", json={"title": "", "content": "body"}, headers=self.headers)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"]["error"], "Title is required")
        self.assertEqual(self.count(Note), 0)

    def test_update(self):
        note_id = self.client.post("/notes/", json={"title": "Ideas", "content": "one"}, headers=self.headers).json()["id"]
        response = self.client.patch(f"/notes/{note_id}", json={"content": "two"}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["title"], "Ideas")
        self.assertEqual(response.json()["content"], "two")

    def test_newest_first_and_search(self):
        self.client.post("/notes/", json={"title": "Groceries"}, headers=self.headers)
        self.client.post("/notes/", json={"title": "Travel plans"}, headers=self.headers)
        titles = [n["title"] for n in self.client.get("/notes/", headers=self.headers).json()]
        self.assertEqual(titles, ["Travel plans", "Groceries"])

        found = self.client.get("/notes/?search=groc", headers=self.headers).json()
        self.assertEqual([n["title"] for n in found], ["Groceries"])

    def test_isolation_and_delete(self):
        note_id = self.client.post("/notes/", json={"title": "Private"}, headers=self.headers).json()["id"]
        _, other_headers = self.create_user("u2@example.com", "User Two")
        self.assertEqual(self.client.get(f"/notes/{note_id}", headers=other_headers).status_code, 404)
        self.assertEqual(self.client.delete(f"/notes/{note_id}", headers=other_headers).status_code, 404)

        self.assertEqual(self.client.delete(f"/notes/{note_id}", headers=self.headers).status_code, 200)
        self.assertEqual(self.count(Note), 0)


if __name__ == "__main__":
    unittest.main()
