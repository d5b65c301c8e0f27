import unittest

from activities.crud import food
from activities.models import FoodPhoto, FoodReview
from activities.results import ErrorKind
from support import ApiTestCase


class TestFood(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.user, self.headers = self.create_user()
        self.photo_id = self.upload("/food/", self.headers, name="Ramen").json()["id"]

    def review(self, rating, content="Tasty", photo_id=None, headers=None):
        return self.client.post(
            f"/food/{photo_id or self.photo_id}/reviews",
            json={"content": content, "rating": rating},
            headers=headers or self.headers,
        )

    def test_food_photos_are_stored_under_food_prefix(self):
        photo = self.client.get(f"/food/{self.photo_id}", headers=self.headers).json()["photo"]
        self.assertTrue(photo["storage_path"].startswith(f"{self.user.id}/food/"))

    def test_average_rating(self):
        self.assertEqual(self.review("4").status_code, 201)
        self.assertEqual(self.review(2).status_code, 201)

        detail = self.client.get(f"/food/{self.photo_id}", headers=self.headers).json()
        self.assertEqual(detail["review_count"], 2)
        self.assertEqual(detail["average_rating"], 3.0)
        self.assertEqual(detail["photo"]["name"], "Ramen")
        self.assertEqual({r["rating"] for r in detail["reviews"]}, {"4", "2"})

    def test_no_reviews_average_is_zero(self):
        detail = self.client.get(f"/food/{self.photo_id}", headers=self.headers).json()
        self.assertEqual(detail["review_count"], 0)
        self.assertEqual(detail["average_rating"], 0.0)

    def test_rating_out_of_range_is_rejected(self):
        for rating in ("0", "6", "12", "a", "", None, 3.5):
            response = self.review(rating)
            self.assertEqual(response.status_code, 422, rating)
            self.assertEqual(response.json()["detail"]["error"], "Rating must be between 1 and 5")
        self.assertEqual(self.count(FoodReview), 0)

    def test_review_content_required(self):
        response = self.review("5", content="   ")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"]["error"], "Review content is required")

    def test_review_of_unknown_photo(self):
        response = self.review("5", photo_id="not-a-uuid")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"]["field_errors"][0]["field"], "food_photo_id")

        response = self.review("5", photo_id="00000000-0000-4000-8000-000000000000")
        self.assertEqual(response.status_code, 404)

    def test_cannot_review_another_users_photo(self):
        _, other_headers = self.create_user("u2@example.com", "User Two")
        response = self.review("5", headers=other_headers)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.count(FoodReview), 0)

    def test_update_review(self):
        review_id = self.review("3", content="ok").json()["id"]
        response = self.client.patch(f"/food/reviews/{review_id}", json={"content": "great", "rating": 5}, headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["rating"], "5")
        self.assertEqual(response.json()["content"], "great")

        response = self.client.patch(f"/food/reviews/{review_id}", json={"content": "great", "rating": 9}, headers=self.headers)
        self.assertEqual(response.status_code, 422)
        reviews = self.client.get(f"/food/{self.photo_id}/reviews", headers=self.headers).json()
        self.assertEqual(reviews[0]["rating"], "5")

    def test_other_user_cannot_touch_review(self):
        review_id = self.review("3").json()["id"]
        _, other_headers = self.create_user("u2@example.com", "User Two")
        response = self.client.patch(f"/food/reviews/{review_id}", json={"content": "bad", "rating": 1}, headers=other_headers)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"]["error"], "Review not found")
        self.assertEqual(self.client.delete(f"/food/reviews/{review_id}", headers=other_headers).status_code, 404)

    def test_delete_review(self):
        review_id = self.review("3").json()["id"]
        self.assertEqual(self.client.delete(f"/food/reviews/{review_id}", headers=self.headers).status_code, 200)
        self.assertEqual(self.count(FoodReview), 0)

    def test_deleting_photo_removes_its_reviews(self):
        self.review("4")
        self.review("2")
        response = self.client.delete(f"/food/{self.photo_id}", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.count(FoodPhoto), 0)
        self.assertEqual(self.count(FoodReview), 0)
        self.assertEqual(self.client.get(f"/food/{self.photo_id}", headers=self.headers).status_code, 404)

    def test_reviews_listed_newest_first(self):
        self.review("1", content="first")
        self.review("5", content="second")
        reviews = self.client.get(f"/food/{self.photo_id}/reviews", headers=self.headers).json()
        self.assertEqual([r["content"] for r in reviews], ["second", "first"])

    def test_anonymous_review_is_not_authenticated(self):
        result = food.create_food_review(self.db, None, self.photo_id, {"content": "x", "rating": "5"}, self.views)
        self.assertEqual(result.kind, ErrorKind.NOT_AUTHENTICATED)


if __name__ == "__main__":
    unittest.main()
