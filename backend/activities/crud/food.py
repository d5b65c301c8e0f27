from typing import List, Optional

from sqlalchemy.orm import Session

from ..models import FoodPhoto, FoodReview, User
from ..results import ActionResult
from ..storage.base import StorageBackend
from ..uploads import UploadedFile, upload_image
from ..views import FOOD_VIEW, ViewInvalidator, food_detail_view
from . import reviews
from .photos import delete_image, get_image, list_images, rename_image

FOOD_REVIEWS = reviews.ReviewKind(
    parent_model=FoodPhoto,
    review_model=FoodReview,
    parent_field="food_photo_id",
    parent_label="Photo",
    detail_view=food_detail_view,
)


def list_food_photos(db: Session, user: Optional[User], options: Optional[dict] = None) -> ActionResult[List[FoodPhoto]]:
    return list_images(db, user, FoodPhoto, options, "food photo")


def get_food_photo(db: Session, user: Optional[User], photo_id: str) -> ActionResult[FoodPhoto]:
    return get_image(db, user, FoodPhoto, photo_id, "food photo")


def get_food_detail(db: Session, user: Optional[User], photo_id: str) -> ActionResult[dict]:
    return reviews.get_detail(db, user, FOOD_REVIEWS, photo_id)


def upload_food_photo(db: Session, user: Optional[User], file: Optional[UploadedFile], name: Optional[str], storage: StorageBackend, views: ViewInvalidator) -> ActionResult[FoodPhoto]:
    return upload_image(db, user, FoodPhoto, file, name, storage, views, [FOOD_VIEW], prefix="food", label="food photo")


def rename_food_photo(db: Session, user: Optional[User], photo_id: str, data: dict, views: ViewInvalidator) -> ActionResult[FoodPhoto]:
    return rename_image(db, user, FoodPhoto, photo_id, data, views, [FOOD_VIEW, food_detail_view(photo_id)], "food photo")


def delete_food_photo(db: Session, user: Optional[User], photo_id: str, storage: StorageBackend, views: ViewInvalidator) -> ActionResult[None]:
    return delete_image(db, user, FoodPhoto, photo_id, storage, views, [FOOD_VIEW, food_detail_view(photo_id)], "food photo")


def list_food_reviews(db: Session, user: Optional[User], photo_id: str) -> ActionResult[List[FoodReview]]:
    return reviews.list_reviews(db, user, FOOD_REVIEWS, photo_id)


def create_food_review(db: Session, user: Optional[User], photo_id: str, data: dict, views: ViewInvalidator) -> ActionResult[FoodReview]:
    return reviews.create_review(db, user, FOOD_REVIEWS, photo_id, data, views)


def update_food_review(db: Session, user: Optional[User], review_id: str, data: dict, views: ViewInvalidator) -> ActionResult[FoodReview]:
    return reviews.update_review(db, user, FOOD_REVIEWS, review_id, data, views)


def delete_food_review(db: Session, user: Optional[User], review_id: str, views: ViewInvalidator) -> ActionResult[None]:
    return reviews.delete_review(db, user, FOOD_REVIEWS, review_id, views)
