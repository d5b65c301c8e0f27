from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..crud import food as crud
from ..database import get_db
from ..dependencies import get_storage, get_views
from ..schemas import FoodPhotoDetail, FoodReviewOut, PhotoOut
from ..storage.base import StorageBackend
from ..views import FOOD_VIEW, ViewInvalidator, food_detail_view
from .responses import deleted, unwrap, with_view_version
from .uploads import read_upload

router = APIRouter(prefix="/food", tags=["food"])


@router.get("/", response_model=list[PhotoOut])
def list_all(
    response: Response,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    photos = unwrap(crud.list_food_photos(db, current_user, {"search": search, "sort_by": sort_by, "sort_order": sort_order}))
    with_view_version(response, views, FOOD_VIEW)
    return photos


@router.post("/", response_model=PhotoOut, status_code=201, summary="Upload food photo")
def upload(
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.upload_food_photo(db, current_user, read_upload(file), name, storage, views))


@router.get("/{photo_id}", response_model=FoodPhotoDetail, summary="Food photo with its reviews")
def detail(
    photo_id: str,
    response: Response,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    found = unwrap(crud.get_food_detail(db, current_user, photo_id))
    with_view_version(response, views, food_detail_view(photo_id))
    return FoodPhotoDetail(
        photo=PhotoOut.model_validate(found["parent"]),
        reviews=[FoodReviewOut.model_validate(r) for r in found["reviews"]],
        average_rating=found["average_rating"],
        review_count=found["review_count"],
    )


@router.patch("/{photo_id}", response_model=PhotoOut)
def rename(
    photo_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.rename_food_photo(db, current_user, photo_id, data, views))


@router.delete("/{photo_id}")
def remove(
    photo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
    views: ViewInvalidator = Depends(get_views),
):
    return deleted(crud.delete_food_photo(db, current_user, photo_id, storage, views))


@router.get("/{photo_id}/reviews", response_model=list[FoodReviewOut])
def list_reviews(photo_id: str, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return unwrap(crud.list_food_reviews(db, current_user, photo_id))


@router.post("/{photo_id}/reviews", response_model=FoodReviewOut, status_code=201)
def create_review(
    photo_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.create_food_review(db, current_user, photo_id, data, views))


@router.patch("/reviews/{review_id}", response_model=FoodReviewOut)
def update_review(
    review_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.update_food_review(db, current_user, review_id, data, views))


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return deleted(crud.delete_food_review(db, current_user, review_id, views))
