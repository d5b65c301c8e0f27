from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..catalog import PokemonCatalog
from ..crud import pokemon as crud
from ..database import get_db
from ..dependencies import get_catalog, get_suggestion_providers, get_views
from ..schemas import CatalogPokemon, PokemonDetail, PokemonOut, PokemonReviewOut, PokemonSaved, SuggestionsOut
from ..suggestions import get_suggestions
from ..views import POKEMON_VIEW, ViewInvalidator, pokemon_detail_view
from .responses import deleted, unwrap, with_view_version

router = APIRouter(prefix="/pokemon", tags=["pokemon"])


@router.get("/search", response_model=CatalogPokemon, summary="Look up a Pokemon in the public catalog")
def search(name: str = "", catalog: PokemonCatalog = Depends(get_catalog)):
    return unwrap(catalog.search(name))


@router.get("/suggestions", response_model=SuggestionsOut)
def suggestions(context: Optional[str] = None, providers=Depends(get_suggestion_providers)):
    result = get_suggestions(providers, context)
    return SuggestionsOut(suggestions=result.data or [], error=result.error)


@router.get("/", response_model=list[PokemonOut])
def list_all(
    response: Response,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    saved = unwrap(crud.list_pokemon(db, current_user, {"search": search, "sort_by": sort_by, "sort_order": sort_order}))
    with_view_version(response, views, POKEMON_VIEW)
    return saved


@router.post("/", response_model=PokemonSaved)
def save(
    response: Response,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    saved = unwrap(crud.save_pokemon(db, current_user, data, views))
    response.status_code = 201 if saved["created"] else 200
    return saved


@router.get("/{pokemon_id}", response_model=PokemonDetail, summary="Saved Pokemon with its reviews")
def detail(
    pokemon_id: str,
    response: Response,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    found = unwrap(crud.get_pokemon_detail(db, current_user, pokemon_id))
    with_view_version(response, views, pokemon_detail_view(pokemon_id))
    return PokemonDetail(
        pokemon=PokemonOut.model_validate(found["parent"]),
        reviews=[PokemonReviewOut.model_validate(r) for r in found["reviews"]],
        average_rating=found["average_rating"],
        review_count=found["review_count"],
    )


@router.delete("/{pokemon_id}")
def remove(
    pokemon_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return deleted(crud.delete_pokemon(db, current_user, pokemon_id, views))


@router.get("/{pokemon_id}/reviews", response_model=list[PokemonReviewOut])
def list_reviews(pokemon_id: str, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return unwrap(crud.list_pokemon_reviews(db, current_user, pokemon_id))


@router.post("/{pokemon_id}/reviews", response_model=PokemonReviewOut, status_code=201)
def create_review(
    pokemon_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.create_pokemon_review(db, current_user, pokemon_id, data, views))


@router.patch("/reviews/{review_id}", response_model=PokemonReviewOut)
def update_review(
    review_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.update_pokemon_review(db, current_user, review_id, data, views))


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return deleted(crud.delete_pokemon_review(db, current_user, review_id, views))
