import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .auth import get_current_user
from .catalog import PokemonCatalog
from .database import Base, engine
from .dependencies import build_identity_provider, build_storage, build_suggestion_providers
from .guard import access_guard
from .routes import auth, drive, files, food, notes, pokemon, todos
from .schemas import UserOut
from .views import ViewInvalidator

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

ACTIVITIES = [
    {"name": "To-do list", "path": "/todo"},
    {"name": "Drive", "path": "/drive"},
    {"name": "Food reviews", "path": "/food"},
    {"name": "Pokemon", "path": "/pokemon"},
    {"name": "Notes", "path": "/notes"},
]


def create_app() -> FastAPI:
    Base.metadata.create_all(bind=engine)

    app = FastAPI(title="Personal Activities API")

    app.state.identity_provider = build_identity_provider()
    app.state.storage = build_storage()
    app.state.views = ViewInvalidator()
    app.state.catalog = PokemonCatalog(config.POKEAPI_BASE_URL, config.CATALOG_CACHE_SECONDS)
    app.state.suggestion_providers = build_suggestion_providers()

    app.middleware("http")(access_guard)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(todos.router)
    app.include_router(drive.router)
    app.include_router(food.router)
    app.include_router(pokemon.router)
    app.include_router(notes.router)
    app.include_router(files.router)

    @app.get("/")
    def landing(current_user=Depends(get_current_user)):
        if current_user is None:
            return {"authenticated": False, "login": "/auth/login", "signup": "/auth/signup"}
        return {
            "authenticated": True,
            "user": UserOut.model_validate(current_user),
            "activities": ACTIVITIES,
        }

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
