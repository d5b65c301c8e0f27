"""
Dependency wiring for the FastAPI app.

Collaborators are built once per app in `main.create_app` and kept on
`app.state`; route handlers reach them through these functions so tests can
swap any of them.
"""

from __future__ import annotations

from fastapi import Request

from . import config
from .catalog import PokemonCatalog
from .identity import CognitoIdentityProvider, IdentityProvider
from .storage.base import StorageBackend
from .storage.local import LocalStorage
from .suggestions import GeminiProvider, OpenAIProvider, SuggestionProvider
from .views import ViewInvalidator


def build_identity_provider() -> IdentityProvider:
    return CognitoIdentityProvider(
        region=config.COGNITO_REGION,
        user_pool_id=config.COGNITO_USER_POOL_ID or "",
        client_id=config.COGNITO_USER_POOL_WEB_CLIENT_ID or "",
        client_secret=config.COGNITO_USER_POOL_WEB_CLIENT_SECRET,
    )


def build_storage() -> StorageBackend:
    if config.S3_BUCKET_NAME:
        from .storage.s3 import S3Storage

        return S3Storage(
            bucket=config.S3_BUCKET_NAME,
            region=config.AWS_REGION,
            public_base_url=config.S3_PUBLIC_BASE_URL,
        )
    return LocalStorage(root=config.MEDIA_ROOT, bucket=config.PHOTOS_BUCKET)


def build_suggestion_providers() -> list[SuggestionProvider]:
    available = {}
    if config.GEMINI_API_KEY:
        available["gemini"] = lambda: GeminiProvider(config.GEMINI_API_KEY, config.GEMINI_MODEL)
    if config.OPENAI_API_KEY:
        available["openai"] = lambda: OpenAIProvider(config.OPENAI_API_KEY, config.OPENAI_MODEL)
    return [available[name]() for name in config.AI_PROVIDER_ORDER if name in available]


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_storage(request: Request) -> StorageBackend:
    return request.app.state.storage


def get_views(request: Request) -> ViewInvalidator:
    return request.app.state.views


def get_catalog(request: Request) -> PokemonCatalog:
    return request.app.state.catalog


def get_suggestion_providers(request: Request) -> list[SuggestionProvider]:
    return request.app.state.suggestion_providers
