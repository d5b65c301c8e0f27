"""
Lookup against the public Pokemon catalog (PokeAPI), cached in-process.
"""

import logging
import threading
import time
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import requests

from .results import ActionResult, ErrorKind, fail, ok
from .schemas import CatalogPokemon

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


def _image_url(sprites: dict) -> Optional[str]:
    artwork = (sprites.get("other") or {}).get("official-artwork") or {}
    return artwork.get("front_default") or sprites.get("front_default")


def condense(payload: dict) -> CatalogPokemon:
    return CatalogPokemon(
        id=payload["id"],
        name=payload["name"],
        image_url=_image_url(payload.get("sprites") or {}),
        types=[t["type"]["name"] for t in payload.get("types", [])],
        height=payload.get("height"),
        weight=payload.get("weight"),
    )


class PokemonCatalog:
    def __init__(self, base_url: str, cache_seconds: int = 3600, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.cache_seconds = cache_seconds
        self.http = session or requests.Session()
        self._cache: Dict[str, Tuple[float, CatalogPokemon]] = {}
        self._lock = threading.Lock()

    def _cached(self, name: str) -> Optional[CatalogPokemon]:
        with self._lock:
            entry = self._cache.get(name)
            if entry and (time.time() - entry[0]) < self.cache_seconds:
                return entry[1]
            return None

    def search(self, name: str) -> ActionResult[CatalogPokemon]:
        name = (name or "").strip().lower()
        if not name:
            return fail(ErrorKind.VALIDATION, "Please enter a Pokemon name")

        cached = self._cached(name)
        if cached is not None:
            return ok(cached)

        try:
            response = self.http.get(f"{self.base_url}/pokemon/{quote(name, safe='')}", timeout=REQUEST_TIMEOUT)
        except requests.RequestException:
            logger.exception(f"Catalog lookup for {name!r} failed")
            return fail(ErrorKind.UPSTREAM, "Failed to search Pokemon")

        if response.status_code == 404:
            return fail(ErrorKind.NOT_FOUND, "Pokemon not found")
        if not response.ok:
            logger.warning(f"Catalog lookup for {name!r} returned {response.status_code}")
            return fail(ErrorKind.UPSTREAM, "Failed to search Pokemon")

        try:
            pokemon = condense(response.json())
        except (ValueError, KeyError, TypeError):
            logger.exception(f"Unexpected catalog payload for {name!r}")
            return fail(ErrorKind.UPSTREAM, "Failed to search Pokemon")

        with self._lock:
            self._cache[name] = (time.time(), pokemon)
        return ok(pokemon)
