import logging
import threading
from typing import Dict

logger = logging.getLogger(__name__)

TODO_VIEW = "/todo"
DRIVE_VIEW = "/drive"
FOOD_VIEW = "/food"
POKEMON_VIEW = "/pokemon"
NOTES_VIEW = "/notes"
LAYOUT_VIEW = "/"


def food_detail_view(photo_id: str) -> str:
    return f"{FOOD_VIEW}/{photo_id}"


def pokemon_detail_view(pokemon_id: str) -> str:
    return f"{POKEMON_VIEW}/{pokemon_id}"


class ViewInvalidator:
    """
    Tracks a version number per view path. A mutation bumps the version of
    every view that renders the changed rows; readers compare versions to
    know when their cached copy is stale.
    """

    def __init__(self):
        self._versions: Dict[str, int] = {}
        self._lock = threading.Lock()

    def invalidate(self, path: str) -> int:
        with self._lock:
            version = self._versions.get(path, 0) + 1
            self._versions[path] = version
        logger.debug(f"View {path} invalidated (version {version})")
        return version

    def version(self, path: str) -> int:
        with self._lock:
            return self._versions.get(path, 0)
