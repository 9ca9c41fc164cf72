# radiocalico/client/state.py
"""
Keyed pub/sub state for the player client.

Paths are dotted ("rating.thumbsUp"). Listeners subscribe to an exact path
and are called with (value, old_value). Guards registered per path may rewrite
a value before it is stored.
"""
from __future__ import annotations

import copy
import logging
import re
from typing import Any, Callable, Dict, List, Optional

log = logging.getLogger(__name__)

Listener = Callable[[Any, Any], None]
Guard = Callable[["AppState", Any], Any]

_MISSING = object()

DEFAULT_STATE: Dict[str, Any] = {
    "currentTrack": {
        "artist": None,
        "title": None,
        "album": None,
        "artwork": None,
    },
    "audioPlayer": {
        "isPlaying": False,
        "volume": 0.7,
        "elapsedTime": 0,
        "status": "Ready to play",
    },
    "rating": {
        "thumbsUp": 0,
        "thumbsDown": 0,
        "userRating": None,
        "isLoading": False,
        "phase": "idle",
    },
}


def elapsed_time_guard(state: "AppState", value):
    """Elapsed time may only be non-zero while audio is actually playing."""
    if state.get("audioPlayer.isPlaying") is not True and value != 0:
        log.debug("blocked elapsedTime=%r while stopped", value)
        return 0
    return value


def song_id_for(artist: Optional[str], title: Optional[str]) -> str:
    slug = f"{artist or ''}-{title or ''}".lower()
    slug = re.sub(r"[^a-z0-9-]", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class AppState:

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.state: Dict[str, Any] = copy.deepcopy(initial if initial is not None else DEFAULT_STATE)
        self._listeners: Dict[str, List[Listener]] = {}
        self._guards: Dict[str, List[Guard]] = {}
        self.add_guard("audioPlayer.elapsedTime", elapsed_time_guard)

    def get(self, path: str, default=None):
        current = self.state
        for key in path.split("."):
            if not isinstance(current, dict) or key not in current:
                return default
            current = current[key]
        return current

    def set(self, path: str, value) -> None:
        for guard in self._guards.get(path, []):
            value = guard(self, value)

        old_value = self.get(path)
        self._set_nested(path, value)

        for callback in list(self._listeners.get(path, [])):
            try:
                callback(value, old_value)
            except Exception:
                log.exception("Error in state listener for %s", path)

    def set_batch(self, updates: Dict[str, Any]) -> None:
        for path, value in updates.items():
            self.set(path, value)

    def subscribe(self, path: str, callback: Listener) -> Callable[[], None]:
        callbacks = self._listeners.setdefault(path, [])
        if callback not in callbacks:
            callbacks.append(callback)

        def unsubscribe():
            if callback in self._listeners.get(path, []):
                self._listeners[path].remove(callback)

        return unsubscribe

    def add_guard(self, path: str, guard: Guard) -> None:
        self._guards.setdefault(path, []).append(guard)

    def current_song_id(self) -> str:
        return song_id_for(self.get("currentTrack.artist"), self.get("currentTrack.title"))

    def _set_nested(self, path: str, value) -> None:
        *parents, last = path.split(".")
        target = self.state
        for key in parents:
            if not isinstance(target.get(key, _MISSING), dict):
                target[key] = {}
            target = target[key]
        target[last] = value
