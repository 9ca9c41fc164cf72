# radiocalico/client/rating.py
"""
Optimistic like/dislike handling for the currently playing song.

A submission moves the song's view through

    IDLE -> PREDICTING -> RECONCILING -> COMMITTED | ROLLED_BACK (-> IDLE)

The prediction is written to the state store before the request is sent.
The server's totals replace it when the response arrives; on failure the
prediction is dropped and the totals are fetched again. Every response is
checked against the view it was requested for, so a late answer for a
previous song never lands on the next one.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from ..models.aggregate import Aggregate
from ..services.errors import RatingError
from .state import AppState, song_id_for

log = logging.getLogger(__name__)

LIKE = 1
DISLIKE = -1

DEFAULT_COOLDOWN_SECONDS = 1.0
FEEDBACK_SECONDS = 2.0
ERROR_SECONDS = 3.0


class RatingPhase(str, Enum):
    IDLE = "idle"
    PREDICTING = "predicting"
    RECONCILING = "reconciling"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


# one submission per song at a time; ROLLED_BACK lasts while the re-fetch runs
IN_FLIGHT = frozenset({RatingPhase.PREDICTING, RatingPhase.RECONCILING, RatingPhase.ROLLED_BACK})


@dataclass
class RatingView:
    """Client-side shadow of one song's rating. Replaced on every song change."""
    song_id: str
    artist: Optional[str] = None
    title: Optional[str] = None
    thumbs_up: int = 0
    thumbs_down: int = 0
    user_rating: Optional[int] = None
    last_rating_time: Optional[float] = None
    phase: RatingPhase = RatingPhase.IDLE


class RatingController:

    def __init__(
        self,
        app_state: AppState,
        api,
        user_id: str,
        cooldown: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.app_state = app_state
        self.api = api
        self.user_id = user_id
        self.cooldown = cooldown
        self.clock = clock
        self.view = self._new_view()
        self._tasks: set = set()
        self._timers: set = set()
        self._unsubscribe = app_state.subscribe("currentTrack", self._on_track_changed)

    @property
    def phase(self) -> RatingPhase:
        return self.view.phase

    # --- user intents ---

    async def like(self) -> Optional[Aggregate]:
        return await self.submit(LIKE)

    async def dislike(self) -> Optional[Aggregate]:
        return await self.submit(DISLIKE)

    async def submit(self, requested: int) -> Optional[Aggregate]:
        """
        Rate the current song. Returns the server totals, or None when the
        submission was dropped, failed, or answered after the song changed.
        """
        view = self.view
        if view.phase in IN_FLIGHT:
            log.debug("rating for %s dropped: previous submission still %s", view.song_id, view.phase.value)
            return None

        now = self.clock()
        if view.last_rating_time is not None and now - view.last_rating_time < self.cooldown:
            log.debug("rating for %s dropped: within cooldown", view.song_id)
            return None

        problems = self._validate(view)
        if problems:
            log.warning("rating blocked: %s", ", ".join(problems))
            self.show_error(problems[0])
            return None

        view.last_rating_time = now
        previous = view.user_rating
        target = 0 if previous == requested else requested
        last_good = (view.thumbs_up, view.thumbs_down, view.user_rating)

        self._set_phase(view, RatingPhase.PREDICTING)
        self._predict(view, previous, target)

        self._set_phase(view, RatingPhase.RECONCILING)
        try:
            aggregate = await self.api.rate_song(view.song_id, view.artist, view.title, target, self.user_id)
        except RatingError as e:
            log.error("Failed to submit rating for %s: %s", view.song_id, e)
            if view is not self.view:
                return None
            self._set_phase(view, RatingPhase.ROLLED_BACK)
            view.thumbs_up, view.thumbs_down, view.user_rating = last_good
            self._publish(view, loading=False)
            self.show_error("Failed to submit rating. Please try again.")
            await self.load_ratings(view)
            return None

        if view is not self.view:
            log.info("discarding rating response for %s: song changed", view.song_id)
            return None

        # server totals win, even over a prediction that still looks right
        view.thumbs_up = aggregate.thumbs_up
        view.thumbs_down = aggregate.thumbs_down
        view.user_rating = target or None
        self._publish(view, loading=False)
        self._set_phase(view, RatingPhase.COMMITTED)
        self.show_feedback(target)
        return aggregate

    # --- authoritative state ---

    async def load_ratings(self, view: Optional[RatingView] = None) -> bool:
        """Fetch totals and the listener's own rating for ``view`` (default: current)."""
        view = view or self.view
        if not view.song_id:
            return False

        if view is self.view:
            self.app_state.set("rating.isLoading", True)
        try:
            snapshot = await self.api.get_song_ratings(view.song_id, self.user_id)
        except RatingError as e:
            log.error("Failed to load ratings for %s: %s", view.song_id, e)
            if view is self.view and view.phase not in (RatingPhase.PREDICTING, RatingPhase.RECONCILING):
                self.app_state.set("rating.isLoading", False)
                self._set_phase(view, RatingPhase.IDLE)
            return False

        if view is not self.view:
            log.debug("discarding ratings for %s: song changed", view.song_id)
            return False
        if view.phase in (RatingPhase.PREDICTING, RatingPhase.RECONCILING):
            # the pending submission's response is authoritative
            log.debug("discarding ratings for %s: submission in flight", view.song_id)
            return False

        view.thumbs_up = snapshot.aggregate.thumbs_up
        view.thumbs_down = snapshot.aggregate.thumbs_down
        view.user_rating = snapshot.user_rating or None
        self._publish(view, loading=False)
        self._set_phase(view, RatingPhase.IDLE)
        return True

    # --- song changes ---

    def _on_track_changed(self, track, _old):
        track = track or {}
        song_id = song_id_for(track.get("artist"), track.get("title"))
        if song_id == self.view.song_id:
            return

        self.view = self._new_view()
        self._publish(self.view, loading=False)
        self._set_phase(self.view, RatingPhase.IDLE)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.debug("no running loop; ratings for %s load on next load_ratings()", song_id)
            return
        task = loop.create_task(self.load_ratings(self.view))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for background loads started by song changes."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # --- feedback ---

    def show_feedback(self, rating: int) -> None:
        message = {
            LIKE: "👍 Thanks for the feedback!",
            DISLIKE: "👎 Thanks for the feedback!",
        }.get(rating, "Rating removed")
        self.show_message(message, FEEDBACK_SECONDS)

    def show_error(self, message: str) -> None:
        self.show_message(f"❌ {message}", ERROR_SECONDS)

    def show_message(self, message: str, duration: float) -> None:
        original = self.app_state.get("audioPlayer.status")
        self.app_state.set("audioPlayer.status", message)

        def restore():
            self._timers.discard(handle)
            # only if nothing else replaced the message meanwhile
            if self.app_state.get("audioPlayer.status") == message:
                self.app_state.set("audioPlayer.status", original)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        handle = loop.call_later(duration, restore)
        self._timers.add(handle)

    # --- stats ---

    def get_rating_stats(self) -> dict:
        up, down = self.view.thumbs_up, self.view.thumbs_down
        total = up + down
        return {
            "thumbsUp": up,
            "thumbsDown": down,
            "total": total,
            "percentage": round(up / total * 100) if total else 0,
            "userRating": self.view.user_rating,
        }

    def export_data(self) -> dict:
        return {
            "songId": self.view.song_id,
            "track": self.app_state.get("currentTrack"),
            "ratings": self.get_rating_stats(),
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }

    def close(self) -> None:
        self._unsubscribe()
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        for task in list(self._tasks):
            task.cancel()

    # --- internals ---

    def _new_view(self) -> RatingView:
        return RatingView(
            song_id=self.app_state.current_song_id(),
            artist=self.app_state.get("currentTrack.artist"),
            title=self.app_state.get("currentTrack.title"),
        )

    def _validate(self, view: RatingView) -> list[str]:
        problems = []
        if not view.song_id:
            problems.append("No song is playing")
        if not (view.artist and view.title):
            problems.append("Song details are not available yet")
        if not (self.user_id or "").strip():
            problems.append("Listener id is missing")
        return problems

    def _predict(self, view: RatingView, previous: Optional[int], target: int) -> None:
        up, down = view.thumbs_up, view.thumbs_down
        if previous == LIKE:
            up -= 1
        elif previous == DISLIKE:
            down -= 1
        if target == LIKE:
            up += 1
        elif target == DISLIKE:
            down += 1

        view.thumbs_up = max(0, up)
        view.thumbs_down = max(0, down)
        view.user_rating = target or None
        self._publish(view, loading=True)

    def _publish(self, view: RatingView, loading: bool) -> None:
        if view is not self.view:
            return
        self.app_state.set_batch({
            "rating.thumbsUp": view.thumbs_up,
            "rating.thumbsDown": view.thumbs_down,
            "rating.userRating": view.user_rating,
            "rating.isLoading": loading,
        })

    def _set_phase(self, view: RatingView, phase: RatingPhase) -> None:
        view.phase = phase
        if view is self.view:
            self.app_state.set("rating.phase", phase.value)
