"""Stopwatch state machine that turns a live feeding into a saved record."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Protocol

from feeding_tracker.clock import utc_now
from feeding_tracker.domain.errors import DraftValidationError, TimerStateError
from feeding_tracker.domain.feedings import FeedingSession, FeedingTag, Side, parse_side
from feeding_tracker.domain.tags import TagSet

logger = logging.getLogger(__name__)

SAVE_REQUIREMENTS_MESSAGE = (
    "Please select a side and let timer run for at least 1 second"
)


class TimerState(StrEnum):
    """Lifecycle states of a session timer."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


class FeedingCreator(Protocol):
    """Create contract of the record store, as seen by a client interaction."""

    async def create_feeding(
        self,
        side: Side,
        started_at: datetime,
        ended_at: datetime,
        notes: str | None = None,
        tags: list[FeedingTag] | None = None,
    ) -> FeedingSession:
        """Persist a feeding and return it."""


@dataclass
class SessionTimer:
    """Per-interaction stopwatch holding an unsaved feeding draft.

    Elapsed time only grows while ``RUNNING``. Stopping freezes it so notes
    and tags can be edited; resuming continues from the frozen value, so time
    spent stopped never counts towards the feeding. ``save`` derives
    ``started_at`` from the clock at save time minus the elapsed seconds.
    """

    creator: FeedingCreator
    clock: Callable[[], datetime] = field(default=utc_now)
    tick_interval: float = 1.0
    state: TimerState = field(default=TimerState.IDLE, init=False)
    elapsed_seconds: int = field(default=0, init=False)
    side: Side | None = field(default=None, init=False)
    notes: str = field(default="", init=False)
    tags: TagSet = field(default_factory=TagSet, init=False)
    _ticker: asyncio.Task[None] | None = field(default=None, init=False, repr=False)
    _saving: bool = field(default=False, init=False, repr=False)

    def start(self, side: Side | str) -> None:
        """Begin timing a feeding on the given side."""
        self._require(TimerState.IDLE, "start")
        self.side = parse_side(side)
        self.elapsed_seconds = 0
        self._enter_running()

    def tick(self) -> None:
        """Advance the stopwatch by one second while running."""
        if self.state is TimerState.RUNNING:
            self.elapsed_seconds += 1

    def stop(self) -> None:
        """Freeze the elapsed time and open the draft for review."""
        self._require(TimerState.RUNNING, "stop")
        self._leave_running()
        self.state = TimerState.STOPPED

    def resume(self) -> None:
        """Continue timing from the frozen elapsed value."""
        self._require(TimerState.STOPPED, "resume")
        self._require_not_saving("resume")
        self._enter_running()

    async def save(self) -> FeedingSession:
        """Persist the draft and return to idle.

        Raises ``DraftValidationError`` without contacting the store when no
        side is selected or no time has elapsed. Store failures propagate and
        leave the draft in ``STOPPED``. While a save is pending, ``save``,
        ``resume`` and ``cancel`` raise ``TimerStateError``.
        """
        self._require(TimerState.STOPPED, "save")
        self._require_not_saving("save")
        if self.side is None or self.elapsed_seconds == 0:
            raise DraftValidationError(SAVE_REQUIREMENTS_MESSAGE)

        ended_at = self.clock()
        started_at = ended_at - timedelta(seconds=self.elapsed_seconds)
        tags = self.tags.to_list()
        self._saving = True
        try:
            feeding = await self.creator.create_feeding(
                side=self.side,
                started_at=started_at,
                ended_at=ended_at,
                notes=self.notes or None,
                tags=tags or None,
            )
        finally:
            self._saving = False
        logger.info(
            "Timer saved feeding",
            extra={"feeding_id": str(feeding.id), "seconds": self.elapsed_seconds},
        )
        self._reset()
        return feeding

    def cancel(self) -> None:
        """Discard the draft and return to idle."""
        if self.state is TimerState.IDLE:
            raise TimerStateError("Cannot cancel an idle timer")
        self._require_not_saving("cancel")
        self._reset()

    def format_elapsed(self) -> str:
        """Return elapsed time as ``MM:SS``."""
        minutes, seconds = divmod(self.elapsed_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def _require(self, expected: TimerState, action: str) -> None:
        if self.state is not expected:
            raise TimerStateError(f"Cannot {action} while {self.state.value}")

    def _require_not_saving(self, action: str) -> None:
        if self._saving:
            raise TimerStateError(f"Cannot {action} while a save is in progress")

    def _enter_running(self) -> None:
        self.state = TimerState.RUNNING
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous drivers call tick() themselves.
            return
        self._ticker = loop.create_task(self._run_ticks())

    def _leave_running(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _run_ticks(self) -> None:
        while self.state is TimerState.RUNNING:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    def _reset(self) -> None:
        self._leave_running()
        self.state = TimerState.IDLE
        self.elapsed_seconds = 0
        self.side = None
        self.notes = ""
        self.tags = TagSet()
