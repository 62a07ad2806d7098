"""
Timed reveal of a single guess row.

A row walks NOT_STARTED -> RUNNING -> ENDED. Entering RUNNING arms one
deferred callback on the scheduler; rebinding or unmounting cancels it
before any new state is applied.
"""
import heapq
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Tuple

from .config import SQUARE_ANIMATION_LENGTH_S, translate as default_translate
from .geography import (CELEBRATION, DIRECTION_ARROWS, Direction, format_distance,
                        generate_square_characters, proximity_percent)
from .guess import Guess
from .settings import Settings

logger = logging.getLogger(__name__)

RUNNING_UNITS = 6
COUNTER_UNITS = 5


class AnimationState(str, Enum):
    NOT_STARTED = 'NOT_STARTED'
    RUNNING = 'RUNNING'
    ENDED = 'ENDED'


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with a cancellable call_later, e.g. an asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class _ManualHandle:
    def __init__(self, scheduler: 'ManualScheduler', seq: int):
        self._scheduler = scheduler
        self._seq = seq
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self._scheduler._cancelled.add(self._seq)


class ManualScheduler:
    """Deterministic scheduler driven by a virtual clock. Call advance() to run due callbacks."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, Callable[..., Any], tuple]] = []
        self._cancelled: set = set()
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> _ManualHandle:
        seq = next(self._counter)
        heapq.heappush(self._queue, (self.now + max(0.0, delay), seq, callback, args))
        return _ManualHandle(self, seq)

    @property
    def pending(self) -> int:
        return sum(1 for _, seq, _, _ in self._queue if seq not in self._cancelled)

    def advance(self, seconds: float) -> None:
        deadline = self.now + seconds
        while self._queue and self._queue[0][0] <= deadline:
            when, seq, callback, args = heapq.heappop(self._queue)
            self.now = when
            if seq in self._cancelled:
                self._cancelled.discard(seq)
                continue
            callback(*args)
        self.now = deadline


@dataclass(frozen=True)
class RevealCell:
    glyph: str
    delay: float


@dataclass(frozen=True)
class RowView:
    """What a guess row shows in its current state."""

    state: AnimationState
    cells: Tuple[RevealCell, ...] = ()
    counter_end: int = 0
    counter_duration: float = 0.0
    name: str = ''
    distance: str = ''
    arrow: str = ''
    proximity: str = ''
    bydel_is_correct: Optional[bool] = None
    bydel_title: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'state': self.state.value,
            'cells': [{'glyph': c.glyph, 'delay_ms': round(c.delay * 1000)} for c in self.cells],
            'counter': {'end': self.counter_end, 'duration_ms': round(self.counter_duration * 1000)},
            'name': self.name,
            'distance': self.distance,
            'arrow': self.arrow,
            'proximity': self.proximity,
            'bydel_is_correct': self.bydel_is_correct,
            'bydel_title': self.bydel_title,
        }


class GuessRow:
    def __init__(self, settings: Settings, scheduler: Scheduler,
                 unit_delay: float = SQUARE_ANIMATION_LENGTH_S,
                 translate: Callable[[str], str] = default_translate):
        self.settings = settings
        self.scheduler = scheduler
        self.unit_delay = unit_delay
        self.translate = translate
        self.guess: Optional[Guess] = None
        self.state = AnimationState.NOT_STARTED
        self._timer: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def proximity(self) -> int:
        return proximity_percent(self.guess.distance) if self.guess is not None else 0

    def bind(self, guess: Optional[Guess]) -> None:
        """Attach a (new) guess. A pending reveal for the previous guess never fires."""
        self._cancel_timer()
        self.guess = guess
        self.state = AnimationState.NOT_STARTED
        if guess is None:
            return
        self.state = AnimationState.RUNNING
        generation = self._generation
        self._timer = self.scheduler.call_later(self.unit_delay * RUNNING_UNITS, self._on_timer, generation)

    def unmount(self) -> None:
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        # Bumping the generation first makes any already-dispatched callback a no-op.
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale reveal timer.")
            return
        self._timer = None
        if self.state == AnimationState.RUNNING:
            self.state = AnimationState.ENDED

    def counter_value(self, elapsed: float) -> int:
        """Animated proximity counter, counting from 0 up to the final value."""
        duration = self.unit_delay * COUNTER_UNITS
        if duration <= 0 or elapsed >= duration:
            return self.proximity
        fraction = max(0.0, elapsed) / duration
        return int(self.proximity * fraction)

    def render(self) -> RowView:
        if self.state == AnimationState.NOT_STARTED or self.guess is None:
            return RowView(state=AnimationState.NOT_STARTED)

        proximity = self.proximity
        if self.state == AnimationState.RUNNING:
            squares = generate_square_characters(proximity, self.settings.theme, self.guess.direction)
            cells = tuple(RevealCell(glyph, self.unit_delay * index) for index, glyph in enumerate(squares))
            return RowView(
                state=AnimationState.RUNNING,
                cells=cells,
                counter_end=proximity,
                counter_duration=self.unit_delay * COUNTER_UNITS,
            )

        guess = self.guess
        if guess.distance == 0:
            arrow = CELEBRATION
        else:
            arrow = DIRECTION_ARROWS.get(guess.direction, DIRECTION_ARROWS[Direction.ERROR])
        bydel_is_correct = None
        bydel_title = None
        if self.settings.bydel_helper_mode:
            bydel_is_correct = guess.bydel_is_correct
            bydel_title = self.translate('bydelCorrect' if guess.bydel_is_correct else 'bydelIncorrect')
        return RowView(
            state=AnimationState.ENDED,
            name=guess.name.upper(),
            distance=format_distance(guess.distance, self.settings.distance_unit),
            arrow=arrow,
            proximity=f"{proximity}%",
            bydel_is_correct=bydel_is_correct,
            bydel_title=bydel_title,
        )


def reveal_timeline(guess: Guess, settings: Settings, unit_delay: float = SQUARE_ANIMATION_LENGTH_S,
                    translate: Callable[[str], str] = default_translate) -> dict:
    """Runs a row to completion on a virtual clock and returns both visible stages."""
    scheduler = ManualScheduler()
    row = GuessRow(settings, scheduler, unit_delay=unit_delay, translate=translate)
    row.bind(guess)
    running = row.render()
    scheduler.advance(unit_delay * RUNNING_UNITS)
    ended = row.render()
    row.unmount()
    return {
        'running': running.to_dict(),
        'ended': ended.to_dict(),
        'ended_after_ms': round(unit_delay * RUNNING_UNITS * 1000),
    }
