import hashlib
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .catalog import Catalog, Entity, normalize_name
from .config import MAX_GUESSES
from .guess import Guess, make_guess
from .highlight import is_game_over

logger = logging.getLogger(__name__)


class GuessRejected(Exception):
    """Raised when a submission cannot be turned into a guess."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


def daily_target(catalog: Catalog, day: date) -> Optional[Entity]:
    """Same area for everybody on a given day."""
    entities = catalog.entities
    if not entities:
        return None
    digest = hashlib.sha256(day.isoformat().encode('utf-8')).hexdigest()
    return entities[int(digest, 16) % len(entities)]


class GameSession:
    """One player's guesses for one day. Guesses only ever get appended."""

    def __init__(self, day: date, target: Entity, guesses: Sequence[Guess] = (),
                 max_guesses: int = MAX_GUESSES):
        self.day = day
        self.target = target
        self.max_guesses = max_guesses
        self._guesses: List[Guess] = list(guesses)

    @property
    def guesses(self) -> Tuple[Guess, ...]:
        return tuple(self._guesses)

    @property
    def is_won(self) -> bool:
        return any(guess.distance == 0 for guess in self._guesses)

    @property
    def is_finished(self) -> bool:
        return is_game_over(self._guesses, self.max_guesses)

    @property
    def remaining(self) -> int:
        return max(0, self.max_guesses - len(self._guesses))

    def submit(self, name: str, catalog: Catalog) -> Guess:
        if self.is_finished:
            raise GuessRejected('gameOver', "The game for today is already finished.")
        if any(normalize_name(g.name) == normalize_name(name or '') for g in self._guesses):
            raise GuessRejected('alreadyGuessed', f"'{name}' was already guessed.")
        guess = make_guess(name, self.target, catalog)
        if guess is None:
            raise GuessRejected('unknownName', f"'{name}' is not a known area.")
        self._guesses.append(guess)
        logger.info(f"Guess {len(self._guesses)}/{self.max_guesses} for {self.day}: {guess.name}")
        return guess

    def to_dict(self) -> Dict[str, Any]:
        return {
            'day': self.day.isoformat(),
            'guesses': [guess.to_dict() for guess in self._guesses],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], day: date, target: Entity,
                  max_guesses: int = MAX_GUESSES) -> 'GameSession':
        """Restores a stored session; anything from another day starts fresh."""
        if not data or data.get('day') != day.isoformat():
            return cls(day, target, max_guesses=max_guesses)
        guesses = []
        for item in data.get('guesses', []):
            try:
                guesses.append(Guess.from_dict(item))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Dropping unreadable stored guess {item!r}: {e}")
        return cls(day, target, guesses, max_guesses=max_guesses)
