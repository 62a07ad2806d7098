from typing import Optional, Sequence

from .catalog import normalize_name
from .config import MAX_GUESSES
from .guess import Guess
from .render import MapScene


def is_game_over(guesses: Sequence[Guess], max_guesses: int = MAX_GUESSES) -> bool:
    return len(guesses) >= max_guesses or any(guess.distance == 0 for guess in guesses)


def apply_highlights(winner_name: Optional[str], guesses: Sequence[Guess], scene: MapScene,
                     hide_unguessed_labels: bool, max_guesses: int = MAX_GUESSES) -> MapScene:
    """
    Colours guessed nodes and decides which labels are shown.

    A guess naming the winner turns its node "correct" and reveals every label.
    Any other matched guess turns its node "incorrect" and reveals only that
    label. Guesses that match no node are ignored. Once the game is over all
    labels are shown.
    """
    winner = normalize_name(winner_name) if winner_name else None

    if hide_unguessed_labels:
        scene.hide_all_labels()

    for guess in guesses:
        node = scene.node_by_label(guess.name)
        if node is None:
            continue
        if winner is not None and normalize_name(node.label) == winner:
            scene.set_fill(node.id, scene.theme['node_correct_fill'])
            scene.show_all_labels()
            continue
        scene.set_fill(node.id, scene.theme['node_incorrect_fill'])
        scene.show_label(node.id)

    if is_game_over(guesses, max_guesses):
        scene.show_all_labels()
    return scene
