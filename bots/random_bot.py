"""Random baseline bot."""

from __future__ import annotations

import random
from typing import Optional

from engine.actions import Move
from engine.state import RoundState

from .base import BotStrategy
from .evaluator import random_move


class RandomBot(BotStrategy):
    name = "Random"

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def choose_move(self, state: RoundState, player: int) -> Optional[Move]:
        hand = state.players[player].hand
        if not hand:
            return None
        return random_move(hand, state.board, self._rng)
