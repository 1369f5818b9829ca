"""Common bot strategy interfaces."""

from __future__ import annotations

from typing import Optional

from engine.actions import Action, Move
from engine.state import RoundState


class BotStrategy:
    """Base class for bot policies."""

    name: str = "BaseBot"

    def on_game_start(self, state: RoundState) -> None:
        """Optional hook invoked when a new game is dealt."""
        return None

    def choose_move(self, state: RoundState, player: int) -> Optional[Move]:
        """Return the move for ``player`` or ``None`` when the hand is empty.

        ``state`` is a snapshot; strategies may inspect it freely.
        """
        hand = state.players[player].hand
        if not hand:
            return None
        return Move(Action.place(hand[0]), reasoning="Default placement")
