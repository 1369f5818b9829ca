"""Baseline greedy bot."""

from __future__ import annotations

from typing import Optional

from engine.actions import Action, Move
from engine.capture import enumerate_captures
from engine.cards import total_points
from engine.state import RoundState

from .base import BotStrategy


class GreedyBot(BotStrategy):
    """Take the capture worth the most raw points, otherwise shed the cheapest card."""

    name = "Greedy"

    def choose_move(self, state: RoundState, player: int) -> Optional[Move]:
        hand = state.players[player].hand
        if not hand:
            return None

        best: Optional[Move] = None
        for card in hand:
            for subset in enumerate_captures(card, state.board):
                points = total_points((card, *subset))
                if best is None or points > best.score:
                    best = Move(Action.capture(card, subset), score=points, reasoning=f"Greedy capture for {points}")
        if best is not None:
            return best

        cheapest = min(hand, key=lambda c: (c.point_score, c.capture_value or 0))
        return Move(Action.place(cheapest), score=-cheapest.point_score, reasoning="Shed cheapest card")
