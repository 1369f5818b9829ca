"""Structured player actions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Sequence, Tuple

from .cards import Card, serialize_card


class ActionType(Enum):
    CAPTURE = auto()
    PLACE = auto()


@dataclass(frozen=True)
class Action:
    action_type: ActionType
    hand_card: Card
    board_cards: Tuple[Card, ...] = ()

    @classmethod
    def capture(cls, hand_card: Card, board_cards: Sequence[Card]) -> "Action":
        return cls(ActionType.CAPTURE, hand_card, tuple(board_cards))

    @classmethod
    def place(cls, hand_card: Card) -> "Action":
        return cls(ActionType.PLACE, hand_card)

    @property
    def is_capture(self) -> bool:
        return self.action_type is ActionType.CAPTURE


@dataclass(frozen=True)
class Move:
    """An action chosen by a strategy, with the score that justified it."""

    action: Action
    score: float = 0.0
    reasoning: str = ""


def serialize_action(action: Action) -> dict:
    return {
        "type": action.action_type.name.lower(),
        "hand_card": serialize_card(action.hand_card),
        "board_cards": [serialize_card(card) for card in action.board_cards],
    }
