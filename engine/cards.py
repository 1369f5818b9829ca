"""Card-related data structures and helpers for Stacked."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional, Union


class Suit(Enum):
    SPADES = "♠"
    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"

    def __str__(self) -> str:
        return self.name.lower()


class Rank(Enum):
    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    def __str__(self) -> str:
        return self.value


FACE_RANKS = frozenset({Rank.JACK, Rank.QUEEN, Rank.KING})

# Points counted toward the target score.
POINT_SCORES: dict[Rank, int] = {
    rank: 15 if rank is Rank.ACE else 10 if rank in FACE_RANKS or rank is Rank.TEN else 5
    for rank in Rank
}

# Values used for sum captures. Face cards have none and only capture by rank.
CAPTURE_VALUES: dict[Rank, int] = {Rank.ACE: 1}
CAPTURE_VALUES.update({rank: int(rank.value) for rank in Rank if rank.value.isdigit()})

_RANK_BY_LABEL = {rank.value: rank for rank in Rank}
_SUIT_BY_SYMBOL = {suit.value: suit for suit in Suit}


@dataclass(frozen=True)
class Card:
    """Immutable representation of a playing card."""

    rank: Rank
    suit: Suit

    @property
    def card_id(self) -> str:
        return f"{self.rank.value}{self.suit.value}"

    @property
    def point_score(self) -> int:
        return POINT_SCORES[self.rank]

    @property
    def capture_value(self) -> Optional[int]:
        return CAPTURE_VALUES.get(self.rank)

    @property
    def is_face(self) -> bool:
        return self.rank in FACE_RANKS

    def __str__(self) -> str:
        return self.card_id


def total_points(cards: Iterable[Card]) -> int:
    return sum(card.point_score for card in cards)


def parse_card_id(card_id: str) -> Card:
    """Parse ids such as ``"7♠"`` or ``"10♦"``."""
    rank_label, symbol = card_id[:-1], card_id[-1:]
    try:
        return Card(_RANK_BY_LABEL[rank_label.upper()], _SUIT_BY_SYMBOL[symbol])
    except KeyError as exc:
        raise ValueError(f"Unknown card id: {card_id!r}") from exc


def serialize_card(card: Card) -> dict[str, str]:
    return {"id": card.card_id, "rank": card.rank.value, "suit": card.suit.name.lower()}


def deserialize_card(payload: Union[str, Mapping[str, str]]) -> Card:
    if isinstance(payload, str):
        return parse_card_id(payload)
    if "rank" not in payload and "id" in payload:
        return parse_card_id(payload["id"])
    rank_label = str(payload["rank"]).upper()
    suit_name = str(payload["suit"]).upper()
    try:
        return Card(_RANK_BY_LABEL[rank_label], Suit[suit_name])
    except KeyError as exc:
        raise ValueError(f"Unknown card: {payload!r}") from exc


def card_label(card: Card) -> str:
    names = {"A": "Ace", "J": "Jack", "Q": "Queen", "K": "King"}
    return f"{names.get(card.rank.value, card.rank.value)} of {card.suit.name.title()}"
