"""Deck creation utilities for Stacked."""

from __future__ import annotations

from random import Random
from typing import List, Optional, Sequence, Tuple

from .cards import Card, Rank, Suit

DECK_SIZE = 52


def build_deck() -> List[Card]:
    """Return the ordered 52-card deck."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


def shuffled_deck(rng: Optional[Random] = None) -> List[Card]:
    cards = build_deck()
    if rng is None:
        rng = Random()
    rng.shuffle(cards)
    return cards


def deal_order(dealer_index: int, players: int = 3) -> List[int]:
    """Seats in the order they receive cards, starting with the dealer seat."""
    return [(dealer_index + offset) % players for offset in range(players)]


def deal_opening(
    deck: Sequence[Card],
    *,
    players: int = 3,
    hand_size: int = 4,
    board_size: int = 4,
    dealer_index: int = 0,
) -> Tuple[List[List[Card]], List[Card], List[Card]]:
    """Deal the opening hands and board.

    Returns ``(hands, board, remaining_deck)`` where ``hands`` is indexed by seat.
    """
    cards = list(deck)
    if len(cards) != DECK_SIZE or len(set(cards)) != DECK_SIZE:
        raise ValueError(f"Deck must contain exactly {DECK_SIZE} unique cards.")

    hands: List[List[Card]] = [[] for _ in range(players)]
    for slot, seat in enumerate(deal_order(dealer_index, players)):
        hands[seat] = cards[slot * hand_size : (slot + 1) * hand_size]

    dealt = players * hand_size
    board = cards[dealt : dealt + board_size]
    remaining = cards[dealt + board_size :]
    return hands, board, remaining
