"""Capture legality and capture enumeration."""

from __future__ import annotations

from itertools import combinations
from typing import Iterable, List, Sequence, Tuple

from .cards import Card


def is_legal_capture(hand_card: Card, board_subset: Sequence[Card]) -> bool:
    """Return True if ``hand_card`` may take exactly ``board_subset``.

    Two independent rule families apply: every board card shares the hand
    card's rank, or every card (hand and board) has a capture value and the
    board values sum to the hand card's value.
    """
    cards = list(board_subset)
    if not cards:
        return False

    if all(card.rank is hand_card.rank for card in cards):
        return True

    target = hand_card.capture_value
    if target is None:
        return False
    values = [card.capture_value for card in cards]
    if any(value is None for value in values):
        return False
    return sum(values) == target


def _candidates(hand_card: Card, board: Sequence[Card]) -> List[Card]:
    # Cards that can appear in at least one legal subset for this hand card.
    target = hand_card.capture_value
    keep = []
    for card in board:
        if card.rank is hand_card.rank:
            keep.append(card)
        elif target is not None and card.capture_value is not None and card.capture_value <= target:
            keep.append(card)
    return keep


def enumerate_captures(hand_card: Card, board: Iterable[Card]) -> List[Tuple[Card, ...]]:
    """Return every non-empty board subset ``hand_card`` can legally capture.

    Subsets are yielded smallest first, each keeping board order.
    """
    pool = _candidates(hand_card, list(board))
    captures: List[Tuple[Card, ...]] = []
    for size in range(1, len(pool) + 1):
        for subset in combinations(pool, size):
            if is_legal_capture(hand_card, subset):
                captures.append(subset)
    return captures


def count_sum_subsets(target: int, board: Iterable[Card]) -> int:
    """Number of non-empty board subsets whose capture values sum to ``target``."""
    values = [card.capture_value for card in board if card.capture_value is not None]
    values = [value for value in values if value <= target]
    count = 0
    for size in range(1, len(values) + 1):
        for subset in combinations(values, size):
            if sum(subset) == target:
                count += 1
    return count
