"""Heuristic move evaluation for automated players."""

from __future__ import annotations

from random import Random
from typing import Optional, Sequence

from engine.actions import Action, Move
from engine.capture import count_sum_subsets, enumerate_captures
from engine.cards import Card, total_points
from engine.state import RoundState

from .base import BotStrategy
from .profiles import DifficultyProfile, get_profile

MULTI_CARD_BONUS = 2
HIGH_VALUE_BONUS = 3
HIGH_VALUE_POINTS = 10
RANK_EXPOSURE_WEIGHT = 0.5
SUM_EXPOSURE_WEIGHT = 0.3


def score_capture(hand_card: Card, board_cards: Sequence[Card]) -> float:
    """Points taken, plus bonuses for clearing several cards and for high cards."""
    captured = [hand_card, *board_cards]
    score = total_points(captured)
    if len(board_cards) > 1:
        score += MULTI_CARD_BONUS * (len(board_cards) - 1)
    score += HIGH_VALUE_BONUS * sum(1 for card in captured if card.point_score >= HIGH_VALUE_POINTS)
    return score


def placement_risk(card: Card, board: Sequence[Card]) -> float:
    """How exposed ``card`` is to being captured once it sits on the board."""
    risk = 0.0
    matches = sum(1 for other in board if other.rank is card.rank)
    if matches:
        risk += (matches + 1) * card.point_score * RANK_EXPOSURE_WEIGHT
    if card.capture_value is not None:
        risk += count_sum_subsets(card.capture_value, board) * card.point_score * SUM_EXPOSURE_WEIGHT
    return risk


def score_placement(card: Card, board: Sequence[Card], profile: DifficultyProfile) -> float:
    return -card.point_score - profile.risk_tolerance * placement_risk(card, board)


def best_capture(hand: Sequence[Card], board: Sequence[Card]) -> Optional[Move]:
    best: Optional[Move] = None
    for card in hand:
        for subset in enumerate_captures(card, board):
            score = score_capture(card, subset)
            if best is None or score > best.score:
                best = Move(Action.capture(card, subset), score=score, reasoning=f"Capture worth {score} points")
    return best


def best_placement(hand: Sequence[Card], board: Sequence[Card], profile: DifficultyProfile) -> Optional[Move]:
    best: Optional[Move] = None
    for card in hand:
        score = score_placement(card, board, profile)
        if best is None or score > best.score:
            risk = placement_risk(card, board)
            best = Move(Action.place(card), score=score, reasoning=f"Place {card.card_id} (risk: {risk:g})")
    return best


def random_move(hand: Sequence[Card], board: Sequence[Card], rng: Random) -> Move:
    card = rng.choice(list(hand))
    captures = enumerate_captures(card, board)
    if captures and rng.random() > 0.5:
        return Move(Action.capture(card, rng.choice(captures)), reasoning="Random capture")
    return Move(Action.place(card), reasoning="Random placement")


def choose_move(
    hand: Sequence[Card],
    board: Sequence[Card],
    profile: DifficultyProfile,
    rng: Optional[Random] = None,
) -> Optional[Move]:
    """Pick a move for ``hand`` against ``board``; ``None`` when the hand is empty."""
    if not hand:
        return None

    move = best_capture(hand, board)
    if move is None or move.score < profile.capture_threshold:
        placement = best_placement(hand, board, profile)
        if move is None or (placement is not None and placement.score > move.score):
            move = placement
    assert move is not None

    if profile.randomness > 0:
        rng = rng or Random()
        if rng.random() < profile.randomness:
            move = random_move(hand, board, rng)
    return move


class HeuristicBot(BotStrategy):
    name = "Heuristic"

    def __init__(self, profile: DifficultyProfile | str = "intermediate", seed: Optional[int] = None) -> None:
        self.profile = get_profile(profile) if isinstance(profile, str) else profile
        self._rng = Random(seed)

    def choose_move(self, state: RoundState, player: int) -> Optional[Move]:
        return choose_move(state.players[player].hand, state.board, self.profile, self._rng)
