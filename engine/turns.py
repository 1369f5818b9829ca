"""Turn and round transitions: what happens after each action."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Optional

from .rules_schema import RuleSet
from .state import (
    PLAYER_COUNT,
    InsufficientDeckForDeal,
    JackpotResult,
    LastAction,
    RoundState,
    TurnPhase,
)

logger = logging.getLogger(__name__)


class DecisionKind(Enum):
    CONTINUE_TURN = auto()
    ADVANCE_PLAYER = auto()
    DEAL_NEW_HAND = auto()
    END_ROUND = auto()
    END_GAME = auto()

    @property
    def phase(self) -> TurnPhase:
        return TurnPhase[self.name]


@dataclass(frozen=True)
class Decision:
    kind: DecisionKind
    player: Optional[int] = None
    reason: str = ""


@dataclass(frozen=True)
class DecisionOutcome:
    decision: Decision
    message: str
    current_player: int
    cards_remaining: int
    jackpot: Optional[JackpotResult] = None
    new_round: bool = False


def find_winner(state: RoundState) -> Optional[int]:
    """Highest score at or above the target; ties go to whoever got there first."""
    contenders = [player for player in state.players if player.score >= state.target_score]
    if not contenders:
        return None
    best = max(player.score for player in contenders)
    tied = [player.id for player in contenders if player.score == best]
    for seat in state.threshold_order:
        if seat in tied:
            return seat
    return tied[0]


def find_next_player_with_cards(state: RoundState) -> Optional[int]:
    for offset in range(1, PLAYER_COUNT + 1):
        seat = (state.current_player + offset) % PLAYER_COUNT
        if state.players[seat].hand:
            return seat
    return None


def decide(state: RoundState, *, deal_size: int = 12) -> Decision:
    """Return the next transition for ``state`` without changing it."""
    winner = find_winner(state)
    if winner is not None:
        return Decision(DecisionKind.END_GAME, player=winner, reason="target_reached")

    if state.last_action is LastAction.CAPTURE and state.acting_player.hand:
        return Decision(DecisionKind.CONTINUE_TURN, player=state.current_player, reason="capture_continues")

    if state.cards_in_hands() == 0:
        if len(state.deck) >= deal_size:
            return Decision(DecisionKind.DEAL_NEW_HAND, reason="hands_empty")
        return Decision(DecisionKind.END_ROUND, player=state.last_capturer, reason="deck_exhausted")

    next_player = find_next_player_with_cards(state)
    if next_player is None:
        logger.warning("No player holds cards; dealing as recovery")
        return Decision(DecisionKind.DEAL_NEW_HAND, reason="emergency_deal")
    return Decision(DecisionKind.ADVANCE_PLAYER, player=next_player, reason="normal_turn_advance")


def apply_decision(
    state: RoundState,
    decision: Decision,
    *,
    rules: Optional[RuleSet] = None,
    rng: Optional[Random] = None,
) -> DecisionOutcome:
    """Carry out ``decision`` on ``state``."""
    rules = rules or RuleSet()
    kind = decision.kind
    logger.debug("Applying %s (%s)", kind.name, decision.reason)

    if kind is DecisionKind.END_GAME:
        assert decision.player is not None
        state.finish(decision.player)
        winner = state.players[decision.player]
        logger.info("%s wins the game with %d points", winner.name, winner.score)
        return _outcome(state, decision, f"Game over! {winner.name} wins with {winner.score} points!")

    if kind is DecisionKind.CONTINUE_TURN:
        state.pending_decision = False
        state.phase = TurnPhase.CONTINUE_TURN
        name = state.acting_player.name
        return _outcome(state, decision, f"{name} captured cards and continues the turn.")

    if kind is DecisionKind.ADVANCE_PLAYER:
        assert decision.player is not None
        state.set_current_player(decision.player)
        state.pending_decision = False
        state.phase = TurnPhase.ADVANCE_PLAYER
        return _outcome(state, decision, f"Turn advanced to {state.acting_player.name}.")

    if kind is DecisionKind.DEAL_NEW_HAND:
        try:
            remaining = state.deal_new_hand(rules.hand_size)
        except InsufficientDeckForDeal:
            if rules.strict:
                raise
            logger.error("Deal attempted with %d cards left; ending the round instead", len(state.deck))
            rerouted = Decision(DecisionKind.END_ROUND, player=state.last_capturer, reason="insufficient_deck")
            return apply_decision(state, rerouted, rules=rules, rng=rng)
        state.phase = TurnPhase.DEAL_NEW_HAND
        state.pending_decision = True
        return _outcome(state, decision, f"New hand dealt! {remaining} cards remaining in deck.")

    if kind is DecisionKind.END_ROUND:
        jackpot = state.apply_jackpot()
        if jackpot is not None:
            name = state.players[jackpot.player].name
            message = f"{name} wins the jackpot! +{jackpot.points} points from {len(jackpot.cards)} cards!"
        else:
            message = "Round ended. No jackpot this time."
        state.phase = TurnPhase.END_ROUND
        if find_winner(state) is not None:
            state.pending_decision = True
            return _outcome(state, decision, message, jackpot=jackpot)
        state.start_next_round(rng or Random(), hand_size=rules.hand_size, board_size=rules.opening_board_size)
        message = f"{message} Round {state.round_number} begins, {state.acting_player.name} leads."
        return _outcome(state, decision, message, jackpot=jackpot, new_round=True)

    raise ValueError(f"Unknown decision: {kind}")


def _outcome(
    state: RoundState,
    decision: Decision,
    message: str,
    *,
    jackpot: Optional[JackpotResult] = None,
    new_round: bool = False,
) -> DecisionOutcome:
    return DecisionOutcome(
        decision=decision,
        message=message,
        current_player=state.current_player,
        cards_remaining=len(state.deck),
        jackpot=jackpot,
        new_round=new_round,
    )
