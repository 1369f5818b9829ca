"""Round state management for Stacked."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from random import Random
from typing import List, Optional, Sequence, Tuple

from .capture import is_legal_capture
from .cards import Card, total_points
from .deck import DECK_SIZE, deal_opening, deal_order, shuffled_deck

logger = logging.getLogger(__name__)

PLAYER_COUNT = 3


class EngineError(RuntimeError):
    """Base class for rejected engine operations."""

    kind = "engine_error"


class InvalidCapture(EngineError):
    """Raised when the capture rule is not satisfied."""

    kind = "invalid_capture"


class CardNotInHand(EngineError):
    """Raised when the acting player does not hold the referenced card."""

    kind = "card_not_in_hand"


class InsufficientDeckForDeal(EngineError):
    """Raised when a re-deal is attempted without enough cards left."""

    kind = "insufficient_deck_for_deal"


class NotPlayersTurn(EngineError):
    kind = "not_players_turn"


class GameOver(EngineError):
    """Raised when an action arrives after the game has been decided."""

    kind = "game_over"


class InvariantViolation(EngineError):
    """Raised when the state fails a consistency check."""

    kind = "invariant_violation"


class LastAction(Enum):
    NONE = auto()
    CAPTURE = auto()
    PLACE = auto()


class TurnPhase(Enum):
    AWAITING_ACTION = auto()
    CONTINUE_TURN = auto()
    ADVANCE_PLAYER = auto()
    DEAL_NEW_HAND = auto()
    END_ROUND = auto()
    END_GAME = auto()


@dataclass
class Player:
    id: int
    name: str
    hand: List[Card] = field(default_factory=list)
    captured: List[Card] = field(default_factory=list)
    score: int = 0
    # Points carried over from earlier rounds; captured piles reset each round.
    banked: int = 0


@dataclass(frozen=True)
class CaptureResult:
    player: int
    hand_card: Card
    board_cards: Tuple[Card, ...]
    points: int
    player_has_cards: bool

    @property
    def cards(self) -> Tuple[Card, ...]:
        return (self.hand_card,) + self.board_cards


@dataclass(frozen=True)
class JackpotResult:
    player: int
    cards: Tuple[Card, ...]
    points: int


def default_names() -> List[str]:
    return ["You", "AI 1", "AI 2"]


@dataclass
class RoundState:
    players: List[Player]
    board: List[Card]
    deck: List[Card]
    target_score: int = 500
    current_player: int = 0
    last_capturer: Optional[int] = None
    last_action: LastAction = LastAction.NONE
    dealer_index: int = 0
    round_number: int = 1
    phase: TurnPhase = TurnPhase.AWAITING_ACTION
    pending_decision: bool = False
    game_over: bool = False
    winner: Optional[int] = None
    threshold_order: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.players) != PLAYER_COUNT:
            raise ValueError("RoundState supports exactly three players.")
        self.board = list(self.board)
        self.deck = list(self.deck)

    # Construction ------------------------------------------------------

    @classmethod
    def deal(
        cls,
        deck: Sequence[Card],
        *,
        target_score: int = 500,
        hand_size: int = 4,
        board_size: int = 4,
        names: Optional[Sequence[str]] = None,
    ) -> "RoundState":
        """Deal a fresh game from ``deck`` (in draw order)."""
        names = list(names or default_names())
        hands, board, remaining = deal_opening(
            deck, players=PLAYER_COUNT, hand_size=hand_size, board_size=board_size, dealer_index=0
        )
        players = [Player(id=seat, name=names[seat], hand=hands[seat]) for seat in range(PLAYER_COUNT)]
        state = cls(players=players, board=board, deck=remaining, target_score=target_score)
        state.dealer_index = 1
        logger.info("New game dealt: %d on board, %d left in deck", len(board), len(remaining))
        return state

    # Queries -----------------------------------------------------------

    @property
    def acting_player(self) -> Player:
        return self.players[self.current_player]

    def cards_in_hands(self) -> int:
        return sum(len(player.hand) for player in self.players)

    def card_count(self) -> int:
        captured = sum(len(player.captured) for player in self.players)
        return len(self.deck) + len(self.board) + self.cards_in_hands() + captured

    def scores(self) -> List[int]:
        return [player.score for player in self.players]

    # Actions -----------------------------------------------------------

    def execute_capture(self, hand_card: Card, board_subset: Sequence[Card]) -> CaptureResult:
        self._ensure_active()
        player = self.acting_player
        if hand_card not in player.hand:
            raise CardNotInHand(f"{hand_card} is not in {player.name}'s hand.")
        taken = tuple(board_subset)
        if len(set(taken)) != len(taken):
            raise InvalidCapture("A board card was selected more than once.")
        missing = [card for card in taken if card not in self.board]
        if missing:
            raise InvalidCapture(f"{', '.join(map(str, missing))} not on the board.")
        if not is_legal_capture(hand_card, taken):
            raise InvalidCapture(
                f"{hand_card} cannot capture {', '.join(map(str, taken)) or 'nothing'}: "
                "cards must match its rank or sum to its value."
            )

        player.hand.remove(hand_card)
        self.board = [card for card in self.board if card not in taken]
        points = self._award(player, (hand_card,) + taken)
        self.last_capturer = player.id
        self.last_action = LastAction.CAPTURE
        self.pending_decision = True
        logger.debug("%s captured %s with %s for %d", player.name, taken, hand_card, points)
        return CaptureResult(
            player=player.id,
            hand_card=hand_card,
            board_cards=taken,
            points=points,
            player_has_cards=bool(player.hand),
        )

    def execute_place(self, hand_card: Card) -> None:
        self._ensure_active()
        player = self.acting_player
        if hand_card not in player.hand:
            raise CardNotInHand(f"{hand_card} is not in {player.name}'s hand.")
        player.hand.remove(hand_card)
        self.board.append(hand_card)
        self.last_action = LastAction.PLACE
        self.pending_decision = True
        logger.debug("%s placed %s", player.name, hand_card)

    def set_current_player(self, seat: int) -> None:
        if seat not in range(PLAYER_COUNT):
            raise ValueError(f"Seat {seat} does not exist.")
        self.current_player = seat

    def deal_new_hand(self, hand_size: int = 4) -> int:
        """Deal ``hand_size`` cards to every seat in draw order; return cards left."""
        needed = hand_size * PLAYER_COUNT
        if len(self.deck) < needed:
            raise InsufficientDeckForDeal(f"Need {needed} cards to deal, deck has {len(self.deck)}.")
        for slot, seat in enumerate(deal_order(self.dealer_index, PLAYER_COUNT)):
            self.players[seat].hand.extend(self.deck[slot * hand_size : (slot + 1) * hand_size])
        self.deck = self.deck[needed:]
        self.dealer_index = (self.dealer_index + 1) % PLAYER_COUNT
        logger.info("New hand dealt, %d cards remaining in deck", len(self.deck))
        return len(self.deck)

    def apply_jackpot(self) -> Optional[JackpotResult]:
        """Give the remaining board to the last capturer, if there is one."""
        if not self.board or self.last_capturer is None:
            self.last_capturer = None
            return None
        player = self.players[self.last_capturer]
        cards = tuple(self.board)
        points = self._award(player, cards)
        self.board = []
        self.last_capturer = None
        logger.info("%s wins the jackpot: %d cards for %d points", player.name, len(cards), points)
        return JackpotResult(player=player.id, cards=cards, points=points)

    def start_next_round(self, rng: Random, *, hand_size: int = 4, board_size: int = 4) -> None:
        """Collect every card, reshuffle and deal a new round; scores carry over."""
        for player in self.players:
            player.banked = player.score
            player.hand = []
            player.captured = []
        first = self.dealer_index
        hands, board, remaining = deal_opening(
            shuffled_deck(rng),
            players=PLAYER_COUNT,
            hand_size=hand_size,
            board_size=board_size,
            dealer_index=first,
        )
        for seat, hand in enumerate(hands):
            self.players[seat].hand = hand
        self.board = board
        self.deck = remaining
        self.current_player = first
        self.dealer_index = (first + 1) % PLAYER_COUNT
        self.last_capturer = None
        self.last_action = LastAction.NONE
        self.pending_decision = False
        self.round_number += 1
        self.phase = TurnPhase.AWAITING_ACTION
        logger.info("Round %d started, %s leads", self.round_number, self.players[first].name)

    def finish(self, winner: int) -> None:
        self.game_over = True
        self.winner = winner
        self.pending_decision = False
        self.phase = TurnPhase.END_GAME

    # Consistency -------------------------------------------------------

    def validate(self) -> List[str]:
        """Return a list of consistency problems; empty when the state is sound."""
        issues: List[str] = []
        total = self.card_count()
        if total != DECK_SIZE:
            issues.append(f"Card count mismatch: {total}/{DECK_SIZE}")
        seen = list(self.deck) + list(self.board)
        for player in self.players:
            seen.extend(player.hand)
            seen.extend(player.captured)
        if len(set(seen)) != len(seen):
            issues.append("Duplicate card detected")
        if self.current_player not in range(PLAYER_COUNT):
            issues.append(f"Invalid current player: {self.current_player}")
        elif not self.pending_decision and not self.game_over and not self.acting_player.hand:
            if any(player.hand for player in self.players):
                issues.append(f"Current player {self.current_player} has no cards but others do")
        for player in self.players:
            if player.score != player.banked + total_points(player.captured):
                issues.append(f"Score of {player.name} does not match captured cards")
        return issues

    def check_invariants(self) -> None:
        issues = self.validate()
        if issues:
            raise InvariantViolation("; ".join(issues))

    def snapshot(self) -> "RoundState":
        """Deep copy; mutating it never affects this state."""
        return copy.deepcopy(self)

    # Helpers -----------------------------------------------------------

    def _award(self, player: Player, cards: Sequence[Card]) -> int:
        points = total_points(cards)
        player.captured.extend(cards)
        player.score += points
        if player.score >= self.target_score and player.id not in self.threshold_order:
            self.threshold_order.append(player.id)
        return points

    def _ensure_active(self) -> None:
        if self.game_over:
            raise GameOver("The game is over.")
