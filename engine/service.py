"""Game controller: sequences human input, bot moves and state transitions."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from random import Random
from typing import TYPE_CHECKING, Callable, Deque, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .actions import Action, Move, serialize_action
from .capture import enumerate_captures
from .cards import Card, card_label, serialize_card
from .deck import shuffled_deck
from .rules_schema import RuleSet
from .state import EngineError, GameOver, NotPlayersTurn, RoundState
from .turns import Decision, DecisionKind, DecisionOutcome, apply_decision, decide

if TYPE_CHECKING:
    from bots.base import BotStrategy

logger = logging.getLogger(__name__)

MESSAGE_HISTORY = 100
VIEW_MESSAGES = 20
# Rejections a bot recovers from by placing a card instead.
RECOVERABLE_KINDS = frozenset({"invalid_capture", "card_not_in_hand"})


class ActionInProgress(EngineError):
    """Raised when an action arrives while another one is being processed."""

    kind = "action_in_progress"


class DecisionPending(EngineError):
    """Raised when acting before the previous action has been resolved."""

    kind = "decision_pending"


class AwaitingAction(EngineError):
    """Raised when advancing while the current player still has to act."""

    kind = "awaiting_action"


@dataclass(frozen=True)
class ActionOutcome:
    player: int
    action: Action
    points: int
    captured: Tuple[Card, ...]
    player_has_cards: bool
    message: str


@dataclass(frozen=True)
class ActionError:
    kind: str
    message: str


@dataclass(frozen=True)
class ActionResult:
    outcome: Optional[ActionOutcome] = None
    error: Optional[ActionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


Event = Union[ActionResult, DecisionOutcome]


@dataclass
class PlayerView:
    id: int
    name: str
    score: int
    hand_size: int
    captured_count: int
    is_human: bool


@dataclass
class GameView:
    round_number: int
    phase: str
    current_player: int
    dealer_index: int
    last_capturer: Optional[int]
    last_action: str
    game_over: bool
    winner: Optional[int]
    target_score: int
    deck_size: int
    board: list[dict]
    board_labels: list[str]
    hand: list[dict]
    hand_labels: list[str]
    players: list[PlayerView]
    can_move: bool
    messages: list[str]


class GameService:
    """Owns one game's state and is its single mutator."""

    def __init__(
        self,
        rules: Optional[RuleSet] = None,
        *,
        seed: Optional[int] = None,
        strategies: Optional[Mapping[int, "BotStrategy"]] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> None:
        self.rules = rules or RuleSet()
        self.rng = Random(seed)
        self.strategies: Dict[int, "BotStrategy"] = dict(strategies or {})
        self._deck = list(deck) if deck is not None else None
        self._state: Optional[RoundState] = None
        self.is_processing = False
        self.messages: Deque[str] = deque(maxlen=MESSAGE_HISTORY)
        self._on_state: Optional[Callable[[RoundState], None]] = None
        self._on_message: Optional[Callable[[str], None]] = None
        self._on_game_end: Optional[Callable[[int, RoundState], None]] = None

    # Session lifecycle -------------------------------------------------

    def set_callbacks(
        self,
        *,
        on_state: Optional[Callable[[RoundState], None]] = None,
        on_message: Optional[Callable[[str], None]] = None,
        on_game_end: Optional[Callable[[int, RoundState], None]] = None,
    ) -> None:
        if on_state is not None:
            self._on_state = on_state
        if on_message is not None:
            self._on_message = on_message
        if on_game_end is not None:
            self._on_game_end = on_game_end

    def new_game(self) -> RoundState:
        deck = self._deck if self._deck is not None else shuffled_deck(self.rng)
        self._state = RoundState.deal(
            deck,
            target_score=self.rules.target_score,
            hand_size=self.rules.hand_size,
            board_size=self.rules.opening_board_size,
            names=self._seat_names(),
        )
        self._state.check_invariants()
        self.is_processing = False
        self.messages.clear()
        first = self._state.acting_player
        self._emit("Game started! Your turn." if self.is_human(first.id) else f"Game started! {first.name} leads.")
        return self.snapshot()

    def is_human(self, seat: int) -> bool:
        return seat in self.rules.human_seats

    # Actions -----------------------------------------------------------

    def apply_action(self, player: int, action: Action) -> ActionResult:
        if self.is_processing:
            return self._reject(ActionInProgress("Another action is still being processed."))
        return self._act(player, action)

    def advance(self) -> DecisionOutcome:
        """Resolve the pending transition and return what happened.

        Misuse is raised rather than returned, since there is no outcome to
        report: ``AwaitingAction`` when the current player still has to act,
        ``ActionInProgress`` while an automated sequence is running.
        """
        self._ensure_idle()
        return self._advance()

    def play_ai_turn(self) -> Optional[ActionResult]:
        """Let the strategy of the current seat act once; ``None`` if it had no move."""
        self._ensure_idle()
        seat, move = self._choose_ai_move()
        return self._apply_ai_move(seat, move)

    def run_until_human(self, max_steps: int = 10_000) -> List[Event]:
        """Drive transitions and bot turns until a human must act or the game ends."""
        self._ensure_idle()
        events: List[Event] = []
        self.is_processing = True
        try:
            for _ in range(max_steps):
                event = self._step()
                if event is None:
                    break
                events.append(event)
        finally:
            self.is_processing = False
        return events

    async def run_until_human_async(self, delay: Optional[float] = None, max_steps: int = 10_000) -> List[Event]:
        """Same as ``run_until_human`` but pauses before each bot move takes effect."""
        self._ensure_idle()
        pause = self.rules.ai_delay if delay is None else delay
        events: List[Event] = []
        self.is_processing = True
        try:
            for _ in range(max_steps):
                state = self._require_state()
                if self._should_stop(state):
                    break
                if state.pending_decision or not state.acting_player.hand:
                    events.append(self._advance())
                    continue
                seat, move = self._choose_ai_move()
                if move is not None:
                    self._emit(f"{state.acting_player.name} is thinking...")
                    await asyncio.sleep(pause)
                result = self._apply_ai_move(seat, move)
                if result is not None:
                    events.append(result)
        finally:
            self.is_processing = False
        return events

    # Queries -----------------------------------------------------------

    def legal_captures(self, player: int, hand_card: Card) -> List[Tuple[Card, ...]]:
        state = self._require_state()
        if hand_card not in state.players[player].hand:
            return []
        return enumerate_captures(hand_card, state.board)

    def can_player_move(self, player: int) -> bool:
        state = self._require_state()
        return (
            not self.is_processing
            and not state.game_over
            and not state.pending_decision
            and state.current_player == player
            and bool(state.players[player].hand)
        )

    def snapshot(self) -> RoundState:
        return self._require_state().snapshot()

    def view(self, perspective: int = 0) -> GameView:
        state = self.snapshot()
        hand = state.players[perspective].hand
        return GameView(
            round_number=state.round_number,
            phase=state.phase.name.lower(),
            current_player=state.current_player,
            dealer_index=state.dealer_index,
            last_capturer=state.last_capturer,
            last_action=state.last_action.name.lower(),
            game_over=state.game_over,
            winner=state.winner,
            target_score=state.target_score,
            deck_size=len(state.deck),
            board=[serialize_card(card) for card in state.board],
            board_labels=[card_label(card) for card in state.board],
            hand=[serialize_card(card) for card in hand],
            hand_labels=[card_label(card) for card in hand],
            players=[
                PlayerView(
                    id=player.id,
                    name=player.name,
                    score=player.score,
                    hand_size=len(player.hand),
                    captured_count=len(player.captured),
                    is_human=self.is_human(player.id),
                )
                for player in state.players
            ],
            can_move=self.can_player_move(perspective),
            messages=list(self.messages)[-VIEW_MESSAGES:],
        )

    # Helpers -----------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self.is_processing:
            raise ActionInProgress("Another action is still being processed.")

    def _advance(self) -> DecisionOutcome:
        state = self._require_state()
        if state.game_over:
            assert state.winner is not None
            winner = state.players[state.winner]
            decision = Decision(DecisionKind.END_GAME, player=winner.id, reason="already_over")
            return DecisionOutcome(
                decision=decision,
                message=f"Game over! {winner.name} wins with {winner.score} points!",
                current_player=state.current_player,
                cards_remaining=len(state.deck),
            )
        if not state.pending_decision and state.acting_player.hand:
            raise AwaitingAction(f"Waiting for {state.acting_player.name} to act.")

        decision = decide(state, deal_size=self.rules.deal_size)
        outcome = apply_decision(state, decision, rules=self.rules, rng=self.rng)
        state.check_invariants()
        self._emit(outcome.message)
        if decision.kind is DecisionKind.END_GAME and self._on_game_end is not None:
            self._on_game_end(decision.player, self.snapshot())
        return outcome

    def _act(self, player: int, action: Action) -> ActionResult:
        try:
            outcome = self._execute(player, action)
        except EngineError as exc:
            return self._reject(exc)
        self._emit(outcome.message)
        return ActionResult(outcome=outcome)

    def _execute(self, player: int, action: Action) -> ActionOutcome:
        state = self._require_state()
        if state.game_over:
            raise GameOver("The game is over.")
        if state.pending_decision:
            raise DecisionPending("The previous action has not been resolved yet.")
        if player != state.current_player:
            raise NotPlayersTurn(f"It is {state.acting_player.name}'s turn.")

        actor = "You" if self.is_human(player) else state.acting_player.name
        if action.is_capture:
            result = state.execute_capture(action.hand_card, action.board_cards)
            message = f"{actor} captured {len(result.cards)} cards for {result.points} points!"
            outcome = ActionOutcome(
                player=player,
                action=action,
                points=result.points,
                captured=result.cards,
                player_has_cards=result.player_has_cards,
                message=message,
            )
        else:
            state.execute_place(action.hand_card)
            outcome = ActionOutcome(
                player=player,
                action=action,
                points=0,
                captured=(),
                player_has_cards=bool(state.players[player].hand),
                message=f"{actor} placed {action.hand_card.card_id} on the board.",
            )
        state.check_invariants()
        return outcome

    def _choose_ai_move(self) -> Tuple[int, Optional[Move]]:
        state = self._require_state()
        seat = state.current_player
        strategy = self.strategies.get(seat)
        if strategy is None:
            raise RuntimeError(f"No strategy registered for seat {seat}.")
        move = strategy.choose_move(state.snapshot(), seat)
        if move is not None:
            logger.debug("Seat %d chose %s (%s)", seat, serialize_action(move.action), move.reasoning)
        return seat, move

    def _apply_ai_move(self, seat: int, move: Optional[Move]) -> Optional[ActionResult]:
        state = self._require_state()
        if move is None:
            logger.info("Seat %d has no valid move; passing", seat)
            state.pending_decision = True
            return None
        result = self._act(seat, move.action)
        if result.ok:
            return result
        assert result.error is not None
        hand = state.players[seat].hand
        if result.error.kind not in RECOVERABLE_KINDS or not hand:
            return result
        logger.error("Seat %d produced a rejected move: %s", seat, result.error.message)
        fallback = move.action.hand_card if move.action.hand_card in hand else hand[0]
        return self._act(seat, Action.place(fallback))

    def _should_stop(self, state: RoundState) -> bool:
        if state.game_over:
            return True
        return not state.pending_decision and bool(state.acting_player.hand) and self.is_human(state.current_player)

    def _step(self) -> Optional[Event]:
        state = self._require_state()
        if self._should_stop(state):
            return None
        if state.pending_decision or not state.acting_player.hand:
            return self._advance()
        seat, move = self._choose_ai_move()
        result = self._apply_ai_move(seat, move)
        if result is None:
            return self._advance()
        return result

    def _reject(self, exc: EngineError) -> ActionResult:
        logger.info("Action rejected (%s): %s", exc.kind, exc)
        self._emit(str(exc))
        return ActionResult(error=ActionError(kind=exc.kind, message=str(exc)))

    def _emit(self, message: str) -> None:
        self.messages.append(message)
        if self._on_message is not None:
            self._on_message(message)
        if self._on_state is not None and self._state is not None:
            self._on_state(self.snapshot())

    def _seat_names(self) -> List[str]:
        names = []
        for seat in range(self.rules.players):
            names.append("You" if seat in self.rules.human_seats else f"AI {seat}")
        if len(self.rules.human_seats) > 1:
            names = [f"Player {seat}" if seat in self.rules.human_seats else name for seat, name in enumerate(names)]
        return names

    def _require_state(self) -> RoundState:
        if self._state is None:
            raise RuntimeError("No active game.")
        return self._state
