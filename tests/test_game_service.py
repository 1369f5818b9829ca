import asyncio

import pytest

from bots.base import BotStrategy
from bots.evaluator import HeuristicBot
from bots.profiles import DifficultyProfile
from engine.actions import Action, Move
from engine.cards import parse_card_id
from engine.deck import build_deck
from engine.rules_schema import RuleSet
from engine.service import MESSAGE_HISTORY, VIEW_MESSAGES, ActionInProgress, ActionResult, AwaitingAction, GameService
from engine.turns import DecisionKind


def steady_bot():
    return HeuristicBot(DifficultyProfile(name="steady", capture_threshold=15, risk_tolerance=0.5, randomness=0.0))


def ordered_service():
    # Ordered deck: seat 0 holds A-4 of spades, the board is K♠ A♥ 2♥ 3♥.
    return GameService(deck=build_deck(), strategies={1: steady_bot(), 2: steady_bot()})


def test_new_game_snapshot():
    service = ordered_service()
    state = service.new_game()
    assert state.players[0].hand == [parse_card_id(c) for c in ("A♠", "2♠", "3♠", "4♠")]
    assert state.board == [parse_card_id(c) for c in ("K♠", "A♥", "2♥", "3♥")]
    assert len(state.deck) == 36
    assert service.can_player_move(0)
    assert not service.can_player_move(1)
    assert service.messages[-1] == "Game started! Your turn."


def test_legal_captures_for_ui():
    service = ordered_service()
    service.new_game()
    captures = service.legal_captures(0, parse_card_id("3♠"))
    assert set(captures) == {
        (parse_card_id("A♥"), parse_card_id("2♥")),
        (parse_card_id("3♥"),),
    }
    assert service.legal_captures(0, parse_card_id("9♦")) == []


def test_capture_then_continue_then_place():
    service = ordered_service()
    service.new_game()

    result = service.apply_action(0, Action.capture(parse_card_id("3♠"), [parse_card_id("A♥"), parse_card_id("2♥")]))
    assert result.ok
    assert result.outcome.points == 25
    assert result.outcome.message == "You captured 3 cards for 25 points!"

    blocked = service.apply_action(0, Action.place(parse_card_id("A♠")))
    assert blocked.error.kind == "decision_pending"

    outcome = service.advance()
    assert outcome.decision.kind is DecisionKind.CONTINUE_TURN
    assert outcome.current_player == 0

    result = service.apply_action(0, Action.place(parse_card_id("A♠")))
    assert result.ok
    outcome = service.advance()
    assert outcome.decision.kind is DecisionKind.ADVANCE_PLAYER
    assert outcome.current_player == 1


def test_rejected_actions_are_values_and_do_not_mutate():
    service = ordered_service()
    service.new_game()
    before = service.snapshot()

    invalid = service.apply_action(0, Action.capture(parse_card_id("4♠"), [parse_card_id("3♥")]))
    assert not invalid.ok
    assert invalid.error.kind == "invalid_capture"

    missing = service.apply_action(0, Action.place(parse_card_id("9♦")))
    assert missing.error.kind == "card_not_in_hand"

    wrong_turn = service.apply_action(1, Action.place(parse_card_id("5♠")))
    assert wrong_turn.error.kind == "not_players_turn"

    service.is_processing = True
    busy = service.apply_action(0, Action.place(parse_card_id("A♠")))
    assert busy.error.kind == "action_in_progress"
    service.is_processing = False

    assert service.snapshot() == before


def test_advance_requires_pending_action():
    service = ordered_service()
    service.new_game()
    with pytest.raises(AwaitingAction):
        service.advance()


def test_snapshot_cannot_change_engine_state():
    service = ordered_service()
    service.new_game()
    copy = service.snapshot()
    copy.players[0].hand.clear()
    copy.players[0].score = 999
    assert len(service.snapshot().players[0].hand) == 4
    assert service.snapshot().players[0].score == 0


def test_bots_play_until_human_turn():
    service = ordered_service()
    service.new_game()
    service.apply_action(0, Action.place(parse_card_id("A♠")))

    events = service.run_until_human()

    state = service.snapshot()
    assert events
    assert not service.is_processing
    assert state.game_over or (state.current_player == 0 and service.can_player_move(0))
    assert state.validate() == []


def test_async_pacing_reaches_same_stopping_point():
    service = ordered_service()
    service.new_game()
    service.apply_action(0, Action.place(parse_card_id("A♠")))

    events = asyncio.run(service.run_until_human_async(delay=0))

    state = service.snapshot()
    assert events
    assert state.current_player == 0 or state.game_over
    assert not service.is_processing


def test_full_bot_game_reaches_target():
    rules = RuleSet(human_seats=[], ai_delay=0)
    strategies = {seat: steady_bot() for seat in range(3)}
    service = GameService(rules, seed=11, strategies=strategies)
    winners = []
    service.set_callbacks(on_game_end=lambda seat, state: winners.append(seat))
    service.new_game()

    service.run_until_human()

    state = service.snapshot()
    assert state.game_over
    assert state.players[state.winner].score >= 500
    assert state.players[state.winner].score == max(state.scores())
    assert winners == [state.winner]
    assert state.round_number >= 2

    scores = state.scores()
    service.advance()
    assert service.snapshot().scores() == scores
    assert service.apply_action(state.current_player, Action.place(parse_card_id("A♠"))).error.kind == "game_over"


def test_message_callbacks_receive_feed():
    service = ordered_service()
    seen = []
    states = []
    service.set_callbacks(on_message=seen.append, on_state=states.append)
    service.new_game()
    service.apply_action(0, Action.place(parse_card_id("A♠")))
    assert seen == ["Game started! Your turn.", "You placed A♠ on the board."]
    assert states[-1].board[-1] == parse_card_id("A♠")


def all_bot_service(**kwargs):
    rules = RuleSet(human_seats=[], ai_delay=0)
    strategies = kwargs.pop("strategies", None) or {seat: steady_bot() for seat in range(3)}
    return GameService(rules, strategies=strategies, **kwargs)


def test_second_paced_loop_is_rejected():
    service = all_bot_service(seed=11)
    service.new_game()

    async def play_twice():
        return await asyncio.gather(
            service.run_until_human_async(delay=0),
            service.run_until_human_async(delay=0),
            return_exceptions=True,
        )

    first, second = asyncio.run(play_twice())

    assert isinstance(second, ActionInProgress)
    assert isinstance(first, list) and first
    assert all(event.ok for event in first if isinstance(event, ActionResult))
    state = service.snapshot()
    assert state.game_over
    assert state.validate() == []
    assert not service.is_processing


def test_actions_rejected_while_paced_sequence_runs():
    service = ordered_service()
    service.new_game()
    service.apply_action(0, Action.place(parse_card_id("A♠")))

    async def interfere():
        loop = asyncio.create_task(service.run_until_human_async(delay=0.01))
        await asyncio.sleep(0)
        assert service.is_processing
        busy = service.apply_action(0, Action.place(parse_card_id("2♠")))
        with pytest.raises(ActionInProgress):
            service.advance()
        with pytest.raises(ActionInProgress):
            service.play_ai_turn()
        with pytest.raises(ActionInProgress):
            service.run_until_human()
        return busy, await loop

    busy, events = asyncio.run(interfere())

    assert busy.error.kind == "action_in_progress"
    assert events
    state = service.snapshot()
    assert parse_card_id("2♠") in state.players[0].hand
    assert state.validate() == []


class StubbornBot(BotStrategy):
    name = "Stubborn"

    def choose_move(self, state, player):
        return Move(Action.capture(parse_card_id("4♠"), [parse_card_id("K♠")]))


def test_bot_invalid_capture_falls_back_to_placing_its_card():
    service = all_bot_service(deck=build_deck(), strategies={0: StubbornBot(), 1: steady_bot(), 2: steady_bot()})
    service.new_game()

    result = service.play_ai_turn()

    assert result.ok
    assert result.outcome.action == Action.place(parse_card_id("4♠"))
    assert service.snapshot().board[-1] == parse_card_id("4♠")


def test_bot_move_while_decision_pending_is_not_replaced():
    service = all_bot_service(deck=build_deck())
    service.new_game()
    service.apply_action(0, Action.place(parse_card_id("A♠")))
    before = service.snapshot()

    result = service.play_ai_turn()

    assert result.error.kind == "decision_pending"
    assert service.snapshot() == before


def test_message_feed_is_bounded():
    service = all_bot_service(seed=11)
    service.new_game()
    service.run_until_human()

    assert len(service.messages) == MESSAGE_HISTORY
    assert len(service.view().messages) == VIEW_MESSAGES
    assert service.view().messages[-1] == service.messages[-1]

    service.new_game()
    assert list(service.messages) == ["Game started! AI 0 leads."]
