"""REST service to play Stacked against heuristic bots."""

from __future__ import annotations

import uuid
from dataclasses import asdict
from typing import Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from bots.bot_arena import build_strategies
from engine.actions import Action
from engine.cards import Card, deserialize_card, serialize_card
from engine.rules_schema import RuleSet
from engine.service import ActionInProgress, ActionResult, AwaitingAction, Event, GameService
from engine.turns import DecisionOutcome


class StartRequest(BaseModel):
    seed: Optional[int] = None
    target_score: int = 500
    human_seats: List[int] = Field(default_factory=lambda: [0])
    difficulties: Dict[int, str] = Field(default_factory=lambda: {1: "intermediate", 2: "intermediate"})
    autoplay: bool = True


class ActionRequest(BaseModel):
    player: int = Field(0, ge=0, le=2)
    type: Literal["capture", "place"]
    hand_card: str
    board_cards: List[str] = Field(default_factory=list)
    autoplay: bool = True


class AutoplayRequest(BaseModel):
    delay: float = Field(0.0, ge=0, le=5)


def parse_card(card_id: str) -> Card:
    try:
        return deserialize_card(card_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def serialize_event(event: Event) -> Dict[str, object]:
    if isinstance(event, DecisionOutcome):
        jackpot = None
        if event.jackpot is not None:
            jackpot = {
                "player": event.jackpot.player,
                "points": event.jackpot.points,
                "cards": [serialize_card(card) for card in event.jackpot.cards],
            }
        return {
            "kind": "decision",
            "decision": event.decision.kind.name.lower(),
            "player": event.decision.player,
            "message": event.message,
            "currentPlayer": event.current_player,
            "cardsRemaining": event.cards_remaining,
            "jackpot": jackpot,
            "newRound": event.new_round,
        }
    return serialize_result(event)


def serialize_result(result: ActionResult) -> Dict[str, object]:
    if result.error is not None:
        return {"kind": "action", "ok": False, "error": {"kind": result.error.kind, "message": result.error.message}}
    assert result.outcome is not None
    outcome = result.outcome
    return {
        "kind": "action",
        "ok": True,
        "player": outcome.player,
        "type": outcome.action.action_type.name.lower(),
        "points": outcome.points,
        "captured": [serialize_card(card) for card in outcome.captured],
        "message": outcome.message,
    }


def serialize_state(service: GameService, perspective: int, events: Optional[List[Event]] = None) -> Dict[str, object]:
    return {
        "state": asdict(service.view(perspective)),
        "events": [serialize_event(event) for event in events or []],
    }


def create_app() -> FastAPI:
    app = FastAPI(title="Stacked Play Service")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.sessions = {}

    def ensure_session(request: Request, session_id: str) -> GameService:
        service = request.app.state.sessions.get(session_id)
        if service is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return service

    @app.post("/session/start")
    def start_session(payload: StartRequest, request: Request) -> Dict[str, object]:
        try:
            rules = RuleSet(
                target_score=payload.target_score,
                human_seats=payload.human_seats,
                difficulties=payload.difficulties,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors()) from exc
        service = GameService(rules, seed=payload.seed, strategies=build_strategies(rules, payload.seed))
        service.new_game()
        events = service.run_until_human() if payload.autoplay else []
        session_id = uuid.uuid4().hex
        request.app.state.sessions[session_id] = service
        perspective = rules.human_seats[0] if rules.human_seats else 0
        return {"session_id": session_id, **serialize_state(service, perspective, events)}

    @app.get("/session/{session_id}")
    def get_session(session_id: str, request: Request, perspective: int = Query(0, ge=0, le=2)) -> Dict[str, object]:
        service = ensure_session(request, session_id)
        return serialize_state(service, perspective)

    @app.post("/session/{session_id}/action")
    def take_action(session_id: str, payload: ActionRequest, request: Request) -> Dict[str, object]:
        service = ensure_session(request, session_id)
        hand_card = parse_card(payload.hand_card)
        if payload.type == "capture":
            action = Action.capture(hand_card, [parse_card(card_id) for card_id in payload.board_cards])
        else:
            action = Action.place(hand_card)
        result = service.apply_action(payload.player, action)
        if not result.ok:
            assert result.error is not None
            raise HTTPException(status_code=400, detail={"kind": result.error.kind, "message": result.error.message})
        events: List[Event] = [result]
        if payload.autoplay:
            events.extend(service.run_until_human())
        return serialize_state(service, payload.player, events)

    @app.post("/session/{session_id}/advance")
    def advance(session_id: str, request: Request, perspective: int = Query(0, ge=0, le=2)) -> Dict[str, object]:
        service = ensure_session(request, session_id)
        try:
            outcome = service.advance()
        except (AwaitingAction, ActionInProgress) as exc:
            raise HTTPException(status_code=409, detail={"kind": exc.kind, "message": str(exc)}) from exc
        return serialize_state(service, perspective, [outcome])

    @app.post("/session/{session_id}/autoplay")
    async def autoplay(session_id: str, payload: AutoplayRequest, request: Request, perspective: int = Query(0, ge=0, le=2)) -> Dict[str, object]:
        service = ensure_session(request, session_id)
        try:
            events = await service.run_until_human_async(delay=payload.delay)
        except ActionInProgress as exc:
            raise HTTPException(status_code=409, detail={"kind": exc.kind, "message": str(exc)}) from exc
        return serialize_state(service, perspective, events)

    @app.get("/session/{session_id}/captures")
    def legal_captures(session_id: str, card: str, request: Request, player: int = Query(0, ge=0, le=2)) -> Dict[str, object]:
        service = ensure_session(request, session_id)
        captures = service.legal_captures(player, parse_card(card))
        return {"card": card, "captures": [[serialize_card(c) for c in subset] for subset in captures]}

    return app


app = create_app()
