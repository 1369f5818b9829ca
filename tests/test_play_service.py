from fastapi.testclient import TestClient

from server.play_service import create_app


def start(client, **overrides):
    payload = {"seed": 21}
    payload.update(overrides)
    response = client.post("/session/start", json=payload)
    assert response.status_code == 200
    return response.json()


def test_start_session_waits_for_human():
    client = TestClient(create_app())
    body = start(client)
    state = body["state"]
    assert state["current_player"] == 0
    assert state["can_move"]
    assert len(state["hand"]) == 4
    assert len(state["board"]) == 4
    assert [player["is_human"] for player in state["players"]] == [True, False, False]


def test_place_action_lets_bots_respond():
    client = TestClient(create_app())
    body = start(client)
    session_id = body["session_id"]
    card_id = body["state"]["hand"][0]["id"]

    response = client.post(f"/session/{session_id}/action", json={"type": "place", "hand_card": card_id})
    assert response.status_code == 200
    data = response.json()
    assert data["events"][0]["ok"]
    assert data["events"][0]["type"] == "place"
    assert data["state"]["current_player"] == 0 or data["state"]["game_over"]


def test_invalid_capture_is_rejected():
    client = TestClient(create_app())
    body = start(client)
    session_id = body["session_id"]
    card_id = body["state"]["hand"][0]["id"]

    response = client.post(
        f"/session/{session_id}/action",
        json={"type": "capture", "hand_card": card_id, "board_cards": []},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "invalid_capture"


def test_captures_and_advance_endpoints():
    client = TestClient(create_app())
    body = start(client)
    session_id = body["session_id"]
    card_id = body["state"]["hand"][0]["id"]

    response = client.get(f"/session/{session_id}/captures", params={"card": card_id})
    assert response.status_code == 200
    assert isinstance(response.json()["captures"], list)

    response = client.post(f"/session/{session_id}/advance")
    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "awaiting_action"


def test_manual_flow_with_autoplay_endpoint():
    client = TestClient(create_app())
    body = start(client, autoplay=False)
    session_id = body["session_id"]
    card_id = body["state"]["hand"][0]["id"]

    response = client.post(
        f"/session/{session_id}/action",
        json={"type": "place", "hand_card": card_id, "autoplay": False},
    )
    assert response.status_code == 200

    response = client.post(f"/session/{session_id}/advance")
    assert response.status_code == 200
    assert response.json()["events"][0]["decision"] == "advance_player"

    response = client.post(f"/session/{session_id}/autoplay", json={"delay": 0})
    assert response.status_code == 200
    state = response.json()["state"]
    assert state["current_player"] == 0 or state["game_over"]


def test_all_bot_session_plays_to_the_end():
    client = TestClient(create_app())
    body = start(client, human_seats=[], difficulties={"0": "beginner", "1": "legendary", "2": "intermediate"})
    assert body["state"]["game_over"]
    assert body["state"]["winner"] is not None


def test_unknown_session_returns_404():
    client = TestClient(create_app())
    assert client.get("/session/nope").status_code == 404
