from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from chessai.config import EngineConfig
from chessai.engine.board import STARTPOS_FEN, TEST_SETUP_FEN
from chessai.protocol.http.app import create_app


BACK_RANK_FEN = "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"
E2E4 = {"x": 4, "y": 6, "dx": 0, "dy": -2}


def _client() -> TestClient:
    return TestClient(create_app(EngineConfig()))


def _new_game(client: TestClient, **body: object) -> str:
    r = client.post("/api/games", json=body) if body else client.post("/api/games")
    assert r.status_code == 200
    return r.json()["game_id"]


def test_healthz() -> None:
    r = _client().get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_game_and_read_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert body["fen"] == STARTPOS_FEN
    assert body["to_move"] == "white"

    state = client.get(f"/api/games/{body['game_id']}/state").json()
    assert state["fen"] == STARTPOS_FEN
    assert state["legal_move_count"] == 20
    assert state["finished"] is False
    assert state["winner"] is None
    assert state["history"] == []
    assert state["board"].split("\n")[0] == "  0 1 2 3 4 5 6 7"


def test_create_game_with_test_setup() -> None:
    client = _client()
    game_id = _new_game(client, test_setup=True)
    state = client.get(f"/api/games/{game_id}/state").json()
    assert state["fen"] == TEST_SETUP_FEN


def test_unknown_game_is_404() -> None:
    r = _client().get("/api/games/nope/state")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_player_move_and_undo() -> None:
    client = _client()
    game_id = _new_game(client)

    r = client.post(f"/api/games/{game_id}/move", json=E2E4)
    assert r.status_code == 200
    state = r.json()
    assert state["fen"] == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
    assert state["to_move"] == "black"
    assert state["ply"] == 1
    assert state["history"] == [STARTPOS_FEN]

    r = client.post(f"/api/games/{game_id}/undo")
    assert r.status_code == 200
    assert r.json()["fen"] == STARTPOS_FEN
    assert r.json()["ply"] == 0


def test_undo_without_moves_returns_400() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/undo")
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "bad_request"
    assert "no moves" in err["message"]


def test_illegal_move_uses_the_error_envelope() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"x": 4, "y": 6, "dx": 0, "dy": -3})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "bad_request"
    assert err["type"] == "client_error"
    assert err["message"] == "illegal move"
    assert err["request_id"] == r.headers["x-request-id"]


def test_move_validation_error_lists_fields() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"y": 6, "dx": 0, "dy": -2})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert any(fe["field"].endswith("x") for fe in err["field_errors"])


def test_promotion_choice() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(
        f"/api/games/{game_id}/position", json={"fen": "8/4P3/8/8/8/8/k7/4K3 w - - 0 1"}
    )
    assert r.status_code == 200
    push = {"x": 4, "y": 1, "dx": 0, "dy": -1}

    r = client.post(f"/api/games/{game_id}/move", json={**push, "promotion": "x"})
    assert r.status_code == 400
    r = client.post(f"/api/games/{game_id}/move", json=push)
    assert r.status_code == 400

    r = client.post(f"/api/games/{game_id}/move", json={**push, "promotion": "N"})
    assert r.status_code == 200
    assert r.json()["fen"] == "4N3/8/8/8/8/8/k7/4K3 b - - 0 1"


def test_invalid_position_is_rejected() -> None:
    client = _client()
    game_id = _new_game(client)
    for fen in ("not a fen", "8/8/8/8/8/8/8/4K3 w - - 0 1"):
        r = client.post(f"/api/games/{game_id}/position", json={"fen": fen})
        assert r.status_code == 400
        assert r.json()["error"]["message"].startswith("invalid FEN")
    assert client.get(f"/api/games/{game_id}/state").json()["fen"] == STARTPOS_FEN


def test_search_does_not_commit() -> None:
    client = _client()
    game_id = _new_game(client)
    client.post(f"/api/games/{game_id}/position", json={"fen": BACK_RANK_FEN})

    r = client.post(f"/api/games/{game_id}/search", json={"depth": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["best_fen"] == "R5k1/5ppp/8/8/8/8/8/6K1 b - - 0 1"
    assert body["score"] == 1000
    assert body["depth"] == 1
    assert body["nodes"] > 0
    assert client.get(f"/api/games/{game_id}/state").json()["fen"] == BACK_RANK_FEN


def test_search_depth_is_bounded() -> None:
    client = _client()
    game_id = _new_game(client)
    assert client.post(f"/api/games/{game_id}/search", json={"depth": 6}).status_code == 400
    assert client.post(f"/api/games/{game_id}/search", json={"depth": 0}).status_code == 422


def test_computer_move_until_game_over() -> None:
    client = _client()
    game_id = _new_game(client)
    client.post(f"/api/games/{game_id}/position", json={"fen": BACK_RANK_FEN})

    r = client.post(f"/api/games/{game_id}/computer", json={"depth": 1})
    assert r.status_code == 200
    state = r.json()
    assert state["fen"] == "R5k1/5ppp/8/8/8/8/8/6K1 b - - 0 1"
    assert state["finished"] is True
    assert state["draw"] is False
    assert state["winner"] == "white"
    assert state["legal_move_count"] == 0

    r = client.post(f"/api/games/{game_id}/computer", json={"depth": 1})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"


def test_perft_endpoint() -> None:
    client = _client()
    r = client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 2})
    assert r.status_code == 200
    assert r.json() == {"nodes": 400}
    assert client.post("/api/perft", json={"fen": "bad", "depth": 1}).status_code == 400
    assert client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 9}).status_code == 422


def test_request_id_is_echoed() -> None:
    r = _client().get("/healthz", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"
    generated = _client().get("/healthz").headers["x-request-id"]
    assert len(generated) == 36


def test_unhandled_errors_become_500_envelopes() -> None:
    app: FastAPI = create_app(EngineConfig())

    @app.get("/boom")
    def boom() -> None:
        raise ValueError("corrupt board")

    client = TestClient(app, raise_server_exceptions=False)
    r = client.get("/boom")
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "internal_error"
    assert err["type"] == "server_error"
