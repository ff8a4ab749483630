"""HTTP tests for the FastAPI bridge."""

import time

import pytest
from fastapi.testclient import TestClient

from chessbridge.config import BridgeSettings
from chessbridge.dispatcher import BridgeDispatcher
from chessbridge.web_app import create_app

from fake_engines import (
    AFTER_E4_FEN,
    ANALYSING_ENGINE,
    CRASHING_ENGINE,
    SILENT_ENGINE,
    START_FEN,
)


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


@pytest.fixture
def fast_client(fast_settings):
    return TestClient(create_app(fast_settings))


@pytest.mark.parametrize("route", ["/api/make-move", "/api/bestmove"])
def test_move_routes_return_engine_answer(client, make_engine, route):
    make_engine("chess_engine", ANALYSING_ENGINE)

    response = client.post(route, json={"fen": START_FEN, "movetime": 100})

    assert response.status_code == 200
    assert response.json() == {
        "bestmove": "d2d4",
        "eval": {"type": "cp", "value": 25, "pov": "white"},
        "pv": "d2d4 d7d5",
    }


def test_eval_normalized_for_black(client, make_engine):
    make_engine("analyser", ANALYSING_ENGINE)

    response = client.post("/api/make-move", json={
        "fen": AFTER_E4_FEN,
        "engine": "analyser",
        "timing": {"mode": "clock", "wtime": 60000, "btime": -1, "winc": 0, "binc": 0},
    })

    assert response.status_code == 200
    assert response.json()["eval"]["value"] == -25


def test_missing_fen_is_400_without_spawning(settings, recording_factory, recorded_sessions):
    dispatcher = BridgeDispatcher(settings, session_factory=recording_factory)
    client = TestClient(create_app(settings, dispatcher))

    response = client.post("/api/make-move", json={"movetime": 100})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing 'fen' in body"}
    assert recorded_sessions == []


def test_empty_body_is_400(client):
    response = client.post("/api/bestmove")
    assert response.status_code == 400


def test_malformed_body_is_400(client):
    response = client.post("/api/make-move", content=b"{not json",
                           headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_missing_engine_is_500(client):
    response = client.post("/api/make-move", json={"fen": START_FEN, "engine": "nope"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Failed to start engine"
    assert body["detail"]


def test_traversal_engine_is_400(client):
    response = client.post("/api/make-move", json={"fen": START_FEN, "engine": "../bin"})
    assert response.status_code == 400


def test_silent_engine_is_504(fast_client, make_engine):
    make_engine("silent", SILENT_ENGINE)

    started = time.monotonic()
    response = fast_client.post("/api/make-move", json={
        "fen": START_FEN, "movetime": 100, "engine": "silent",
    })

    assert response.status_code == 504
    assert response.json() == {"error": "Engine timeout"}
    assert time.monotonic() - started < 3.0


def test_crashing_engine_is_502(client, make_engine):
    make_engine("crasher", CRASHING_ENGINE)

    response = client.post("/api/bestmove", json={"fen": START_FEN, "engine": "crasher"})

    assert response.status_code == 502
    assert response.json()["error"] == "Engine exited without a bestmove"


def test_list_engines(client, make_engine, engine_dir):
    make_engine("stockfish", ANALYSING_ENGINE)
    (engine_dir / "README.md").write_text("docs")
    (engine_dir / ".hidden").write_text("")

    response = client.get("/api/engines")

    assert response.status_code == 200
    assert response.json() == ["stockfish"]


def test_list_engines_unreadable_dir(tmp_path):
    client = TestClient(create_app(BridgeSettings(engine_dir=tmp_path / "gone")))
    response = client.get("/api/engines")

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to read engine directory"


def test_health(client, settings):
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["port"] == settings.port
    assert "T" in body["time"]


def test_huge_movetime_is_clamped_and_answered(client, make_engine):
    make_engine("chess_engine", ANALYSING_ENGINE)

    response = client.post("/api/bestmove", json={"fen": START_FEN, "movetime": 10 ** 16})

    assert response.status_code == 200
    assert response.json()["bestmove"] == "d2d4"
