import json
import random

import pytest

from seabattle.board import Board, CellState
from seabattle.protocol import GameHub, Outgoing, game_state_message
from seabattle.sessions import GameState, SessionRegistry


class Conn:
    def __init__(self, label):
        self.label = label


@pytest.fixture
def game():
    registry = SessionRegistry(rng=random.Random(7), clock=lambda: 1000)
    session = registry.create("alice")
    registry.join(session.id, "bob")
    target = Board()
    target.place_ship(0, 0, 1, True)
    target.place_ship(5, 5, 2, True)
    session.board2 = target
    hub = GameHub(registry)
    alice, bob = Conn("alice"), Conn("bob")
    hub.handle_message(alice, json.dumps({"type": "join", "session_id": session.id, "player_name": "alice"}))
    hub.handle_message(bob, json.dumps({"type": "join", "session_id": session.id, "player_name": "bob"}))
    return hub, session, alice, bob


def attack(hub, conn, session, x, y):
    return hub.handle_message(
        conn, json.dumps({"type": "attack", "session_id": session.id, "x": x, "y": y})
    )


def test_join_sends_game_state_to_joiner():
    registry = SessionRegistry(rng=random.Random(3), clock=lambda: 5)
    session = registry.create("alice")
    hub = GameHub(registry)
    conn = Conn("a")
    out = hub.handle_message(
        conn, json.dumps({"type": "join", "session_id": session.id, "player_name": "alice"})
    )
    assert len(out) == 1
    assert out[0].connection is conn
    payload = json.loads(out[0].text)
    assert payload["type"] == "game_state"
    assert payload["your_player_number"] == 1
    assert payload["current_player"] == 1
    assert payload["player_board"] == session.board1.to_json()
    assert session.ws1 is conn


def test_join_with_unknown_name_is_ignored(game):
    hub, session, _, _ = game
    stranger = Conn("x")
    out = hub.handle_message(
        stranger, json.dumps({"type": "join", "session_id": session.id, "player_name": "mallory"})
    )
    assert out == []
    assert session.ws1 is not stranger and session.ws2 is not stranger


def test_invalid_messages_are_ignored(game):
    hub, session, alice, _ = game
    assert hub.handle_message(alice, "{not json") == []
    assert hub.handle_message(alice, json.dumps({"type": 5})) == []
    assert hub.handle_message(alice, "[1, 2]") == []


def test_attack_out_of_turn_is_ignored(game):
    hub, session, _, bob = game
    before = session.board1.to_json()
    assert attack(hub, bob, session, 0, 0) == []
    assert session.board1.to_json() == before
    assert session.current_player == 1


def test_attack_with_bool_coordinate_is_ignored(game):
    hub, session, alice, _ = game
    out = hub.handle_message(
        alice, json.dumps({"type": "attack", "session_id": session.id, "x": True, "y": 0})
    )
    assert out == []
    assert session.board2.cells[0][1] == CellState.EMPTY


def test_miss_passes_turn_and_updates_both(game):
    hub, session, alice, bob = game
    out = attack(hub, alice, session, 9, 9)
    assert session.current_player == 2
    assert session.board2.cells[9][9] == CellState.MISS
    assert [o.connection for o in out] == [alice, bob]
    views = [json.loads(o.text) for o in out]
    assert [v["your_player_number"] for v in views] == [1, 2]
    assert all(v["current_player"] == 2 for v in views)
    assert views[0]["enemy_board"] == session.board2.to_json()
    assert views[1]["player_board"] == session.board2.to_json()


def test_hit_keeps_turn(game):
    hub, session, alice, _ = game
    attack(hub, alice, session, 5, 5)
    assert session.board2.cells[5][5] == CellState.HIT
    assert session.current_player == 1
    assert session.state is GameState.IN_PROGRESS


def test_sinking_marks_surroundings(game):
    hub, session, alice, _ = game
    attack(hub, alice, session, 0, 0)
    cells = session.board2.cells
    assert cells[0][0] == CellState.HIT
    assert cells[0][1] == CellState.MISS
    assert cells[1][0] == CellState.MISS
    assert cells[1][1] == CellState.MISS
    assert session.current_player == 1


def test_last_ship_ends_game(game):
    hub, session, alice, bob = game
    attack(hub, alice, session, 0, 0)
    attack(hub, alice, session, 5, 5)
    out = attack(hub, alice, session, 6, 5)
    assert session.state is GameState.FINISHED
    assert [o.connection for o in out] == [alice, bob]
    payload = json.loads(out[0].text)
    assert payload == {"type": "attack_result", "game_over": True, "next_player": 1}
    assert out[0].text == out[1].text
    assert attack(hub, alice, session, 9, 9) == []


def test_attack_on_waiting_session_is_ignored():
    registry = SessionRegistry(rng=random.Random(1), clock=lambda: 0)
    session = registry.create("alice")
    hub = GameHub(registry)
    conn = Conn("a")
    hub.handle_message(conn, json.dumps({"type": "join", "session_id": session.id, "player_name": "alice"}))
    assert attack(hub, conn, session, 0, 0) == []
    assert session.current_player == 1


def test_leave_finishes_session(game):
    hub, session, alice, _ = game
    out = hub.handle_message(alice, json.dumps({"type": "leave", "session_id": session.id}))
    assert out == []
    assert session.state is GameState.FINISHED


def test_close_notifies_opponent(game):
    hub, session, alice, bob = game
    out = hub.handle_close(alice)
    assert out == [Outgoing(bob, '{"type":"player_left"}')]
    assert session.ws1 is None
    assert hub.handle_close(bob) == []
    assert session.ws2 is None


def test_closed_connection_cannot_attack(game):
    hub, session, alice, _ = game
    hub.handle_close(alice)
    assert attack(hub, alice, session, 9, 9) == []
    assert session.board2.cells[9][9] == CellState.EMPTY


def test_game_state_message_swaps_boards_for_player_two(game):
    _, session, _, _ = game
    first = json.loads(game_state_message(session, 1))
    second = json.loads(game_state_message(session, 2))
    assert first["player_board"] == second["enemy_board"]
    assert first["enemy_board"] == second["player_board"]
    assert second["your_player_number"] == 2