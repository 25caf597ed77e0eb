import random
import re

import pytest

from seabattle.board import FLEET
from seabattle.sessions import (
    GameState,
    SessionLimitError,
    SessionRegistry,
    generate_session_id,
)

ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)


def _registry(**kwargs):
    kwargs.setdefault("rng", random.Random(7))
    kwargs.setdefault("clock", lambda: 1234)
    return SessionRegistry(**kwargs)


@pytest.mark.parametrize("seed", range(5))
def test_session_id_format(seed):
    session_id = generate_session_id(random.Random(seed))
    assert len(session_id) == 36
    assert ID_PATTERN.match(session_id)


def test_session_id_reproducible():
    rng = random.Random(1)
    ids = [generate_session_id(rng) for _ in range(3)]
    assert len(set(ids)) == 3
    assert all(ID_PATTERN.match(session_id) for session_id in ids)

    replay_rng = random.Random(1)
    replayed = [generate_session_id(replay_rng) for _ in range(3)]
    assert replayed == ids


def test_create_session_defaults():
    registry = _registry()
    session = registry.create("alice")
    assert session.player1 == "alice"
    assert session.player2 == ""
    assert session.state is GameState.WAITING_FOR_PLAYER
    assert session.current_player == 1
    assert session.created_at == 1234
    assert len(session.board1.ships) == len(FLEET)
    assert session.board2.ships == []
    assert session.ws1 is None and session.ws2 is None
    assert ID_PATTERN.match(session.id)


def test_long_name_is_truncated():
    registry = _registry()
    session = registry.create("a" * 60)
    assert session.player1 == "a" * 49


def test_session_limit():
    registry = _registry(max_sessions=2)
    registry.create("alice")
    registry.create("bob")
    with pytest.raises(SessionLimitError):
        registry.create("carol")
    assert len(registry) == 2


def test_find_returns_created_session():
    registry = _registry()
    session = registry.create("alice")
    assert registry.find(session.id) is session
    assert registry.find("missing") is None


def test_join_starts_game():
    registry = _registry()
    session = registry.create("alice")
    joined = registry.join(session.id, "bob")
    assert joined is session
    assert session.player2 == "bob"
    assert session.state is GameState.IN_PROGRESS
    assert len(session.board2.ships) == len(FLEET)


def test_join_twice_rejected():
    registry = _registry()
    session = registry.create("alice")
    registry.join(session.id, "bob")
    with pytest.raises(ValueError):
        registry.join(session.id, "carol")
    assert session.player2 == "bob"


def test_join_unknown_session():
    registry = _registry()
    with pytest.raises(KeyError):
        registry.join("missing", "bob")


def test_join_finished_session_rejected():
    registry = _registry()
    session = registry.create("alice")
    session.state = GameState.FINISHED
    with pytest.raises(ValueError):
        session.join("bob")
    assert session.player2 == ""


def test_waiting_lists_only_open_sessions():
    registry = _registry()
    first = registry.create("alice")
    second = registry.create("bob")
    third = registry.create("carol")
    registry.join(second.id, "dave")
    assert registry.waiting() == [first, third]


def test_iteration_in_creation_order():
    registry = _registry()
    names = ["alice", "bob", "carol"]
    for name in names:
        registry.create(name)
    assert [s.player1 for s in registry] == names
    assert len(registry) == len(names)


def test_board_of():
    registry = _registry()
    session = registry.create("alice")
    assert session.board_of(1) is session.board1
    assert session.board_of(2) is session.board2
    with pytest.raises(ValueError):
        session.board_of(3)


def test_ids_are_unique():
    registry = _registry(rng=random.Random(0))
    ids = {registry.create(f"p{i}").id for i in range(50)}
    assert len(ids) == 50