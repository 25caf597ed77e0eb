"""WebSocket game protocol: joining, attacking, leaving and disconnects."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from seabattle.sessions import GameSession, GameState, SessionRegistry

log = logging.getLogger(__name__)


def _dumps(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


PLAYER_LEFT = _dumps({"type": "player_left"})


@dataclass(frozen=True)
class Outgoing:
    """A text message to deliver to one connection."""

    connection: Any
    text: str


def game_state_message(session: GameSession, player_num: int) -> str:
    """The game state as seen by player 1 or 2, as compact JSON."""
    own = session.board_of(player_num)
    enemy = session.board_of(2 if player_num == 1 else 1)
    return _dumps(
        {
            "type": "game_state",
            "player_board": own.to_json(),
            "enemy_board": enemy.to_json(),
            "current_player": session.current_player,
            "your_player_number": player_num,
        }
    )


class GameHub:
    """Applies client messages to sessions and says what to send back."""

    def __init__(self, registry: SessionRegistry) -> None:
        self.registry = registry
        self._names: dict[Any, str] = {}

    def handle_message(self, connection: Any, text: str | bytes) -> list[Outgoing]:
        """Process one message from a connection; return the replies to send."""
        try:
            root = json.loads(text)
        except (ValueError, UnicodeDecodeError) as exc:
            log.info("JSON parse error: %s", exc)
            return []
        if not isinstance(root, dict):
            return []
        kind = root.get("type")
        if not isinstance(kind, str):
            return []
        if kind == "attack":
            return self._attack(connection, root)
        if kind == "join":
            return self._join(connection, root)
        if kind == "leave":
            self._leave(root)
        return []

    def handle_close(self, connection: Any) -> list[Outgoing]:
        """Forget a closed connection and tell the opponents it has gone."""
        replies: list[Outgoing] = []
        with self.registry.lock:
            self._names.pop(connection, None)
            for session in self.registry:
                if session.ws1 is connection:
                    session.ws1 = None
                    if session.ws2 is not None:
                        replies.append(Outgoing(session.ws2, PLAYER_LEFT))
                elif session.ws2 is connection:
                    session.ws2 = None
                    if session.ws1 is not None:
                        replies.append(Outgoing(session.ws1, PLAYER_LEFT))
        return replies

    def _join(self, connection: Any, root: dict[str, Any]) -> list[Outgoing]:
        session_id = root.get("session_id")
        player_name = root.get("player_name")
        if not isinstance(session_id, str) or not isinstance(player_name, str):
            return []
        with self.registry.lock:
            session = self.registry.find(session_id)
            if session is None:
                return []
            if player_name == session.player1:
                session.ws1 = connection
                self._names[connection] = session.player1
                player_num = 1
            elif player_name == session.player2:
                session.ws2 = connection
                self._names[connection] = session.player2
                player_num = 2
            else:
                return []
            return [Outgoing(connection, game_state_message(session, player_num))]

    def _attack(self, connection: Any, root: dict[str, Any]) -> list[Outgoing]:
        session_id = root.get("session_id")
        x = root.get("x")
        y = root.get("y")
        if not isinstance(session_id, str) or not _is_int(x) or not _is_int(y):
            return []
        with self.registry.lock:
            session = self.registry.find(session_id)
            if session is None or session.state is not GameState.IN_PROGRESS:
                return []
            name = self._names.get(connection)
            expected = session.player1 if session.current_player == 1 else session.player2
            if name is None or name != expected:
                return []

            target = session.board2 if session.current_player == 1 else session.board1
            if target.check_hit(x, y):
                target.mark_sunk_surroundings(target.sunk_ship_at(x, y))
            else:
                session.current_player = 2 if session.current_player == 1 else 1

            recipients = [(1, session.ws1), (2, session.ws2)]
            if target.is_game_over():
                session.state = GameState.FINISHED
                text = _dumps(
                    {
                        "type": "attack_result",
                        "game_over": True,
                        "next_player": session.current_player,
                    }
                )
                return [Outgoing(ws, text) for _, ws in recipients if ws is not None]
            return [
                Outgoing(ws, game_state_message(session, num))
                for num, ws in recipients
                if ws is not None
            ]

    def _leave(self, root: dict[str, Any]) -> None:
        session_id = root.get("session_id")
        if not isinstance(session_id, str):
            return
        with self.registry.lock:
            session = self.registry.find(session_id)
            if session is not None:
                session.state = GameState.FINISHED