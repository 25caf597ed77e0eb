"""Game client logic: lobby requests and the in-game message protocol."""

from __future__ import annotations

import json
import urllib.request
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from seabattle.board import BOARD_SIZE

DEFAULT_HTTP_URL = "http://localhost:8080"
DEFAULT_WS_URL = "ws://localhost:9000"

CONNECTING_STATUS = "Подключение к игре..."
YOUR_TURN = "Ваш ход"
ENEMY_TURN = "Ход противника"
WAITING_STATUS = "Ожидание хода противника..."
PLAYER_LEFT_TEXT = "Партия прервана, игрок вышел"
CONNECTION_LOST = "Соединение с сервером потеряно"
YOU_WON = "Вы выиграли!"

STATE = "state"
GAME_OVER = "game_over"

_BLUE = "background-color: blue;"
_OWN_STYLES = {
    0: _BLUE,
    1: "background-color: gray;",
    2: "background-color: red;",
    3: "background-color: white;",
}
_ENEMY_STYLES = {2: _OWN_STYLES[2], 3: _OWN_STYLES[3]}


class ClientError(Exception):
    """A lobby request that failed; the message is meant for the player."""


def _dumps(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _to_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _load(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except (ValueError, UnicodeDecodeError):
        return None


def _object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class SessionSummary:
    """A session waiting for a second player, as listed by the lobby."""

    id: str
    player1: str
    created_at: int


def format_session_entry(summary: SessionSummary) -> str:
    """The three-line lobby entry for a session, with local creation time."""
    created = datetime.fromtimestamp(summary.created_at).strftime("%d.%m.%Y %H:%M")
    return f"Сессия: {summary.id[:8]}...\nИгрок: {summary.player1}\nСоздана: {created}"


def parse_sessions(body: str | bytes) -> list[SessionSummary]:
    """Session summaries from the lobby's JSON array; anything else gives none."""
    entries = _load(body)
    if not isinstance(entries, list):
        return []
    summaries = []
    for entry in entries:
        data = _object(entry)
        summaries.append(
            SessionSummary(
                id=_to_str(data.get("id")),
                player1=_to_str(data.get("player1")),
                created_at=_to_int(data.get("created_at")),
            )
        )
    return summaries


def cell_style(state: int, enemy: bool = False) -> str:
    """Style sheet for a cell; enemy ships are drawn as open water."""
    if enemy:
        return _ENEMY_STYLES.get(state, _BLUE)
    return _OWN_STYLES.get(state, "")


def _cells(board: Any) -> tuple[tuple[int, ...], ...]:
    rows = _object(board).get("cells")
    rows = rows if isinstance(rows, list) else []

    def row_at(index: int) -> list[Any]:
        row = rows[index] if index < len(rows) else None
        return row if isinstance(row, list) else []

    def value_at(row: list[Any], index: int) -> int:
        return _to_int(row[index]) if index < len(row) else 0

    return tuple(
        tuple(value_at(row_at(r), c) for c in range(BOARD_SIZE)) for r in range(BOARD_SIZE)
    )


@dataclass(frozen=True)
class GameEvent:
    """Something the game screen must show after a server message."""

    kind: str
    message: str
    player_cells: tuple[tuple[int, ...], ...] = ()
    enemy_cells: tuple[tuple[int, ...], ...] = ()

    @property
    def finished(self) -> bool:
        return self.kind == GAME_OVER


@dataclass
class GameClient:
    """Client-side state of one game and the messages it exchanges."""

    session_id: str = ""
    player_name: str = ""
    player_number: int = 0
    my_turn: bool = False

    def join_message(self, session_id: str, player_name: str) -> str:
        """Remember the game being joined and return the join message."""
        self.session_id = session_id
        self.player_name = player_name
        return _dumps(
            {"type": "join", "session_id": session_id, "player_name": player_name}
        )

    def leave_message(self) -> str:
        """The message announcing that this player leaves the game."""
        return _dumps({"type": "leave", "session_id": self.session_id})

    def attack(self, row: int, col: int) -> str | None:
        """The attack message for a cell, or None when it is not our turn."""
        if not self.my_turn:
            return None
        self.my_turn = False
        return _dumps(
            {"type": "attack", "session_id": self.session_id, "x": col, "y": row}
        )

    def handle_message(self, text: str | bytes) -> GameEvent | None:
        """Apply a server message; return what to show, if anything."""
        root = _object(_load(text))
        kind = _to_str(root.get("type"))
        if kind == "game_state":
            self.player_number = _to_int(root.get("your_player_number"))
            self.my_turn = _to_int(root.get("current_player")) == self.player_number
            return GameEvent(
                STATE,
                YOUR_TURN if self.my_turn else ENEMY_TURN,
                _cells(root.get("player_board")),
                _cells(root.get("enemy_board")),
            )
        if kind == "player_left":
            return GameEvent(GAME_OVER, PLAYER_LEFT_TEXT)
        if kind == "attack_result" and root.get("game_over") is True:
            if self.player_number == _to_int(root.get("next_player")):
                return GameEvent(GAME_OVER, YOU_WON)
            return GameEvent(
                GAME_OVER, f"Игрок {self.player_name} выиграл! Вы проиграли :("
            )
        return None

    def reset(self) -> None:
        """Forget the current game."""
        self.session_id = ""
        self.player_name = ""
        self.player_number = 0
        self.my_turn = False


class LobbyApi:
    """Blocking client for the lobby's HTTP endpoints."""

    def __init__(self, base_url: str = DEFAULT_HTTP_URL, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, path: str, payload: dict[str, Any] | None = None) -> bytes:
        url = self.base_url + path
        if payload is None:
            request = urllib.request.Request(url, method="GET")
        else:
            request = urllib.request.Request(
                url,
                data=_dumps(payload).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                method="POST",
            )
        with urllib.request.urlopen(request, timeout=self.timeout) as response:
            return response.read()

    def list_sessions(self) -> list[SessionSummary]:
        """Sessions waiting for a second player."""
        try:
            body = self._request("/sessions")
        except (OSError, ValueError):
            raise ClientError("Не удалось получить список сессий") from None
        return parse_sessions(body)

    def create_session(self, player_name: str) -> str:
        """Open a session and return its id."""
        try:
            body = self._request("/create", {"player_name": player_name})
        except (OSError, ValueError) as exc:
            raise ClientError(f"Не удалось создать сессию: {exc}") from None
        return _to_str(_object(_load(body)).get("session_id"))

    def join_session(self, session_id: str, player_name: str) -> None:
        """Take the second seat in a waiting session."""
        try:
            self._request("/join", {"player_name": player_name, "session_id": session_id})
        except (OSError, ValueError) as exc:
            raise ClientError(f"Не удалось подключиться к сессии: {exc}") from None