"""Game sessions and the registry that holds them."""

from __future__ import annotations

import random
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from seabattle.board import Board, random_board

MAX_SESSIONS = 100
NAME_LIMIT = 49
_HEX_DIGITS = "0123456789abcdef"
_DASH_POSITIONS = frozenset({8, 13, 18, 23})


class GameState(Enum):
    """Lifecycle of a session."""

    WAITING_FOR_PLAYER = "waiting_for_player"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class SessionLimitError(RuntimeError):
    """Raised when the registry already holds its maximum number of sessions."""


def generate_session_id(rng: random.Random) -> str:
    """A random identifier shaped like a UUID: 36 hex digits and dashes."""
    return "".join(
        "-" if i in _DASH_POSITIONS else _HEX_DIGITS[rng.randrange(16)]
        for i in range(36)
    )


@dataclass
class GameSession:
    """One game between two players."""

    id: str
    player1: str
    board1: Board
    board2: Board = field(default_factory=Board)
    created_at: int = 0
    player2: str = ""
    state: GameState = GameState.WAITING_FOR_PLAYER
    current_player: int = 1
    ws1: Any = None
    ws2: Any = None
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def board_of(self, player_num: int) -> Board:
        """The board belonging to player 1 or 2."""
        if player_num == 1:
            return self.board1
        if player_num == 2:
            return self.board2
        raise ValueError(f"no player number {player_num}")

    def join(self, player_name: str) -> None:
        """Seat the second player and start the game."""
        if self.state is not GameState.WAITING_FOR_PLAYER:
            raise ValueError(f"session {self.id} is not waiting for a player")
        self.player2 = player_name[:NAME_LIMIT]
        self.board2 = random_board(self.rng)
        self.state = GameState.IN_PROGRESS


class SessionRegistry:
    """All sessions known to the server, in creation order."""

    def __init__(
        self,
        max_sessions: int = MAX_SESSIONS,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_sessions = max_sessions
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock
        self.lock = threading.RLock()
        self._sessions: list[GameSession] = []

    def create(self, player_name: str) -> GameSession:
        """Open a new session for its first player."""
        with self.lock:
            if len(self._sessions) >= self.max_sessions:
                raise SessionLimitError("Max sessions reached")
            session_id = generate_session_id(self.rng)
            while self.find(session_id) is not None:
                session_id = generate_session_id(self.rng)
            session = GameSession(
                id=session_id,
                player1=player_name[:NAME_LIMIT],
                board1=random_board(self.rng),
                created_at=int(self.clock()),
                rng=self.rng,
            )
            self._sessions.append(session)
            return session

    def find(self, session_id: str) -> GameSession | None:
        """The session with this id, or None."""
        with self.lock:
            return next((s for s in self._sessions if s.id == session_id), None)

    def join(self, session_id: str, player_name: str) -> GameSession:
        """Seat a second player; KeyError if unknown, ValueError if not joinable."""
        with self.lock:
            session = self.find(session_id)
            if session is None:
                raise KeyError(session_id)
            session.join(player_name)
            return session

    def waiting(self) -> list[GameSession]:
        """Sessions still waiting for a second player."""
        with self.lock:
            return [s for s in self._sessions if s.state is GameState.WAITING_FOR_PLAYER]

    def __iter__(self) -> Iterator[GameSession]:
        with self.lock:
            return iter(list(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)