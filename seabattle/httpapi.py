"""HTTP lobby API: create, join and list sessions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

from seabattle.sessions import SessionLimitError, SessionRegistry

MAX_JSON_SIZE = 4096
JSON_TYPE = "application/json"


def _dumps(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class ApiResponse:
    """Status, body text and content type of a reply."""

    status: int
    body: str
    content_type: str | None = JSON_TYPE


class ApiError(Exception):
    """A request that ends in an error reply."""

    def __init__(self, message: str, status: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.message = message
        self.status = int(status)

    def to_response(self) -> ApiResponse:
        return ApiResponse(self.status, _dumps({"error": self.message}), None)


def _as_bytes(body: bytes | str | None) -> bytes:
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def _load(body: bytes | str | None) -> Any:
    data = _as_bytes(body)
    if len(data) > MAX_JSON_SIZE:
        raise ApiError("Payload too large", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)
    try:
        root = json.loads(data.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        raise ApiError("Invalid JSON") from None
    if not isinstance(root, (dict, list)):
        raise ApiError("Invalid JSON")
    return root


def _field(root: Any, name: str) -> Any:
    return root.get(name) if isinstance(root, dict) else None


def _ok(payload: Any) -> ApiResponse:
    return ApiResponse(HTTPStatus.OK, _dumps(payload))


def handle_create(registry: SessionRegistry, body: bytes | str | None) -> ApiResponse:
    """Open a session for the named player; raises ApiError."""
    root = _load(body)
    player_name = _field(root, "player_name")
    if not isinstance(player_name, str):
        raise ApiError("Missing player_name")
    try:
        session = registry.create(player_name)
    except SessionLimitError:
        raise ApiError("Max sessions reached", HTTPStatus.SERVICE_UNAVAILABLE) from None
    return _ok(
        {"session_id": session.id, "player": "Player 1", "board": session.board1.to_json()}
    )


def handle_join(registry: SessionRegistry, body: bytes | str | None) -> ApiResponse:
    """Seat the named player in a waiting session; raises ApiError."""
    root = _load(body)
    session_id = _field(root, "session_id")
    player_name = _field(root, "player_name")
    if not isinstance(session_id, str) or not isinstance(player_name, str):
        raise ApiError("Missing fields")
    try:
        session = registry.join(session_id, player_name)
    except (KeyError, ValueError):
        raise ApiError("Cannot join session") from None
    return _ok(
        {"session_id": session.id, "player": "Player 2", "board": session.board2.to_json()}
    )


def handle_list(registry: SessionRegistry) -> ApiResponse:
    """The sessions still waiting for a second player."""
    return _ok(
        [
            {"id": s.id, "player1": s.player1, "created_at": s.created_at}
            for s in registry.waiting()
        ]
    )


def dispatch(
    registry: SessionRegistry, method: str, path: str, body: bytes | str | None = None
) -> ApiResponse:
    """Route a request and turn any ApiError into an error reply."""
    try:
        if path == "/create" and method == "POST":
            return handle_create(registry, body)
        if path == "/join" and method == "POST":
            return handle_join(registry, body)
        if path == "/sessions" and method == "GET":
            return handle_list(registry)
        raise ApiError("Not Found", HTTPStatus.NOT_FOUND)
    except ApiError as error:
        return error.to_response()