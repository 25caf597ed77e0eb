# seabattle

Two-player Battleship played over the network. The package contains:

- a **game server** (`seabattle-server`): an HTTP lobby where players create,
  list and join sessions, and a WebSocket endpoint that runs the game itself;
- a **desktop client** (`seabattle-client`), built on Tk, that shows the lobby,
  lets you pick or create a session, and plays the game on two 10×10 boards.
  Its labels and messages are in Russian.

## Installation

```
pip install .
```

The client needs Python's `tkinter` to be available. For the test suite:

```
pip install ".[test]"
pytest
```

## Running

Start the server:

```
seabattle-server
```

It listens on `localhost`, serving the HTTP lobby on port 8080 and the
WebSocket game endpoint on port 9000. Options:

- `--host` — address to bind (default `localhost`);
- `--http-port` — lobby port (default `8080`);
- `--ws-port` — game port (default `9000`).

Start a client (one per player):

```
seabattle-client
```

Options:

- `--http-url` — lobby address (default `http://localhost:8080`);
- `--ws-url` — game server address (default `ws://localhost:9000`).

Enter your name, then either create a new session or double-click one of the
waiting sessions in the list to join it. The enemy board is on the right;
click a cell there to fire when it is your turn. "Вернуться к списку" leaves
the game and goes back to the lobby.

## Rules

Each board is 10×10 and carries ten ships, placed at random by the server:
one of size 4, two of size 3, three of size 2 and four of size 1. Ships never
touch, not even diagonally.

Players take turns firing at the enemy board; player 1 starts. A hit lets the
same player fire again; a miss passes the turn. When a ship is sunk, every
cell around it that is not a hit is marked as a miss. The first player to sink
the whole enemy fleet wins.

## HTTP lobby

All bodies are JSON.

| Method | Path        | Body                                      | Reply                                                     |
|--------|-------------|-------------------------------------------|-----------------------------------------------------------|
| POST   | `/create`   | `{"player_name": ...}`                    | `{"session_id": ..., "player": "Player 1", "board": ...}` |
| POST   | `/join`     | `{"session_id": ..., "player_name": ...}` | `{"session_id": ..., "player": "Player 2", "board": ...}` |
| GET    | `/sessions` | –                                         | list of `{"id", "player1", "created_at"}` for sessions waiting for a second player |

`created_at` is in seconds since the Unix epoch. Session ids are 36 random hex
digits and dashes, shaped like a UUID. Player names are cut to 49 characters.

Errors come back as `{"error": "<message>"}` with a matching status:
400 for invalid JSON, missing fields or a session that cannot be joined,
413 for bodies over 4096 bytes, 503 once the server holds 100 sessions,
and 404 for any other path or method.

## WebSocket game protocol

Clients send:

- `{"type": "join", "session_id": ..., "player_name": ...}` — attach this
  connection to a session as the named player; the server answers with a
  `game_state`;
- `{"type": "attack", "session_id": ..., "x": <column>, "y": <row>}` — fire
  at the enemy board; ignored unless the game is in progress and it is the
  turn of the player this connection joined as;
- `{"type": "leave", "session_id": ...}` — mark the session finished.

The server sends:

- `game_state` — your board, the enemy board, `current_player` and
  `your_player_number`, to both connected players after every shot;
- `attack_result` with `"game_over": true` and `next_player` (the winner)
  when a fleet has been sunk;
- `player_left` when the other player's connection closes.

Cells are encoded as integers: `0` empty, `1` ship, `2` hit, `3` miss.

## Using the library

The game rules and the session store can be used on their own:

```python
import random

from seabattle.board import random_board
from seabattle.httpapi import dispatch
from seabattle.sessions import SessionRegistry

board = random_board(random.Random(7))
print(board.to_json()["cells"][0])

registry = SessionRegistry()
session = registry.create("alice")
registry.join(session.id, "bob")

reply = dispatch(registry, "GET", "/sessions")
print(reply.status, reply.body)
```

- `seabattle.board` — `Board`, `Ship`, `Point`, `CellState` and `random_board`.
- `seabattle.sessions` — `GameSession`, `SessionRegistry` and
  `SessionLimitError`.
- `seabattle.httpapi` — `dispatch` answers lobby requests without any
  network and returns an `ApiResponse`.
- `seabattle.protocol` — `GameHub.handle_message` and `GameHub.handle_close`
  process WebSocket traffic and return the `Outgoing` messages to deliver.
- `seabattle.server` — `build_http_app`, `build_ws_app` and the `serve`
  coroutine.
- `seabattle.client` — `LobbyApi` for the HTTP lobby and `GameClient` for the
  client side of the game protocol, independent of any window.

## What it does not do

- Sessions live in memory only and are never removed: they are lost when the
  server stops, and finished games still count towards the limit of 100.
- A `leave` message ends the session but does not itself notify the other
  player; they hear `player_left` only when the leaving connection closes.
- There is no authentication: a connection is bound to whichever player name
  it joins with.