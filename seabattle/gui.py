"""Desktop client window: the session lobby and the game screen."""

from __future__ import annotations

import argparse
import logging
import queue
import sys
import threading
from collections.abc import Callable, Sequence
from typing import Any

from seabattle.board import BOARD_SIZE
from seabattle.client import (
    CONNECTING_STATUS,
    CONNECTION_LOST,
    DEFAULT_HTTP_URL,
    DEFAULT_WS_URL,
    WAITING_STATUS,
    ClientError,
    GameClient,
    LobbyApi,
    SessionSummary,
    cell_style,
    format_session_entry,
)

log = logging.getLogger(__name__)

WINDOW_TITLE = "Battleship"
ERROR_TITLE = "Ошибка"
GAME_OVER_TITLE = "Игра окончена"
NAME_REQUIRED = "Введите ваше имя"
SESSIONS_SCREEN = "sessions"
GAME_SCREEN = "game"

StyleGrid = list[list[str]]


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Command-line options of the client."""
    parser = argparse.ArgumentParser(description="Battleship client")
    parser.add_argument("--http-url", default=DEFAULT_HTTP_URL, help="lobby server address")
    parser.add_argument("--ws-url", default=DEFAULT_WS_URL, help="game server address")
    return parser.parse_args(argv)


def _open_websocket(
    url: str,
    on_open: Callable[[], None],
    on_message: Callable[[str], None],
    on_close: Callable[[], None],
) -> Any:
    """Connect in a background thread; the returned object can send and close."""
    import websocket

    app = websocket.WebSocketApp(
        url,
        on_open=lambda ws: on_open(),
        on_message=lambda ws, message: on_message(message),
        on_error=lambda ws, error: log.info("WebSocket error: %s", error),
        on_close=lambda ws, code, reason: on_close(),
    )
    threading.Thread(target=app.run_forever, daemon=True).start()
    return app


def _styles(cells: Sequence[Sequence[int]], enemy: bool) -> StyleGrid:
    return [[cell_style(state, enemy) for state in row] for row in cells]


class MainWindow:
    """Switches between the lobby and a running game and drives both."""

    def __init__(
        self,
        lobby: LobbyApi | None = None,
        ws_url: str = DEFAULT_WS_URL,
        view: Any = None,
        connect: Callable[..., Any] | None = None,
    ) -> None:
        self.lobby = lobby if lobby is not None else LobbyApi()
        self.ws_url = ws_url
        self.client = GameClient()
        self.sessions: list[SessionSummary] = []
        self.screen = SESSIONS_SCREEN
        self.connected = False
        self._connect = connect if connect is not None else _open_websocket
        self._socket: Any = None
        self._generation = 0
        self._join_text = ""
        self.view = view if view is not None else _TkView(self)
        self.refresh_sessions()

    def show_sessions(self) -> None:
        """Reload the lobby and bring it to the front."""
        self.refresh_sessions()
        self.view.show_sessions()
        self.screen = SESSIONS_SCREEN

    def refresh_sessions(self) -> list[SessionSummary]:
        """Fetch the waiting sessions and list them."""
        try:
            sessions = self.lobby.list_sessions()
        except ClientError as exc:
            self.view.error(ERROR_TITLE, str(exc))
            return self.sessions
        self.sessions = list(sessions)
        self.view.set_sessions([format_session_entry(s) for s in self.sessions])
        return self.sessions

    def _player_name(self) -> str | None:
        name = self.view.player_name().strip()
        if not name:
            self.view.warning(ERROR_TITLE, NAME_REQUIRED)
            return None
        return name

    def create_session(self) -> str | None:
        """Open a new session under the entered name and enter it."""
        name = self._player_name()
        if name is None:
            return None
        try:
            session_id = self.lobby.create_session(name)
        except ClientError as exc:
            self.view.error(ERROR_TITLE, str(exc))
            return None
        self.show_game(session_id, name)
        return session_id

    def join_selected(self) -> str | None:
        """Take the second seat in the selected session and enter it."""
        name = self._player_name()
        if name is None:
            return None
        index = self.view.selected_index()
        if index is None or not 0 <= index < len(self.sessions):
            return None
        session_id = self.sessions[index].id
        try:
            self.lobby.join_session(session_id, name)
        except ClientError as exc:
            self.view.error(ERROR_TITLE, str(exc))
            return None
        self.show_game(session_id, name)
        return session_id

    def show_game(self, session_id: str, player_name: str) -> None:
        """Switch to the game screen and connect to the game server."""
        self.leave_game()
        self._join_text = self.client.join_message(session_id, player_name)
        self._generation += 1
        generation = self._generation
        self.view.show_game()
        self.screen = GAME_SCREEN
        self.view.set_status(CONNECTING_STATUS)
        self._socket = self._connect(
            self.ws_url,
            on_open=self._relay(generation, self._on_open),
            on_message=self._relay(generation, self._on_message),
            on_close=self._relay(generation, self._on_close),
        )

    def leave_game(self) -> None:
        """Tell the server we leave, drop the connection and forget the game."""
        socket = self._socket
        if socket is not None:
            self._socket = None
            self._generation += 1
            if self.connected:
                socket.send(self.client.leave_message())
            socket.close()
        self.connected = False
        self.client.reset()

    def _relay(self, generation: int, handler: Callable[..., None]) -> Callable[..., None]:
        def callback(*args: Any) -> None:
            self.view.schedule(lambda: self._if_current(generation, handler, *args))

        return callback

    def _if_current(self, generation: int, handler: Callable[..., None], *args: Any) -> None:
        if generation == self._generation and self._socket is not None:
            handler(*args)

    def _on_open(self) -> None:
        self.connected = True
        self._socket.send(self._join_text)

    def _on_message(self, text: str | bytes) -> None:
        event = self.client.handle_message(text)
        if event is None:
            return
        if event.finished:
            self._finish(event.message)
            return
        self.view.set_boards(
            _styles(event.player_cells, enemy=False), _styles(event.enemy_cells, enemy=True)
        )
        self.view.set_status(event.message)

    def _on_close(self) -> None:
        self.connected = False
        self._finish(CONNECTION_LOST)

    def _finish(self, message: str) -> None:
        self.view.info(GAME_OVER_TITLE, message)
        self.leave_game()
        self.show_sessions()

    def _attack_cell(self, row: int, col: int) -> str | None:
        if self._socket is None or not self.connected:
            return None
        text = self.client.attack(row, col)
        if text is None:
            return None
        self._socket.send(text)
        self.view.set_status(WAITING_STATUS)
        return text

    def _back(self) -> None:
        self.leave_game()
        self.show_sessions()


def _color(style: str) -> str:
    _, _, value = style.partition(":")
    return value.strip(" ;") or "blue"


class _TkView:
    """Tk widgets for the lobby and the two boards."""

    def __init__(self, window: MainWindow) -> None:
        try:
            import tkinter as tk
            from tkinter import messagebox
        except ImportError as exc:
            raise RuntimeError(f"cannot open a window: {exc}") from None
        self._tk = tk
        self._messagebox = messagebox
        try:
            self.root = tk.Tk()
        except tk.TclError as exc:
            raise RuntimeError(f"cannot open a window: {exc}") from None
        self.root.title(WINDOW_TITLE)
        self.root.geometry("800x600")
        self._queue: queue.Queue[Callable[[], None]] = queue.Queue()

        self.lobby_frame = tk.Frame(self.root)
        tk.Label(self.lobby_frame, text=NAME_REQUIRED).pack(fill="x")
        self.name_var = tk.StringVar()
        tk.Entry(self.lobby_frame, textvariable=self.name_var).pack(fill="x")
        buttons = tk.Frame(self.lobby_frame)
        tk.Button(buttons, text="Обновить список", command=window.refresh_sessions).pack(
            side="left", expand=True, fill="x"
        )
        tk.Button(buttons, text="Создать сессию", command=window.create_session).pack(
            side="left", expand=True, fill="x"
        )
        buttons.pack(fill="x")
        self.listbox = tk.Listbox(self.lobby_frame, font=("TkDefaultFont", 14))
        self.listbox.bind("<Double-Button-1>", lambda _event: window.join_selected())
        self.listbox.pack(fill="both", expand=True)

        self.game_frame = tk.Frame(self.root)
        self.status = tk.Label(self.game_frame, text=CONNECTING_STATUS)
        self.status.pack(fill="x")
        boards = tk.Frame(self.game_frame)
        self.own_buttons = self._grid(boards, None)
        self.enemy_buttons = self._grid(boards, window)
        boards.pack()
        tk.Button(self.game_frame, text="Вернуться к списку", command=window._back).pack(
            fill="x"
        )

        self.lobby_frame.pack(fill="both", expand=True)
        self.root.after(50, self._poll)

    def _grid(self, parent: Any, window: MainWindow | None) -> list[list[Any]]:
        tk = self._tk
        frame = tk.Frame(parent, padx=10)
        grid = []
        for row in range(BOARD_SIZE):
            cells = []
            for col in range(BOARD_SIZE):
                command = None
                if window is not None:
                    command = lambda r=row, c=col: window._attack_cell(r, c)  # noqa: E731
                button = tk.Button(frame, width=2, height=1, bg="blue", command=command)
                button.grid(row=row, column=col)
                cells.append(button)
            grid.append(cells)
        frame.pack(side="left")
        return grid

    def _poll(self) -> None:
        while True:
            try:
                action = self._queue.get_nowait()
            except queue.Empty:
                break
            action()
        self.root.after(50, self._poll)

    def schedule(self, action: Callable[[], None]) -> None:
        self._queue.put(action)

    def player_name(self) -> str:
        return self.name_var.get()

    def selected_index(self) -> int | None:
        selection = self.listbox.curselection()
        return selection[0] if selection else None

    def set_sessions(self, entries: Sequence[str]) -> None:
        self.listbox.delete(0, "end")
        for entry in entries:
            self.listbox.insert("end", entry.replace("\n", "   |   "))

    def show_sessions(self) -> None:
        self.game_frame.pack_forget()
        self.lobby_frame.pack(fill="both", expand=True)

    def show_game(self) -> None:
        self.lobby_frame.pack_forget()
        self.game_frame.pack(fill="both", expand=True)

    def set_status(self, text: str) -> None:
        self.status.configure(text=text)

    def set_boards(self, own: StyleGrid, enemy: StyleGrid) -> None:
        for buttons, styles in ((self.own_buttons, own), (self.enemy_buttons, enemy)):
            for button_row, style_row in zip(buttons, styles):
                for button, style in zip(button_row, style_row):
                    button.configure(bg=_color(style))

    def warning(self, title: str, text: str) -> None:
        self._messagebox.showwarning(title, text, parent=self.root)

    def error(self, title: str, text: str) -> None:
        self._messagebox.showerror(title, text, parent=self.root)

    def info(self, title: str, text: str) -> None:
        self._messagebox.showinfo(title, text, parent=self.root)

    def run(self) -> None:
        self.root.mainloop()


def main(argv: Sequence[str] | None = None) -> int:
    """Start the client window."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        window = MainWindow(LobbyApi(args.http_url), args.ws_url)
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return 1
    try:
        window.view.run()
    finally:
        window.leave_game()
    return 0