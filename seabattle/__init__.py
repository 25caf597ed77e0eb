"""Two-player networked Battleship: game rules, lobby and game server, and a Tk desktop client."""

__version__ = "1.0.0"