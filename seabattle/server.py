"""Game server: the HTTP lobby and the WebSocket game endpoint."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable

from aiohttp import WSMsgType, web

from seabattle.httpapi import dispatch
from seabattle.protocol import GameHub, Outgoing
from seabattle.sessions import SessionRegistry

log = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_HTTP_PORT = 8080
DEFAULT_WS_PORT = 9000


def build_http_app(registry: SessionRegistry) -> web.Application:
    """An application serving /create, /join and /sessions for the registry."""

    async def handle(request: web.Request) -> web.Response:
        body = await request.read()
        reply = dispatch(registry, request.method, request.path, body)
        return web.Response(
            status=reply.status,
            body=reply.body.encode("utf-8"),
            content_type=reply.content_type,
        )

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handle)
    return app


async def _deliver(replies: Iterable[Outgoing]) -> None:
    for reply in replies:
        connection = reply.connection
        if connection.closed:
            continue
        try:
            await connection.send_str(reply.text)
        except (ConnectionError, RuntimeError) as exc:
            log.info("Could not deliver message: %s", exc)


def build_ws_app(hub: GameHub) -> web.Application:
    """An application accepting game WebSocket connections on any path."""

    async def handle(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        log.info("WebSocket connection established")
        try:
            async for msg in ws:
                if msg.type not in (WSMsgType.TEXT, WSMsgType.BINARY):
                    continue
                log.info("Received message: %s", msg.data)
                await _deliver(hub.handle_message(ws, msg.data))
        finally:
            log.info("WebSocket connection closed")
            await _deliver(hub.handle_close(ws))
        return ws

    app = web.Application()
    app.router.add_get("/{tail:.*}", handle)
    return app


async def serve(
    host: str = DEFAULT_HOST,
    http_port: int = DEFAULT_HTTP_PORT,
    ws_port: int = DEFAULT_WS_PORT,
    registry: SessionRegistry | None = None,
) -> None:
    """Run both servers until cancelled."""
    if registry is None:
        registry = SessionRegistry()
    hub = GameHub(registry)
    runners: list[web.AppRunner] = []
    try:
        for app, port in ((build_http_app(registry), http_port), (build_ws_app(hub), ws_port)):
            runner = web.AppRunner(app)
            await runner.setup()
            runners.append(runner)
            await web.TCPSite(runner, host, port).start()
        print(f"Server started. HTTP on port {http_port}, WebSockets on port {ws_port}", flush=True)
        await asyncio.Event().wait()
    finally:
        for runner in reversed(runners):
            await runner.cleanup()


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point for the game server."""
    parser = argparse.ArgumentParser(description="Battleship game server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--http-port", type=int, default=DEFAULT_HTTP_PORT)
    parser.add_argument("--ws-port", type=int, default=DEFAULT_WS_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(serve(args.host, args.http_port, args.ws_port))
    except KeyboardInterrupt:
        return 0
    except OSError as exc:
        print(f"Failed to start server: {exc}", file=sys.stderr)
        return 1
    return 0