#!/usr/bin/env python3
"""
termsh-server - Whitelisted terminal-style TCP server.

Accepts line-oriented TCP connections, authenticates each client with a
username/password exchange, then serves a fixed set of commands (help, echo,
time, pwd, ls, touch, cat) confined to one working directory.

Security: No TLS. Bind to localhost and use an SSH tunnel for remote access.
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

import uvicorn

from termsh_shared.credentials import CredentialVerifier
from termsh_shared.protocol import SERVER_BUSY, LineStream, TransportError

from .config import ServerConfig, build_verifier, get_config, validate_config
from .exceptions import ConfigurationError, SessionLimitReached
from .logging_utils import configure_logging
from .models import ServerStatus
from .sandbox import Sandbox
from .session import ConnectionSession
from .shell import Shell
from .status import create_status_app


logger = logging.getLogger(__name__)


class TerminalServer:
    """Accept loop handing each connection to its own ConnectionSession task.

    Session counters are only touched from the event loop thread, so they
    need no locking. The shell is stateless and shared by all sessions.
    """

    def __init__(self, config: ServerConfig, verifier: CredentialVerifier | None = None):
        """Initialize the server.

        Args:
            config: Server configuration
            verifier: Credential check (built from config if not given)
        """
        self.config = config
        self.verifier = verifier or build_verifier(config)
        self.shell = Shell(Sandbox(config.workdir))
        self.active_sessions = 0
        self.total_sessions = 0
        self.rejected_sessions = 0
        self._server: asyncio.Server | None = None
        self._sessions: set[asyncio.Task] = set()
        self._stopped = asyncio.Event()

    @property
    def port(self) -> int:
        """Port actually bound (useful when configured with port 0)."""
        if self._server is None or not self._server.sockets:
            return self.config.port
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        """Bind and start accepting connections."""
        self._server = await asyncio.start_server(
            self.handle_client, self.config.host, self.config.port
        )
        logger.info(f"Socket server is running on {self.config.host}:{self.port}")

    async def serve_forever(self) -> None:
        """Accept connections until cancelled or closed."""
        if self._server is None:
            await self.start()
        await self._stopped.wait()

    async def close(self) -> None:
        """Stop accepting connections and end every open session.

        Sessions are cancelled before waiting on the listener, which would
        otherwise block until each client disconnects on its own.
        """
        if self._server is None:
            return
        self._server.close()
        sessions = list(self._sessions)
        for task in sessions:
            task.cancel()
        await asyncio.gather(*sessions, return_exceptions=True)
        await self._server.wait_closed()
        self._server = None
        self._stopped.set()
        logger.info(f"Server stopped, {len(sessions)} session(s) cancelled")

    def status(self) -> ServerStatus:
        return ServerStatus(
            active_sessions=self.active_sessions,
            max_sessions=self.config.max_sessions,
            total_sessions=self.total_sessions,
            rejected_sessions=self.rejected_sessions,
            workdir=str(self.shell.sandbox.work_dir),
        )

    def _acquire_slot(self) -> None:
        if self.active_sessions >= self.config.max_sessions:
            raise SessionLimitReached(self.config.max_sessions)
        self.active_sessions += 1
        self.total_sessions += 1

    async def handle_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter
    ) -> None:
        """Serve one accepted connection."""
        stream = LineStream(reader, writer, idle_timeout=self.config.idle_timeout)
        task = asyncio.current_task()
        self._sessions.add(task)
        try:
            await self._serve(stream)
        finally:
            self._sessions.discard(task)

    async def _serve(self, stream: LineStream) -> None:
        try:
            self._acquire_slot()
        except SessionLimitReached as e:
            self.rejected_sessions += 1
            logger.warning(f"Rejecting {stream.peer}: {e}")
            try:
                await stream.write_line(SERVER_BUSY)
            except TransportError:
                pass  # Client already gone
            await stream.close()
            return

        logger.info(f"New client connected: {stream.peer}")
        try:
            session = ConnectionSession(
                stream, self.shell, self.verifier, self.config.max_attempts
            )
            await session.run()
        except asyncio.CancelledError:
            logger.info(f"Session {stream.peer} cancelled by shutdown")
            await stream.close()
            raise
        except Exception as e:
            # One broken session must never take the server down
            logger.exception(f"Session {stream.peer} failed: {e}")
            await stream.close()
        finally:
            self.active_sessions -= 1


async def run(config: ServerConfig) -> None:
    """Run the TCP server (and the status endpoint, if configured)."""
    server = TerminalServer(config)
    await server.start()

    tasks = [server.serve_forever()]
    if config.status_port:
        status_server = uvicorn.Server(uvicorn.Config(
            create_status_app(server),
            host=config.host,
            port=config.status_port,
            log_level="warning",
        ))
        tasks.append(status_server.serve())

    try:
        await asyncio.gather(*tasks)
    finally:
        await server.close()


def main(argv: list[str] | None = None):
    """Run the server."""
    parser = argparse.ArgumentParser(
        description="Whitelisted terminal-style TCP server"
    )
    parser.add_argument("host", nargs="?", help="Bind host (overrides TERMSH_HOST)")
    parser.add_argument("port", nargs="?", type=int, help="Bind port (overrides TERMSH_PORT)")
    parser.add_argument(
        "-w", "--workdir",
        type=Path,
        help="Sandbox root directory (overrides TERMSH_WORKDIR)"
    )
    args = parser.parse_args(argv)

    try:
        config = get_config()
        overrides = {}
        if args.host:
            overrides["host"] = args.host
        if args.port is not None:
            overrides["port"] = args.port
        if args.workdir:
            overrides["workdir"] = args.workdir.expanduser()
        config = dataclasses.replace(config, **overrides)
        validate_config(config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.log_level)

    print(f"Starting termsh server...")
    print(f"  Host: {config.host}")
    print(f"  Port: {config.port}")
    print(f"  Working directory: {config.workdir.resolve()}")
    print(f"  Max sessions: {config.max_sessions}")
    print(f"  Idle timeout: {config.idle_timeout or 'disabled'}")
    if config.status_port:
        print(f"  Status: http://{config.host}:{config.status_port}/status")
    if config.host == "127.0.0.1":
        print(f"  Security: localhost only (use SSH tunnel)")
    print()

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        print("Shutting down.")


if __name__ == "__main__":
    main()
