"""Per-connection orchestration: greeting, login, then the command loop."""

import asyncio
from pathlib import Path

from termsh_shared.credentials import CredentialVerifier
from termsh_shared.lexer import tokenize
from termsh_shared.protocol import (
    COMMAND_PROMPT,
    EXIT_COMMANDS,
    FAREWELL,
    GREETING,
    HELP_HINT,
    LOGIN_BANNER,
    AuthMarker,
    LineStream,
    TransportError,
)

from .auth import DEFAULT_MAX_ATTEMPTS, AuthenticationGate
from .logging_utils import session_logger
from .shell import Shell


class ConnectionSession:
    """Drives one client connection from greeting to close.

    The session owns its stream. Whatever ends it (exit command, client
    disconnect, rejected login or a transport fault) the stream is closed
    before run() returns.
    """

    def __init__(
        self,
        stream: LineStream,
        shell: Shell,
        verifier: CredentialVerifier,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS
    ):
        self.stream = stream
        self.shell = shell
        self.client_id = stream.peer
        self.authenticated = False
        self.log = session_logger(self.client_id)
        self.gate = AuthenticationGate(verifier, max_attempts, self.log)

    @property
    def work_dir(self) -> Path:
        return self.shell.sandbox.work_dir

    async def run(self) -> None:
        """Serve the connection until it ends."""
        self.log.info("Connection opened")
        try:
            await self.stream.write_line(GREETING)
            await self.stream.write_line(LOGIN_BANNER)

            if not await self.gate.authenticate(self.stream):
                await self.stream.write_line(AuthMarker.FAIL.value)
                self.log.info("Authentication failed, closing connection")
                return

            self.authenticated = True
            await self.stream.write_line(AuthMarker.OK.value)
            await self.stream.write_line(HELP_HINT)
            self.log.info("Authentication successful")

            await self._command_loop()
        except TransportError as e:
            self.log.warning(f"I/O error: {e}")
        finally:
            await self.stream.close()
            self.log.info("Connection closed")

    async def _command_loop(self) -> None:
        while True:
            await self.stream.write(COMMAND_PROMPT)
            line = await self.stream.read_line()
            if line is None:
                self.log.info("Client disconnected")
                return

            argv = tokenize(line)
            if not argv:
                continue

            if argv[0].lower() in EXIT_COMMANDS:
                await self.stream.write_line(FAREWELL)
                self.log.info("Client exited")
                return

            self.log.info(f"Command: {line}")
            result = await asyncio.to_thread(self.shell.execute, argv)
            await self.stream.write_line(result)
