"""Client for termsh - connects to a termsh server over TCP."""

import argparse
import asyncio
import getpass
import sys

from termsh_shared.lexer import tokenize
from termsh_shared.protocol import (
    COMMAND_PROMPT,
    EXIT_COMMANDS,
    PASSWORD_PROMPT,
    SERVER_BUSY,
    USERNAME_PROMPT,
    AuthMarker,
    LineStream,
    TransportError,
)


# Every result is followed by a newline and then the next prompt
RESULT_TERMINATOR = "\n" + COMMAND_PROMPT


class TerminalClient:
    """Client for connecting to termsh servers."""

    def __init__(self, host: str, port: int, timeout: float = 30.0):
        """Initialize the client.

        Args:
            host: Server hostname/IP
            port: Server port
            timeout: Connect and per-read timeout in seconds
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self.banner = ""
        self.authenticated = False
        self._stream: LineStream | None = None

    @property
    def connected(self) -> bool:
        return self._stream is not None

    def _require_stream(self) -> LineStream:
        if self._stream is None:
            raise ConnectionError("Not connected")
        return self._stream

    async def connect(self) -> bool:
        """Connect to the server and read the greeting.

        Returns:
            True if connection successful
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            raise ConnectionError(f"Connection timed out: {self.host}:{self.port}")
        except OSError as e:
            raise ConnectionError(f"Failed to connect to {self.host}:{self.port}: {e}")

        self._stream = LineStream(reader, writer, idle_timeout=self.timeout)
        # Greeting and banner come before the first username prompt
        banner = await self._stream.read_until(USERNAME_PROMPT)
        if banner is None:
            await self.disconnect()
            raise ConnectionError("Server closed the connection")
        if SERVER_BUSY in banner:
            await self.disconnect()
            raise ConnectionError(SERVER_BUSY)
        self.banner = banner
        return True

    async def login(self, username: str, password: str) -> bool:
        """Submit one username/password attempt.

        After a failed attempt the client is positioned at the next username
        prompt, so login() can simply be called again. If the server gives up
        the connection is closed.

        Returns:
            True if the server accepted the credentials
        """
        stream = self._require_stream()

        await stream.write_line(username)
        await stream.read_until(PASSWORD_PROMPT)
        await stream.write_line(password)

        reply = await stream.read_line()
        if reply == AuthMarker.OK.value:
            self.authenticated = True
            # Help hint, then the first prompt
            await stream.read_until(RESULT_TERMINATOR)
            return True

        if reply is None or reply == AuthMarker.FAIL.value:
            await self.disconnect()
            return False

        # "Invalid credentials. Attempts left: n" then either a prompt or AUTH FAIL
        remaining = await stream.read_until(USERNAME_PROMPT)
        if remaining is None or AuthMarker.FAIL.value in remaining:
            await self.disconnect()
        return False

    async def execute(self, command: str) -> str:
        """Run a command and return its result text.

        Args:
            command: Command line as it would be typed

        Returns:
            The result, without the trailing newline and prompt
        """
        if not self.authenticated:
            raise ConnectionError("Not logged in")
        stream = self._require_stream()

        await stream.write_line(command)
        result = await stream.read_until(RESULT_TERMINATOR)
        if result is None:
            await self.disconnect()
            raise ConnectionError("Server closed the connection")
        return result

    async def close(self) -> str:
        """Send 'exit' and disconnect.

        Returns:
            The server's farewell line (empty if none arrived)
        """
        farewell = ""
        if self._stream is not None and self.authenticated:
            try:
                await self._stream.write_line("exit")
                farewell = await self._stream.read_line() or ""
            except TransportError:
                pass  # Closing anyway
        await self.disconnect()
        return farewell

    async def disconnect(self):
        """Drop the connection without saying goodbye."""
        if self._stream is not None:
            await self._stream.close()
            self._stream = None
        self.authenticated = False


async def interactive(host: str, port: int, username: str | None = None) -> int:
    """Log in and relay typed commands until exit."""
    client = TerminalClient(host, port, timeout=300.0)
    await client.connect()
    print(client.banner, end="")

    while client.connected and not client.authenticated:
        user = username or await asyncio.to_thread(input, USERNAME_PROMPT)
        password = await asyncio.to_thread(getpass.getpass, PASSWORD_PROMPT)
        if await client.login(user, password):
            print(AuthMarker.OK.value)
        elif not client.connected:
            print(AuthMarker.FAIL.value)
            return 1
        else:
            print("Invalid credentials.")

    while True:
        try:
            line = await asyncio.to_thread(input, COMMAND_PROMPT)
        except EOFError:
            line = "exit"

        argv = tokenize(line)
        if not argv:
            continue

        if argv[0].lower() in EXIT_COMMANDS:
            print(await client.close())
            return 0

        try:
            print(await client.execute(line))
        except ConnectionError as e:
            print(f"Connection lost: {e}", file=sys.stderr)
            return 1


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Interactive termsh client")
    parser.add_argument("host", help="Server host")
    parser.add_argument("port", type=int, help="Server port")
    parser.add_argument("-u", "--username", help="Login name (prompted for if omitted)")
    args = parser.parse_args(argv)

    try:
        sys.exit(asyncio.run(interactive(args.host, args.port, args.username)))
    except (ConnectionError, TransportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
