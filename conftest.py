"""Shared pytest fixtures for termsh tests."""

import pytest

from termsh_shared.credentials import StaticCredentialVerifier
from termsh_shared.protocol import TransportError


TEST_USERNAME = "admin"
TEST_PASSWORD = "s3cret"


class ScriptedStream:
    """Stand-in for LineStream that replays canned client lines.

    Each item in ``lines`` is returned by one read_line() call; None means
    end-of-stream and an exception instance is raised instead of returned.
    Running out of lines is end-of-stream as well.
    """

    def __init__(self, lines, peer="127.0.0.1:50000"):
        self.lines = list(lines)
        self.writes: list[str] = []
        self.reads = 0
        self.closed = False
        self.peer = peer

    @property
    def output(self) -> str:
        return "".join(self.writes)

    async def read_line(self):
        if not self.lines:
            return None
        self.reads += 1
        item = self.lines.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def write(self, text: str) -> None:
        if self.closed:
            raise TransportError("Write failed: closed")
        self.writes.append(text)

    async def write_line(self, text: str = "") -> None:
        await self.write(text + "\n")

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def verifier():
    return StaticCredentialVerifier(TEST_USERNAME, TEST_PASSWORD)


@pytest.fixture
def scripted_stream():
    """Factory for ScriptedStream instances."""
    return ScriptedStream


@pytest.fixture
def credentials():
    """The (username, password) pair accepted by the verifier fixture."""
    return TEST_USERNAME, TEST_PASSWORD
