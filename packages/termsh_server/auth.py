"""Login sub-protocol run before a session may issue commands."""

import asyncio
import logging
from enum import Enum

from termsh_shared.credentials import CredentialVerifier
from termsh_shared.protocol import (
    INVALID_CREDENTIALS,
    PASSWORD_PROMPT,
    USERNAME_PROMPT,
    LineStream,
)


DEFAULT_MAX_ATTEMPTS = 3


class AuthState(str, Enum):
    """States of the login state machine."""
    AWAITING_USERNAME = "awaiting_username"
    AWAITING_PASSWORD = "awaiting_password"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


class AuthenticationGate:
    """Bounded-attempt username/password exchange over a LineStream.

    One gate per connection: the attempt counter lives on the instance, so
    sessions never share it.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        log: logging.Logger | logging.LoggerAdapter | None = None
    ):
        """Initialize the gate.

        Args:
            verifier: Checks submitted credentials
            max_attempts: Attempt ceiling before rejection
            log: Where attempts are recorded (usernames only, never passwords)
        """
        self.verifier = verifier
        self.max_attempts = max_attempts
        self.log = log or logging.getLogger(__name__)
        self.state = AuthState.AWAITING_USERNAME
        self.attempts = 0

    @property
    def attempts_left(self) -> int:
        return self.max_attempts - self.attempts

    async def authenticate(self, stream: LineStream) -> bool:
        """Run the login exchange.

        End-of-stream at either prompt fails immediately without a retry.

        Args:
            stream: Connection to prompt on and read from

        Returns:
            True once credentials match, False on rejection or end-of-stream

        Raises:
            TransportError: If the connection fails mid-exchange
        """
        while self.attempts < self.max_attempts:
            self.state = AuthState.AWAITING_USERNAME
            await stream.write(USERNAME_PROMPT)
            username = await stream.read_line()
            if username is None:
                return self._reject("stream closed while awaiting username")

            self.state = AuthState.AWAITING_PASSWORD
            await stream.write(PASSWORD_PROMPT)
            password = await stream.read_line()
            if password is None:
                return self._reject("stream closed while awaiting password")

            self.attempts += 1
            username = username.strip()
            # Hash verification is CPU-bound; keep it off the event loop
            matched = await asyncio.to_thread(
                self.verifier.verify, username, password.strip()
            )

            if matched:
                self.state = AuthState.AUTHENTICATED
                self.log.info(
                    f"Login succeeded for user '{username}' "
                    f"(attempt {self.attempts}/{self.max_attempts})"
                )
                return True

            self.log.warning(
                f"Login failed for user '{username}' "
                f"(attempt {self.attempts}/{self.max_attempts})"
            )
            await stream.write_line(INVALID_CREDENTIALS.format(attempts_left=self.attempts_left))

        return self._reject("attempts exhausted")

    def _reject(self, reason: str) -> bool:
        self.state = AuthState.REJECTED
        self.log.info(f"Authentication rejected: {reason}")
        return False
