"""Configuration for termsh server."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from termsh_shared.credentials import (
    CredentialVerifier,
    HashedCredentialVerifier,
    StaticCredentialVerifier,
    parse_password_hash,
)

from .exceptions import ConfigurationError


@dataclass
class ServerConfig:
    """Configuration for the terminal server."""
    # Sandbox root
    workdir: Path

    # Credentials (the hash wins when both are set)
    password: str | None = None
    password_hash: str | None = None
    username: str = "admin"

    # Listener
    host: str = "127.0.0.1"
    port: int = 5050

    # Limits
    max_attempts: int = 3
    max_sessions: int = 64
    idle_timeout: float | None = None  # None waits forever

    # HTTP status endpoint (0 disables it)
    status_port: int = 0

    log_level: str = "INFO"


def _env_number(name: str, default: str, cast=int):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            missing_key=name
        )


def get_config() -> ServerConfig:
    """Load configuration from environment.

    Required environment variables (one of):
        TERMSH_PASSWORD: Plain-text login password
        TERMSH_PASSWORD_HASH: Salted hash from termsh-passgen (preferred)

    Optional environment variables:
        TERMSH_USERNAME: Login name (default: admin)
        TERMSH_HOST: Bind host (default: 127.0.0.1)
        TERMSH_PORT: Bind port (default: 5050)
        TERMSH_WORKDIR: Sandbox root (default: current directory)
        TERMSH_MAX_ATTEMPTS: Login attempts per connection (default: 3)
        TERMSH_MAX_SESSIONS: Concurrent session limit (default: 64)
        TERMSH_IDLE_TIMEOUT: Seconds to wait for each line, 0 = forever (default: 0)
        TERMSH_STATUS_PORT: HTTP status port, 0 = disabled (default: 0)
        TERMSH_LOG_LEVEL: Logging level (default: INFO)

    Returns:
        ServerConfig with loaded values

    Raises:
        ConfigurationError: If required variables are missing or malformed
    """
    # Load .env file if it exists
    env_file = Path(__file__).parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)

    # Also try parent directory .env
    parent_env = Path(__file__).parent.parent / ".env"
    if parent_env.exists():
        load_dotenv(parent_env)

    # And the directory the server is started from
    cwd_env = Path.cwd() / ".env"
    if cwd_env.exists():
        load_dotenv(cwd_env)

    password = os.getenv("TERMSH_PASSWORD") or None
    password_hash = os.getenv("TERMSH_PASSWORD_HASH") or None
    if not password and not password_hash:
        raise ConfigurationError(
            "TERMSH_PASSWORD or TERMSH_PASSWORD_HASH environment variable is required. "
            "Generate a hash with: termsh-passgen",
            missing_key="TERMSH_PASSWORD"
        )

    idle_timeout = _env_number("TERMSH_IDLE_TIMEOUT", "0", float)

    return ServerConfig(
        workdir=Path(os.getenv("TERMSH_WORKDIR", os.getcwd())).expanduser(),
        password=password,
        password_hash=password_hash,
        username=os.getenv("TERMSH_USERNAME", "admin"),
        host=os.getenv("TERMSH_HOST", "127.0.0.1"),
        port=_env_number("TERMSH_PORT", "5050"),
        max_attempts=_env_number("TERMSH_MAX_ATTEMPTS", "3"),
        max_sessions=_env_number("TERMSH_MAX_SESSIONS", "64"),
        idle_timeout=idle_timeout if idle_timeout > 0 else None,
        status_port=_env_number("TERMSH_STATUS_PORT", "0"),
        log_level=os.getenv("TERMSH_LOG_LEVEL", "INFO").upper(),
    )


def validate_config(config: ServerConfig) -> None:
    """Validate configuration values.

    Args:
        config: The configuration to validate

    Raises:
        ConfigurationError: If a value is unusable
    """
    if not config.workdir.is_dir():
        raise ConfigurationError(
            f"Working directory not found or not a directory: {config.workdir}",
            missing_key="TERMSH_WORKDIR"
        )

    if not 0 <= config.port <= 65535:
        raise ConfigurationError(f"Invalid port: {config.port}", missing_key="TERMSH_PORT")

    if not 0 <= config.status_port <= 65535:
        raise ConfigurationError(
            f"Invalid status port: {config.status_port}",
            missing_key="TERMSH_STATUS_PORT"
        )

    if config.max_attempts < 1:
        raise ConfigurationError(
            "TERMSH_MAX_ATTEMPTS must be at least 1",
            missing_key="TERMSH_MAX_ATTEMPTS"
        )

    if config.max_sessions < 1:
        raise ConfigurationError(
            "TERMSH_MAX_SESSIONS must be at least 1",
            missing_key="TERMSH_MAX_SESSIONS"
        )

    if config.password_hash:
        try:
            parse_password_hash(config.password_hash)
        except ValueError as e:
            raise ConfigurationError(str(e), missing_key="TERMSH_PASSWORD_HASH")
    elif not config.password:
        raise ConfigurationError(
            "No password configured",
            missing_key="TERMSH_PASSWORD"
        )


def build_verifier(config: ServerConfig) -> CredentialVerifier:
    """Create the credential verifier described by the configuration."""
    if config.password_hash:
        return HashedCredentialVerifier(config.username, config.password_hash)
    return StaticCredentialVerifier(config.username, config.password or "")
