"""Logging setup for termsh server."""

import logging


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install a timestamped console handler on the root logger.

    Calling this more than once only updates the level.
    """
    root = logging.getLogger()
    root.setLevel(level)

    if getattr(root, "_termsh_configured", False):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    setattr(root, "_termsh_configured", True)


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the client identifier."""

    def process(self, msg, kwargs):
        return f"[{self.extra['client']}] {msg}", kwargs


def session_logger(client_id: str, name: str = "termsh_server.session") -> SessionLoggerAdapter:
    """Logger for one connection, tagged with its host:port."""
    return SessionLoggerAdapter(logging.getLogger(name), {"client": client_id})
