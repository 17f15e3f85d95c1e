"""Shared pieces of the termsh line protocol.

Used by both the server and the client: the wire strings and line framing,
the argument lexer and the credential verifiers.
"""

__version__ = "1.0.0"
