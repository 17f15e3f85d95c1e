"""termsh server.

Accepts TCP connections, authenticates each client and then runs a small
whitelisted command set against one sandboxed working directory. No OS
process is ever spawned; every command is handled in-process.
"""

__version__ = "1.0.0"
