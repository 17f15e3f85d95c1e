#!/usr/bin/env python3
"""Password hash generator for termsh servers.

Produces a value for TERMSH_PASSWORD_HASH so the plain password never has to
be stored in the server's environment.

Usage:
    # Prompt for the password
    termsh-passgen

    # Non-interactive
    termsh-passgen --password 's3cret'

    # Custom iteration count
    termsh-passgen --iterations 600000
"""

import argparse
import getpass
import sys

from .credentials import DEFAULT_ITERATIONS, hash_password


def read_password() -> str:
    """Prompt twice for a password and make sure both entries match."""
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        print("Passwords do not match.", file=sys.stderr)
        sys.exit(1)
    return first


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Generate a salted password hash for termsh-server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s                       Prompt for the password
    %(prog)s -p 's3cret'           Hash the given password
    %(prog)s -i 600000             Use more PBKDF2 iterations

Put the printed line in the server's .env file.
"""
    )
    parser.add_argument(
        "-p", "--password",
        help="Password to hash (prompted for if omitted)"
    )
    parser.add_argument(
        "-i", "--iterations",
        type=int,
        default=DEFAULT_ITERATIONS,
        help=f"PBKDF2 iteration count (default: {DEFAULT_ITERATIONS})"
    )

    args = parser.parse_args(argv)

    if args.iterations < 1:
        parser.error("iterations must be positive")

    password = args.password if args.password is not None else read_password()
    if not password:
        print("Refusing to hash an empty password.", file=sys.stderr)
        sys.exit(1)

    print(f"TERMSH_PASSWORD_HASH='{hash_password(password, iterations=args.iterations)}'")


if __name__ == "__main__":
    main()
