"""Argument lexer for termsh command lines."""

QUOTE = '"'


def tokenize(line: str) -> list[str]:
    """Split a command line into tokens.

    Tokens are separated by runs of whitespace. A double quote toggles quoting
    and is dropped from the output; whitespace inside quotes is kept. There are
    no escape sequences, and an unterminated quote still emits whatever was
    accumulated.

    Args:
        line: Raw input line

    Returns:
        List of tokens (empty for blank input)
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False

    for ch in line:
        if ch == QUOTE:
            in_quotes = not in_quotes
        elif ch.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(ch)

    if current:
        tokens.append("".join(current))

    return tokens
