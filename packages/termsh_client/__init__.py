"""Client for termsh servers."""

__version__ = "1.0.0"
