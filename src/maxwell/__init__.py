"""Maxwell: text-understanding core of a personal-assistant chat app."""

__version__ = "0.1.0"
