"""taskbridge — Telegram front-end for OpenServ task execution."""

__version__ = "0.1.0"
