"""Serial port tools: a session layer with counters and callbacks, a one-shot timer, a curses menu terminal and an echo program."""

__version__ = "0.1.0"