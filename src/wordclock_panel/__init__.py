"""Control panel client for the word clock controller."""

__version__ = "0.1.0"
