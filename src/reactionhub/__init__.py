"""Hot-reloading script reaction engine."""

__version__ = "0.1.0"
